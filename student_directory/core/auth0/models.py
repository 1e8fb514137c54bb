"""Student value objects built from Auth0 user representations."""
from __future__ import annotations
from dataclasses import asdict, dataclass
from typing import Optional


@dataclass(frozen=True)
class Student:
    """A student as listed or fetched. Never carries a password."""
    id: str
    username: str
    last_login: Optional[str] = None

    @classmethod
    def from_auth0(cls, user: dict) -> "Student":
        return cls(
            id=user["user_id"],
            username=user["username"],
            last_login=user.get("last_login"),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class StudentCredentials:
    """A student with the plaintext password, returned once on create or reset."""
    id: str
    username: str
    password: str

    @classmethod
    def from_auth0(cls, user: dict, password: str) -> "StudentCredentials":
        return cls(id=user["user_id"], username=user["username"], password=password)

    def to_dict(self) -> dict:
        return asdict(self)
