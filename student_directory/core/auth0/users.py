"""Auth0 student account operations."""
from __future__ import annotations
import logging
import secrets
import string
from typing import List
from urllib.parse import quote

from student_directory.config import load_settings
from student_directory.config.settings import DEFAULT_CONNECTION, DEFAULT_STUDENT_EMAIL_DOMAIN

from .client import Auth0Client, create_client_from_settings
from .exceptions import UserNotFoundError
from .models import Student, StudentCredentials

logger = logging.getLogger(__name__)

USERS_PATH = "/api/v2/users"
STUDENT_ROLE = "student"
PAGE_SIZE = 100
# v3 search only returns the first 1000 matches of a query
SEARCH_RESULT_LIMIT = 1000
STUDENT_FIELDS = "user_id,username,last_login"


def generate_password(length: int = 16) -> str:
    """
    Generate a strong password for a student account.

    Args:
        length: Password length (default: 16)

    Returns:
        Random password with at least one lowercase, uppercase, digit and symbol
    """
    if length < 4:
        raise ValueError("Password length must be at least 4")
    symbols = "!@#$%^&*"
    alphabet = string.ascii_letters + string.digits + symbols
    while True:
        password = "".join(secrets.choice(alphabet) for _ in range(length))
        if (
            any(c.islower() for c in password)
            and any(c.isupper() for c in password)
            and any(c.isdigit() for c in password)
            and any(c in symbols for c in password)
        ):
            return password


def _tenant_query(tenant: str) -> str:
    escaped = tenant.replace("\\", "\\\\").replace('"', '\\"')
    return f'app_metadata.tenant:"{escaped}" AND app_metadata.role:"{STUDENT_ROLE}"'


def _user_path(user_id: str) -> str:
    return f"{USERS_PATH}/{quote(user_id, safe='')}"


def _not_found(endpoint: str) -> UserNotFoundError:
    # Same shape Auth0 returns for a missing id
    return UserNotFoundError(
        error="Not Found",
        status_code=404,
        error_code="inexistent_user",
        message="The user does not exist.",
        endpoint=endpoint,
    )


class StudentService:
    """Service for managing the student accounts of a tenant."""

    def __init__(
        self,
        client: Auth0Client,
        connection: str = DEFAULT_CONNECTION,
        email_domain: str = DEFAULT_STUDENT_EMAIL_DOMAIN,
    ):
        """Initialize student service.

        Args:
            client: Auth0 client
            connection: Database connection students live in
            email_domain: Domain used for the placeholder student email
        """
        self.client = client
        self.connection = connection
        self.email_domain = email_domain

    async def get_students(self, tenant: str) -> List[Student]:
        """Return every student in the tenant.

        Args:
            tenant: Tenant id

        Returns:
            List of students (empty when the tenant has none). Auth0 search
            stops at SEARCH_RESULT_LIMIT matches, so larger tenants are
            truncated to that many students.
        """
        token = await self.client.get_oauth_token()
        students: List[Student] = []
        page = 0
        while True:
            resp = await self.client.request(
                "GET",
                USERS_PATH,
                token=token,
                params={
                    "q": _tenant_query(tenant),
                    "search_engine": "v3",
                    "fields": STUDENT_FIELDS,
                    "include_fields": "true",
                    "per_page": PAGE_SIZE,
                    "page": page,
                },
            )
            users = resp.body or []
            students.extend(Student.from_auth0(user) for user in users)
            if len(users) < PAGE_SIZE:
                break
            if (page + 1) * PAGE_SIZE >= SEARCH_RESULT_LIMIT:
                logger.warning(
                    f"[students] Tenant '{tenant}' reached the {SEARCH_RESULT_LIMIT} search result limit; list truncated"
                )
                break
            page += 1
        logger.debug(f"[students] {len(students)} student(s) in tenant '{tenant}'")
        return students

    async def count_students(self, tenant: str) -> int:
        """Return the number of students in the tenant as reported by Auth0.

        The total comes from the search endpoint's totals, so only one user
        is transferred whatever the tenant size.
        """
        token = await self.client.get_oauth_token()
        resp = await self.client.request(
            "GET",
            USERS_PATH,
            token=token,
            params={
                "q": _tenant_query(tenant),
                "search_engine": "v3",
                "fields": "user_id",
                "include_fields": "true",
                "include_totals": "true",
                "per_page": 1,
                "page": 0,
            },
        )
        return int(resp.body["total"])

    async def create_student(self, tenant: str, username: str) -> StudentCredentials:
        """Create a student with a generated password.

        Args:
            tenant: Tenant id
            username: Username, unique within the connection

        Returns:
            Created student including the plaintext password

        Raises:
            UserAlreadyExistsError: If the username is taken
        """
        password = generate_password()
        payload = {
            "connection": self.connection,
            "username": username,
            "password": password,
            "email": f"{username}@{self.email_domain}",
            "email_verified": True,
            "verify_email": False,
            "app_metadata": {"role": STUDENT_ROLE, "tenant": tenant},
        }
        token = await self.client.get_oauth_token()
        resp = await self.client.request("POST", USERS_PATH, token=token, json=payload)
        created = StudentCredentials.from_auth0(resp.body, password)
        logger.info(f"[students] Created '{created.username}' (id={created.id}) in tenant '{tenant}'")
        return created

    async def _fetch_tenant_student(self, tenant: str, user_id: str, token: str) -> dict:
        """Fetch a user and confirm it is a student of the tenant.

        A user belonging to another tenant, or who is not a student, is
        reported exactly like a missing one.
        """
        resp = await self.client.request(
            "GET",
            _user_path(user_id),
            token=token,
            params={"fields": f"{STUDENT_FIELDS},app_metadata", "include_fields": "true"},
        )
        user = resp.body
        metadata = user.get("app_metadata") or {}
        if metadata.get("tenant") != tenant or metadata.get("role") != STUDENT_ROLE:
            logger.warning(f"[students] User {user_id} is not a student of tenant '{tenant}'")
            raise _not_found(resp.url)
        return user

    async def get_student(self, tenant: str, user_id: str) -> Student:
        """Fetch one student by id.

        Raises:
            UserNotFoundError: If the id is not a student of the tenant
        """
        token = await self.client.get_oauth_token()
        user = await self._fetch_tenant_student(tenant, user_id, token)
        return Student.from_auth0(user)

    async def reset_student_password(self, tenant: str, user_id: str) -> StudentCredentials:
        """Give a student a new generated password.

        Returns:
            Student with the same id and username and the new password

        Raises:
            UserNotFoundError: If the id is not a student of the tenant
        """
        token = await self.client.get_oauth_token()
        await self._fetch_tenant_student(tenant, user_id, token)
        password = generate_password()
        resp = await self.client.request(
            "PATCH",
            _user_path(user_id),
            token=token,
            json={"password": password, "connection": self.connection},
        )
        modified = StudentCredentials.from_auth0(resp.body, password)
        logger.info(f"[students] Password reset for '{modified.username}' in tenant '{tenant}'")
        return modified

    async def delete_student(self, tenant: str, user_id: str) -> None:
        """Delete a student. No result is returned.

        Raises:
            UserNotFoundError: If the id is not a student of the tenant
        """
        token = await self.client.get_oauth_token()
        await self._fetch_tenant_student(tenant, user_id, token)
        await self.client.request("DELETE", _user_path(user_id), token=token)
        logger.info(f"[students] Deleted {user_id} from tenant '{tenant}'")


# ─────────────────────────────────────────────────────────────────────────────
# Standalone functions configured from the environment
# ─────────────────────────────────────────────────────────────────────────────

def _service(config=None) -> StudentService:
    """Build a fresh service per call so nothing is shared between calls."""
    if config is None:
        config = load_settings()
    return StudentService(
        create_client_from_settings(config),
        connection=config.auth0_connection,
        email_domain=config.student_email_domain,
    )


async def get_students(tenant: str, config=None) -> List[Student]:
    """Return every student in the tenant."""
    return await _service(config).get_students(tenant)


async def count_students(tenant: str, config=None) -> int:
    """Return the number of students in the tenant."""
    return await _service(config).count_students(tenant)


async def create_student(tenant: str, username: str, config=None) -> StudentCredentials:
    """Create a student with a generated password."""
    return await _service(config).create_student(tenant, username)


async def get_student(tenant: str, user_id: str, config=None) -> Student:
    """Fetch one student by id."""
    return await _service(config).get_student(tenant, user_id)


async def reset_student_password(tenant: str, user_id: str, config=None) -> StudentCredentials:
    """Give a student a new generated password."""
    return await _service(config).reset_student_password(tenant, user_id)


async def delete_student(tenant: str, user_id: str, config=None) -> None:
    """Delete a student."""
    await _service(config).delete_student(tenant, user_id)
