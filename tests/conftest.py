"""Pytest shared fixtures for the student directory tests."""
import itertools
import pathlib
import re
import sys
from typing import Optional
from urllib.parse import unquote, urlparse

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests

from student_directory.core.auth0 import Auth0Client, StudentService
from student_directory.core.auth0.transport import Transport, TransportResponse


TEST_DOMAIN = "test.auth0.local"
TEST_TOKEN = "test-token"

NOT_FOUND_BODY = {
    "statusCode": 404,
    "error": "Not Found",
    "message": "The user does not exist.",
    "errorCode": "inexistent_user",
}
CONFLICT_BODY = {
    "statusCode": 409,
    "error": "Conflict",
    "message": "The user already exists.",
    "errorCode": "auth0_idp_error",
}
SEARCH_RESULT_LIMIT = 1000
PAGING_LIMIT_BODY = {
    "statusCode": 400,
    "error": "Bad Request",
    "message": "You can only page through the first 1000 records.",
    "errorCode": "invalid_paging",
}
UNAUTHORIZED_BODY = {
    "statusCode": 401,
    "error": "Unauthorized",
    "message": "Invalid token",
    "errorCode": "invalid_token",
}


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    """
    Prevent unit tests from hitting a live Auth0 tenant.

    Integration tests are explicitly marked with @pytest.mark.integration and
    are allowed to perform real HTTP calls by skipping this fixture.
    """
    if request.node.get_closest_marker("integration"):
        return

    def _stub_request(method, url, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")

    monkeypatch.setattr(requests, "request", _stub_request)


# ─────────────────────────────────────────────────────────────────────────────
# In-memory Auth0
# ─────────────────────────────────────────────────────────────────────────────
class FakeAuth0Transport(Transport):
    """In-memory stand-in for the Auth0 token and users endpoints.

    Users are stored with their app_metadata so tenant queries, counts and
    not-found responses behave like the remote service.
    """

    def __init__(self, token_status: int = 200):
        self.users: dict[str, dict] = {}
        self.calls: list[dict] = []
        self.token_status = token_status
        self._ids = itertools.count(1)

    def add_user(
        self,
        tenant: str,
        username: str,
        last_login: Optional[str] = "2024-03-01T10:15:00.000Z",
        role: str = "student",
    ) -> dict:
        user_id = f"auth0|{next(self._ids):024d}"
        user = {
            "user_id": user_id,
            "username": username,
            "email": f"{username}@students.invalid",
            "app_metadata": {"tenant": tenant, "role": role},
        }
        if last_login is not None:
            user["last_login"] = last_login
        self.users[user_id] = user
        return user

    def calls_to(self, method: str, path: str) -> list[dict]:
        return [c for c in self.calls if c["method"] == method and c["path"] == path]

    async def request(self, method, url, *, params=None, json=None, headers=None):
        path = urlparse(url).path
        self.calls.append(
            {"method": method, "path": path, "params": params, "json": json, "headers": headers}
        )

        if path == "/oauth/token":
            if self.token_status != 200:
                return TransportResponse(
                    self.token_status,
                    {"error": "access_denied", "error_description": "Unauthorized"},
                    url,
                    "Unauthorized",
                )
            return TransportResponse(
                200,
                {"access_token": TEST_TOKEN, "token_type": "Bearer", "expires_in": 86400},
                url,
                "OK",
            )

        if (headers or {}).get("Authorization") != f"Bearer {TEST_TOKEN}":
            return TransportResponse(401, UNAUTHORIZED_BODY, url, "Unauthorized")

        if path == "/api/v2/users":
            if method == "GET":
                return self._search(params or {}, url)
            if method == "POST":
                return self._create(json, url)

        match = re.fullmatch(r"/api/v2/users/([^/]+)", path)
        if match:
            user = self.users.get(unquote(match.group(1)))
            if user is None:
                return TransportResponse(404, NOT_FOUND_BODY, url, "Not Found")
            if method == "GET":
                return TransportResponse(200, dict(user), url, "OK")
            if method == "PATCH":
                user.update({k: v for k, v in json.items() if k not in ("password", "connection")})
                return TransportResponse(200, dict(user), url, "OK")
            if method == "DELETE":
                del self.users[user["user_id"]]
                return TransportResponse(204, None, url, "No Content")

        raise RuntimeError(f"Unexpected {method} {path} in fake Auth0")

    def _search(self, params, url):
        tenant = re.search(r'app_metadata\.tenant:"(.*?)"', params["q"]).group(1)
        matches = [
            u for u in self.users.values()
            if u["app_metadata"]["tenant"] == tenant and u["app_metadata"]["role"] == "student"
        ]
        per_page = int(params.get("per_page", 50))
        page = int(params.get("page", 0))
        if (page + 1) * per_page > SEARCH_RESULT_LIMIT:
            return TransportResponse(400, PAGING_LIMIT_BODY, url, "Bad Request")
        fields = params.get("fields", "").split(",")
        window = [
            {k: u[k] for k in fields if k in u}
            for u in matches[page * per_page:(page + 1) * per_page]
        ]
        if params.get("include_totals") == "true":
            body = {"start": page * per_page, "limit": per_page, "length": len(window),
                    "users": window, "total": len(matches)}
            return TransportResponse(200, body, url, "OK")
        return TransportResponse(200, window, url, "OK")

    def _create(self, payload, url):
        if any(u["username"] == payload["username"] for u in self.users.values()):
            return TransportResponse(409, CONFLICT_BODY, url, "Conflict")
        user = self.add_user(
            payload["app_metadata"]["tenant"],
            payload["username"],
            last_login=None,
            role=payload["app_metadata"]["role"],
        )
        user["email"] = payload["email"]
        return TransportResponse(201, dict(user), url, "Created")


@pytest.fixture()
def fake_auth0():
    """Fresh in-memory Auth0 per test."""
    return FakeAuth0Transport()


@pytest.fixture()
def auth0_client(fake_auth0):
    return Auth0Client(TEST_DOMAIN, "test-client-id", "test-client-secret", transport=fake_auth0)


@pytest.fixture()
def student_service(auth0_client):
    return StudentService(auth0_client)


# ─────────────────────────────────────────────────────────────────────────────
# Pytest Configuration
# ─────────────────────────────────────────────────────────────────────────────
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (requires a live Auth0 tenant)"
    )
