"""Low-level HTTP client for the Auth0 Management API.

Handles the client-credentials token exchange and authenticated calls.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, Optional

from student_directory.config import AppConfig, load_settings

from .exceptions import error_from_response
from .transport import RequestsTransport, Transport, TransportResponse

logger = logging.getLogger(__name__)


class Auth0Client:
    """HTTP client for the Auth0 Management API.

    Tokens are not cached: every operation calls ``get_oauth_token`` and
    passes the result to ``request``.

    Usage:
        client = Auth0Client("tenant.eu.auth0.com", "client-id", "secret")
        token = await client.get_oauth_token()
        resp = await client.request("GET", "/api/v2/users", token=token)
    """

    def __init__(
        self,
        domain: str,
        client_id: str,
        client_secret: str,
        audience: Optional[str] = None,
        transport: Optional[Transport] = None,
    ):
        """Initialize Auth0 client.

        Args:
            domain: Auth0 tenant domain (e.g. "tenant.eu.auth0.com")
            client_id: Client-credentials application id
            client_secret: Client-credentials application secret
            audience: Token audience (defaults to the domain's management API)
            transport: HTTP transport (defaults to RequestsTransport)
        """
        self.domain = domain.rstrip("/")
        self.base_url = f"https://{self.domain}"
        self.client_id = client_id
        self.client_secret = client_secret
        self.audience = audience or f"{self.base_url}/api/v2/"
        self.transport = transport or RequestsTransport()

    async def get_oauth_token(self) -> str:
        """Fetch a management API token using the client credentials flow.

        Returns:
            Access token

        Raises:
            Auth0APIError: If the token endpoint rejects the credentials
        """
        url = f"{self.base_url}/oauth/token"
        payload = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "audience": self.audience,
        }
        resp = await self.transport.request("POST", url, json=payload)
        if not resp.ok:
            logger.warning(f"[auth0] Token request rejected with status {resp.status_code}")
            raise_for_error(resp)
        if not isinstance(resp.body, dict) or not resp.body.get("access_token"):
            logger.warning("[auth0] Token response carried no access_token")
            raise error_from_response(resp.status_code, resp.body, resp.url, resp.reason)
        return resp.body["access_token"]

    async def request(
        self,
        method: str,
        path: str,
        *,
        token: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> TransportResponse:
        """Execute one bearer-authenticated request.

        Args:
            method: HTTP method
            path: API endpoint path (e.g. "/api/v2/users")
            token: Access token from get_oauth_token
            params: Query parameters
            json: JSON payload

        Returns:
            Response

        Raises:
            Auth0APIError: On HTTP error
            TransportError: On network failure
        """
        url = f"{self.base_url}{path}"
        headers = {"Authorization": f"Bearer {token}"}
        resp = await self.transport.request(method, url, params=params, json=json, headers=headers)
        if not resp.ok:
            logger.warning(f"[auth0] {method} {path} failed with status {resp.status_code}")
            raise_for_error(resp)
        return resp


def raise_for_error(resp: TransportResponse) -> None:
    """Raise the typed error for an error response, passing remote fields through."""
    if resp.status_code >= 400:
        raise error_from_response(resp.status_code, resp.body, resp.url, resp.reason)


def create_client_from_settings(config: Optional[AppConfig] = None, transport: Optional[Transport] = None) -> Auth0Client:
    """Build an Auth0Client from application settings.

    Args:
        config: AppConfig (loaded from the environment when omitted)
        transport: Transport override

    Returns:
        Auth0Client instance
    """
    if config is None:
        config = load_settings()
    return Auth0Client(
        config.auth0_domain,
        config.auth0_client_id,
        config.auth0_client_secret,
        audience=config.audience_resolved,
        transport=transport or RequestsTransport(timeout=config.request_timeout),
    )
