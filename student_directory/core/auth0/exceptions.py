"""Auth0-specific exceptions for error handling."""
from __future__ import annotations
from typing import Optional


class Auth0Error(Exception):
    """Base exception for all Auth0 operations."""
    pass


class Auth0APIError(Auth0Error):
    """HTTP error from the Auth0 Management API.

    The remote error fields are kept exactly as returned.

    Attributes:
        error: Short error name (e.g. "Not Found")
        status_code: HTTP status code
        error_code: Machine-readable code (e.g. "inexistent_user"), may be None
        message: Human-readable description
        endpoint: API endpoint that failed
    """

    def __init__(
        self,
        error: str,
        status_code: int,
        error_code: Optional[str] = None,
        message: str = "",
        endpoint: str = "",
    ):
        self.error = error
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.endpoint = endpoint
        super().__init__(f"[{status_code}] {endpoint}: {error} ({error_code}) {message}".rstrip())

    def to_dict(self) -> dict:
        """Convert to the remote error body format."""
        return {
            "error": self.error,
            "statusCode": self.status_code,
            "errorCode": self.error_code,
            "message": self.message,
        }


class UnauthorizedError(Auth0APIError):
    """Token missing, invalid or expired (401)."""
    pass


class InsufficientPermissionsError(Auth0APIError):
    """Token lacks the scope required by the endpoint (403)."""
    pass


class UserNotFoundError(Auth0APIError):
    """User id does not exist in the tenant (404)."""
    pass


class UserAlreadyExistsError(Auth0APIError):
    """Username already taken in the connection (409)."""
    pass


class RateLimitError(Auth0APIError):
    """Management API rate limit hit (429)."""
    pass


class TransportError(Auth0Error):
    """Network failure or timeout before any HTTP response arrived."""
    pass


STATUS_ERRORS = {
    401: UnauthorizedError,
    403: InsufficientPermissionsError,
    404: UserNotFoundError,
    409: UserAlreadyExistsError,
    429: RateLimitError,
}


def error_from_response(status_code: int, body, endpoint: str, reason: str = "") -> Auth0APIError:
    """Build the typed error for an HTTP error response.

    Args:
        status_code: HTTP status code
        body: Parsed JSON body, raw text, or None
        endpoint: URL that was called
        reason: HTTP reason phrase, used when the body carries no error name

    Returns:
        Auth0APIError subclass matching the status code
    """
    cls = STATUS_ERRORS.get(status_code, Auth0APIError)
    if isinstance(body, dict):
        return cls(
            error=body.get("error") or reason,
            status_code=body.get("statusCode", status_code),
            error_code=body.get("errorCode"),
            message=body.get("message") or body.get("error_description") or "",
            endpoint=endpoint,
        )
    return cls(
        error=reason,
        status_code=status_code,
        error_code=None,
        message=body if isinstance(body, str) else "",
        endpoint=endpoint,
    )
