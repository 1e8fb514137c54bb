"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_CONNECTION = "Username-Password-Authentication"
DEFAULT_STUDENT_EMAIL_DOMAIN = "students.invalid"


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.info(f"[settings] Loaded {secret_name} from /run/secrets")
                return secret_value
        except OSError as e:
            logger.warning(f"[settings] Failed to read /run/secrets/{secret_name}: {e}")

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            logger.info(f"[settings] Loaded {env_var} from environment (fallback)")
            return secret_value

    return None


@dataclass
class AppConfig:
    """Auth0 management API configuration."""
    demo_mode: bool

    auth0_domain: str
    auth0_client_id: str
    auth0_client_secret: str
    auth0_audience: str = ""

    # Database connection students are created in
    auth0_connection: str = DEFAULT_CONNECTION
    # Students have no real email address; one is derived from the username
    student_email_domain: str = DEFAULT_STUDENT_EMAIL_DOMAIN

    # None leaves the transport's own behaviour in place
    request_timeout: Optional[float] = None

    @property
    def audience_resolved(self) -> str:
        """Token audience, defaulting to the management API of the domain."""
        if self.auth0_audience:
            return self.auth0_audience
        return f"https://{self.auth0_domain}/api/v2/"


def _get_or_generate(var_name: str, demo_default: Optional[str] = None, required: bool = True, demo_mode: bool = False) -> str:
    """Get environment variable or use demo default."""
    value = os.environ.get(var_name)
    if value:
        return value

    if demo_mode and demo_default is not None:
        logger.info(f"[demo-mode] Using default for {var_name}")
        return demo_default

    if not required:
        return ""

    raise RuntimeError(f"Environment variable {var_name} is required in production mode.")


def _parse_timeout(raw: str) -> Optional[float]:
    raw = raw.strip()
    if not raw:
        return None
    try:
        timeout = float(raw)
    except ValueError:
        raise ValueError(f"AUTH0_REQUEST_TIMEOUT must be a number of seconds, got {raw!r}")
    if timeout <= 0:
        raise ValueError("AUTH0_REQUEST_TIMEOUT must be positive")
    return timeout


def load_settings() -> AppConfig:
    """Load client settings from environment and /run/secrets."""
    demo_mode = os.environ.get("DEMO_MODE", "false").lower() == "true"

    auth0_domain = _get_or_generate(
        "AUTH0_DOMAIN",
        demo_default="demo.auth0.local",
        demo_mode=demo_mode,
    )
    # Accept a full URL as well as a bare host name
    auth0_domain = auth0_domain.replace("https://", "").replace("http://", "").rstrip("/")

    auth0_client_id = _get_or_generate(
        "AUTH0_API_CLIENT_ID",
        demo_default="demo-client-id",
        demo_mode=demo_mode,
    )

    auth0_client_secret = _load_secret_from_file("auth0_api_client_secret", "AUTH0_API_CLIENT_SECRET")
    if not auth0_client_secret:
        if demo_mode:
            auth0_client_secret = "demo-client-secret"
            logger.info("[demo-mode] Using default for AUTH0_API_CLIENT_SECRET")
        else:
            raise RuntimeError("AUTH0_API_CLIENT_SECRET not found in /run/secrets or environment")

    auth0_audience = os.environ.get("AUTH0_AUDIENCE", "")
    auth0_connection = os.environ.get("AUTH0_CONNECTION", DEFAULT_CONNECTION).strip() or DEFAULT_CONNECTION
    student_email_domain = (
        os.environ.get("AUTH0_STUDENT_EMAIL_DOMAIN", DEFAULT_STUDENT_EMAIL_DOMAIN).strip().lstrip("@")
        or DEFAULT_STUDENT_EMAIL_DOMAIN
    )
    request_timeout = _parse_timeout(os.environ.get("AUTH0_REQUEST_TIMEOUT", ""))

    mode_label = "DEMO" if demo_mode else "PRODUCTION"
    logger.info(f"[settings] Mode={mode_label}; domain={auth0_domain}; connection={auth0_connection}")

    if demo_mode:
        logger.warning("[settings] Demo credentials in use. Do not deploy with these defaults.")

    return AppConfig(
        demo_mode=demo_mode,
        auth0_domain=auth0_domain,
        auth0_client_id=auth0_client_id,
        auth0_client_secret=auth0_client_secret,
        auth0_audience=auth0_audience,
        auth0_connection=auth0_connection,
        student_email_domain=student_email_domain,
        request_timeout=request_timeout,
    )
