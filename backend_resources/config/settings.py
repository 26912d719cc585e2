"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

SECRETS_DIR = Path("/run/secrets")


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
    secret_file = SECRETS_DIR / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.info("Loaded %s from %s", secret_name, SECRETS_DIR)
                return secret_value
        except OSError as e:
            logger.warning("Failed to read %s/%s: %s", SECRETS_DIR, secret_name, e)

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


@dataclass
class AppConfig:
    """Application configuration container."""
    # Keycloak admin API
    keycloak_url: str = "http://keycloak:8080"
    keycloak_realm: str = "itm"
    keycloak_auth_realm: str = "itm"
    keycloak_client_id: str = "backend-gateway-client"
    keycloak_client_secret: str = ""
    keycloak_admin: str = ""
    keycloak_admin_password: str = ""
    keycloak_request_timeout: float = 5.0

    # Bearer token validation
    keycloak_issuer: str = ""
    oidc_audience: str = ""

    # Roles
    moderator_role: str = "moderator"

    # Logging
    log_level: str = "INFO"

    @property
    def jwks_url(self) -> str:
        """JWKS endpoint of the realm that issues caller tokens."""
        return f"{self.keycloak_issuer.rstrip('/')}/protocol/openid-connect/certs"

    @property
    def uses_service_account(self) -> bool:
        return bool(self.keycloak_client_secret)


_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _parse_timeout(raw: Optional[str], default: float) -> float:
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise RuntimeError(f"KEYCLOAK_REQUEST_TIMEOUT must be a number, got {raw!r}")
    if value <= 0:
        raise RuntimeError("KEYCLOAK_REQUEST_TIMEOUT must be positive")
    return value


def _parse_log_level(raw: Optional[str]) -> str:
    level = (raw or "INFO").strip().upper()
    if level not in _LOG_LEVELS:
        raise RuntimeError(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}, got {raw!r}")
    return level


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets."""
    keycloak_url = os.environ.get("KEYCLOAK_URL", "http://keycloak:8080").rstrip("/")
    keycloak_realm = os.environ.get("KEYCLOAK_REALM", "itm")
    keycloak_auth_realm = os.environ.get("KEYCLOAK_AUTH_REALM", keycloak_realm)

    keycloak_client_secret = _load_secret_from_file(
        "keycloak_client_secret",
        "KEYCLOAK_CLIENT_SECRET",
    ) or ""
    keycloak_admin_password = _load_secret_from_file(
        "keycloak_admin_password",
        "KEYCLOAK_ADMIN_PASSWORD",
    ) or ""

    keycloak_issuer = os.environ.get("KEYCLOAK_ISSUER") or f"{keycloak_url}/realms/{keycloak_realm}"

    cfg = AppConfig(
        keycloak_url=keycloak_url,
        keycloak_realm=keycloak_realm,
        keycloak_auth_realm=keycloak_auth_realm,
        keycloak_client_id=os.environ.get("KEYCLOAK_CLIENT_ID", "backend-gateway-client"),
        keycloak_client_secret=keycloak_client_secret,
        keycloak_admin=os.environ.get("KEYCLOAK_ADMIN", ""),
        keycloak_admin_password=keycloak_admin_password,
        keycloak_request_timeout=_parse_timeout(os.environ.get("KEYCLOAK_REQUEST_TIMEOUT"), 5.0),
        keycloak_issuer=keycloak_issuer.rstrip("/"),
        oidc_audience=os.environ.get("OIDC_AUDIENCE", ""),
        moderator_role=os.environ.get("USERS_MODERATOR_ROLE", "moderator").strip().lower(),
        log_level=_parse_log_level(os.environ.get("LOG_LEVEL")),
    )

    logger.info(
        "Settings loaded; realm=%s auth_realm=%s client_id=%s",
        cfg.keycloak_realm,
        cfg.keycloak_auth_realm,
        cfg.keycloak_client_id,
    )
    return cfg
