"""
Flask decorators for authentication and authorization.

Callers present a Keycloak-issued access token (RFC 6750 Bearer token).
The token is verified against the realm JWKS, the caller's roles are read
from its claims, and each route declares which roles it requires.

Security:
- RSA-SHA256 signature verification via JWKS (RFC 7517)
- Expiration, not-before, issuer and (optional) audience validation (RFC 7519)
- JWKS caching (1-hour refresh)
"""

import logging
from functools import wraps
from typing import Dict, Iterable, Optional

import jwt
from jwt import PyJWKClient
from jwt.exceptions import (
    ExpiredSignatureError,
    InvalidAudienceError,
    InvalidIssuerError,
    InvalidSignatureError,
    InvalidTokenError,
    DecodeError,
    PyJWKClientError,
)
from flask import current_app, g, jsonify, request

from backend_resources.core.models import Principal
from backend_resources.core.rbac import collect_roles, has_any_role, principal_name

logger = logging.getLogger(__name__)

# Global JWKS client (cached singleton)
_jwks_client: Optional[PyJWKClient] = None


class TokenValidationError(Exception):
    """Exception raised when JWT token validation fails."""
    pass


def get_jwks_client() -> PyJWKClient:
    """
    Get cached JWKS client.

    Keys are fetched from the realm's certs endpoint and selected by the
    ``kid`` of the incoming token header.
    """
    global _jwks_client

    if _jwks_client is None:
        cfg = current_app.config["APP_CONFIG"]
        logger.info("Initializing JWKS client for: %s", cfg.jwks_url)
        _jwks_client = PyJWKClient(
            cfg.jwks_url,
            cache_keys=True,
            max_cached_keys=16,
            lifespan=3600,
            headers={"User-Agent": "backend-resources/1.0"},
        )

    return _jwks_client


def reset_jwks_client() -> None:
    global _jwks_client
    _jwks_client = None


def validate_jwt_token(token: str) -> Dict[str, object]:
    """
    Validate JWT Bearer token with full security checks.

    Validations performed:
    1. Signature verification (RS256 via JWKS)
    2. Expiration (exp claim)
    3. Not Before (nbf claim)
    4. Issuer (iss claim)
    5. Audience (aud claim, only if OIDC_AUDIENCE is configured)

    Args:
        token: JWT token string (without "Bearer " prefix)

    Returns:
        dict: Validated token claims

    Raises:
        TokenValidationError: If any validation fails
    """
    cfg = current_app.config["APP_CONFIG"]

    try:
        signing_key = get_jwks_client().get_signing_key_from_jwt(token)
        claims = jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            issuer=cfg.keycloak_issuer,
            audience=cfg.oidc_audience or None,
            options={
                "verify_signature": True,
                "verify_exp": True,
                "verify_nbf": True,
                "verify_iss": True,
                "verify_aud": bool(cfg.oidc_audience),
                "require": ["exp", "iat"],
            },
            leeway=5,
        )
    except ExpiredSignatureError:
        raise TokenValidationError("Token expired (exp claim)")
    except InvalidIssuerError as e:
        raise TokenValidationError(f"Invalid issuer: {e}")
    except InvalidAudienceError as e:
        raise TokenValidationError(f"Invalid audience: {e}")
    except InvalidSignatureError:
        raise TokenValidationError("Invalid signature")
    except DecodeError as e:
        raise TokenValidationError(f"Token decode error (malformed JWT): {e}")
    except (InvalidTokenError, PyJWKClientError) as e:
        raise TokenValidationError(f"Token validation failed: {e}")

    logger.debug("JWT validated for %s", claims.get("preferred_username") or claims.get("sub"))
    return claims


def _unauthorized(message: str):
    response = jsonify({"error": "Unauthorized", "message": message})
    response.status_code = 401
    response.headers["WWW-Authenticate"] = 'Bearer realm="backend-resources"'
    return response


def require_auth(roles: Optional[Iterable[str]] = None):
    """
    Decorator requiring a valid Bearer token and, optionally, one of ``roles``.

    Role names are compared case-insensitively, ignoring a ``ROLE_`` prefix.
    The authenticated caller is stored on ``g.principal``.

    Returns:
        401 Unauthorized: Missing, malformed, invalid or expired token
        403 Forbidden: Caller lacks every required role

    Example:
        @bp.route("", methods=["POST"])
        @require_auth(roles=["moderator"])
        def create_user():
            ...
    """
    required = list(roles or [])

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            auth_header = request.headers.get("Authorization", "")
            if not auth_header:
                logger.info("Request to %s missing Authorization header", request.path)
                return _unauthorized("Authorization header required. Use 'Authorization: Bearer <token>'")
            if not auth_header.startswith("Bearer "):
                return _unauthorized("Invalid Authorization header format. Expected 'Bearer <token>'")

            token = auth_header[7:].strip()
            if not token:
                return _unauthorized("Bearer token is empty")

            try:
                claims = validate_jwt_token(token)
            except TokenValidationError as e:
                logger.warning("JWT validation failed: %s", e)
                return _unauthorized(str(e))

            principal = Principal(
                username=principal_name(claims),
                roles=frozenset(collect_roles(claims)),
            )
            g.principal = principal

            if not has_any_role(principal.roles, required):
                logger.warning(
                    "User '%s' lacks required role for %s. Required: %s, has: %s",
                    principal.username,
                    request.path,
                    required,
                    sorted(principal.roles),
                )
                response = jsonify({"error": "Forbidden", "message": f"Required role: {', '.join(required)}"})
                response.status_code = 403
                return response

            return fn(*args, **kwargs)

        return wrapper
    return decorator


def current_principal() -> Optional[Principal]:
    """Caller attached by @require_auth, or None outside a guarded route."""
    return g.get("principal")
