"""Keycloak Admin API client library.

Architecture:
- client.py: HTTP client with authentication and auto-refresh
- users.py: realm-scoped user operations (create, get, role mappings)
- exceptions.py: Typed exceptions for error handling

Usage:
    from backend_resources.core.keycloak import KeycloakClient, UserService

    client = KeycloakClient("http://keycloak:8080")
    client.authenticate_service_account("itm", "backend-gateway-client", "secret")

    users = UserService(client, "itm")
    user = users.get("903a8dd4-ebcc-49d9-9436-b8b6464d5d10")
"""
from .client import (
    KeycloakClient,
    build_client,
    REQUEST_TIMEOUT,
)
from .exceptions import (
    KeycloakError,
    KeycloakAPIError,
    UserNotFoundError,
    UserAlreadyExistsError,
)
from .users import UserService

__all__ = [
    "KeycloakClient",
    "build_client",
    "REQUEST_TIMEOUT",
    "KeycloakError",
    "KeycloakAPIError",
    "UserNotFoundError",
    "UserAlreadyExistsError",
    "UserService",
]
