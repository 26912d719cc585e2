"""Identity gateway between the HTTP layer and the Keycloak users collection.

The gateway never retries and never caches: each call is a single round trip
to the provider. Provider failures leave this module as domain errors
(``ProviderError``/``NotFoundError``) carrying the message and HTTP status
the API layer answers with.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, Iterable, Protocol, Set

from .errors import BackendResourcesError, NotFoundError, ProviderError
from .keycloak.exceptions import KeycloakAPIError, UserAlreadyExistsError, UserNotFoundError
from .models import UserRequest, UserResponse

logger = logging.getLogger(__name__)

# Keycloak statuses passed through to the caller; everything else becomes 500
_PASSTHROUGH_STATUSES = {400, 409}


class UsersProvider(Protocol):
    """Narrow view of a realm's users collection (see keycloak.UserService)."""

    def create(self, representation: Dict[str, Any]) -> Any: ...

    def get(self, user_id: str) -> Dict[str, Any]: ...

    def role_mappings(self, user_id: str) -> Dict[str, Any]: ...


def build_user_representation(request: UserRequest) -> Dict[str, Any]:
    """Keycloak UserRepresentation for a new, enabled user with a permanent password."""
    return {
        "username": request.username,
        "email": request.email,
        "firstName": request.first_name,
        "lastName": request.last_name,
        "enabled": True,
        "emailVerified": False,
        "credentials": [
            {"type": "password", "value": request.password, "temporary": False},
        ],
    }


def flatten_role_mappings(mappings: Dict[str, Any]) -> Set[str]:
    """Collect realm and client role names from a MappingsRepresentation.

    Shape:
        {"realmMappings": [{"name": ...}],
         "clientMappings": {"<client>": {"mappings": [{"name": ...}]}}}
    """
    roles: Set[str] = set()
    roles.update(_role_names(mappings.get("realmMappings")))
    client_mappings = mappings.get("clientMappings") or {}
    if isinstance(client_mappings, dict):
        for client_mapping in client_mappings.values():
            if isinstance(client_mapping, dict):
                roles.update(_role_names(client_mapping.get("mappings")))
    return roles


def _role_names(entries: Iterable[Any] | None) -> Iterable[str]:
    for entry in entries or []:
        if isinstance(entry, dict) and entry.get("name"):
            yield entry["name"]


def _user_id_from_location(location: str | None) -> str:
    if not location:
        return ""
    return location.rstrip("/").rsplit("/", 1)[-1]


class UserGateway:
    """Create and read users through a ``UsersProvider``."""

    def __init__(self, provider: UsersProvider):
        self.provider = provider

    def create_user(self, request: UserRequest) -> str:
        """Create the user and return the id Keycloak assigned.

        Raises:
            ProviderError: Provider raised or did not answer 201 Created
        """
        logger.info("Creating user '%s'", request.username)
        try:
            response = self.provider.create(build_user_representation(request))
        except BackendResourcesError:
            raise
        except UserAlreadyExistsError as exc:
            logger.warning("User '%s' already exists: %s", request.username, exc)
            raise ProviderError(str(exc), 409) from exc
        except KeycloakAPIError as exc:
            status = exc.status_code if exc.status_code in _PASSTHROUGH_STATUSES else 500
            logger.warning("Keycloak rejected user '%s': %s", request.username, exc)
            raise ProviderError(exc.message, status) from exc
        except Exception as exc:
            logger.error("User creation failed for '%s'", request.username, exc_info=True)
            raise ProviderError(str(exc), 500) from exc

        status_code = getattr(response, "status_code", None)
        if status_code != 201:
            message = getattr(response, "text", "") or getattr(response, "reason", "") or "User creation failed"
            logger.warning("Unexpected status %s creating user '%s'", status_code, request.username)
            raise ProviderError(message, status_code if isinstance(status_code, int) and status_code >= 400 else 500)

        user_id = _user_id_from_location(response.headers.get("Location"))
        logger.info("Created user '%s' (id=%s)", request.username, user_id)
        return user_id

    def get_user_by_id(self, user_id: str) -> UserResponse:
        """Return the user with its flattened role set.

        Raises:
            NotFoundError: No such user in the realm
            ProviderError: Any other provider failure, including a malformed payload
        """
        logger.info("Fetching user %s", user_id)
        try:
            representation = self.provider.get(user_id)
            if not isinstance(representation, dict):
                raise ProviderError(f"Unexpected user representation for '{user_id}'", 500)
            mappings = self.provider.role_mappings(user_id) or {}
            if not isinstance(mappings, dict):
                raise ProviderError(f"Unexpected role mappings for '{user_id}'", 500)
            return UserResponse(
                id=representation.get("id") or user_id,
                username=representation.get("username") or "",
                email=representation.get("email") or "",
                first_name=representation.get("firstName") or "",
                last_name=representation.get("lastName") or "",
                roles=frozenset(flatten_role_mappings(mappings)),
            )
        except BackendResourcesError:
            raise
        except UserNotFoundError as exc:
            logger.warning("User %s not found", user_id)
            raise NotFoundError(str(exc)) from exc
        except KeycloakAPIError as exc:
            logger.warning("Keycloak lookup failed for %s: %s", user_id, exc)
            raise ProviderError(exc.message, 500) from exc
        except Exception as exc:
            logger.error("User lookup failed for %s", user_id, exc_info=True)
            raise ProviderError(str(exc), 500) from exc

    def ready(self) -> bool:
        """True when the provider can currently reach its backend.

        Providers without a ``ready`` hook are assumed ready.
        """
        check = getattr(self.provider, "ready", None)
        if check is None:
            return True
        try:
            return bool(check())
        except Exception:
            logger.warning("Readiness check failed", exc_info=True)
            return False

    def who_am_i(self, principal_name: str) -> str:
        return principal_name
