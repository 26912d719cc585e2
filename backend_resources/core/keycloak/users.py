"""Keycloak user operations scoped to a single realm."""
from __future__ import annotations
from typing import Any, Dict
from urllib.parse import quote

import requests

from .client import KeycloakClient
from .exceptions import KeycloakAPIError, UserAlreadyExistsError, UserNotFoundError


class UserService:
    """Realm-scoped view of the Keycloak users collection.

    Mirrors the three admin calls the gateway needs: create a user, read a
    user representation, read its role mappings.
    """

    def __init__(self, client: KeycloakClient, realm: str):
        """Initialize user service.

        Args:
            client: Authenticated Keycloak client
            realm: Realm holding the managed users
        """
        self.client = client
        self.realm = realm

    @property
    def _users_path(self) -> str:
        return f"/admin/realms/{quote(self.realm, safe='')}/users"

    def _user_path(self, user_id: str) -> str:
        # Ids arrive decoded from the request path; "?", "#" and "/" must not reach Keycloak raw
        return f"{self._users_path}/{quote(user_id, safe='')}"

    def create(self, representation: Dict[str, Any]) -> requests.Response:
        """Submit a user representation.

        Returns:
            The raw creation response (201 with a Location header on success)

        Raises:
            UserAlreadyExistsError: Username or email already taken (409)
            KeycloakAPIError: Any other HTTP error
        """
        try:
            return self.client.post(self._users_path, json=representation)
        except KeycloakAPIError as exc:
            if exc.status_code == 409:
                raise UserAlreadyExistsError(exc.message) from exc
            raise

    def get(self, user_id: str) -> Dict[str, Any]:
        """Return the user representation for ``user_id``.

        Raises:
            UserNotFoundError: If the id does not exist in the realm
        """
        try:
            resp = self.client.get(self._user_path(user_id))
        except KeycloakAPIError as exc:
            if exc.status_code == 404:
                raise UserNotFoundError(f"User '{user_id}' not found in realm '{self.realm}'") from exc
            raise
        return resp.json()

    def role_mappings(self, user_id: str) -> Dict[str, Any]:
        """Return the aggregated realm + client role mappings for ``user_id``."""
        try:
            resp = self.client.get(f"{self._user_path(user_id)}/role-mappings")
        except KeycloakAPIError as exc:
            if exc.status_code == 404:
                raise UserNotFoundError(f"User '{user_id}' not found in realm '{self.realm}'") from exc
            raise
        return resp.json() or {}

    def ready(self) -> bool:
        return self.client.is_ready()
