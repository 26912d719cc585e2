"""Low-level HTTP client for Keycloak Admin API.

Handles authentication, token management, and HTTP operations.
"""
from __future__ import annotations
import logging
import threading
from datetime import datetime, timedelta
from typing import Optional, Dict, Any

import requests

from .exceptions import KeycloakAPIError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 5
# Refresh this long before the token actually expires
TOKEN_REFRESH_LEEWAY = timedelta(seconds=10)


class KeycloakClient:
    """HTTP client for Keycloak Admin API with automatic token management.

    Features:
    - Automatic token refresh when expired
    - Centralized error handling
    - Support for both admin and service account authentication

    The client is shared by all request threads; token refresh is serialized
    with a lock.

    Usage:
        client = KeycloakClient("http://keycloak:8080")
        client.authenticate_service_account("itm", "backend-gateway-client", "secret")
        response = client.get("/admin/realms/itm/users/<id>")
    """

    def __init__(self, base_url: str, timeout: float = REQUEST_TIMEOUT):
        """Initialize Keycloak client.

        Args:
            base_url: Keycloak base URL (e.g. http://keycloak:8080)
            timeout: Timeout in seconds applied to every outbound request
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._token: Optional[str] = None
        self._token_expires_at: Optional[datetime] = None
        self._auth_method: Optional[str] = None
        self._auth_params: Dict[str, Any] = {}
        self._lock = threading.Lock()

    @property
    def auth_method(self) -> Optional[str]:
        """'admin', 'service_account' or None before authentication."""
        return self._auth_method

    def authenticate_admin(self, username: str, password: str, realm: str = "master") -> str:
        """Authenticate as admin user and store credentials for auto-refresh.

        Args:
            username: Admin username
            password: Admin password
            realm: Authentication realm (default: master)

        Returns:
            Access token
        """
        self._auth_method = "admin"
        self._auth_params = {"username": username, "password": password, "realm": realm}
        with self._lock:
            self._refresh_token()
        return self._token

    def authenticate_service_account(self, auth_realm: str, client_id: str, client_secret: str) -> str:
        """Authenticate as service account and store credentials for auto-refresh.

        Args:
            auth_realm: Realm where service account client exists
            client_id: Service account client ID
            client_secret: Service account client secret

        Returns:
            Access token
        """
        self._auth_method = "service_account"
        self._auth_params = {
            "auth_realm": auth_realm,
            "client_id": client_id,
            "client_secret": client_secret,
        }
        with self._lock:
            self._refresh_token()
        return self._token

    def _ensure_authenticated(self) -> str:
        """Ensure we have a valid token, refreshing if necessary."""
        with self._lock:
            if not self._auth_method:
                raise KeycloakAPIError(
                    401,
                    "Not authenticated - call authenticate_admin or authenticate_service_account first",
                    "",
                )
            if (
                not self._token
                or not self._token_expires_at
                or datetime.now() >= self._token_expires_at - TOKEN_REFRESH_LEEWAY
            ):
                self._refresh_token()
            return self._token

    def is_ready(self) -> bool:
        """Return True if a valid token is held or can be obtained right now."""
        try:
            self._ensure_authenticated()
        except (KeycloakAPIError, requests.RequestException) as exc:
            logger.warning("Keycloak not ready: %s", exc)
            return False
        return True

    def _refresh_token(self) -> None:
        if self._auth_method == "admin":
            payload = self._request_token(
                self._auth_params["realm"],
                {
                    "grant_type": "password",
                    "client_id": "admin-cli",
                    "username": self._auth_params["username"],
                    "password": self._auth_params["password"],
                },
            )
        else:
            payload = self._request_token(
                self._auth_params["auth_realm"],
                {
                    "grant_type": "client_credentials",
                    "client_id": self._auth_params["client_id"],
                    "client_secret": self._auth_params["client_secret"],
                },
            )
        self._token = payload["access_token"]
        expires_in = int(payload.get("expires_in", 60))
        self._token_expires_at = datetime.now() + timedelta(seconds=expires_in)
        logger.debug("Obtained %s token (expires in %ss)", self._auth_method, expires_in)

    def _request_token(self, realm: str, data: Dict[str, str]) -> Dict[str, Any]:
        url = f"{self.base_url}/realms/{realm}/protocol/openid-connect/token"
        resp = requests.post(url, data=data, timeout=self.timeout)
        if resp.status_code != 200:
            raise KeycloakAPIError(resp.status_code, resp.text, url)
        return resp.json()

    def request(self, method: str, path: str, **kwargs) -> requests.Response:
        """Execute an authenticated request against the Admin API.

        Args:
            method: HTTP method
            path: API endpoint path (e.g., "/admin/realms/itm/users")
            **kwargs: Additional arguments for requests.request

        Returns:
            Response object

        Raises:
            KeycloakAPIError: On HTTP error
        """
        token = self._ensure_authenticated()
        url = f"{self.base_url}{path}"
        headers = kwargs.pop("headers", {})
        headers["Authorization"] = f"Bearer {token}"

        resp = requests.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        self._handle_error(resp)
        return resp

    def get(self, path: str, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        return self.request("GET", path, params=params, **kwargs)

    def post(self, path: str, json: Optional[Any] = None, **kwargs) -> requests.Response:
        return self.request("POST", path, json=json, **kwargs)

    def _handle_error(self, resp: requests.Response) -> None:
        """Centralized error handling for HTTP responses.

        Args:
            resp: Response object to check

        Raises:
            KeycloakAPIError: If response status indicates error
        """
        if resp.status_code >= 400:
            raise KeycloakAPIError(resp.status_code, _error_message(resp), resp.url)


def _error_message(resp: requests.Response) -> str:
    """Extract Keycloak's error text (``errorMessage``/``error``) or the raw body."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text
    if isinstance(body, dict):
        for key in ("errorMessage", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return resp.text


def build_client(cfg) -> KeycloakClient:
    """Create an authenticated client from application settings.

    Service account credentials are preferred; admin credentials are the
    fallback for local setups without a confidential client.
    """
    client = KeycloakClient(cfg.keycloak_url, timeout=cfg.keycloak_request_timeout)
    if cfg.uses_service_account:
        client.authenticate_service_account(
            cfg.keycloak_auth_realm,
            cfg.keycloak_client_id,
            cfg.keycloak_client_secret,
        )
    elif cfg.keycloak_admin and cfg.keycloak_admin_password:
        client.authenticate_admin(
            cfg.keycloak_admin,
            cfg.keycloak_admin_password,
            realm=cfg.keycloak_auth_realm,
        )
    else:
        raise RuntimeError(
            "Keycloak credentials missing: set KEYCLOAK_CLIENT_SECRET "
            "or KEYCLOAK_ADMIN/KEYCLOAK_ADMIN_PASSWORD."
        )
    logger.info("Keycloak client ready for %s (auth=%s)", client.base_url, client.auth_method)
    return client
