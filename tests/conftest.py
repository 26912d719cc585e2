"""Pytest shared fixtures."""
import time
from types import SimpleNamespace
from typing import Optional

import jwt
import pytest
import requests
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives import serialization

from backend_resources.api import decorators
from backend_resources.config import AppConfig
from backend_resources.core.gateway import UserGateway
from backend_resources.flask_app import create_app

ISSUER = "http://keycloak:8080/realms/itm"


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch):
    """Fail loudly if a unit test reaches for the network through requests."""

    def _refuse(*args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP call in unit test: {args} {kwargs.get('url', '')}")

    monkeypatch.setattr(requests, "get", _refuse)
    monkeypatch.setattr(requests, "post", _refuse)
    monkeypatch.setattr(requests, "request", _refuse)


# ─────────────────────────────────────────────────────────────────────────────
# RSA Key Pair for JWT Testing
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(scope="session")
def rsa_key_pair():
    """Generate RSA key pair for JWT signing in tests."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return {
        "private_key": private_key,
        "private_pem": private_pem,
        "public_key": private_key.public_key(),
    }


def _create_token(
    rsa_key_pair: dict,
    username: str = "test_user",
    roles: Optional[list] = None,
    client_roles: Optional[dict] = None,
    issuer: str = ISSUER,
    audience: Optional[str] = None,
    exp_offset: int = 3600,
) -> str:
    """Create an RS256-signed Keycloak-style access token."""
    if roles is None:
        roles = ["MODERATOR"]
    now = int(time.time())
    payload = {
        "iss": issuer,
        "sub": f"sub-{username}",
        "iat": now,
        "nbf": now,
        "exp": now + exp_offset,
        "preferred_username": username,
        "realm_access": {"roles": roles},
    }
    if client_roles:
        payload["resource_access"] = {client: {"roles": r} for client, r in client_roles.items()}
    if audience:
        payload["aud"] = audience
    return jwt.encode(payload, rsa_key_pair["private_pem"], algorithm="RS256", headers={"kid": "test-key"})


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def make_token(rsa_key_pair):
    """Factory for signed tokens: make_token(username="alice", roles=["user"])."""

    def _make(**kwargs) -> str:
        return _create_token(rsa_key_pair, **kwargs)

    return _make


@pytest.fixture()
def auth_headers(make_token):
    """Factory for Authorization headers carrying a signed token."""

    def _headers(**kwargs) -> dict:
        return _bearer(make_token(**kwargs))

    return _headers


# ─────────────────────────────────────────────────────────────────────────────
# Application
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def app_config():
    return AppConfig(
        keycloak_url="http://keycloak:8080",
        keycloak_realm="itm",
        keycloak_auth_realm="itm",
        keycloak_client_secret="secret",
        keycloak_issuer=ISSUER,
        moderator_role="moderator",
        log_level="DEBUG",
    )


@pytest.fixture()
def jwks(monkeypatch, rsa_key_pair):
    """Serve the test public key in place of the realm JWKS endpoint."""
    stub = SimpleNamespace(
        get_signing_key_from_jwt=lambda token: SimpleNamespace(key=rsa_key_pair["public_key"])
    )
    monkeypatch.setattr(decorators, "_jwks_client", None)
    monkeypatch.setattr(decorators, "get_jwks_client", lambda: stub)
    return stub


@pytest.fixture()
def provider(mocker):
    """Mocked realm users collection (create / get / role_mappings)."""
    return mocker.Mock(spec=["create", "get", "role_mappings"])


@pytest.fixture()
def flask_app(app_config, provider, jwks):
    app = create_app(config=app_config, gateway=UserGateway(provider))
    app.config.update(TESTING=True)
    return app


@pytest.fixture()
def client(flask_app):
    with flask_app.test_client() as client:
        yield client


@pytest.fixture()
def moderator_headers(auth_headers):
    return auth_headers(username="test_user", roles=["MODERATOR"])
