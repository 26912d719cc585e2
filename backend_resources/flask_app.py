"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the Flask application with blueprints, error handlers and the Keycloak
user gateway.
"""
from __future__ import annotations
import logging
import sys
from typing import Optional

from flask import Flask

from backend_resources.config import AppConfig, load_settings
from backend_resources.core.gateway import UserGateway

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger."""
    root = logging.getLogger()
    if not any(getattr(h, "_backend_resources", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._backend_resources = True
        root.addHandler(handler)
    root.setLevel(level)


def _build_gateway(cfg: AppConfig) -> UserGateway:
    from backend_resources.core.keycloak import UserService, build_client

    client = build_client(cfg)
    return UserGateway(UserService(client, cfg.keycloak_realm))


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(config: Optional[AppConfig] = None, gateway: Optional[UserGateway] = None) -> Flask:
    """Create and configure Flask application.

    Args:
        config: Settings override (defaults to load_settings())
        gateway: User gateway override; when omitted a Keycloak client is
            built and authenticated from the settings
    """
    cfg = config or load_settings()
    configure_logging(cfg.log_level)

    app = Flask(__name__)
    app.config["APP_CONFIG"] = cfg

    app.extensions["user_gateway"] = gateway if gateway is not None else _build_gateway(cfg)

    from backend_resources.api import errors, health, users

    app.register_blueprint(health.bp)
    app.register_blueprint(users.bp, url_prefix="/api/users")

    errors.register_error_handlers(app)

    app.logger.info(
        "backend-resources started; realm=%s moderator_role=%s",
        cfg.keycloak_realm,
        cfg.moderator_role,
    )
    return app
