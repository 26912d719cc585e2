"""User management endpoints (``/api/users``)."""
from functools import wraps

from flask import Blueprint, current_app, jsonify, request

from backend_resources.api.decorators import current_principal, require_auth
from backend_resources.core.gateway import UserGateway
from backend_resources.core.validators import validate_user_request

bp = Blueprint("users", __name__)


def _gateway() -> UserGateway:
    return current_app.extensions["user_gateway"]


def _moderator_role() -> str:
    return current_app.config["APP_CONFIG"].moderator_role


def _require_moderator(fn):
    # Role name comes from settings, so it is resolved per request
    @wraps(fn)
    def guarded(*args, **kwargs):
        return require_auth(roles=[_moderator_role()])(fn)(*args, **kwargs)

    return guarded


@bp.route("", methods=["POST"])
@_require_moderator
def create_user():
    """Validate the payload and create the user in Keycloak."""
    payload = request.get_json(silent=True)
    user_request = validate_user_request(payload)
    user_id = _gateway().create_user(user_request)
    return jsonify({"id": user_id}), 200


@bp.route("/hello", methods=["GET"])
@require_auth()
def hello():
    """Return the authenticated caller's username."""
    name = _gateway().who_am_i(current_principal().username)
    return (name, 200, {"Content-Type": "text/plain; charset=utf-8"})


@bp.route("/<user_id>", methods=["GET"])
@require_auth()
def get_user(user_id: str):
    user = _gateway().get_user_by_id(user_id)
    return jsonify(user.to_dict()), 200
