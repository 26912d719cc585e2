from types import SimpleNamespace

import pytest

from backend_resources.core import gateway as gateway_module
from backend_resources.core.errors import NotFoundError, ProviderError
from backend_resources.core.gateway import UserGateway
from backend_resources.core.keycloak import KeycloakAPIError, UserAlreadyExistsError, UserNotFoundError
from backend_resources.core.models import UserRequest

REQUEST = UserRequest("test1", "test@mail.ru", "test1234", "te", "st")


@pytest.fixture()
def provider(mocker):
    return mocker.Mock(spec=["create", "get", "role_mappings"])


@pytest.fixture()
def gateway(provider):
    return UserGateway(provider)


def test_build_user_representation():
    rep = gateway_module.build_user_representation(REQUEST)
    assert rep == {
        "username": "test1",
        "email": "test@mail.ru",
        "firstName": "te",
        "lastName": "st",
        "enabled": True,
        "emailVerified": False,
        "credentials": [{"type": "password", "value": "test1234", "temporary": False}],
    }


def test_flatten_role_mappings_handles_missing_sections():
    assert gateway_module.flatten_role_mappings({}) == set()
    assert gateway_module.flatten_role_mappings({"realmMappings": [{"name": "user"}, {"id": "x"}]}) == {"user"}
    assert gateway_module.flatten_role_mappings(
        {"clientMappings": {"app": {"mappings": [{"name": "reader"}]}, "bad": None}}
    ) == {"reader"}


def test_create_user_returns_id_from_location(gateway, provider):
    provider.create.return_value = SimpleNamespace(
        status_code=201,
        headers={"Location": "http://kc/admin/realms/itm/users/abc-123/"},
    )
    assert gateway.create_user(REQUEST) == "abc-123"


def test_create_user_without_location_header(gateway, provider):
    provider.create.return_value = SimpleNamespace(status_code=201, headers={})
    assert gateway.create_user(REQUEST) == ""


def test_create_user_non_created_error_status_is_kept(gateway, provider):
    provider.create.return_value = SimpleNamespace(status_code=403, headers={}, text="forbidden")

    with pytest.raises(ProviderError) as exc:
        gateway.create_user(REQUEST)

    assert exc.value.status == 403
    assert exc.value.message == "forbidden"


@pytest.mark.parametrize(
    "error, status",
    [
        (KeycloakAPIError(400, "Password policy not met", "/users"), 400),
        (KeycloakAPIError(409, "User exists", "/users"), 409),
        (KeycloakAPIError(503, "Unavailable", "/users"), 500),
        (UserAlreadyExistsError("User exists with same email"), 409),
        (RuntimeError("test exception"), 500),
    ],
)
def test_create_user_translates_provider_errors(gateway, provider, error, status):
    provider.create.side_effect = error

    with pytest.raises(ProviderError) as exc:
        gateway.create_user(REQUEST)

    assert exc.value.status == status


def test_get_user_by_id_assembles_response(gateway, provider):
    provider.get.return_value = {"id": "u1", "username": "test1", "email": None}
    provider.role_mappings.return_value = {"realmMappings": [{"name": "user"}]}

    user = gateway.get_user_by_id("u1")

    assert user.id == "u1"
    assert user.email == ""
    assert user.roles == frozenset({"user"})
    assert user.to_dict()["roles"] == ["user"]


def test_get_user_by_id_not_found(gateway, provider):
    provider.get.side_effect = UserNotFoundError("User 'u1' not found in realm 'itm'")

    with pytest.raises(NotFoundError) as exc:
        gateway.get_user_by_id("u1")

    assert exc.value.status == 404
    provider.role_mappings.assert_not_called()


def test_get_user_by_id_keeps_domain_error_status(gateway, provider):
    provider.get.side_effect = ProviderError("Error message", 418)

    with pytest.raises(ProviderError) as exc:
        gateway.get_user_by_id("u1")

    assert exc.value.status == 418
    assert exc.value.message == "Error message"


def test_get_user_by_id_role_mapping_failure(gateway, provider):
    provider.get.return_value = {"id": "u1"}
    provider.role_mappings.side_effect = KeycloakAPIError(500, "boom", "/role-mappings")

    with pytest.raises(ProviderError) as exc:
        gateway.get_user_by_id("u1")

    assert exc.value.status == 500
    assert exc.value.message == "boom"


@pytest.mark.parametrize("representation", [3, "u1", ["u1"]])
def test_get_user_by_id_rejects_malformed_representation(gateway, provider, representation):
    provider.get.return_value = representation

    with pytest.raises(ProviderError) as exc:
        gateway.get_user_by_id("u1")

    assert exc.value.status == 500
    assert "Unexpected user representation" in exc.value.message
    provider.role_mappings.assert_not_called()


def test_get_user_by_id_rejects_malformed_role_mappings(gateway, provider):
    provider.get.return_value = {"id": "u1"}
    provider.role_mappings.return_value = [{"name": "user"}]

    with pytest.raises(ProviderError) as exc:
        gateway.get_user_by_id("u1")

    assert exc.value.status == 500
    assert "Unexpected role mappings" in exc.value.message


def test_ready_delegates_to_provider(mocker):
    provider = mocker.Mock(spec=["create", "get", "role_mappings", "ready"])
    provider.ready.return_value = False
    assert UserGateway(provider).ready() is False


def test_ready_without_provider_hook(gateway):
    assert gateway.ready() is True


def test_who_am_i_makes_no_provider_call(gateway, provider):
    assert gateway.who_am_i("test_user") == "test_user"
    provider.get.assert_not_called()
    provider.create.assert_not_called()
