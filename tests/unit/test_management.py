"""Unit tests for the management API managers."""

from __future__ import annotations

import json
from typing import Any

import pytest

from idp_rest_sdk.config import ManagerOptions, RetryConfig, SdkConfig
from idp_rest_sdk.errors import ArgumentError, ServerError
from idp_rest_sdk.management import ClientsManager, ManagementClient, RolesManager
from idp_rest_sdk.token_provider import StaticTokenProvider

from fakes import BASE_URL, DOMAIN, FakeTokenProvider, RecordingHandler, call_with_callback, mock_http_client, reply


def manager_options(handler: RecordingHandler, **overrides: Any) -> dict[str, Any]:
    options: dict[str, Any] = {
        "base_url": BASE_URL,
        "token_provider": FakeTokenProvider("mgmt-token"),
        "http_client": mock_http_client(handler),
        "retry": RetryConfig(max_retries=2, initial_delay=0.0, max_delay=0.0, jitter=0.0),
    }
    options.update(overrides)
    return options


class TestManagerOptions:
    """Tests for manager construction errors."""

    def test_missing_options(self) -> None:
        with pytest.raises(ArgumentError, match="Must provide manager options"):
            RolesManager(None)  # type: ignore[arg-type]

    def test_missing_client_options(self) -> None:
        with pytest.raises(ArgumentError, match="Must provide client options"):
            ClientsManager(None)  # type: ignore[arg-type]

    def test_missing_base_url(self) -> None:
        with pytest.raises(ArgumentError, match="Must provide a base URL for the API"):
            RolesManager({"headers": {}})

    def test_invalid_base_url(self) -> None:
        with pytest.raises(ArgumentError, match="The provided base URL is invalid"):
            RolesManager({"base_url": ""})

    def test_trailing_slash_is_stripped(self) -> None:
        manager = RolesManager(ManagerOptions(base_url=f"{BASE_URL}/"))
        assert manager.options.base_url == BASE_URL


class TestRolesManager:
    """Tests for roles, permissions and users."""

    @pytest.mark.asyncio
    async def test_get_role(self) -> None:
        handler = RecordingHandler(reply(200, {"id": "rol_1", "name": "admin"}))
        roles = RolesManager(manager_options(handler))

        role = await roles.get({"id": "rol_1"})

        assert role["name"] == "admin"
        assert handler.last.url.path == "/api/v2/roles/rol_1"
        assert handler.last.headers["authorization"] == "Bearer mgmt-token"

    @pytest.mark.asyncio
    async def test_update_uses_patch(self) -> None:
        handler = RecordingHandler()
        roles = RolesManager(manager_options(handler))

        await roles.update({"id": "rol_1"}, {"description": "x"})

        assert handler.last.method == "PATCH"
        assert json.loads(handler.last.content) == {"description": "x"}

    @pytest.mark.asyncio
    async def test_get_permissions_with_query(self) -> None:
        handler = RecordingHandler(reply(200, []))
        roles = RolesManager(manager_options(handler))

        await roles.get_permissions({"id": "rol_1", "per_page": 10, "page": 0})

        assert handler.last.method == "GET"
        assert handler.last.url.path == "/api/v2/roles/rol_1/permissions"
        assert handler.last.url.params["per_page"] == "10"
        assert handler.last.url.params["page"] == "0"

    @pytest.mark.asyncio
    async def test_add_and_remove_permissions(self) -> None:
        handler = RecordingHandler()
        roles = RolesManager(manager_options(handler))
        body = {"permissions": [{"resource_server_identifier": "api", "permission_name": "read"}]}

        await roles.add_permissions({"id": "rol_1"}, body)
        await roles.remove_permissions({"id": "rol_1"}, body)

        added, removed = handler.requests
        assert (added.method, added.url.path) == ("POST", "/api/v2/roles/rol_1/permissions")
        assert (removed.method, removed.url.path) == ("DELETE", "/api/v2/roles/rol_1/permissions")
        assert json.loads(removed.content) == body

    @pytest.mark.parametrize("params", [None, {}, {"id": None}, {"id": ""}])
    def test_add_permissions_requires_role_id(self, params: Any) -> None:
        roles = RolesManager(manager_options(RecordingHandler()))
        with pytest.raises(ArgumentError, match="cannot be null or undefined"):
            roles.add_permissions(params, {})

    def test_role_id_must_be_string(self) -> None:
        roles = RolesManager(manager_options(RecordingHandler()))
        with pytest.raises(ArgumentError, match="The role Id has to be a string"):
            roles.assign_users({"id": 123}, {"users": []})

    @pytest.mark.asyncio
    async def test_assign_users_targets_users_endpoint(self) -> None:
        handler = RecordingHandler()
        roles = RolesManager(manager_options(handler))

        await roles.assign_users({"id": "rol_1"}, {"users": ["auth0|u1"]})

        assert handler.last.method == "POST"
        assert handler.last.url.path == "/api/v2/roles/rol_1/users"
        assert json.loads(handler.last.content) == {"users": ["auth0|u1"]}

    @pytest.mark.asyncio
    async def test_assign_users_callback_targets_users_endpoint(self) -> None:
        handler = RecordingHandler()
        roles = RolesManager(manager_options(handler))

        error, _ = await call_with_callback(roles.assign_users, {"id": "rol_1"}, {"users": ["auth0|u1"]})

        assert error is None
        assert handler.last.url.path == "/api/v2/roles/rol_1/users"

    @pytest.mark.asyncio
    async def test_get_users(self) -> None:
        handler = RecordingHandler(reply(200, []))
        roles = RolesManager(manager_options(handler))

        assert await roles.get_users({"id": "rol_1"}) == []
        assert handler.last.url.path == "/api/v2/roles/rol_1/users"

    @pytest.mark.asyncio
    async def test_server_errors_are_retried(self) -> None:
        handler = RecordingHandler(reply(503), reply(200, {"id": "rol_1"}))
        roles = RolesManager(manager_options(handler))

        assert await roles.get({"id": "rol_1"}) == {"id": "rol_1"}
        assert len(handler.requests) == 2

    @pytest.mark.asyncio
    async def test_retry_policy_is_per_manager(self) -> None:
        handler = RecordingHandler(reply(503))
        strict = RolesManager(manager_options(handler, retry={"enabled": False}))
        lenient = RolesManager(manager_options(handler))

        with pytest.raises(ServerError):
            await strict.get({"id": "rol_1"})
        assert len(handler.requests) == 1

        with pytest.raises(ServerError):
            await lenient.get({"id": "rol_1"})
        assert len(handler.requests) == 4


class TestClientsManager:
    """Tests for the applications endpoints."""

    @pytest.mark.asyncio
    async def test_crud_paths(self) -> None:
        handler = RecordingHandler()
        clients = ClientsManager(manager_options(handler))

        await clients.create({"name": "app"})
        await clients.get_all()
        await clients.get({"client_id": "abc"})
        await clients.update({"client_id": "abc"}, {"name": "renamed"})
        await clients.delete({"client_id": "abc"})

        assert [(r.method, r.url.path) for r in handler.requests] == [
            ("POST", "/api/v2/clients"),
            ("GET", "/api/v2/clients"),
            ("GET", "/api/v2/clients/abc"),
            ("PATCH", "/api/v2/clients/abc"),
            ("DELETE", "/api/v2/clients/abc"),
        ]

    @pytest.mark.asyncio
    async def test_client_id_is_encoded(self) -> None:
        handler = RecordingHandler()
        clients = ClientsManager(manager_options(handler))

        await clients.get({"client_id": "a/b c"})

        assert handler.last.url.raw_path == b"/api/v2/clients/a%2Fb%20c"


class TestManagementClient:
    """Tests for the top-level client wiring."""

    @pytest.mark.asyncio
    async def test_uses_given_token_provider(self, sdk_config: SdkConfig) -> None:
        handler = RecordingHandler(reply(200, {"id": "rol_1"}))
        async with ManagementClient(
            sdk_config,
            token_provider=StaticTokenProvider("static"),
            http_client=mock_http_client(handler),
        ) as management:
            await management.roles.get({"id": "rol_1"})

        assert str(handler.last.url) == f"https://{DOMAIN}/api/v2/roles/rol_1"
        assert handler.last.headers["authorization"] == "Bearer static"

    @pytest.mark.asyncio
    async def test_client_credentials_token_is_reused(self, sdk_config: SdkConfig) -> None:
        handler = RecordingHandler(
            reply(200, {"access_token": "cc-token", "expires_in": 86400}),
            reply(200, {}),
        )
        management = ManagementClient(sdk_config, http_client=mock_http_client(handler))

        await management.clients.get_all()
        await management.roles.get_all()

        paths = [r.url.path for r in handler.requests]
        assert paths == ["/oauth/token", "/api/v2/clients", "/api/v2/roles"]
        assert handler.last.headers["authorization"] == "Bearer cc-token"
