"""Tests for server assembly: registry wiring, RPC handlers, startup bootstrap."""

import mcp.types as types
import pytest

from insta.auth.manager import AuthSessionManager
from insta.auth.models import AuthState
from insta.client.types import AccountClientError, TwoFactorPrompt
from insta.server.app import ToolCallFailed, bootstrap_session, build_registry, create_server, handle_call, to_mcp_tool
from insta.server.settings import InstaServerSettings
from insta.tests.conftest import TEST_PASSWORD, TEST_USERNAME


def _auto_login_settings():
    return InstaServerSettings(_env_file=None, username=TEST_USERNAME, password=TEST_PASSWORD, auto_login=True)


class TestBuildRegistry:
    def test_registers_every_tool(self, auth_manager, settings):
        assert len(build_registry(auth_manager, settings)) == 15

    async def test_login_tool_uses_configured_credentials(self, auth_manager, fake_client):
        registry = build_registry(auth_manager, _auto_login_settings())

        result = await registry.dispatch("instagram_login", {})

        assert result.is_error is False
        assert ("login", (TEST_USERNAME, TEST_PASSWORD)) in fake_client.calls


class TestHandleCall:
    async def test_success_becomes_text_content(self, registry):
        content = await handle_call(registry, "instagram_logout", {})

        assert content == [types.TextContent(type="text", text="Already logged out. No active session to clear.")]

    async def test_error_result_raises_with_its_text(self, registry):
        with pytest.raises(ToolCallFailed, match="^Error: Instagram credentials not found"):
            await handle_call(registry, "instagram_login", None)

    def test_to_mcp_tool(self, registry):
        tool = to_mcp_tool(registry.get("instagram_like_comment").definition())

        assert tool.name == "instagram_like_comment"
        assert tool.inputSchema["required"] == ["commentId"]
        assert tool.inputSchema["properties"]["commentId"]["type"] == "string"


class TestCreateServer:
    async def test_lists_tools(self, registry, settings):
        server = create_server(registry, settings)

        result = await server.request_handlers[types.ListToolsRequest](types.ListToolsRequest(method="tools/list"))

        names = [tool.name for tool in result.root.tools]
        assert names[0] == "instagram_login"
        assert len(names) == 15

    async def test_failed_call_is_an_error_result(self, registry, settings):
        server = create_server(registry, settings)
        request = types.CallToolRequest(
            method="tools/call",
            params=types.CallToolRequestParams(name="instagram_get_post_details", arguments={}),
        )

        result = await server.request_handlers[types.CallToolRequest](request)

        assert result.root.isError is True
        assert result.root.content[0].text == "Error: mediaId is required"

    async def test_unknown_tool_is_an_error_result(self, registry, settings):
        server = create_server(registry, settings)
        request = types.CallToolRequest(
            method="tools/call",
            params=types.CallToolRequestParams(name="instagram_delete_account", arguments={}),
        )

        result = await server.request_handlers[types.CallToolRequest](request)

        assert result.root.isError is True
        assert "Unknown tool: instagram_delete_account" in result.root.content[0].text


class TestBootstrapSession:
    async def test_restores_saved_session_without_login(self, auth_manager, fake_client, session_storage):
        session_storage.save({"cookies": {"sessionid": "saved"}})

        await bootstrap_session(auth_manager, _auto_login_settings())

        assert auth_manager.state is AuthState.AUTHENTICATED
        assert "login" not in fake_client.call_names()

    async def test_auto_login_with_credentials(self, auth_manager, session_storage):
        await bootstrap_session(auth_manager, _auto_login_settings())

        assert auth_manager.state is AuthState.AUTHENTICATED
        assert session_storage.load() is not None

    async def test_auto_login_disabled(self, auth_manager, fake_client, settings):
        await bootstrap_session(auth_manager, settings.model_copy(update={"username": "x", "password": "y"}))

        assert auth_manager.state is AuthState.UNAUTHENTICATED
        assert "login" not in fake_client.call_names()

    async def test_without_credentials(self, auth_manager, fake_client):
        await bootstrap_session(auth_manager, InstaServerSettings(_env_file=None, username=None, password=None))

        assert auth_manager.state is AuthState.UNAUTHENTICATED
        assert "login" not in fake_client.call_names()

    async def test_two_factor_leaves_challenge_pending(self, auth_manager, fake_client):
        fake_client.two_factor = TwoFactorPrompt(identifier="2fa-id", username=TEST_USERNAME)

        await bootstrap_session(auth_manager, _auto_login_settings())

        assert auth_manager.state is AuthState.PENDING_TWO_FACTOR
        assert auth_manager.current_challenge() is not None

    async def test_login_failure_does_not_raise(self, auth_manager, fake_client):
        fake_client.errors["login"] = AccountClientError("Please wait a few minutes", status=429)

        await bootstrap_session(auth_manager, _auto_login_settings())

        assert auth_manager.state is AuthState.UNAUTHENTICATED

    async def test_unexpected_failure_does_not_raise(self, session_storage):
        def broken_factory():
            raise RuntimeError("cannot build client")

        auth = AuthSessionManager(session_storage, broken_factory)

        await bootstrap_session(auth, _auto_login_settings())

        assert auth.is_authenticated() is False
