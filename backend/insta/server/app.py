"""Tool server assembly and stdio entry point.

The JSON-RPC framing is handled by the mcp low-level server; this module
wires the auth session manager and tool registry into its handlers and
runs the startup session bootstrap alongside the stdio loop.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import anyio
import mcp.server.stdio
import mcp.types as types
import structlog
from mcp.server.lowlevel import Server

from insta.auth.manager import AuthSessionManager
from insta.auth.models import LoggedIn, LoginFailed, TwoFactorRequired
from insta.client.instagrapi_client import InstagrapiAccountClient
from insta.server.settings import InstaServerSettings
from insta.tools.account_tools import CompleteTwoFactorTool, CurrentUserProfileTool, LoginTool, LogoutTool
from insta.tools.action_tools import CommentOnPostTool, FollowUserTool, LikeCommentTool, LikePostTool
from insta.tools.feed_tools import PostCommentsTool, PostDetailsTool, TimelineFeedTool, UserPostsTool, UserStoriesTool
from insta.tools.profile_tools import SearchAccountsTool, UserProfileTool
from insta.tools.registry import ToolRegistry
from shared.logging import setup_logging
from shared.storage import LocalSessionStorage

if TYPE_CHECKING:
    from insta.tools.base import ToolDefinition

logger = structlog.get_logger()


class ToolCallFailed(Exception):
    """Carries an error ToolResult's text; the host turns it into an isError result."""


def build_registry(auth: AuthSessionManager, settings: InstaServerSettings) -> ToolRegistry:
    return ToolRegistry(
        [
            LoginTool(auth, default_username=settings.username, default_password=settings.password),
            CompleteTwoFactorTool(auth),
            LogoutTool(auth),
            CurrentUserProfileTool(auth),
            UserProfileTool(auth),
            SearchAccountsTool(auth),
            UserPostsTool(auth),
            TimelineFeedTool(auth),
            PostDetailsTool(auth),
            PostCommentsTool(auth),
            UserStoriesTool(auth),
            CommentOnPostTool(auth),
            LikePostTool(auth),
            LikeCommentTool(auth),
            FollowUserTool(auth),
        ],
    )


def to_mcp_tool(definition: ToolDefinition) -> types.Tool:
    return types.Tool(name=definition.name, description=definition.description, inputSchema=definition.input_schema())


async def handle_call(registry: ToolRegistry, name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
    result = await registry.dispatch(name, arguments)
    if result.is_error:
        raise ToolCallFailed(result.text)
    return [types.TextContent(type="text", text=segment) for segment in result.content]


def create_server(registry: ToolRegistry, settings: InstaServerSettings) -> Server:
    server: Server = Server(settings.server_name)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [to_mcp_tool(definition) for definition in registry.list_definitions()]

    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[types.TextContent]:
        return await handle_call(registry, name, arguments)

    return server


async def bootstrap_session(auth: AuthSessionManager, settings: InstaServerSettings) -> None:
    """Restore the saved session, or log in with environment credentials.

    Never raises: a failed bootstrap leaves the server running unauthenticated
    and instagram_login remains available.
    """
    try:
        await auth.initialize()
        if auth.is_authenticated():
            logger.info("using restored session", username=auth.username)
            return
        if not settings.auto_login or not settings.has_credentials():
            logger.info("not logged in, waiting for instagram_login")
            return

        outcome = await auth.login(settings.username or "", settings.password or "")
    except Exception:
        logger.exception("session bootstrap failed")
        return

    if isinstance(outcome, LoggedIn):
        logger.info("auto-login succeeded", username=outcome.username)
    elif isinstance(outcome, TwoFactorRequired):
        logger.warning(
            "auto-login needs a verification code, call instagram_complete_2fa",
            username=outcome.challenge.username,
            method=outcome.challenge.method,
        )
    elif isinstance(outcome, LoginFailed):
        logger.warning("auto-login failed", error=str(outcome.error))


async def serve(settings: InstaServerSettings, auth: AuthSessionManager | None = None) -> None:
    if auth is None:
        auth = AuthSessionManager(LocalSessionStorage(), InstagrapiAccountClient)
    registry = build_registry(auth, settings)
    server = create_server(registry, settings)

    async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
        async with anyio.create_task_group() as tg:
            tg.start_soon(bootstrap_session, auth, settings)
            await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:  # pragma: no cover
    settings = InstaServerSettings()
    setup_logging(log_dir=settings.log_dir)
    logger.info("starting tool server", name=settings.server_name)
    anyio.run(serve, settings)
