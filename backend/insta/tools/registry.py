from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from insta.classifier import ErrorKind, classify_error, message_of
from insta.exceptions import ToolNotFoundError
from insta.tools.base import ToolResult

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from insta.tools.base import Tool, ToolDefinition

logger = logging.getLogger(__name__)

AUTHENTICATION_REQUIRED_MESSAGE = "Authentication required. Please use the instagram_login tool to authenticate first."
SESSION_EXPIRED_MESSAGE = "Session has expired. Please use the instagram_login tool to re-authenticate."
RATE_LIMITED_MESSAGE = "Rate limit exceeded. Please wait before trying again."


def _permission_hint(*, authenticated: bool) -> str:
    if authenticated:
        return "The account may be private or may have blocked you. Follow the account to see its content."
    return "The account may be private. Log in with the instagram_login tool and follow the account to see its content."


def describe_failure(tool: Tool, kind: ErrorKind, error: Exception, arguments: Mapping[str, Any]) -> str:
    """Turn a classified failure into a sentence naming the remediating action."""
    custom = tool.failure_message(kind, error, dict(arguments))
    if custom is not None:
        return custom

    target = tool.error_target(dict(arguments))
    if kind is ErrorKind.AUTHENTICATION_REQUIRED:
        return AUTHENTICATION_REQUIRED_MESSAGE
    if kind is ErrorKind.SESSION_EXPIRED:
        return SESSION_EXPIRED_MESSAGE
    if kind is ErrorKind.NOT_FOUND:
        if target is None:
            return f"{tool.subject} not found: {message_of(error)}"
        return f"{tool.subject} not found with {target}. Please verify the identifier is correct."
    if kind is ErrorKind.PERMISSION_DENIED:
        hint = _permission_hint(authenticated=tool.auth.is_authenticated())
        return f"Cannot access {target or 'this content'}. {hint}"
    if kind is ErrorKind.RATE_LIMITED:
        return RATE_LIMITED_MESSAGE
    return message_of(error)


class ToolRegistry:
    """
    Holds the callable tools and dispatches calls to them.

    Every failure raised while validating or executing a tool comes back as
    an error ToolResult; only an unknown tool name raises.
    """

    def __init__(self, tools: Iterable[Tool]) -> None:
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            self._tools[tool.name] = tool

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def list_definitions(self) -> list[ToolDefinition]:
        return [tool.definition() for tool in self._tools.values()]

    async def dispatch(self, name: str, arguments: Mapping[str, Any] | None = None) -> ToolResult:
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name)

        raw_arguments = dict(arguments or {})
        try:
            args = tool.validate(raw_arguments)
            return await tool.execute(args)
        except Exception as e:  # noqa: BLE001 - every failure becomes an error result
            await tool.auth.discard_rejected_session(e)
            return self._render_failure(tool, raw_arguments, e)

    def _render_failure(self, tool: Tool, arguments: dict[str, Any], error: Exception) -> ToolResult:
        kind = classify_error(error)
        if kind is ErrorKind.CONFLICT:
            logger.info("tool %s: requested change already in effect", tool.name)
            return ToolResult.success(tool.conflict_message(arguments))

        if kind is ErrorKind.UNKNOWN:
            logger.exception("tool %s failed", tool.name)
        else:
            logger.warning("tool %s failed (%s): %s", tool.name, kind, error)
        return ToolResult.failure(describe_failure(tool, kind, error, arguments))
