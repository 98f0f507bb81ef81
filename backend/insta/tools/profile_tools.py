from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import Field, field_validator, model_validator

from insta.tools.base import Tool, ToolArguments, ToolResult
from insta.tools.formatters import format_profile, format_search_results
from shared.validators import clamp_limit, normalize_numeric_id, normalize_username, require_text

if TYPE_CHECKING:
    from insta.client.protocol import AccountClient

DEFAULT_SEARCH_LIMIT = 20
SEARCH_QUERY_MAX_LENGTH = 100


def _supplied(value: Any) -> bool:  # noqa: ANN401
    """Blank strings count as absent."""
    if isinstance(value, str):
        return bool(value.strip())
    return value is not None


class UserReferenceArguments(ToolArguments):
    """Identifies an account by exactly one of userId or username."""

    user_id: str | None = Field(default=None, alias="userId", description="Numeric Instagram user ID.")
    username: str | None = Field(default=None, description="Instagram username, with or without a leading @.")

    @model_validator(mode="before")
    @classmethod
    def require_one_identifier(cls, data: Any) -> Any:  # noqa: ANN401
        if not isinstance(data, dict):
            return data
        has_id = _supplied(data.get("userId")) or _supplied(data.get("user_id"))
        has_username = _supplied(data.get("username"))
        if has_id and has_username:
            raise ValueError("Both userId and username cannot be provided. Please provide only one of them.")
        if not has_id and not has_username:
            raise ValueError("Either userId or username must be provided.")
        return data

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, v: str | None) -> str | None:
        return normalize_numeric_id(v, "userId") if _supplied(v) else None

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str | None) -> str | None:
        return normalize_username(v) if _supplied(v) else None

    async def resolve_user_id(self, client: AccountClient) -> str:
        if self.user_id is not None:
            return self.user_id
        user = await client.user_info_by_username(self.username or "")
        return str(user.get("pk") or "")


def user_error_target(arguments: dict[str, Any]) -> str | None:
    """Describe the account a failed call referred to, from its raw arguments."""
    user_id = arguments.get("userId")
    if isinstance(user_id, str) and user_id.strip():
        return f'user ID "{user_id.strip()}"'
    username = arguments.get("username")
    if isinstance(username, str) and username.strip():
        return f'username "{username.strip().removeprefix("@")}"'
    return None


class UserProfileTool(Tool[UserReferenceArguments]):
    name = "instagram_get_user_profile"
    description = "Get an Instagram user's profile by user ID or username (provide exactly one)."
    arguments_model = UserReferenceArguments
    subject = "User"

    async def execute(self, args: UserReferenceArguments) -> ToolResult:
        client = await self.client()
        if args.user_id is not None:
            user = await client.user_info(args.user_id)
        else:
            user = await client.user_info_by_username(args.username or "")
        return ToolResult.success(format_profile(user))

    def error_target(self, arguments: dict[str, Any]) -> str | None:
        return user_error_target(arguments)


class SearchAccountsArguments(ToolArguments):
    query: str = Field(description="Search text matched against usernames and full names.")
    limit: int | None = Field(default=DEFAULT_SEARCH_LIMIT, description="Maximum number of results (1-50).")

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        query = require_text(v, "query")
        if len(query) > SEARCH_QUERY_MAX_LENGTH:
            raise ValueError(f"query cannot exceed {SEARCH_QUERY_MAX_LENGTH} characters")
        return query

    @field_validator("limit")
    @classmethod
    def validate_limit(cls, v: int | None) -> int:
        return clamp_limit(v, DEFAULT_SEARCH_LIMIT)


class SearchAccountsTool(Tool[SearchAccountsArguments]):
    name = "instagram_search_accounts"
    description = "Search Instagram accounts by username or name."
    arguments_model = SearchAccountsArguments

    async def execute(self, args: SearchAccountsArguments) -> ToolResult:
        client = await self.authenticated_client()
        users = await client.search_users(args.query)
        return ToolResult.success(format_search_results(users, args.query, args.limit or DEFAULT_SEARCH_LIMIT))
