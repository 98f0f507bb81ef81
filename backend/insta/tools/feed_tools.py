"""Read-only listing tools: posts, timeline, post details, comments, stories."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from insta.tools.base import Tool, ToolArguments, ToolResult
from insta.tools.formatters import (
    format_comments,
    format_post_details,
    format_stories,
    format_timeline,
    format_user_posts,
)
from insta.tools.profile_tools import UserReferenceArguments, user_error_target
from shared.validators import clamp_limit, require_text

DEFAULT_PAGE_LIMIT = 12

_CURSOR_DESCRIPTION = "Pagination cursor from a previous response, used to fetch the next page."
_LIMIT_DESCRIPTION = f"Number of items per page (default: {DEFAULT_PAGE_LIMIT}, max: 50)."


def _validate_cursor(v: str | None) -> str | None:
    return None if v is None else require_text(v, "maxId")


def _media_target(arguments: dict[str, Any]) -> str | None:
    media_id = arguments.get("mediaId")
    if isinstance(media_id, str) and media_id.strip():
        return f'ID "{media_id.strip()}"'
    return None


class UserPostsArguments(UserReferenceArguments):
    max_id: str | None = Field(default=None, alias="maxId", description=_CURSOR_DESCRIPTION)
    limit: int | None = Field(default=DEFAULT_PAGE_LIMIT, description=_LIMIT_DESCRIPTION)

    @field_validator("max_id")
    @classmethod
    def validate_max_id(cls, v: str | None) -> str | None:
        return _validate_cursor(v)

    @field_validator("limit")
    @classmethod
    def validate_limit(cls, v: int | None) -> int:
        return clamp_limit(v, DEFAULT_PAGE_LIMIT)


class UserPostsTool(Tool[UserPostsArguments]):
    name = "instagram_get_user_posts"
    description = "Get a page of posts from a user's feed by user ID or username. Supports cursor pagination."
    arguments_model = UserPostsArguments
    subject = "User"

    async def execute(self, args: UserPostsArguments) -> ToolResult:
        client = await self.client()
        user_id = await args.resolve_user_id(client)
        page = await client.user_posts(user_id, args.max_id, args.limit or DEFAULT_PAGE_LIMIT)
        text = format_user_posts(page.items, user_id, page.next_cursor, has_more=page.has_more, username=args.username)
        return ToolResult.success(text)

    def error_target(self, arguments: dict[str, Any]) -> str | None:
        return user_error_target(arguments)


class TimelineFeedArguments(ToolArguments):
    max_id: str | None = Field(default=None, alias="maxId", description=_CURSOR_DESCRIPTION)
    limit: int | None = Field(default=DEFAULT_PAGE_LIMIT, description=_LIMIT_DESCRIPTION)

    @field_validator("max_id")
    @classmethod
    def validate_max_id(cls, v: str | None) -> str | None:
        return _validate_cursor(v)

    @field_validator("limit")
    @classmethod
    def validate_limit(cls, v: int | None) -> int:
        return clamp_limit(v, DEFAULT_PAGE_LIMIT)


class TimelineFeedTool(Tool[TimelineFeedArguments]):
    name = "instagram_get_timeline_feed"
    description = "Get a page of the logged-in account's home timeline. Supports cursor pagination."
    arguments_model = TimelineFeedArguments

    async def execute(self, args: TimelineFeedArguments) -> ToolResult:
        client = await self.authenticated_client()
        page = await client.timeline_feed(args.max_id, args.limit or DEFAULT_PAGE_LIMIT)
        return ToolResult.success(format_timeline(page.items, page.next_cursor, has_more=page.has_more))


class MediaArguments(ToolArguments):
    media_id: str = Field(alias="mediaId", description="Media ID of the post.")

    @field_validator("media_id")
    @classmethod
    def validate_media_id(cls, v: str) -> str:
        return require_text(v, "mediaId")


class PostDetailsTool(Tool[MediaArguments]):
    name = "instagram_get_post_details"
    description = "Get full details of a post: author, media URLs, caption, engagement, and location."
    arguments_model = MediaArguments
    subject = "Media"

    async def execute(self, args: MediaArguments) -> ToolResult:
        client = await self.client()
        media = await client.media_info(args.media_id)
        return ToolResult.success(format_post_details(media, args.media_id))

    def error_target(self, arguments: dict[str, Any]) -> str | None:
        return _media_target(arguments)


class PostCommentsArguments(MediaArguments):
    max_id: str | None = Field(default=None, alias="maxId", description=_CURSOR_DESCRIPTION)
    limit: int | None = Field(default=DEFAULT_PAGE_LIMIT, description=_LIMIT_DESCRIPTION)

    @field_validator("max_id")
    @classmethod
    def validate_max_id(cls, v: str | None) -> str | None:
        return _validate_cursor(v)

    @field_validator("limit")
    @classmethod
    def validate_limit(cls, v: int | None) -> int:
        return clamp_limit(v, DEFAULT_PAGE_LIMIT)


class PostCommentsTool(Tool[PostCommentsArguments]):
    name = "instagram_get_post_comments"
    description = "Get a page of comments on a post. Supports cursor pagination."
    arguments_model = PostCommentsArguments
    subject = "Media"

    async def execute(self, args: PostCommentsArguments) -> ToolResult:
        client = await self.authenticated_client()
        page = await client.media_comments(args.media_id, args.max_id, args.limit or DEFAULT_PAGE_LIMIT)
        return ToolResult.success(format_comments(page.items, args.media_id, page.next_cursor, has_more=page.has_more))

    def error_target(self, arguments: dict[str, Any]) -> str | None:
        return _media_target(arguments)


class UserStoriesTool(Tool[UserReferenceArguments]):
    name = "instagram_get_user_stories"
    description = "Get a user's active stories by user ID or username. Stories expire after 24 hours."
    arguments_model = UserReferenceArguments
    subject = "User"

    async def execute(self, args: UserReferenceArguments) -> ToolResult:
        client = await self.client()
        user_id = await args.resolve_user_id(client)
        stories = await client.user_stories(user_id)
        return ToolResult.success(format_stories(stories, user_id, username=args.username))

    def error_target(self, arguments: dict[str, Any]) -> str | None:
        return user_error_target(arguments)
