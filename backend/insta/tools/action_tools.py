"""Tools that change account state: commenting, liking, following."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from insta.classifier import ErrorKind, message_of
from insta.tools.base import Tool, ToolArguments, ToolResult
from insta.tools.feed_tools import MediaArguments
from shared.validators import normalize_numeric_id, require_text

COMMENT_MAX_LENGTH = 2200
DEFAULT_LIKE_MODULE = "feed_timeline"


def _stripped(arguments: dict[str, Any], key: str) -> str:
    value = arguments.get(key)
    return value.strip() if isinstance(value, str) else ""


class CommentArguments(MediaArguments):
    text: str = Field(description=f"Comment text (max {COMMENT_MAX_LENGTH} characters).")
    reply_to_comment_id: str | None = Field(
        default=None,
        alias="replyToCommentId",
        description="ID of the comment to reply to.",
    )

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        text = require_text(v, "text")
        if len(text) > COMMENT_MAX_LENGTH:
            raise ValueError(
                f"Comment text exceeds maximum length of {COMMENT_MAX_LENGTH} characters (current: {len(text)})",
            )
        return text

    @field_validator("reply_to_comment_id")
    @classmethod
    def validate_reply_to(cls, v: str | None) -> str | None:
        return None if v is None else require_text(v, "replyToCommentId")


class CommentOnPostTool(Tool[CommentArguments]):
    name = "instagram_comment_on_post"
    description = "Post a comment on a post, optionally as a reply to another comment."
    arguments_model = CommentArguments
    subject = "Media"

    async def execute(self, args: CommentArguments) -> ToolResult:
        client = await self.authenticated_client()
        comment = await client.comment(args.media_id, args.text, args.reply_to_comment_id)
        response = f"Successfully commented on post with media ID: {args.media_id}"
        if comment.get("pk"):
            response += f". Comment ID: {comment['pk']}"
        if args.reply_to_comment_id:
            response += f" (reply to comment {args.reply_to_comment_id})"
        return ToolResult.success(response)

    def error_target(self, arguments: dict[str, Any]) -> str | None:
        media_id = _stripped(arguments, "mediaId")
        return f'ID "{media_id}"' if media_id else None

    def failure_message(self, kind: ErrorKind, error: Exception, arguments: dict[str, Any]) -> str | None:
        message = message_of(error).lower()
        if "comment" in message and ("disabled" in message or "not allowed" in message):
            return f"Comments are disabled on this post (media ID: {_stripped(arguments, 'mediaId')})."
        if kind is ErrorKind.UNKNOWN and ("spam" in message or "feedback_required" in message):
            return "Invalid comment text. Please check your comment and try again."
        return None


class LikePostArguments(MediaArguments):
    module: str | None = Field(
        default=DEFAULT_LIKE_MODULE,
        description="Where the like came from, e.g. feed_timeline or profile.",
    )

    @field_validator("module")
    @classmethod
    def validate_module(cls, v: str | None) -> str:
        return DEFAULT_LIKE_MODULE if v is None else require_text(v, "module")


class LikePostTool(Tool[LikePostArguments]):
    name = "instagram_like_post"
    description = "Like a post by its media ID."
    arguments_model = LikePostArguments
    subject = "Media"

    async def execute(self, args: LikePostArguments) -> ToolResult:
        client = await self.authenticated_client()
        module = args.module or DEFAULT_LIKE_MODULE
        await client.like_media(args.media_id, module)
        response = f"Successfully liked post with media ID: {args.media_id}"
        if module != DEFAULT_LIKE_MODULE:
            response += f" (module: {module})"
        return ToolResult.success(response)

    def error_target(self, arguments: dict[str, Any]) -> str | None:
        media_id = _stripped(arguments, "mediaId")
        return f'ID "{media_id}"' if media_id else None

    def conflict_message(self, arguments: dict[str, Any]) -> str:
        return f'Post with media ID "{_stripped(arguments, "mediaId")}" is already liked.'


class LikeCommentArguments(ToolArguments):
    comment_id: str = Field(alias="commentId", description="Numeric ID of the comment.")

    @field_validator("comment_id")
    @classmethod
    def validate_comment_id(cls, v: str) -> str:
        return normalize_numeric_id(v, "commentId")


class LikeCommentTool(Tool[LikeCommentArguments]):
    name = "instagram_like_comment"
    description = "Like a comment by its comment ID."
    arguments_model = LikeCommentArguments
    subject = "Comment"

    async def execute(self, args: LikeCommentArguments) -> ToolResult:
        client = await self.authenticated_client()
        await client.like_comment(args.comment_id)
        return ToolResult.success(f"Successfully liked comment with ID: {args.comment_id}")

    def error_target(self, arguments: dict[str, Any]) -> str | None:
        comment_id = _stripped(arguments, "commentId")
        return f'ID "{comment_id}"' if comment_id else None

    def conflict_message(self, arguments: dict[str, Any]) -> str:
        return f'Comment with ID "{_stripped(arguments, "commentId")}" is already liked.'


class FollowUserArguments(ToolArguments):
    user_id: str = Field(alias="userId", description="Numeric ID of the user to follow.")

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, v: str) -> str:
        return normalize_numeric_id(v, "userId")


class FollowUserTool(Tool[FollowUserArguments]):
    name = "instagram_follow_user"
    description = "Follow a user by user ID. Private accounts receive a follow request."
    arguments_model = FollowUserArguments
    subject = "User"

    async def execute(self, args: FollowUserArguments) -> ToolResult:
        client = await self.authenticated_client()
        status = await client.follow(args.user_id)
        response = f"Successfully followed user with ID: {args.user_id}"
        if status.get("outgoing_request"):
            response += " (follow request sent - approval required for private account)"
        return ToolResult.success(response)

    def error_target(self, arguments: dict[str, Any]) -> str | None:
        user_id = _stripped(arguments, "userId")
        return f'ID "{user_id}"' if user_id else None

    def conflict_message(self, arguments: dict[str, Any]) -> str:
        return f'User with ID "{_stripped(arguments, "userId")}" is already being followed.'

    def failure_message(self, kind: ErrorKind, error: Exception, arguments: dict[str, Any]) -> str | None:  # noqa: ARG002
        if kind is ErrorKind.UNKNOWN and "cannot follow" in message_of(error).lower():
            return f'Cannot follow user with ID "{_stripped(arguments, "userId")}". The user may have restrictions.'
        return None
