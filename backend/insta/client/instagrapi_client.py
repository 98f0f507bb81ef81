"""Account client backed by instagrapi.

instagrapi is synchronous and performs blocking HTTP calls, so every call
runs off the event loop using anyio.to_thread.run_sync(). Library failures
are translated into AccountClientError with an HTTP-like status so callers
only ever see one error type from this adapter.
"""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING, Any, TypeVar

import structlog
from anyio import to_thread
from instagrapi import Client
from instagrapi.exceptions import (
    ClientError,
    ClientForbiddenError,
    ClientNotFoundError,
    ClientThrottledError,
    ClientUnauthorizedError,
    LoginRequired,
    MediaNotFound,
    PleaseWaitFewMinutes,
    PrivateAccount,
    RateLimitError,
    TwoFactorRequired,
    UserNotFound,
)

from insta.client.protocol import AccountClient
from insta.client.types import AccountClientError, Page, TwoFactorPrompt

if TYPE_CHECKING:
    from collections.abc import Callable

    from pydantic import BaseModel

    from insta.auth.models import TwoFactorChallenge

logger = structlog.get_logger()

T = TypeVar("T")

_TIMELINE_FIRST_PAGE = "pull_to_refresh"
_TIMELINE_NEXT_PAGE = "pagination"

# Checked in order; subclasses must precede their bases.
_ERROR_STATUSES: tuple[tuple[type[Exception], int], ...] = (
    (LoginRequired, 401),
    (ClientUnauthorizedError, 401),
    (UserNotFound, 404),
    (MediaNotFound, 404),
    (ClientNotFoundError, 404),
    (PrivateAccount, 403),
    (ClientForbiddenError, 403),
    (PleaseWaitFewMinutes, 429),
    (RateLimitError, 429),
    (ClientThrottledError, 429),
)


def _translate(exc: ClientError) -> AccountClientError:
    status = next((code for error_type, code in _ERROR_STATUSES if isinstance(exc, error_type)), None)
    if status is None:
        status = getattr(getattr(exc, "response", None), "status_code", None)
    message = str(exc) or getattr(exc, "message", "") or type(exc).__name__
    return AccountClientError(message, status=status)


def _dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json")


def _media_pk(media_id: str) -> str:
    """Media ids look like '<pk>_<owner pk>'; lookups want the bare pk."""
    return media_id.split("_", 1)[0]


class InstagrapiAccountClient(AccountClient):
    def __init__(self, client: Client | None = None) -> None:
        self._client = client if client is not None else Client()
        # The library re-sends the password alongside the 2FA code.
        self._pending_password: str | None = None

    async def _call(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:  # noqa: ANN401
        try:
            return await to_thread.run_sync(functools.partial(func, *args, **kwargs))
        except ClientError as exc:
            raise _translate(exc) from exc

    def dump_state(self) -> dict[str, Any]:
        return self._client.get_settings()

    def load_state(self, state: dict[str, Any]) -> None:
        self._client.set_settings(state)

    async def login(self, username: str, password: str) -> TwoFactorPrompt | None:
        return await self._call(self._login, username, password)

    def _login(self, username: str, password: str) -> TwoFactorPrompt | None:
        try:
            self._client.login(username, password)
        except TwoFactorRequired:
            info = (self._client.last_json or {}).get("two_factor_info") or {}
            self._pending_password = password
            logger.info("remote requested second factor", username=username)
            return TwoFactorPrompt(
                identifier=str(info.get("two_factor_identifier", "")),
                username=info.get("username") or username,
                totp_enabled=bool(info.get("totp_two_factor_on")),
            )
        self._pending_password = None
        return None

    async def complete_two_factor(self, challenge: TwoFactorChallenge, code: str) -> None:
        await self._call(self._complete_two_factor, challenge.username, code)

    def _complete_two_factor(self, username: str, code: str) -> None:
        password = self._pending_password
        if password is None:
            raise AccountClientError("No password login is waiting for a verification code")
        try:
            self._client.login(username, password, verification_code=code)
        finally:
            self._pending_password = None

    async def current_user(self) -> dict[str, Any]:
        return await self._call(self._current_user)

    def _current_user(self) -> dict[str, Any]:
        account = self._client.account_info()
        # account_info() lacks follower counts; merge them in from the public profile.
        profile = _dump(self._client.user_info(str(account.pk)))
        profile.update({key: value for key, value in _dump(account).items() if value is not None})
        return profile

    async def user_info(self, user_id: str) -> dict[str, Any]:
        return _dump(await self._call(self._client.user_info, user_id))

    async def user_info_by_username(self, username: str) -> dict[str, Any]:
        return _dump(await self._call(self._client.user_info_by_username, username))

    async def user_posts(self, user_id: str, cursor: str | None, limit: int) -> Page:
        medias, end_cursor = await self._call(
            self._client.user_medias_paginated, user_id, limit, end_cursor=cursor or ""
        )
        return Page(items=[_dump(media) for media in medias], next_cursor=end_cursor or None, has_more=bool(end_cursor))

    async def timeline_feed(self, cursor: str | None, limit: int) -> Page:
        reason = _TIMELINE_NEXT_PAGE if cursor else _TIMELINE_FIRST_PAGE
        response = await self._call(self._client.get_timeline_feed, reason, cursor)
        items = [item["media_or_ad"] for item in response.get("feed_items", []) if "media_or_ad" in item]
        return Page(
            items=items[:limit],
            next_cursor=response.get("next_max_id") or None,
            has_more=bool(response.get("more_available")),
        )

    async def media_comments(self, media_id: str, cursor: str | None, limit: int) -> Page:
        comments, min_id = await self._call(self._client.media_comments_chunk, media_id, limit, cursor)
        return Page(items=[_dump(comment) for comment in comments], next_cursor=min_id or None, has_more=bool(min_id))

    async def media_info(self, media_id: str) -> dict[str, Any]:
        return _dump(await self._call(self._client.media_info, _media_pk(media_id)))

    async def user_stories(self, user_id: str) -> list[dict[str, Any]]:
        return [_dump(story) for story in await self._call(self._client.user_stories, user_id)]

    async def search_users(self, query: str) -> list[dict[str, Any]]:
        return [_dump(user) for user in await self._call(self._client.search_users, query)]

    async def comment(self, media_id: str, text: str, reply_to_comment_id: str | None = None) -> dict[str, Any]:
        comment = await self._call(self._client.media_comment, media_id, text, replied_to_comment_id=reply_to_comment_id)
        return _dump(comment)

    async def like_media(self, media_id: str, module: str) -> None:
        # instagrapi picks its own module name; ours is only recorded in the log.
        liked = await self._call(self._client.media_like, media_id)
        if not liked:
            raise AccountClientError(f"Failed to like media {media_id}")
        logger.debug("liked media", media_id=media_id, module=module)

    async def like_comment(self, comment_id: str) -> None:
        liked = await self._call(self._client.comment_like, int(comment_id))
        if not liked:
            raise AccountClientError(f"Failed to like comment {comment_id}")

    async def follow(self, user_id: str) -> dict[str, Any]:
        following = await self._call(self._client.user_follow, user_id)
        # A follow on a private account leaves an outgoing request instead.
        return {"following": bool(following), "outgoing_request": not following}
