"""Abstract interface for the remote account client."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from insta.auth.models import TwoFactorChallenge
    from insta.client.types import Page, TwoFactorPrompt


class AccountClient(ABC):
    """
    One handle onto the remote account service.

    The auth session manager owns the handle and swaps it out on logout.
    Tools receive it from the manager and never cache it. This abstraction
    lets the session lifecycle and every tool be tested without network access.
    """

    @abstractmethod
    def dump_state(self) -> dict[str, Any]:
        """Serialize device identity and cookies into a JSON-compatible blob."""
        ...

    @abstractmethod
    def load_state(self, state: dict[str, Any]) -> None:
        """Restore device identity and cookies from a blob produced by dump_state()."""
        ...

    @abstractmethod
    async def login(self, username: str, password: str) -> TwoFactorPrompt | None:
        """
        Log in with a password.

        Returns None on success, or a prompt when the remote requires a
        second factor before the session is usable.
        """
        ...

    @abstractmethod
    async def complete_two_factor(self, challenge: TwoFactorChallenge, code: str) -> None: ...

    @abstractmethod
    async def current_user(self) -> dict[str, Any]:
        """Profile of the logged-in account; doubles as the session check."""
        ...

    @abstractmethod
    async def user_info(self, user_id: str) -> dict[str, Any]: ...

    @abstractmethod
    async def user_info_by_username(self, username: str) -> dict[str, Any]: ...

    @abstractmethod
    async def user_posts(self, user_id: str, cursor: str | None, limit: int) -> Page: ...

    @abstractmethod
    async def timeline_feed(self, cursor: str | None, limit: int) -> Page: ...

    @abstractmethod
    async def media_comments(self, media_id: str, cursor: str | None, limit: int) -> Page: ...

    @abstractmethod
    async def media_info(self, media_id: str) -> dict[str, Any]: ...

    @abstractmethod
    async def user_stories(self, user_id: str) -> list[dict[str, Any]]: ...

    @abstractmethod
    async def search_users(self, query: str) -> list[dict[str, Any]]: ...

    @abstractmethod
    async def comment(self, media_id: str, text: str, reply_to_comment_id: str | None = None) -> dict[str, Any]: ...

    @abstractmethod
    async def like_media(self, media_id: str, module: str) -> None: ...

    @abstractmethod
    async def like_comment(self, comment_id: str) -> None: ...

    @abstractmethod
    async def follow(self, user_id: str) -> dict[str, Any]:
        """Follow a user and return the resulting friendship status."""
        ...
