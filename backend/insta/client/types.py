from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Page:
    """One page of a cursor-paginated listing."""

    items: list[dict[str, Any]] = field(default_factory=list)
    next_cursor: str | None = None
    has_more: bool = False


@dataclass(frozen=True)
class TwoFactorPrompt:
    """Challenge metadata returned when a password login needs a second factor."""

    identifier: str
    username: str
    totp_enabled: bool = False


class AccountClientError(Exception):
    """Failure reported by the remote account service.

    ``status`` carries the HTTP-like status of the failure when known, so the
    error classifier can work from (message, status) alone.
    """

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status
