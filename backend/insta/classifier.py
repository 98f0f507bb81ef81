"""Map raw failures onto a fixed taxonomy of error kinds.

Classification is an ordered table of rules over the lower-cased failure
message and an optional HTTP-like status. The first matching rule wins, so
a message mentioning both "not found" and "rate limit" is NOT_FOUND.

Errors raised locally (argument validation, missing login, missing 2FA
challenge) carry their own ``kind`` attribute and skip text matching.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable


class ErrorKind(StrEnum):
    VALIDATION = "validation"
    AUTHENTICATION_REQUIRED = "authentication_required"
    SESSION_EXPIRED = "session_expired"
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    RATE_LIMITED = "rate_limited"
    CONFLICT = "conflict"
    NO_PENDING_CHALLENGE = "no_pending_challenge"
    UNKNOWN = "unknown"


_INVALID_ENTITY = re.compile(r"\binvalid (?:user|media|post|comment|story|account)s?\b")


def _session_expired(message: str) -> bool:
    return "session" in message and ("expired" in message or "invalid" in message)


def _invalid_entity(message: str) -> bool:
    return _INVALID_ENTITY.search(message) is not None


@dataclass(frozen=True)
class _Rule:
    kind: ErrorKind
    needles: tuple[str, ...] = ()
    statuses: frozenset[int] = frozenset()
    predicate: Callable[[str], bool] | None = field(default=None)

    def matches(self, message: str, status: int | None) -> bool:
        if status is not None and status in self.statuses:
            return True
        if any(needle in message for needle in self.needles):
            return True
        return self.predicate is not None and self.predicate(message)


# Precedence order matters: messages often match several categories.
_RULES: tuple[_Rule, ...] = (
    _Rule(
        ErrorKind.AUTHENTICATION_REQUIRED,
        needles=("not logged in", "login", "authentication", "unauthorized"),
        statuses=frozenset({401}),
    ),
    _Rule(ErrorKind.SESSION_EXPIRED, predicate=_session_expired),
    _Rule(
        ErrorKind.NOT_FOUND,
        needles=("not found",),
        statuses=frozenset({404}),
        predicate=_invalid_entity,
    ),
    _Rule(
        ErrorKind.PERMISSION_DENIED,
        needles=("private", "not authorized", "forbidden", "blocked"),
        statuses=frozenset({403}),
    ),
    _Rule(
        ErrorKind.RATE_LIMITED,
        needles=("rate limit", "too many requests", "please wait a few minutes"),
        statuses=frozenset({429}),
    ),
    _Rule(
        ErrorKind.CONFLICT,
        needles=("already following", "already follow", "already liked", "duplicate"),
    ),
)


def status_of(error: BaseException) -> int | None:
    """Extract an HTTP-like status code from an error, if it carries one."""
    for attr in ("status", "status_code"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(error, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def message_of(error: BaseException) -> str:
    return str(error) or type(error).__name__


def classify(message: str, status: int | None = None) -> ErrorKind:
    """Classify a failure from its message text and optional status."""
    lowered = message.lower()
    for rule in _RULES:
        if rule.matches(lowered, status):
            return rule.kind
    return ErrorKind.UNKNOWN


def classify_error(error: BaseException) -> ErrorKind:
    """Classify a raised exception.

    Locally raised errors declare their kind; everything else is matched
    on its message and status.
    """
    kind = getattr(error, "kind", None)
    if isinstance(kind, ErrorKind):
        return kind
    return classify(message_of(error), status_of(error))
