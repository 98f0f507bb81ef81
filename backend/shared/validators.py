"""Shared validation helpers for tool arguments."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pydantic import ValidationError

USERNAME_MAX_LENGTH = 30
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9._]+$")

MIN_LIMIT = 1
MAX_LIMIT = 50

_VALUE_ERROR_PREFIX = "Value error, "


def require_text(value: str, field: str) -> str:
    """Strip surrounding whitespace and reject empty strings."""
    stripped = value.strip()
    if not stripped:
        raise ValueError(f"{field} cannot be empty")
    return stripped


def normalize_numeric_id(value: str, field: str) -> str:
    """Validate an identifier that must consist of digits only.

    Raises ValueError when the value is blank or contains anything
    other than ASCII digits.
    """
    stripped = require_text(value, field)
    if not stripped.isascii() or not stripped.isdigit():
        raise ValueError(f"{field} must be numeric (got {stripped!r})")
    return stripped


def normalize_username(value: str, field: str = "username") -> str:
    """Validate an account handle, dropping a leading '@'.

    Handles are at most 30 characters of letters, digits, periods,
    and underscores.
    """
    stripped = require_text(value, field).removeprefix("@")
    if not stripped:
        raise ValueError(f"{field} cannot be empty")
    if len(stripped) > USERNAME_MAX_LENGTH:
        raise ValueError(f"{field} cannot exceed {USERNAME_MAX_LENGTH} characters")
    if not USERNAME_PATTERN.match(stripped):
        raise ValueError(f"{field} can only contain letters, numbers, periods, and underscores")
    return stripped


def clamp_limit(value: int | None, default: int) -> int:
    """Clamp a requested page size into [MIN_LIMIT, MAX_LIMIT].

    None and 0 mean "use the default".
    """
    if not value:
        value = default
    return min(max(MIN_LIMIT, value), MAX_LIMIT)


def format_validation_error(exc: ValidationError) -> str:
    """Render a pydantic ValidationError as one readable sentence per problem."""
    problems: list[str] = []
    for error in exc.errors(include_url=False):
        field = ".".join(str(part) for part in error["loc"])
        if error["type"] == "missing":
            problems.append(f"{field} is required")
            continue
        message = error["msg"].removeprefix(_VALUE_ERROR_PREFIX)
        if error["type"] == "value_error" or not field:
            problems.append(message)
        else:
            problems.append(f"{field}: {message}")
    return "; ".join(problems)
