"""Logging setup for the tool server.

stdout carries the JSON-RPC stream, so every handler installed here writes
to stderr or to a log file. Modules log through structlog; the events are
rendered by stdlib handlers via structlog's ProcessorFormatter.

Environment variables:
- LOG_FORMAT: "json" or "console" (the default when unset).
- LOG_LEVEL: one of DEBUG, INFO (default), WARNING, ERROR, CRITICAL.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import UTC, datetime
from enum import Enum, StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from typing import Any

LOG_FILE_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

_LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# instagrapi and its HTTP stack log every request at INFO or DEBUG.
_QUIET_LOGGERS = ("instagrapi", "public_request", "private_request", "urllib3", "httpx", "httpcore")


class LogFormat(StrEnum):
    CONSOLE = "console"
    JSON = "json"


def _serialize_enums(
    _logger: object,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Log enum members (AuthState, ErrorKind, ...) by value."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
    return event_dict


def _is_test() -> bool:
    return "pytest" in sys.modules


def log_format_from_env() -> LogFormat:
    raw = os.environ.get("LOG_FORMAT", "").strip().lower()
    if not raw:
        return LogFormat.CONSOLE
    try:
        return LogFormat(raw)
    except ValueError:
        msg = f"Invalid LOG_FORMAT={raw!r}. Must be 'json', 'console', or unset."
        raise ValueError(msg) from None


def log_level_from_env() -> int:
    raw = os.environ.get("LOG_LEVEL", "INFO").strip().upper()
    if raw not in _LEVEL_NAMES:
        msg = f"Invalid LOG_LEVEL={raw!r}. Must be one of {', '.join(_LEVEL_NAMES)}."
        raise ValueError(msg)
    return logging.getLevelNamesMapping()[raw]


def _attach(root: logging.Logger, handler: logging.Handler, log_format: LogFormat, *, colors: bool) -> None:
    if log_format is LogFormat.JSON:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=colors)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                renderer,
            ],
        ),
    )
    root.addHandler(handler)


def _log_file_path(log_dir: Path) -> Path:
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / f"{datetime.now(tz=UTC).strftime(LOG_FILE_TIMESTAMP_FORMAT)}.log"


def setup_logging(log_dir: Path | str | None = None, level: int | None = None) -> Path | None:
    """Route structlog events to stderr, plus a timestamped file under log_dir.

    Replaces any handlers already on the root logger, so calling it twice is
    harmless. Returns the log file path, or None when no file is written
    (no log_dir, or running under pytest).
    """
    log_format = log_format_from_env()
    if level is None:
        level = log_level_from_env()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            _serialize_enums,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _attach(root, logging.StreamHandler(sys.stderr), log_format, colors=sys.stderr.isatty())

    if log_dir is None or _is_test():
        return None
    file_path = _log_file_path(Path(log_dir))
    _attach(root, logging.FileHandler(file_path), log_format, colors=False)
    return file_path
