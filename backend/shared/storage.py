"""Storage abstraction for the persisted account session.

The session blob is a JSON object holding device identity and authentication
cookies for the account client. It is written with owner-only permissions
(0o600) inside an owner-only directory (0o700) because it grants access to
the account without a password.
"""

import contextlib
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

import structlog

logger = structlog.get_logger()

DEFAULT_SESSION_FILE = Path("data") / "session.json"

# Owner-only directory permissions for session storage.
_SESSION_DIR_MODE = 0o700

# Owner-only file permissions for the session file.
_SESSION_FILE_MODE = 0o600


class PersistenceError(Exception):
    """Session storage I/O failure."""


class SessionStorage(Protocol):
    """Protocol for persisting the single session blob."""

    def save(self, blob: dict[str, Any]) -> None: ...

    def load(self) -> dict[str, Any] | None: ...

    def delete(self) -> None: ...


class LocalSessionStorage:
    """Keeps the session blob in one JSON file on the local filesystem."""

    def __init__(self, file_path: str | Path = DEFAULT_SESSION_FILE) -> None:
        self._file_path = Path(file_path)

    @property
    def file_path(self) -> Path:
        return self._file_path

    def save(self, blob: dict[str, Any]) -> None:
        """Write the blob atomically, replacing any existing session.

        Creates the parent directory on first write. The content goes to a
        temp file in the same directory which is then renamed into place, so
        a reader never sees a truncated session. Raises PersistenceError on
        any I/O failure.
        """
        content = json.dumps(blob, indent=2).encode("utf-8")
        directory = self._file_path.parent
        try:
            directory.mkdir(mode=_SESSION_DIR_MODE, parents=True, exist_ok=True)
            self._write_atomic(directory, content)
        except OSError as exc:
            msg = f"Failed to save session to {self._file_path}: {exc}"
            raise PersistenceError(msg) from exc
        logger.info("saved session", path=str(self._file_path))

    def _write_atomic(self, directory: Path, content: bytes) -> None:
        fd, tmp_path = tempfile.mkstemp(dir=str(directory), suffix=".tmp", prefix=".session_")
        fd_owned = True
        try:
            with os.fdopen(fd, "wb") as f:
                fd_owned = False  # os.fdopen took ownership; it will close fd
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, _SESSION_FILE_MODE)  # noqa: PTH101
            Path(tmp_path).replace(self._file_path)
        except BaseException:
            if fd_owned:
                with contextlib.suppress(OSError):
                    os.close(fd)
            with contextlib.suppress(OSError):
                Path(tmp_path).unlink()
            raise

    def load(self) -> dict[str, Any] | None:
        """Return the stored blob, or None when it is missing or unreadable."""
        try:
            raw = self._file_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("could not read session file", path=str(self._file_path), error=str(exc))
            return None

        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("session file is corrupt", path=str(self._file_path))
            return None

        if not isinstance(data, dict):
            logger.warning("session file does not hold a JSON object", path=str(self._file_path))
            return None
        return data

    def delete(self) -> None:
        """Remove the stored blob. A missing file is not an error."""
        try:
            self._file_path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            msg = f"Failed to delete session at {self._file_path}: {exc}"
            raise PersistenceError(msg) from exc
        logger.info("deleted session", path=str(self._file_path))
