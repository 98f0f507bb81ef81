"""Tests for the local session storage."""

import json
import os
import stat
from unittest.mock import patch

import pytest

from shared.storage import DEFAULT_SESSION_FILE, LocalSessionStorage, PersistenceError

BLOB = {
    "uuids": {"phone_id": "abc", "uuid": "def"},
    "cookies": {"sessionid": "s3cr3t"},
    "last_login": 1700000000.5,
    "device_settings": {"app_version": "269.0.0.18.75", "android_version": 26},
}


class TestLocalSessionStorage:
    def test_default_location_is_fixed(self):
        assert LocalSessionStorage().file_path == DEFAULT_SESSION_FILE

    def test_save_then_load_round_trips(self, tmp_path):
        storage = LocalSessionStorage(tmp_path / "session.json")

        storage.save(BLOB)

        assert storage.load() == BLOB

    def test_creates_directory_on_first_write(self, tmp_path):
        target = tmp_path / "data" / "nested" / "session.json"
        storage = LocalSessionStorage(target)

        storage.save(BLOB)

        assert target.parent.is_dir()
        assert json.loads(target.read_text(encoding="utf-8")) == BLOB

    def test_overwrites_existing_session(self, tmp_path):
        storage = LocalSessionStorage(tmp_path / "session.json")

        storage.save({"cookies": {"sessionid": "old"}})
        storage.save({"cookies": {"sessionid": "new"}})

        assert storage.load() == {"cookies": {"sessionid": "new"}}

    def test_file_is_owner_only(self, tmp_path):
        target = tmp_path / "session.json"
        LocalSessionStorage(target).save(BLOB)

        assert stat.S_IMODE(os.stat(target).st_mode) == 0o600

    def test_load_missing_returns_none(self, tmp_path):
        assert LocalSessionStorage(tmp_path / "absent.json").load() is None

    def test_load_corrupt_returns_none(self, tmp_path):
        target = tmp_path / "session.json"
        target.write_text("{not json", encoding="utf-8")

        assert LocalSessionStorage(target).load() is None

    def test_load_non_object_returns_none(self, tmp_path):
        target = tmp_path / "session.json"
        target.write_text("[1, 2, 3]", encoding="utf-8")

        assert LocalSessionStorage(target).load() is None

    def test_delete_removes_session(self, tmp_path):
        storage = LocalSessionStorage(tmp_path / "session.json")
        storage.save(BLOB)

        storage.delete()

        assert storage.load() is None
        assert not storage.file_path.exists()

    def test_delete_is_idempotent(self, tmp_path):
        storage = LocalSessionStorage(tmp_path / "session.json")

        storage.delete()
        storage.delete()

        assert storage.load() is None


class TestLocalSessionStorageErrorHandling:
    def test_save_raises_persistence_error_on_io_failure(self, tmp_path):
        storage = LocalSessionStorage(tmp_path / "session.json")

        with (
            patch("os.fsync", side_effect=OSError("disk full")),
            pytest.raises(PersistenceError, match="disk full"),
        ):
            storage.save(BLOB)

    def test_save_cleans_up_temp_on_failure(self, tmp_path):
        storage = LocalSessionStorage(tmp_path / "session.json")

        with patch("os.fsync", side_effect=OSError("fsync failure")), pytest.raises(PersistenceError):
            storage.save(BLOB)

        assert not (tmp_path / "session.json").exists()
        assert list(tmp_path.glob(".session_*.tmp")) == []

    def test_failed_save_keeps_previous_session(self, tmp_path):
        storage = LocalSessionStorage(tmp_path / "session.json")
        storage.save({"cookies": {"sessionid": "old"}})

        with patch("os.fsync", side_effect=OSError("fsync failure")), pytest.raises(PersistenceError):
            storage.save({"cookies": {"sessionid": "new"}})

        assert storage.load() == {"cookies": {"sessionid": "old"}}

    def test_save_into_unwritable_location_raises(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory", encoding="utf-8")
        storage = LocalSessionStorage(blocker / "session.json")

        with pytest.raises(PersistenceError, match="Failed to save session"):
            storage.save(BLOB)

    def test_delete_raises_persistence_error_on_io_failure(self, tmp_path):
        storage = LocalSessionStorage(tmp_path / "session.json")
        storage.save(BLOB)

        with (
            patch("pathlib.Path.unlink", side_effect=PermissionError("read-only")),
            pytest.raises(PersistenceError, match="read-only"),
        ):
            storage.delete()
