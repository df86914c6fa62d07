"""Tests for size-based rotation and the append primitive."""

import os

from logsink.sink.rotation import append_to_file, backup_path, check_and_rotate

from .conftest import read, touch

TIMESTAMP = 1792420205.75


class TestCheckAndRotate:
    def test_missing_file_is_not_rotated(self, tmp_path):
        outcome = check_and_rotate(str(tmp_path / "app.log"), 10, TIMESTAMP)
        assert not outcome.rotated
        assert outcome.error is None

    def test_below_threshold_is_not_rotated(self, tmp_path):
        path = str(tmp_path / "app.log")
        touch(path, "x" * 9)
        assert not check_and_rotate(path, 10, TIMESTAMP).rotated
        assert os.path.exists(path)

    def test_at_threshold_is_renamed_to_timestamped_backup(self, tmp_path):
        path = str(tmp_path / "app.log")
        touch(path, "x" * 10)
        outcome = check_and_rotate(path, 10, TIMESTAMP)
        expected = str(tmp_path / "1792420205-app.log")
        assert outcome.rotated_to == expected
        assert not os.path.exists(path)
        assert read(expected) == "x" * 10

    def test_rename_failure_is_swallowed(self, tmp_path, monkeypatch):
        path = str(tmp_path / "app.log")
        touch(path, "x" * 20)

        def _deny(src, dst):
            raise PermissionError("locked")

        monkeypatch.setattr(os, "rename", _deny)
        outcome = check_and_rotate(path, 10, TIMESTAMP)
        assert not outcome.rotated
        assert isinstance(outcome.error, PermissionError)
        assert os.path.exists(path)

    def test_backup_path_keeps_directory(self, tmp_path):
        path = os.path.join(str(tmp_path), "202610", "19_error.log")
        assert backup_path(path, TIMESTAMP) == os.path.join(
            str(tmp_path), "202610", "1792420205-19_error.log"
        )


class TestAppendToFile:
    def test_creates_and_appends(self, tmp_path):
        path = str(tmp_path / "app.log")
        assert append_to_file(path, "one\n")
        assert append_to_file(path, "two\n")
        assert read(path) == "one\ntwo\n"

    def test_writes_utf8(self, tmp_path):
        path = str(tmp_path / "app.log")
        append_to_file(path, "订单 créé\n")
        assert read(path) == "订单 créé\n"

    def test_failure_returns_false(self, tmp_path):
        path = tmp_path / "app.log"
        path.mkdir()
        assert append_to_file(str(path), "line\n") is False
