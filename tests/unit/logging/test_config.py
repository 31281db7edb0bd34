"""Unit tests for logging configuration."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from helm_release_tasks.logging.config import (
    RETENTION_DAYS,
    _cleanup_old_logs,
    _setup_file_logging,
    configure_logging,
    get_logger,
)


@pytest.fixture(autouse=True)
def _reset_root_logger() -> Any:
    """Remove handlers added by configure_logging after each test."""
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    yield
    for handler in root.handlers:
        if handler not in original_handlers:
            handler.close()
    root.handlers = original_handlers
    root.setLevel(original_level)


def _age(path: Path, days: int) -> None:
    old_time = (datetime.now() - timedelta(days=days)).timestamp()
    os.utime(path, (old_time, old_time))


def _installed_handlers() -> list[logging.Handler]:
    return [h for h in logging.getLogger().handlers if getattr(h, "_helm_tasks_handler", False)]


@pytest.mark.unit
class TestCleanupOldLogs:
    """Tests for _cleanup_old_logs function."""

    def test_returns_early_when_log_dir_missing(self, tmp_path: Path) -> None:
        _cleanup_old_logs(tmp_path / "nonexistent")

    def test_deletes_old_log_files(self, tmp_path: Path) -> None:
        """Rotated files past the retention window are removed."""
        log_file = tmp_path / "helm-tasks.log.1"
        log_file.write_text("old log data")
        _age(log_file, RETENTION_DAYS + 5)

        _cleanup_old_logs(tmp_path)

        assert not log_file.exists()

    def test_keeps_recent_log_files(self, tmp_path: Path) -> None:
        log_file = tmp_path / "helm-tasks.log"
        log_file.write_text("recent log data")

        _cleanup_old_logs(tmp_path)

        assert log_file.exists()

    def test_leaves_unrelated_files(self, tmp_path: Path) -> None:
        other = tmp_path / "notes.txt"
        other.write_text("keep me")
        _age(other, RETENTION_DAYS + 5)

        _cleanup_old_logs(tmp_path)

        assert other.exists()

    def test_ignores_os_errors(self, tmp_path: Path) -> None:
        log_file = tmp_path / "helm-tasks.log.1"
        log_file.write_text("data")
        _age(log_file, RETENTION_DAYS + 5)

        with patch.object(Path, "unlink", side_effect=OSError("permission denied")):
            _cleanup_old_logs(tmp_path)

        assert log_file.exists()


@pytest.mark.unit
class TestSetupFileLogging:
    """Tests for _setup_file_logging function."""

    def test_creates_log_directory_and_handler(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "helm-tasks.log"

        handler = _setup_file_logging(log_file)

        assert handler is not None
        assert log_file.parent.exists()
        assert handler.level == logging.DEBUG
        handler.close()

    def test_returns_none_when_directory_unwritable(self, tmp_path: Path) -> None:
        with patch.object(Path, "mkdir", side_effect=OSError("read-only")):
            assert _setup_file_logging(tmp_path / "logs" / "helm-tasks.log") is None


@pytest.mark.unit
class TestConfigureLogging:
    """Tests for configure_logging function."""

    @pytest.mark.parametrize(
        ("kwargs", "level"),
        [
            ({"debug": True}, logging.DEBUG),
            ({"verbose": True}, logging.INFO),
            ({}, logging.WARNING),
        ],
    )
    def test_console_level(self, kwargs: dict[str, bool], level: int) -> None:
        configure_logging(file_logging=False, **kwargs)

        handlers = _installed_handlers()
        assert len(handlers) == 1
        assert handlers[0].level == level

    def test_adds_file_handler(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "helm-tasks.log"

        configure_logging(log_file=log_file)

        assert len(_installed_handlers()) == 2
        assert log_file.parent.exists()

    def test_default_file_location(self, isolated_log_file: Path) -> None:
        configure_logging()
        assert isolated_log_file.parent.exists()

    def test_reconfiguring_replaces_handlers(self) -> None:
        """A second call does not stack handlers."""
        configure_logging(file_logging=False)
        configure_logging(json_output=True, file_logging=False)

        assert len(_installed_handlers()) == 1

    def test_unwritable_log_directory_keeps_console(self) -> None:
        with patch("helm_release_tasks.logging.config._setup_file_logging", return_value=None):
            configure_logging()

        assert len(_installed_handlers()) == 1


@pytest.mark.unit
class TestGetLogger:
    """Tests for get_logger function."""

    def test_returns_bound_logger(self) -> None:
        logger = get_logger("test")
        assert logger is not None

    def test_binds_initial_context(self) -> None:
        logger = get_logger("test", task="install")
        assert logger is not None
