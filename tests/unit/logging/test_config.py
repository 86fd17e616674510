"""Unit tests for logging configuration."""

from __future__ import annotations

import logging
import os
from collections.abc import Generator
from datetime import datetime, timedelta
from logging.handlers import RotatingFileHandler
from pathlib import Path
from unittest.mock import patch

import pytest
import structlog

from kubelens.logging.config import (
    RETENTION_DAYS,
    _cleanup_old_logs,
    _setup_file_logging,
    bind_cluster,
    configure_logging,
    get_logger,
)


@pytest.fixture
def root_handlers() -> Generator[list[logging.Handler]]:
    """Handlers present before the test; the rest are added by it."""
    yield list(logging.getLogger().handlers)


def _added(before: list[logging.Handler]) -> list[logging.Handler]:
    return [h for h in logging.getLogger().handlers if h not in before]


def _age(path: Path, days: int) -> None:
    old_time = (datetime.now() - timedelta(days=days)).timestamp()
    os.utime(path, (old_time, old_time))


@pytest.mark.unit
class TestCleanupOldLogs:
    """Tests for _cleanup_old_logs function."""

    def test_returns_early_when_log_dir_missing(self, tmp_path: Path) -> None:
        """_cleanup_old_logs should return early if LOG_DIR doesn't exist."""
        with patch("kubelens.logging.config.LOG_DIR", tmp_path / "nonexistent"):
            # Should not raise
            _cleanup_old_logs()

    def test_deletes_old_log_files(self, tmp_path: Path) -> None:
        """_cleanup_old_logs should delete log files older than RETENTION_DAYS."""
        log_file = tmp_path / "kubelens.log.1"
        log_file.write_text("old log data")
        _age(log_file, RETENTION_DAYS + 5)

        with patch("kubelens.logging.config.LOG_DIR", tmp_path):
            _cleanup_old_logs()

        assert not log_file.exists()

    def test_keeps_recent_log_files(self, tmp_path: Path) -> None:
        """_cleanup_old_logs should keep log files newer than RETENTION_DAYS."""
        log_file = tmp_path / "kubelens.log"
        log_file.write_text("recent log data")

        with patch("kubelens.logging.config.LOG_DIR", tmp_path):
            _cleanup_old_logs()

        assert log_file.exists()

    def test_leaves_other_files_alone(self, tmp_path: Path) -> None:
        """Only kubelens log files are cleaned up."""
        other = tmp_path / "notes.txt"
        other.write_text("keep me")
        _age(other, RETENTION_DAYS + 5)

        with patch("kubelens.logging.config.LOG_DIR", tmp_path):
            _cleanup_old_logs()

        assert other.exists()

    def test_ignores_os_errors(self, tmp_path: Path) -> None:
        """_cleanup_old_logs should handle OSError gracefully."""
        log_file = tmp_path / "kubelens.log.1"
        log_file.write_text("data")
        _age(log_file, RETENTION_DAYS + 5)

        with (
            patch("kubelens.logging.config.LOG_DIR", tmp_path),
            patch.object(Path, "unlink", side_effect=OSError("permission denied")),
        ):
            # Should not raise despite OSError
            _cleanup_old_logs()


@pytest.mark.unit
class TestSetupFileLogging:
    """Tests for _setup_file_logging function."""

    def test_creates_log_directory_and_handler(
        self, tmp_path: Path, root_handlers: list[logging.Handler]
    ) -> None:
        """_setup_file_logging should create log dir and add a file handler."""
        log_dir = tmp_path / "logs"
        log_file = log_dir / "kubelens.log"

        with (
            patch("kubelens.logging.config.LOG_DIR", log_dir),
            patch("kubelens.logging.config.LOG_FILE", log_file),
            patch("kubelens.logging.config._cleanup_old_logs"),
        ):
            _setup_file_logging()

        added = _added(root_handlers)
        assert log_dir.exists()
        assert len(added) == 1
        assert isinstance(added[0], RotatingFileHandler)
        assert added[0].level == logging.DEBUG


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
    def test_console_level(
        self, kwargs: dict[str, bool], level: int, root_handlers: list[logging.Handler]
    ) -> None:
        """The console handler level follows the verbosity flags."""
        with patch("kubelens.logging.config._setup_file_logging"):
            configure_logging(**kwargs)

        added = _added(root_handlers)
        assert len(added) == 1
        assert added[0].level == level

    def test_json_output(self, root_handlers: list[logging.Handler]) -> None:
        """configure_logging with json_output=True should still add a console handler."""
        with patch("kubelens.logging.config._setup_file_logging"):
            configure_logging(json_output=True)
        assert len(_added(root_handlers)) == 1

    def test_no_console_for_tui(self, root_handlers: list[logging.Handler]) -> None:
        """With console=False only the file handler is attached."""
        with patch("kubelens.logging.config._setup_file_logging") as setup_file:
            configure_logging(console=False)
        assert _added(root_handlers) == []
        setup_file.assert_called_once()

    def test_root_captures_debug(self, root_handlers: list[logging.Handler]) -> None:
        """The root logger passes everything on to the file handler."""
        with patch("kubelens.logging.config._setup_file_logging"):
            configure_logging()
        assert logging.getLogger().level == logging.DEBUG


@pytest.mark.unit
class TestGetLogger:
    """Tests for get_logger function."""

    def test_returns_bound_logger(self) -> None:
        """get_logger should return a structlog logger."""
        logger = get_logger("test")
        assert logger is not None

    def test_binds_initial_context(self) -> None:
        """get_logger should bind initial context when provided."""
        logger = get_logger("test", component="poller")
        assert logger is not None


@pytest.mark.unit
class TestBindCluster:
    """Tests for bind_cluster function."""

    @pytest.fixture(autouse=True)
    def clear_context(self) -> Generator[None]:
        structlog.contextvars.clear_contextvars()
        yield
        structlog.contextvars.clear_contextvars()

    def test_binds_context_and_namespace(self) -> None:
        bind_cluster("dev", "staging")
        assert structlog.contextvars.get_contextvars() == {
            "kube_context": "dev",
            "kube_namespace": "staging",
        }

    def test_missing_values_use_placeholder(self) -> None:
        bind_cluster(None, None)
        assert structlog.contextvars.get_contextvars() == {
            "kube_context": "-",
            "kube_namespace": "-",
        }
