"""
Tests for Logging Configuration

Tests:
- Namespaced loggers
- File output
- Temporary level changes
"""

import logging

import pytest

from storygate.core.logging_config import (
    ROOT_LOGGER_NAME,
    LogContext,
    LogLevel,
    get_logger,
    is_initialized,
    setup_logging,
)


@pytest.fixture
def restore_logging():
    yield
    setup_logging()


class TestGetLogger:
    """Test logger naming."""

    def test_namespaced(self):
        """Test component names are prefixed with the package root."""
        logger = get_logger("quality.gateway")

        assert logger.name == "storygate.quality.gateway"
        assert is_initialized()

    def test_already_namespaced(self):
        """Test full names are not prefixed twice."""
        assert get_logger("storygate.budget").name == "storygate.budget"

    def test_cached(self):
        """Test repeated lookups return the same logger."""
        assert get_logger("session") is get_logger("session")


class TestSetupLogging:
    """Test handler configuration."""

    def test_log_file(self, temp_dir, restore_logging):
        """Test records are written to the log file."""
        log_file = temp_dir / "logs" / "storygate.log"
        setup_logging(LogLevel.DEBUG, log_file=log_file, console_output=False)

        get_logger("budget.ledger").info("spend recorded")
        for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
            handler.flush()

        assert "spend recorded" in log_file.read_text(encoding="utf-8")

    def test_handlers_replaced(self, restore_logging):
        """Test repeated setup does not stack handlers."""
        setup_logging()
        setup_logging()

        assert len(logging.getLogger(ROOT_LOGGER_NAME).handlers) == 1


class TestLogContext:
    """Test temporary levels."""

    def test_level_restored(self):
        """Test the previous level comes back on exit."""
        logger = get_logger("quality.scorers")
        before = logger.level

        with LogContext(logger, LogLevel.ERROR) as scoped:
            assert scoped.level == logging.ERROR

        assert logger.level == before
