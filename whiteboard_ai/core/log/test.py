"""Tests for core logging module."""

import logging
from io import StringIO

from .lib import get_logger, parse_level, setup_logging


class TestLogging:
    """Test core logging API."""

    def test_get_logger(self) -> None:
        """Verify logger instance creation."""
        logger = get_logger("test")
        assert logger.name == "test"
        assert isinstance(logger, logging.Logger)

    def test_get_logger_default_name(self) -> None:
        """Verify default logger name."""
        logger = get_logger()
        assert logger.name == "whiteboard-ai"

    def test_parse_level_names(self) -> None:
        """Level names resolve case-insensitively, unknown names to INFO."""
        assert parse_level("debug") == logging.DEBUG
        assert parse_level("WARNING") == logging.WARNING
        assert parse_level("chatty") == logging.INFO
        assert parse_level(logging.ERROR) == logging.ERROR

    def test_setup_logging(self) -> None:
        """Verify logging setup."""
        stream = StringIO()
        setup_logging(level="debug", stream=stream)
        logger = get_logger("test_setup")
        logger.debug("test message")

        # basicConfig is a no-op once the root logger has handlers
        assert logger.level == logging.NOTSET
