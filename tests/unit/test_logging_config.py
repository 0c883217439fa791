"""Tests for logging configuration."""

import structlog

from libstorage_client.logging_config import configure_logging, get_logger


class TestConfigureLogging:
    def test_configure_default(self):
        configure_logging()
        log = structlog.get_logger()
        assert log is not None

    def test_configure_with_level(self):
        configure_logging(level="DEBUG")
        # Should not raise

    def test_unknown_level_falls_back(self):
        configure_logging(level="chatty")
        # Should not raise


class TestGetLogger:
    def test_basic_logger(self):
        configure_logging()
        log = get_logger()
        assert log is not None

    def test_logger_with_extra_kwargs(self):
        configure_logging()
        log = get_logger(host="tcp://127.0.0.1:7979", component="client")
        assert log is not None
