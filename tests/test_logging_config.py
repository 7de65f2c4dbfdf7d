"""Tests for application logging setup."""

import logging
import sys

import pytest

from sigv4_transport.logging_config import LOG_FORMAT, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_level_name(self, restore_root_logger):
        setup_logging("debug")

        assert restore_root_logger.level == logging.DEBUG
        (handler,) = restore_root_logger.handlers
        assert isinstance(handler, logging.StreamHandler)
        assert handler.stream is sys.stdout
        assert handler.formatter._fmt == LOG_FORMAT

    def test_numeric_level(self, restore_root_logger):
        setup_logging(logging.ERROR)

        assert restore_root_logger.level == logging.ERROR

    def test_unknown_level_falls_back_to_warning(self, restore_root_logger):
        setup_logging("chatty")

        assert restore_root_logger.level == logging.WARNING
