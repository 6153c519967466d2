"""Unit tests for the logging setup."""

import logging
from logging.handlers import RotatingFileHandler
from unittest.mock import patch

import pytest

from mortiscope.core import logging_config
from mortiscope.core.logging_config import (
    DETAILED_FORMAT,
    JSON_FORMAT,
    LOG_FILE_NAME,
    MODULE_LOG_LEVELS,
    SIMPLE_FORMAT,
    get_logger,
    setup_logging,
)
from mortiscope.server.core.config import settings


def _console_handler():
    return next(h for h in logging.getLogger().handlers if type(h) is logging.StreamHandler)


@pytest.fixture(autouse=True)
def _restore_logging():
    yield
    setup_logging(enable_file=False)


class TestLevelsAndFormats:
    """Console handler configuration."""

    @pytest.mark.parametrize(
        "log_level,expected_level",
        [("DEBUG", logging.DEBUG), ("warning", logging.WARNING), ("ERROR", logging.ERROR)],
    )
    def test_console_level(self, log_level, expected_level):
        setup_logging(log_level=log_level, enable_file=False)

        assert _console_handler().level == expected_level

    def test_level_defaults_to_settings(self):
        setup_logging(enable_file=False)

        assert _console_handler().level == logging.getLevelName(settings.log_level.upper())

    @pytest.mark.parametrize(
        "log_format,expected",
        [("simple", SIMPLE_FORMAT), ("detailed", DETAILED_FORMAT), ("json", JSON_FORMAT), ("yaml", DETAILED_FORMAT)],
    )
    def test_formats(self, log_format, expected):
        setup_logging(log_format=log_format, enable_file=False)

        assert _console_handler().formatter._fmt == expected

    def test_module_levels_applied(self):
        setup_logging(enable_file=False)

        for name, level in MODULE_LOG_LEVELS.items():
            assert logging.getLogger(name).level == logging.getLevelName(level)

    def test_repeated_setup_replaces_handlers(self):
        setup_logging(enable_file=False)
        setup_logging(enable_file=False)

        assert len(logging.getLogger().handlers) == 1


class TestFileLogging:
    """Rotating file handler."""

    def test_file_handler_created(self, tmp_path):
        with patch.object(settings, "enable_file_logging", True):
            setup_logging(log_dir=str(tmp_path / "logs"))

        handlers = [h for h in logging.getLogger().handlers if isinstance(h, RotatingFileHandler)]
        assert len(handlers) == 1
        assert handlers[0].maxBytes == logging_config.LOG_FILE_MAX_BYTES
        assert (tmp_path / "logs" / LOG_FILE_NAME).exists()

    def test_setting_turns_file_logging_off(self, tmp_path):
        with patch.object(settings, "enable_file_logging", False):
            setup_logging(log_dir=str(tmp_path / "logs"))

        assert not any(isinstance(h, logging.FileHandler) for h in logging.getLogger().handlers)
        assert not (tmp_path / "logs").exists()


def test_get_logger_returns_named_logger():
    assert get_logger("mortiscope.server.services.cases").name == "mortiscope.server.services.cases"
