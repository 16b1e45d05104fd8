"""
Tests for application logging configuration.
"""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from core.logging import LOG_FILE_NAME, UtcFormatter, configure_logging, get_logger


def test_get_logger_namespace():
    assert get_logger().name == "ichat"
    assert get_logger("parser").name == "ichat.parser"
    assert get_logger("ichat.nska").name == "ichat.nska"
    assert get_logger("ichat") is get_logger()


def test_console_only_by_default():
    logger = configure_logging("debug")
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    assert not isinstance(logger.handlers[0], RotatingFileHandler)
    assert isinstance(logger.handlers[0].formatter, UtcFormatter)


def test_file_handler(tmp_path):
    logger = configure_logging(logging.INFO, log_dir=tmp_path / "logs", max_bytes=1024, backup_count=2)
    file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
    assert len(file_handlers) == 1
    assert file_handlers[0].maxBytes == 1024
    assert file_handlers[0].backupCount == 2

    get_logger("test").info("written to file")
    assert "INFO ichat.test written to file" in (tmp_path / "logs" / LOG_FILE_NAME).read_text(encoding="utf-8")


def test_reconfigure_replaces_handlers(tmp_path):
    configure_logging(log_dir=tmp_path)
    logger = configure_logging()
    assert len(logger.handlers) == 1


def test_unknown_level():
    with pytest.raises(ValueError, match="Unknown log level"):
        configure_logging("LOUD")


def test_utc_formatter_timestamp():
    formatter = UtcFormatter(fmt="%(asctime)s %(message)s")
    record = logging.LogRecord("ichat", logging.INFO, __file__, 1, "hello", None, None)
    record.created = 978307200.0
    assert formatter.format(record) == "2001-01-01T00:00:00+00:00 hello"
