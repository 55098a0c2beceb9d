"""Tests for dsk.logging_config module."""

import json
import logging
import os

import pytest

from dsk import logging_config
from dsk.logging_config import (
    JsonFormatter,
    LogConfig,
    add_file_handler,
    configure_logging,
    get_logger,
    set_level,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove DSK_LOG_* variables and reset the configured flag."""
    for name in ("DSK_LOG_LEVEL", "DSK_LOG_FORMAT", "DSK_LOG_FILE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(logging_config, "_configured", False)


def make_record(msg="task_added: key=a", **extra):
    record = logging.LogRecord("dsk.graph", logging.DEBUG, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLogConfig:
    """Tests for LogConfig."""

    def test_defaults(self):
        """Test default values."""
        config = LogConfig()
        assert config.level == "INFO"
        assert config.format == "text"
        assert config.file_path is None

    def test_from_env(self, monkeypatch):
        """Test reading DSK_LOG_* variables."""
        monkeypatch.setenv("DSK_LOG_LEVEL", "debug")
        monkeypatch.setenv("DSK_LOG_FORMAT", "JSON")
        monkeypatch.setenv("DSK_LOG_FILE", "/tmp/dsk.log")

        config = LogConfig.from_env()

        assert config.level == "DEBUG"
        assert config.format == "json"
        assert config.file_path == "/tmp/dsk.log"

    def test_from_env_rejects_bad_format(self, monkeypatch):
        """Test that an unknown format is an error."""
        monkeypatch.setenv("DSK_LOG_FORMAT", "xml")
        with pytest.raises(ValueError, match="DSK_LOG_FORMAT"):
            LogConfig.from_env()

    def test_formatter(self):
        """Test formatter selection."""
        assert isinstance(LogConfig(format="json").formatter(), JsonFormatter)
        assert not isinstance(LogConfig().formatter(), JsonFormatter)


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_format(self):
        """Test structure of a formatted record."""
        data = json.loads(JsonFormatter().format(make_record()))
        assert data["level"] == "DEBUG"
        assert data["logger"] == "dsk.graph"
        assert data["message"] == "task_added: key=a"
        assert "extra" not in data

    def test_extra_fields(self):
        """Test that non-standard attributes are collected."""
        data = json.loads(JsonFormatter().format(make_record(key="a")))
        assert data["extra"] == {"key": "a"}

    def test_asctime_not_reported_as_extra(self):
        """Test a record already formatted by a text handler."""
        record = make_record()
        logging.Formatter("%(asctime)s - %(message)s").format(record)

        data = json.loads(JsonFormatter().format(record))

        assert "extra" not in data


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_configure(self, restore_root_logger):
        """Test level and console handler."""
        configure_logging(level="DEBUG")
        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1

    def test_second_call_ignored(self, restore_root_logger):
        """Test that configuration happens once unless forced."""
        configure_logging(level="DEBUG")
        configure_logging(level="ERROR")
        assert restore_root_logger.level == logging.DEBUG

        configure_logging(level="ERROR", force=True)
        assert restore_root_logger.level == logging.ERROR

    def test_env_fallback(self, monkeypatch, restore_root_logger):
        """Test that environment variables fill unset arguments."""
        monkeypatch.setenv("DSK_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("DSK_LOG_FORMAT", "json")
        configure_logging()
        assert restore_root_logger.level == logging.WARNING
        assert isinstance(restore_root_logger.handlers[0].formatter, JsonFormatter)

    def test_file_handler(self, tmp_path, restore_root_logger):
        """Test that records reach the log file."""
        log_file = tmp_path / "dsk.log"
        configure_logging(level="INFO", file_path=str(log_file))

        get_logger("dsk.test").info("hello file")
        for handler in restore_root_logger.handlers:
            handler.flush()

        assert "hello file" in log_file.read_text()

    def test_env_file(self, tmp_path, restore_root_logger):
        """Test loading settings from a dotenv file."""
        env_file = tmp_path / ".env"
        env_file.write_text("DSK_LOG_LEVEL=ERROR\n")

        try:
            configure_logging(env_file=env_file)
            assert restore_root_logger.level == logging.ERROR
        finally:
            os.environ.pop("DSK_LOG_LEVEL", None)

    def test_env_file_does_not_override(self, tmp_path, monkeypatch, restore_root_logger):
        """Test that the process environment wins over the file."""
        monkeypatch.setenv("DSK_LOG_LEVEL", "DEBUG")
        env_file = tmp_path / ".env"
        env_file.write_text("DSK_LOG_LEVEL=ERROR\n")

        configure_logging(env_file=env_file)

        assert restore_root_logger.level == logging.DEBUG

    def test_format_argument_wins_over_bad_env(self, monkeypatch, restore_root_logger):
        """Test that a valid format argument ignores DSK_LOG_FORMAT."""
        monkeypatch.setenv("DSK_LOG_FORMAT", "xml")
        configure_logging(format="json")
        assert isinstance(restore_root_logger.handlers[0].formatter, JsonFormatter)

    def test_unknown_format_argument(self, restore_root_logger):
        """Test that an invalid format argument is rejected."""
        handlers = list(restore_root_logger.handlers)
        with pytest.raises(ValueError, match="format must be 'text' or 'json'"):
            configure_logging(format="xml")
        assert restore_root_logger.handlers == handlers

    def test_bad_env_format(self, monkeypatch, restore_root_logger):
        """Test that DSK_LOG_FORMAT is checked when no argument is given."""
        monkeypatch.setenv("DSK_LOG_FORMAT", "xml")
        with pytest.raises(ValueError, match="DSK_LOG_FORMAT"):
            configure_logging()

    def test_unknown_level(self, restore_root_logger):
        """Test that an unknown level is rejected."""
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging(level="LOUD")


class TestHelpers:
    """Tests for set_level and add_file_handler."""

    def test_set_level(self):
        """Test setting a named logger's level."""
        logger = logging.getLogger("dsk.test.set_level")
        set_level("error", "dsk.test.set_level")
        assert logger.level == logging.ERROR

    def test_add_file_handler(self, tmp_path):
        """Test that the handler is attached to the dsk logger."""
        log_file = tmp_path / "graph.log"
        handler = add_file_handler(str(log_file), json_format=True)
        dsk_logger = logging.getLogger("dsk")
        dsk_logger.setLevel(logging.DEBUG)
        try:
            assert handler in dsk_logger.handlers
            logging.getLogger("dsk.graph").debug("task_added: key=x")
            handler.flush()
            line = log_file.read_text().strip()
            assert json.loads(line)["message"] == "task_added: key=x"
        finally:
            dsk_logger.removeHandler(handler)
            dsk_logger.setLevel(logging.NOTSET)
            handler.close()
