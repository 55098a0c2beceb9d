"""Centralized logging configuration for dsk.

The library itself only creates module loggers and never installs
handlers. Applications embedding it can call configure_logging() once
to get console (text or JSON) and optional file output.

Usage:
    from dsk.logging_config import configure_logging, get_logger

    # Configure once at application startup
    configure_logging(level="DEBUG", format="text")

    # Get loggers in modules
    logger = get_logger(__name__)

Environment Variables:
    DSK_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    DSK_LOG_FORMAT: Output format ("text" or "json")
    DSK_LOG_FILE: Optional log file path
"""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Literal

from dotenv import load_dotenv

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
TEXT_FORMAT_WITH_MS = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord carries; anything else came in through `extra`
_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
        "asctime",
    }
)

_configured = False


@dataclass
class LogConfig:
    """Logging configuration.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        format: Output format ("text" or "json").
        file_path: Optional file path for file logging.
        include_ms: Include milliseconds in timestamp.
    """

    level: str = "INFO"
    format: Literal["text", "json"] = "text"
    file_path: str | None = None
    include_ms: bool = True

    @classmethod
    def from_env(cls) -> LogConfig:
        """Build a config from DSK_LOG_* environment variables."""
        return cls(
            level=os.environ.get("DSK_LOG_LEVEL", "INFO").upper(),
            format=_check_format(os.environ.get("DSK_LOG_FORMAT", "text"), "DSK_LOG_FORMAT"),
            file_path=os.environ.get("DSK_LOG_FILE") or None,
        )

    def formatter(self) -> logging.Formatter:
        """Create the formatter this config describes."""
        if self.format == "json":
            return JsonFormatter()
        fmt = TEXT_FORMAT_WITH_MS if self.include_ms else TEXT_FORMAT
        return logging.Formatter(fmt, datefmt=DATE_FORMAT)


def _check_format(value: str, source: str) -> Literal["text", "json"]:
    log_format = value.lower()
    if log_format not in ("text", "json"):
        raise ValueError(f"{source} must be 'text' or 'json', got {value!r}")
    return log_format  # type: ignore[return-value]


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging.

    Outputs logs as JSON objects with consistent structure:
    {
        "timestamp": "2026-10-17T14:30:00.123456",
        "level": "DEBUG",
        "logger": "dsk.graph",
        "message": "task_added: key=fetch dependencies=[]",
        "extra": {...}
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = {k: v for k, v in record.__dict__.items() if k not in _STANDARD_ATTRS}
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, default=str)


def _level_value(level: str) -> int:
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def configure_logging(
    level: str | None = None,
    format: Literal["text", "json"] | None = None,
    file_path: str | None = None,
    include_ms: bool = True,
    force: bool = False,
    env_file: str | Path | None = None,
) -> None:
    """Configure logging for the application.

    This should be called once at application startup. Subsequent calls
    are ignored unless force=True.

    Unset arguments fall back to DSK_LOG_LEVEL, DSK_LOG_FORMAT and
    DSK_LOG_FILE. If env_file is given it is loaded first; variables
    already set in the environment win over the file.

    Args:
        level: Log level. Defaults to DSK_LOG_LEVEL or "INFO".
        format: Output format. Defaults to DSK_LOG_FORMAT or "text".
        file_path: Optional file path. Defaults to DSK_LOG_FILE.
        include_ms: Include milliseconds in timestamp.
        force: Force reconfiguration even if already configured.
        env_file: Optional dotenv file to read the variables from.
    """
    global _configured
    if _configured and not force:
        return

    if env_file is not None:
        load_dotenv(env_file, override=False)

    # Arguments win; the environment is only read for unset ones
    if format:
        log_format = _check_format(format, "format")
    else:
        log_format = _check_format(os.environ.get("DSK_LOG_FORMAT", "text"), "DSK_LOG_FORMAT")

    config = LogConfig(
        level=(level or os.environ.get("DSK_LOG_LEVEL", "INFO")).upper(),
        format=log_format,
        file_path=file_path or os.environ.get("DSK_LOG_FILE") or None,
        include_ms=include_ms,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(_level_value(config.level))
    root_logger.handlers.clear()

    formatter = config.formatter()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if config.file_path:
        file_handler = logging.FileHandler(config.file_path)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name (typically __name__)."""
    return logging.getLogger(name)


def set_level(level: str, logger_name: str | None = None) -> None:
    """Set log level for a specific logger, or the root logger if None."""
    logging.getLogger(logger_name).setLevel(_level_value(level))


def add_file_handler(
    file_path: str,
    level: str = "DEBUG",
    json_format: bool = False,
    logger_name: str | None = "dsk",
) -> logging.FileHandler:
    """Add a file handler to a logger.

    Useful for capturing only dsk's own records.

    Args:
        file_path: Path to log file.
        level: Log level for this handler.
        json_format: Use JSON format.
        logger_name: Logger name. Defaults to the "dsk" package logger.

    Returns:
        The created file handler.
    """
    logger = logging.getLogger(logger_name)

    handler = logging.FileHandler(file_path)
    handler.setLevel(_level_value(level))

    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT_WITH_MS, datefmt=DATE_FORMAT))

    logger.addHandler(handler)
    return handler
