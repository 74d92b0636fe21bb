"""
Structured logging configuration.

This module provides logging for the listing filter layer with support for:
- Correlation ID tracking (set per request by the HTTP adapter)
- Contextual fields (plugin, controller, action, slug) attached to every
  record once a listing binds them
- Human-readable or JSON console output
- JSON error log file
"""

import json
import logging
import sys
from contextvars import ContextVar
from typing import Any

from listing_filters.settings import app_settings

# Context variables for storing request-specific logging context
log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

_RESERVED_RECORD_KEYS = frozenset(
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
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "exc_info",
        "exc_text",
        "stack_info",
        "taskName",
        "asctime",
        "correlation_id",
    }
)


def get_correlation_id() -> str:
    """
    Get correlation ID of the current request context.

    Returns:
        Correlation ID or empty string if not available.
    """
    return correlation_id.get()


def set_correlation_id(value: str) -> None:
    """Bind a correlation ID to the current context."""
    correlation_id.set(value)


def set_log_context(**kwargs: Any) -> None:
    """
    Set contextual fields for structured logging.

    Args:
        **kwargs: Key-value pairs to add to log context.

    Example:
        >>> set_log_context(controller="posts", action="index")
        >>> logger.info("Resolving filter")  # Includes controller and action
    """
    current = dict(log_context.get())
    current.update(kwargs)
    log_context.set(current)


def get_log_context() -> dict[str, Any]:
    """
    Get current log context.

    Returns:
        Dictionary of contextual log fields.
    """
    return log_context.get()


def clear_log_context() -> None:
    """Clear the log context (useful at end of request)."""
    log_context.set({})


class StructuredJSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    This formatter outputs logs in JSON format with:
    - Standard fields: timestamp, level, logger, message
    - Correlation ID from request context
    - Additional contextual fields from log_context
    - Exception information when present
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON.

        Args:
            record: The log record to format.

        Returns:
            JSON string with structured log data.
        """
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        cid = get_correlation_id()
        if cid:
            log_data["request_id"] = cid

        context = get_log_context()
        if context:
            log_data.update(context)

        log_data["environment"] = app_settings.ENV.value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Extra fields passed with logger.xxx(..., extra={...})
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Human-readable formatter for console output (non-JSON).

    Uses different format strings based on log level for better readability
    during development.
    """

    INFO_FMT = "%(asctime)s - [%(correlation_id)s] %(levelname)s: %(message)s"
    ERROR_FMT = "%(asctime)s - [%(correlation_id)s] %(levelname)s: %(module)s.%(funcName)s:%(lineno)d - %(message)s"

    def __init__(self, *args: Any, **kwargs: Any):
        """Initialize the formatter."""
        super().__init__(*args, **kwargs)
        self._formatters = {
            logging.INFO: logging.Formatter(
                self.INFO_FMT, datefmt="%Y-%m-%d %H:%M:%S"
            ),
            logging.WARNING: logging.Formatter(
                self.ERROR_FMT, datefmt="%Y-%m-%d %H:%M:%S"
            ),
            logging.ERROR: logging.Formatter(
                self.ERROR_FMT, datefmt="%Y-%m-%d %H:%M:%S"
            ),
            logging.DEBUG: logging.Formatter(
                self.ERROR_FMT, datefmt="%Y-%m-%d %H:%M:%S"
            ),
        }

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record with correlation ID.

        Args:
            record: The log record to format.

        Returns:
            Formatted log string.
        """
        record.correlation_id = get_correlation_id() or "-"

        formatter = self._formatters.get(
            record.levelno, self._formatters[logging.INFO]
        )
        return formatter.format(record)


def setup_logging() -> logging.Logger:
    """
    Configure the package logger.

    This function sets up:
    - Console handler, human-readable or JSON depending on LOG_CONSOLE_FORMAT
    - File handler for errors (JSON format)

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger("listing_filters")
    logger.setLevel(getattr(logging, app_settings.LOG_LEVEL.upper()))
    logger.propagate = False

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    if app_settings.LOG_CONSOLE_FORMAT == "json":
        console_handler.setFormatter(StructuredJSONFormatter())
    else:
        console_handler.setFormatter(HumanReadableFormatter())
    logger.addHandler(console_handler)

    try:
        file_handler = logging.FileHandler(app_settings.LOG_FILE_PATH)
        file_handler.setLevel(logging.ERROR)
        file_handler.setFormatter(StructuredJSONFormatter())
        logger.addHandler(file_handler)
    except OSError as e:
        logger.warning(f"Could not create file handler: {e}")

    return logger


# Create default logger instance
logger = setup_logging()
