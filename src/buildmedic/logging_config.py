"""
Centralized Logging Configuration

Every controller action is emitted as a timestamped, leveled line to the
console and appended to a fixed log file in the project root
(``ci-recovery.log`` by default). Structured JSON output is available for CI
systems that ingest logs; the correlation id is set to the current recovery
attempt id.

Usage:
    from buildmedic.logging_config import configure_logging

    configure_logging(log_path=Path("ci-recovery.log"))

Environment Variables:
    BUILDMEDIC_LOG_LEVEL - Set log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

from __future__ import annotations

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime
from pathlib import Path
from typing import Optional

LOGGER_NAME = "buildmedic"

# Context var for correlation ID (the active recovery attempt)
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

_STANDARD_ATTRS = {
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
    "thread",
    "threadName",
    "exc_info",
    "exc_text",
    "stack_info",
    "message",
    "taskName",
}


class IsoTimestampFormatter(logging.Formatter):
    """Formats records as ``[<ISO timestamp>] LEVEL: message``."""

    def __init__(self) -> None:
        super().__init__(fmt="[%(asctime)s] %(levelname)s: %(message)s")

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        return datetime.fromtimestamp(record.created).astimezone().isoformat(timespec="milliseconds")


class StructuredFormatter(logging.Formatter):
    """JSON formatter with correlation ID for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON.

        Args:
            record: The log record to format

        Returns:
            JSON-formatted log string
        """
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).astimezone().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": correlation_id_var.get(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def configure_logging(
    log_path: Optional[Path] = None,
    log_level: Optional[str] = None,
    log_to_console: bool = True,
    structured: bool = False,
) -> logging.Logger:
    """
    Configure the ``buildmedic`` logger.

    Args:
        log_path: File the log is appended to (None disables file logging)
        log_level: Log level; defaults to BUILDMEDIC_LOG_LEVEL or INFO
        log_to_console: Whether to log to stdout
        structured: Emit JSON lines instead of plain text

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)

    # Clear existing handlers to avoid duplicates
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    if log_level is None:
        log_level = os.environ.get("BUILDMEDIC_LOG_LEVEL", "INFO")
    logger.setLevel(getattr(logging, log_level.upper()))

    formatter: logging.Formatter = StructuredFormatter() if structured else IsoTimestampFormatter()

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
