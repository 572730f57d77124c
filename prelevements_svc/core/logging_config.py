"""
Structured JSON logging configuration.

This module provides:
- JSON-formatted log output for log shippers (Loki, ELK)
- Consistent log structure across all transforms
- The default diagnostic sink used when callers do not supply one

Design Choices:
- Uses stdlib logging with custom JSONFormatter (no heavy dependencies)
- Configurable log level via environment variable
- Outputs to stdout for container/systemd log collection

Log Structure (JSON):
{
    "timestamp": "2024-01-15T10:30:00Z",
    "level": "WARNING",
    "logger": "services.calendar.processing",
    "message": "Invalid calendar date format",
    "extra": { ... }
}

Usage:
    from core.logging_config import setup_logging

    # At startup of the host process
    setup_logging()

    logger.warning("Skipping sample", extra={"date": "2024-13-01"})
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from core.config import settings

# Signature of the diagnostic sink accepted by the transforms that skip records.
WarningSink = Callable[[str, Dict[str, Any]], None]


# =============================================================================
# JSON FORMATTER
# =============================================================================

class JSONFormatter(logging.Formatter):
    """
    JSON log formatter producing single-line records.

    All timestamps are UTC so logs from several hosts line up.
    """

    # Standard LogRecord attributes, never reported under "extra"
    STANDARD_ATTRS = frozenset({
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "pathname", "process", "processName", "relativeCreated",
        "stack_info", "exc_info", "exc_text", "thread", "threadName",
        "taskName", "message"
    })

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as single-line JSON."""
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in self.STANDARD_ATTRS and not key.startswith("_")
        }

        if extra:
            log_entry["extra"] = extra

        return json.dumps(log_entry, default=str, ensure_ascii=False)


# =============================================================================
# LOGGING SETUP
# =============================================================================

def setup_logging(level: Optional[str] = None, json_format: Optional[bool] = None) -> None:
    """
    Configure structured logging for the host process.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL); defaults to settings.log_level
        json_format: If True, use JSON format; if False, use human-readable format.
            Defaults to settings.log_format

    Environment Variables:
        LOG_LEVEL: Override the log level (default: INFO)
        LOG_FORMAT: Override format ("json" or "text", default: json)
    """
    if level is None:
        level = settings.log_level
    if json_format is None:
        json_format = settings.log_format.lower() == "json"

    level = os.environ.get("LOG_LEVEL", level).upper()
    json_format = os.environ.get("LOG_FORMAT", "json" if json_format else "text").lower() == "json"

    handler = logging.StreamHandler(sys.stdout)

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    for logger_name in ["core", "services", "schemas"]:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.handlers = []  # Inherit from root
        logger.propagate = True

    logging.getLogger(__name__).info(
        "Logging configured",
        extra={"level": level, "format": "json" if json_format else "text"}
    )


# =============================================================================
# DIAGNOSTIC SINKS
# =============================================================================

def logging_sink(logger: logging.Logger) -> WarningSink:
    """
    Build a diagnostic sink that forwards skipped-record warnings to a logger.

    Args:
        logger: Logger receiving the warnings (typically the caller module's)

    Returns:
        Callable accepting (message, context)
    """
    def _sink(message: str, context: Dict[str, Any]) -> None:
        logger.warning(message, extra=context)

    return _sink


def resolve_sink(on_warning: Optional[WarningSink], logger: logging.Logger) -> WarningSink:
    """Return the caller-supplied sink, or one logging to ``logger``."""
    return on_warning if on_warning is not None else logging_sink(logger)
