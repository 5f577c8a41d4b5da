"""
Module: logger.py
Description: Structured logging configuration for the export client.

Configures structlog for JSON output on stdout so CI runners and log
shippers can parse every line. Provides consistent logging across all
modules with structured key/value data.

Key Components:
- JSON output with ISO 8601 timestamps
- Timestamp and log level processors
- configure_logging() to apply the configured level
- get_logger() helper function

Dependencies: structlog, logging, datetime
"""

import logging
from datetime import datetime, timezone

import structlog
from structlog.typing import FilteringBoundLogger


def _add_timestamp(logger, method_name, event_dict):
    """
    Add ISO 8601 timestamp to log entries.

    Args:
        logger: Logger instance
        method_name: Log method name (info, error, etc.)
        event_dict: Current log event dictionary

    Returns:
        Updated event dictionary with timestamp
    """
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _add_log_level(logger, method_name, event_dict):
    """Add upper-cased log level to the event dictionary."""
    event_dict["level"] = method_name.upper()
    return event_dict


def configure_logging(level: str = "INFO") -> None:
    """
    Configure structlog processors and the minimum log level.

    Safe to call more than once; the last call wins. Loggers are not
    cached so reconfiguration (and structlog.testing.capture_logs)
    applies to module-level loggers as well.

    Args:
        level: Standard logging level name (DEBUG, INFO, WARNING, ...)
    """
    structlog.configure(
        processors=[
            _add_timestamp,
            _add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.WriteLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        cache_logger_on_first_use=False,
    )


configure_logging()


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Payload delivered", attempt=1, status_code=200)
        {"event": "Payload delivered", "attempt": 1, "status_code": 200, "timestamp": "...", "level": "INFO"}
    """
    return structlog.get_logger(name)
