"""
Module: logger.py
Description: Structured logging configuration for the queue client.

Configures structlog for JSON output so queue activity can be shipped
to CloudWatch Logs (or any line-oriented collector) alongside the
application that embeds the client. Importing the package configures
nothing; the host application calls configure_logging() or sets
QueueSettings.manage_logging, otherwise its own structlog setup applies.

Key Components:
- JSON output with timestamp and log level processors
- Level filtering driven by QueueSettings.log_level when opted in
- get_logger() helper function

Dependencies: structlog, logging, datetime
Author: simple-sqs Team
"""

import logging

import structlog
from datetime import datetime, timezone


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
    """Add the upper-cased log level to the event dictionary."""
    event_dict["level"] = method_name.upper()
    return event_dict


def configure_logging(level: str = "INFO") -> None:
    """
    Configure structlog for JSON output at the given level.

    Safe to call more than once; the latest call wins. Loggers are not
    cached so a reconfiguration applies to loggers created earlier.

    Args:
        level: Standard logging level name (DEBUG, INFO, ...)

    Raises:
        ValueError: If level is not a known logging level name
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    structlog.configure(
        processors=[
            _add_timestamp,
            _add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.WriteLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Message sent", queue_name="jobs", message_id="abc")
        {"event": "Message sent", "queue_name": "jobs", "message_id": "abc", "timestamp": "...", "level": "INFO"}
    """
    return structlog.get_logger(name)
