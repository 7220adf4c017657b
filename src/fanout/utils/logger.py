"""
Module: logger.py
Description: Structured logging configuration for the fan-out handlers.

Configures structlog for JSON output optimized for CloudWatch Logs.
Provides consistent logging across all modules with proper context
and structured data.

Key Components:
- JSON output for CloudWatch compatibility
- Timestamp and log level processors
- Invocation context binding through contextvars
- get_logger() helper function

Dependencies: structlog, datetime, logging
Author: Fan-out Platform Team
"""

import logging
import os
from datetime import datetime, timezone
from typing import Any

import structlog


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
    """Add log level to event dictionary."""
    event_dict["level"] = method_name.upper()
    return event_dict


def configure_logging(log_level: str = "INFO") -> None:
    """
    Configure structlog for JSON output.

    Called once at import time with LOG_LEVEL from the environment and
    again by handlers once settings are loaded.

    Args:
        log_level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=[
            # Invocation metadata bound by bind_invocation_context()
            structlog.contextvars.merge_contextvars,
            _add_timestamp,
            _add_log_level,
            structlog.processors.format_exc_info,
            # Render as JSON for CloudWatch compatibility
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.WriteLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )


configure_logging(os.environ.get("LOG_LEVEL", "INFO"))


def bind_invocation_context(context: Any) -> None:
    """
    Bind Lambda invocation metadata to every subsequent log entry.

    Clears metadata left over from the previous invocation handled by
    the same process.

    Args:
        context: Lambda context object (may be None when invoked locally)
    """
    structlog.contextvars.clear_contextvars()
    if context is None:
        return

    structlog.contextvars.bind_contextvars(
        aws_request_id=getattr(context, "aws_request_id", None),
        function_name=getattr(context, "function_name", None),
        function_version=getattr(context, "function_version", None),
        function_memory_mb=getattr(context, "memory_limit_in_mb", None),
    )


def get_logger(name: str) -> structlog.typing.FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Record dispatched", record_id="msg-1", operation_tag="REGISTER_DEVICE")
        {"event": "Record dispatched", "record_id": "msg-1", "operation_tag": "REGISTER_DEVICE", "timestamp": "...", "level": "INFO"}
    """
    return structlog.get_logger(name)
