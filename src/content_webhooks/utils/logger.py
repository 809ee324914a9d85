"""
Module: logger.py
Description: Structured logging configuration for the webhook dispatch engine.

Every record is a single JSON line carrying the module that emitted it,
so delivery attempts, retries and queue operations can be searched by
subscription_id, job_id and logger.

Key Components:
- configure_logging(): Processor chain and level filtering
- get_logger(): Module logger with the module name bound

Dependencies: structlog, logging, datetime
Author: Content Webhooks Team
"""

import logging
from datetime import datetime, timezone

import structlog


def _add_timestamp(logger, method_name, event_dict):
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _add_log_level(logger, method_name, event_dict):
    event_dict["level"] = method_name.upper()
    return event_dict


def _level_number(log_level: str) -> int:
    level = logging.getLevelName(log_level.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(log_level: str = "INFO") -> None:
    """
    Configure structlog for JSON output.

    Called once at import with INFO and again by the engine with the
    configured level; the latest call wins because loggers are not
    cached.

    Args:
        log_level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            _add_timestamp,
            _add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.WriteLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(_level_number(log_level)),
        cache_logger_on_first_use=False,
    )


configure_logging()


def get_logger(name: str):
    """
    Get a structlog logger bound to a module name.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Webhook delivered", subscription_id="whk_123", status_code=200)
        {"logger": "content_webhooks.delivery.push", "subscription_id": "whk_123", "status_code": 200,
         "event": "Webhook delivered", "timestamp": "...", "level": "INFO"}
    """
    return structlog.get_logger(name).bind(logger=name)
