"""
Structured logging for tracker events.

Every log line is one event (token_inserted, token_classified, ...) with its
context as keys. Per-creator events go through bind_creator() so the creator
address is always present under the same key, which lets a log pipeline
rebuild a creator's history without touching the database.

LOG_LEVEL picks the threshold, LOG_FORMAT picks json (default) or console.
No token_tracker imports here; everything else imports this module.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL_VALUE = getattr(logging, LOG_LEVEL, logging.INFO)
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()

SERVICE_NAME = "token_tracker"


def _event_type(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Tracker events are keyed event_type, not structlog's default 'event'."""
    if "event" in event_dict:
        event_dict.setdefault("event_type", event_dict.pop("event"))
    return event_dict


def _renderer() -> Any:
    if LOG_FORMAT == "json":
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty(), event_key="event_type")


def configure_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
            structlog.processors.format_exc_info,
            _event_type,
            _renderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(LOG_LEVEL_VALUE),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """Module logger: logger = get_logger(__name__)."""
    return structlog.get_logger(name).bind(service=SERVICE_NAME, logger=name)


def bind_creator(name: str, creator: str, **context: Any) -> structlog.BoundLogger:
    """
    Logger for events about one creator's tokens.

        log = bind_creator(__name__, record.creator, mint=record.mint)
        log.info("token_inserted", token_id=7)
    """
    return get_logger(name).bind(creator=creator, **context)
