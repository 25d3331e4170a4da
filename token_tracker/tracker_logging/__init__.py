"""
Structured logging for the token tracker.

JSON logs with timestamp, event_type and per-event context (mint, creator).
"""

from token_tracker.tracker_logging.logger import bind_creator, get_logger

__all__ = ["bind_creator", "get_logger"]
