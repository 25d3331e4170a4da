"""
Tests for tracker_logging: event_type rendering and creator-bound loggers.
"""

from __future__ import annotations

import json

from structlog.testing import capture_logs

from token_tracker.tracker_logging import bind_creator, get_logger
from token_tracker.tracker_logging.logger import SERVICE_NAME, _event_type

CREATOR = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"


def test_get_logger_binds_service_and_module():
    with capture_logs() as logs:
        get_logger("token_tracker.tests").info("tracker_started", path="tokens.db")
    assert logs == [
        {
            "event": "tracker_started",
            "log_level": "info",
            "service": SERVICE_NAME,
            "logger": "token_tracker.tests",
            "path": "tokens.db",
        }
    ]


def test_bind_creator_carries_creator_and_context():
    """Every event from a creator-bound logger includes the creator and extra context."""
    log = bind_creator("token_tracker.tests", CREATOR, mint="M1")
    with capture_logs() as logs:
        log.info("token_inserted", token_id=3)
        log.warning("creator_reputation_missing")
    assert [e["event"] for e in logs] == ["token_inserted", "creator_reputation_missing"]
    assert all(e["creator"] == CREATOR and e["mint"] == "M1" for e in logs)
    assert logs[0]["token_id"] == 3


def test_event_key_renamed_to_event_type():
    out = _event_type(None, "info", {"event": "token_classified", "mint": "M1"})
    assert out == {"event_type": "token_classified", "mint": "M1"}
    assert "event" not in out
    json.dumps(out)
