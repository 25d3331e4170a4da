"""
Pytest fixtures for token tracker tests. Uses a temporary SQLite DB per test.
"""

from __future__ import annotations

import pytest

from token_tracker.database import get_database


@pytest.fixture
def tracker_db_path(tmp_path, monkeypatch):
    """Point TRACKER_DB_PATH at a temp file so nothing touches a real database."""
    path = tmp_path / "tokens.db"
    monkeypatch.setenv("TRACKER_DB_PATH", str(path))
    monkeypatch.delenv("TRACKER_DB_TIMEOUT_SEC", raising=False)
    return path


@pytest.fixture
def db(tracker_db_path):
    """Fresh Database with schema ensured; closed after the test."""
    database = get_database(tracker_db_path)
    yield database
    database.close()
