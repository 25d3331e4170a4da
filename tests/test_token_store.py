"""
Tests for the token record store and the creator reputation ledger it maintains.
"""

from __future__ import annotations

import sqlite3
from concurrent.futures import ThreadPoolExecutor

import pytest
from structlog.testing import capture_logs

from token_tracker.core.exceptions import SchemaError, StorageError
from token_tracker.database import Database, SQLiteBackend, TokenRecord, get_database

CREATOR_1 = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
CREATOR_2 = "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ"


def _token(mint: str, name: str = "FOO", creator: str = CREATOR_1, time: int = 1000) -> TokenRecord:
    return TokenRecord(time=time, name=name, mint=mint, creator=creator)


def _table_dump(path) -> tuple[list[tuple], list[tuple]]:
    conn = sqlite3.connect(path)
    try:
        tokens = conn.execute("SELECT * FROM tokens ORDER BY id").fetchall()
        reps = conn.execute("SELECT * FROM creator_reputation ORDER BY id").fetchall()
    finally:
        conn.close()
    return tokens, reps


def test_insert_first_token_creates_reputation(db):
    """First insert for a creator stores the token and a reputation row with total_tokens=1."""
    token_id = db.insert_token(_token("M1"))
    assert token_id == 1
    tokens = db.list_all()
    assert len(tokens) == 1
    t = tokens[0]
    assert (t.id, t.time, t.name, t.mint, t.creator) == (1, 1000, "FOO", "M1", CREATOR_1)
    assert t.duplicate_count == 1
    assert t.is_scam is False
    assert t.is_rugged is False
    rep = db.get_reputation(CREATOR_1)
    assert rep is not None
    assert rep.creator == CREATOR_1
    assert (rep.scam_count, rep.rugged_count, rep.total_tokens) == (0, 0, 1)


def test_insert_many_tokens_same_creator(db, tracker_db_path):
    """N inserts for one creator give exactly one reputation row with total_tokens=N."""
    for i in range(5):
        db.insert_token(_token(f"M{i}", name=f"TOK{i}"))
    rep = db.get_reputation(CREATOR_1)
    assert rep.total_tokens == 5
    _, reps = _table_dump(tracker_db_path)
    assert len(reps) == 1


def test_insert_ignores_flags_on_record(db):
    """New rows always start unclassified with duplicate_count 1."""
    record = TokenRecord(time=1, name="X", mint="MX", creator=CREATOR_1, duplicate_count=9, is_scam=True, is_rugged=True)
    db.insert_token(record)
    t = db.find_by_mint("MX")[0]
    assert t.duplicate_count == 1
    assert not t.is_classified
    assert db.get_reputation(CREATOR_1).scam_count == 0


def test_insert_failure_rolls_back_both_tables(db, tracker_db_path):
    """A failed insert raises StorageError and leaves no token or reputation row behind."""
    with pytest.raises(StorageError) as exc:
        db.insert_token(TokenRecord(time=1, name=None, mint="M1", creator=CREATOR_1))
    assert exc.value.operation == "insert_token"
    tokens, reps = _table_dump(tracker_db_path)
    assert tokens == []
    assert reps == []
    # store still usable after rollback
    db.insert_token(_token("M1"))
    assert db.get_reputation(CREATOR_1).total_tokens == 1


def test_find_by_name_or_creator(db):
    """Rows matching name OR creator are returned in insert order."""
    db.insert_token(_token("M1", name="FOO", creator=CREATOR_1))
    db.insert_token(_token("M2", name="BAR", creator=CREATOR_1))
    db.insert_token(_token("M3", name="FOO", creator=CREATOR_2))
    db.insert_token(_token("M4", name="BAZ", creator=CREATOR_2))
    found = db.find_by_name_or_creator("FOO", CREATOR_1)
    assert [t.mint for t in found] == ["M1", "M2", "M3"]
    assert db.find_by_name_or_creator("NOPE", "nobody") == []


def test_find_by_mint_allows_duplicates(db):
    """mint is not unique: every row with the mint is returned."""
    db.insert_token(_token("M1", time=1))
    db.insert_token(_token("M1", time=2))
    db.insert_token(_token("M2", time=3))
    assert [t.time for t in db.find_by_mint("M1")] == [1, 2]
    assert db.find_by_mint("missing") == []
    assert db.get_reputation(CREATOR_1).total_tokens == 3


def test_get_reputation_unknown_creator(db):
    assert db.get_reputation("never-seen") is None


def test_reputation_ratios(db):
    db.insert_token(_token("M1"))
    db.insert_token(_token("M2"))
    db.classify("M1", is_scam=True)
    rep = db.get_reputation(CREATOR_1)
    assert rep.scam_ratio == pytest.approx(0.5)
    assert rep.rugged_ratio == 0.0
    assert rep.has_bad_history is True


def test_concurrent_inserts_distinct_creators(db):
    """Threads inserting for two creators converge to one correct row per creator."""

    def insert(i: int) -> int:
        creator = CREATOR_1 if i % 2 == 0 else CREATOR_2
        return db.insert_token(_token(f"M{i}", name=f"T{i}", creator=creator, time=i))

    with ThreadPoolExecutor(max_workers=8) as pool:
        ids = list(pool.map(insert, range(40)))
    assert len(set(ids)) == 40
    assert db.get_reputation(CREATOR_1).total_tokens == 20
    assert db.get_reputation(CREATOR_2).total_tokens == 20
    assert len(db.list_all()) == 40


def test_ensure_schema_is_idempotent(tracker_db_path):
    first = get_database(tracker_db_path)
    first.insert_token(_token("M1"))
    first.ensure_schema()
    first.close()
    second = get_database(tracker_db_path)
    assert len(second.list_all()) == 1
    second.close()


def test_operations_before_schema_raise(tracker_db_path):
    """A store whose schema was never ensured refuses to operate instead of returning empty."""
    db = Database(SQLiteBackend(tracker_db_path))
    with pytest.raises(SchemaError):
        db.list_all()
    with pytest.raises(SchemaError):
        db.insert_token(_token("M1"))
    db.close()


def test_schema_failure_raises_schema_error(tmp_path):
    """Schema creation on an unusable file surfaces as SchemaError."""
    bogus = tmp_path / "not_a_db"
    bogus.write_bytes(b"this is definitely not an sqlite database file" * 10)
    with pytest.raises(SchemaError):
        get_database(bogus)


def test_closed_database_requires_schema_again(tracker_db_path):
    db = get_database(tracker_db_path)
    db.close()
    with pytest.raises(SchemaError):
        db.list_all()


def test_context_manager_closes(tracker_db_path):
    with get_database(tracker_db_path) as db:
        db.insert_token(_token("M1"))
    with pytest.raises(SchemaError):
        db.find_by_mint("M1")


def test_in_memory_database():
    with get_database(":memory:") as db:
        db.insert_new_token(1000, "FOO", "M1", CREATOR_1)
        assert db.find_by_mint("M1")[0].creator == CREATOR_1


def test_insert_logs_creator_bound_event(db):
    with capture_logs() as logs:
        token_id = db.insert_token(_token("M1"))
    inserted = [e for e in logs if e["event"] == "token_inserted"]
    assert len(inserted) == 1
    assert inserted[0]["creator"] == CREATOR_1
    assert inserted[0]["mint"] == "M1"
    assert inserted[0]["token_id"] == token_id
