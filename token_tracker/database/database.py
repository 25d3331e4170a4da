"""
Database abstraction layer for token launch records and creator reputation.

Uses SQLite behind an abstract backend so the store can later move to
PostgreSQL. A backend owns one long-lived connection, opened when the
database is created and released by close(). Every logical operation runs in
its own transaction; inserts and classifications touch both tables and commit
or roll back together.
"""

from __future__ import annotations

import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from token_tracker.config import env
from token_tracker.core.exceptions import SchemaError, StorageError
from token_tracker.database.models import CreatorReputation, TokenRecord
from token_tracker.tracker_logging import bind_creator, get_logger

logger = get_logger(__name__)

# -----------------------------------------------------------------------------
# Schema (SQLite). mint is indexed but deliberately not UNIQUE.
# -----------------------------------------------------------------------------

SCHEMA_TOKENS = """
CREATE TABLE IF NOT EXISTS tokens (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    time INTEGER NOT NULL,
    name TEXT NOT NULL,
    mint TEXT NOT NULL,
    creator TEXT NOT NULL,
    duplicate_count INTEGER DEFAULT 1,
    is_scam BOOLEAN DEFAULT 0,
    is_rugged BOOLEAN DEFAULT 0
);
CREATE INDEX IF NOT EXISTS ix_tokens_mint ON tokens(mint);
CREATE INDEX IF NOT EXISTS ix_tokens_name ON tokens(name);
CREATE INDEX IF NOT EXISTS ix_tokens_creator ON tokens(creator);
"""

SCHEMA_CREATOR_REPUTATION = """
CREATE TABLE IF NOT EXISTS creator_reputation (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    creator TEXT UNIQUE NOT NULL,
    scam_count INTEGER DEFAULT 0,
    rugged_count INTEGER DEFAULT 0,
    total_tokens INTEGER DEFAULT 0
);
"""

_TOKEN_COLUMNS = "id, time, name, mint, creator, duplicate_count, is_scam, is_rugged"
_REPUTATION_COLUMNS = "id, creator, scam_count, rugged_count, total_tokens"


def _row_to_token(row: sqlite3.Row) -> TokenRecord:
    return TokenRecord(
        id=row["id"],
        time=row["time"],
        name=row["name"],
        mint=row["mint"],
        creator=row["creator"],
        duplicate_count=row["duplicate_count"],
        is_scam=bool(row["is_scam"]),
        is_rugged=bool(row["is_rugged"]),
    )


def _row_to_reputation(row: sqlite3.Row) -> CreatorReputation:
    return CreatorReputation(
        id=row["id"],
        creator=row["creator"],
        scam_count=row["scam_count"],
        rugged_count=row["rugged_count"],
        total_tokens=row["total_tokens"],
    )


# -----------------------------------------------------------------------------
# Abstract backend: swap implementation for PostgreSQL later.
# -----------------------------------------------------------------------------


class DatabaseBackend(ABC):
    """Abstract interface for persistence; implement for SQLite or PostgreSQL."""

    @abstractmethod
    def ensure_schema(self) -> None:
        """Create tables and indexes if they do not exist. Raises SchemaError on failure."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Release the underlying connection."""
        ...

    @abstractmethod
    def insert_token(self, record: TokenRecord) -> int:
        """
        Insert a token row and bump (or create) its creator's reputation row
        in one transaction. Returns the new token id.
        """
        ...

    @abstractmethod
    def find_by_name_or_creator(self, name: str, creator: str) -> list[TokenRecord]:
        """Return tokens whose name OR creator matches."""
        ...

    @abstractmethod
    def find_by_mint(self, mint: str) -> list[TokenRecord]:
        """Return every token row with this mint (zero, one or more)."""
        ...

    @abstractmethod
    def list_all(self) -> list[TokenRecord]:
        """Return all token rows. Unpaginated; for small stores and debugging."""
        ...

    @abstractmethod
    def increment_duplicate_count(
        self,
        name: str | None = None,
        creator: str | None = None,
    ) -> int:
        """Bump duplicate_count on rows matching name, then on rows matching creator. Returns row updates applied."""
        ...

    @abstractmethod
    def classify(self, mint: str, is_scam: bool = False, is_rugged: bool = False) -> bool:
        """Raise scam/rugged flags for a mint and update creator counters. Returns False for unknown mint."""
        ...

    @abstractmethod
    def get_reputation(self, creator: str) -> CreatorReputation | None:
        """Return the creator's counters, or None if never seen."""
        ...


# -----------------------------------------------------------------------------
# SQLite backend
# -----------------------------------------------------------------------------


class SQLiteBackend(DatabaseBackend):
    """
    SQLite implementation; single file, one long-lived connection.

    Calls are serialized through a lock, so the backend can be shared between
    threads. Lock waits on the file are bounded by timeout_sec.
    """

    def __init__(self, path: str | Path, *, timeout_sec: float = 5.0) -> None:
        self._path = str(path)
        self._timeout_sec = timeout_sec
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._schema_ready = False

    @property
    def path(self) -> str:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        if self._path != ":memory:":
            Path(self._path).parent.mkdir(parents=True, exist_ok=True)
        # isolation_level=None: transactions are opened explicitly with BEGIN IMMEDIATE
        conn = sqlite3.connect(
            self._path,
            timeout=self._timeout_sec,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA journal_mode = WAL")
        except sqlite3.Error:
            conn.close()
            raise
        logger.info("tracker_db_opened", path=self._path, timeout_sec=self._timeout_sec)
        return conn

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = self._connect()
        return self._conn

    def _ready_connection(self) -> sqlite3.Connection:
        if not self._schema_ready:
            raise SchemaError("schema not initialized; call ensure_schema() before use")
        return self._connection()

    @staticmethod
    def _rollback(conn: sqlite3.Connection) -> None:
        if conn.in_transaction:
            conn.rollback()

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[sqlite3.Cursor]:
        """One write transaction. Commits on success; rolls back and raises StorageError on database errors."""
        with self._lock:
            conn = self._ready_connection()
            cur = conn.cursor()
            try:
                cur.execute("BEGIN IMMEDIATE")
                yield cur
                cur.execute("COMMIT")
            except sqlite3.Error as e:
                self._rollback(conn)
                logger.error("tracker_transaction_failed", operation=operation, error=str(e))
                raise StorageError(operation, str(e)) from e
            except BaseException:
                self._rollback(conn)
                raise
            finally:
                cur.close()

    def _query(self, operation: str, sql: str, params: tuple[Any, ...] = ()) -> list[sqlite3.Row]:
        with self._lock:
            conn = self._ready_connection()
            try:
                return conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                logger.error("tracker_query_failed", operation=operation, error=str(e))
                raise StorageError(operation, str(e)) from e

    def ensure_schema(self) -> None:
        with self._lock:
            try:
                conn = self._connection()
                for stmt in (SCHEMA_TOKENS, SCHEMA_CREATOR_REPUTATION):
                    conn.executescript(stmt)
            except sqlite3.Error as e:
                logger.error("tracker_schema_failed", path=self._path, error=str(e))
                raise SchemaError(f"could not create tables in {self._path}: {e}") from e
            self._schema_ready = True

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.info("tracker_db_closed", path=self._path)
            self._schema_ready = False

    def insert_token(self, record: TokenRecord) -> int:
        with self._transaction("insert_token") as cur:
            cur.execute(
                """
                INSERT INTO tokens (time, name, mint, creator)
                VALUES (?, ?, ?, ?)
                """,
                (record.time, record.name, record.mint, record.creator),
            )
            token_id = cur.lastrowid
            cur.execute(
                "SELECT id FROM creator_reputation WHERE creator = ?",
                (record.creator,),
            )
            if cur.fetchone() is not None:
                cur.execute(
                    """
                    UPDATE creator_reputation
                    SET total_tokens = total_tokens + 1
                    WHERE creator = ?
                    """,
                    (record.creator,),
                )
            else:
                cur.execute(
                    "INSERT INTO creator_reputation (creator, total_tokens) VALUES (?, 1)",
                    (record.creator,),
                )
        bind_creator(__name__, record.creator, mint=record.mint).info(
            "token_inserted", token_id=token_id, name=record.name
        )
        return token_id

    def find_by_name_or_creator(self, name: str, creator: str) -> list[TokenRecord]:
        rows = self._query(
            "find_by_name_or_creator",
            f"SELECT {_TOKEN_COLUMNS} FROM tokens WHERE name = ? OR creator = ? ORDER BY id",
            (name, creator),
        )
        return [_row_to_token(row) for row in rows]

    def find_by_mint(self, mint: str) -> list[TokenRecord]:
        rows = self._query(
            "find_by_mint",
            f"SELECT {_TOKEN_COLUMNS} FROM tokens WHERE mint = ? ORDER BY id",
            (mint,),
        )
        return [_row_to_token(row) for row in rows]

    def list_all(self) -> list[TokenRecord]:
        rows = self._query("list_all", f"SELECT {_TOKEN_COLUMNS} FROM tokens ORDER BY id")
        return [_row_to_token(row) for row in rows]

    def increment_duplicate_count(
        self,
        name: str | None = None,
        creator: str | None = None,
    ) -> int:
        if not name and not creator:
            return 0
        updated = 0
        with self._transaction("increment_duplicate_count") as cur:
            # name and creator are counted separately; a row matching both is bumped twice
            if name:
                cur.execute(
                    "UPDATE tokens SET duplicate_count = duplicate_count + 1 WHERE name = ?",
                    (name,),
                )
                updated += cur.rowcount
            if creator:
                cur.execute(
                    "UPDATE tokens SET duplicate_count = duplicate_count + 1 WHERE creator = ?",
                    (creator,),
                )
                updated += cur.rowcount
        logger.info("duplicate_count_incremented", name=name, creator=creator, rows=updated)
        return updated

    def classify(self, mint: str, is_scam: bool = False, is_rugged: bool = False) -> bool:
        with self._transaction("classify") as cur:
            cur.execute(
                "SELECT id, creator, is_scam, is_rugged FROM tokens WHERE mint = ? ORDER BY id",
                (mint,),
            )
            rows = cur.fetchall()
            for row in rows:
                newly_scam = is_scam and not row["is_scam"]
                newly_rugged = is_rugged and not row["is_rugged"]
                if not newly_scam and not newly_rugged:
                    continue
                # flags only move forward; a False argument never clears one
                cur.execute(
                    "UPDATE tokens SET is_scam = ?, is_rugged = ? WHERE id = ?",
                    (
                        int(bool(row["is_scam"]) or is_scam),
                        int(bool(row["is_rugged"]) or is_rugged),
                        row["id"],
                    ),
                )
                cur.execute(
                    """
                    UPDATE creator_reputation
                    SET scam_count = scam_count + ?, rugged_count = rugged_count + ?
                    WHERE creator = ?
                    """,
                    (int(newly_scam), int(newly_rugged), row["creator"]),
                )
                log = bind_creator(__name__, row["creator"], mint=mint)
                if cur.rowcount == 0:
                    log.warning("creator_reputation_missing")
                log.info(
                    "token_classified",
                    token_id=row["id"],
                    is_scam=newly_scam,
                    is_rugged=newly_rugged,
                )
        if not rows:
            logger.debug("classify_unknown_mint", mint=mint)
            return False
        return True

    def get_reputation(self, creator: str) -> CreatorReputation | None:
        rows = self._query(
            "get_reputation",
            f"SELECT {_REPUTATION_COLUMNS} FROM creator_reputation WHERE creator = ?",
            (creator,),
        )
        if not rows:
            return None
        return _row_to_reputation(rows[0])


# -----------------------------------------------------------------------------
# Database facade: single entrypoint; backend is swappable.
# -----------------------------------------------------------------------------


class Database:
    """
    Token record store and creator reputation ledger.

    Uses a Backend (SQLite for now). Callers never write creator_reputation
    directly; it changes only through insert_token and classify.
    """

    def __init__(self, backend: DatabaseBackend) -> None:
        self._backend = backend

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def ensure_schema(self) -> None:
        """Create tables and indexes if they do not exist."""
        self._backend.ensure_schema()

    def close(self) -> None:
        self._backend.close()

    # --- Token records ---

    def insert_token(self, record: TokenRecord) -> int:
        """
        Store a newly observed token and count it against its creator.

        Flags and duplicate_count on the passed record are ignored; new rows
        always start unclassified with duplicate_count 1.

        Raises:
            StorageError: the transaction failed and nothing was written.
        """
        return self._backend.insert_token(record)

    def insert_new_token(self, time: int, name: str, mint: str, creator: str) -> int:
        """Insert from raw ingestion fields. Returns the new token id."""
        return self._backend.insert_token(TokenRecord(time=time, name=name, mint=mint, creator=creator))

    def find_by_name_or_creator(self, name: str, creator: str) -> list[TokenRecord]:
        return self._backend.find_by_name_or_creator(name, creator)

    def find_by_mint(self, mint: str) -> list[TokenRecord]:
        return self._backend.find_by_mint(mint)

    def list_all(self) -> list[TokenRecord]:
        return self._backend.list_all()

    # --- Maintenance ---

    def increment_duplicate_count(
        self,
        name: str | None = None,
        creator: str | None = None,
    ) -> int:
        """
        Bump duplicate_count on every row sharing name, then on every row
        sharing creator. No-op returning 0 when neither is given.
        """
        return self._backend.increment_duplicate_count(name=name, creator=creator)

    # --- Classification and reputation ---

    def classify(self, mint: str, is_scam: bool = False, is_rugged: bool = False) -> bool:
        """
        Mark a token as scam and/or rugged and bump its creator's counters.

        Counters move only when a flag goes from false to true, so repeating a
        verdict is harmless. Returns False (and writes nothing) when no token
        has this mint.
        """
        return self._backend.classify(mint, is_scam=is_scam, is_rugged=is_rugged)

    def get_reputation(self, creator: str) -> CreatorReputation | None:
        return self._backend.get_reputation(creator)


def get_database(path: str | Path | None = None, *, timeout_sec: float | None = None) -> Database:
    """
    Return a ready-to-use Database backed by SQLite.

    path: SQLite file (or ":memory:"). Default: TRACKER_DB_PATH from env, else tokens.db.
    The schema is ensured once here, before the store is handed out.

    Raises:
        SchemaError: the tables could not be created.
    """
    if path is None:
        path = env.get_db_path()
    if timeout_sec is None:
        timeout_sec = env.get_db_timeout_sec()
    backend = SQLiteBackend(path, timeout_sec=timeout_sec)
    db = Database(backend)
    db.ensure_schema()
    return db
