"""
Database abstraction layer: token launch records and creator reputation ledger.

SQLite via Database and get_database(); backend is swappable for PostgreSQL.
"""

from token_tracker.database.database import (
    Database,
    DatabaseBackend,
    SQLiteBackend,
    get_database,
)
from token_tracker.database.models import CreatorReputation, TokenRecord

__all__ = [
    "Database",
    "DatabaseBackend",
    "SQLiteBackend",
    "get_database",
    "CreatorReputation",
    "TokenRecord",
]
