"""
Domain models for database entities.

Token launch records and per-creator reputation counters.
Used by the backend layer; no ORM coupling so backends stay swappable.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class TokenRecord:
    """One observed token launch."""

    time: int
    """Observation timestamp (Unix seconds), set once."""
    name: str
    mint: str
    creator: str
    """Wallet address of the launching account."""
    id: int | None = None
    """Assigned by the database on insert."""
    duplicate_count: int = 1
    is_scam: bool = False
    is_rugged: bool = False

    @property
    def is_classified(self) -> bool:
        return self.is_scam or self.is_rugged


@dataclass
class CreatorReputation:
    """Aggregate counters for one creator; only ever incremented."""

    creator: str
    scam_count: int = 0
    rugged_count: int = 0
    total_tokens: int = 0
    id: int | None = None

    @property
    def scam_ratio(self) -> float:
        if not self.total_tokens:
            return 0.0
        return self.scam_count / self.total_tokens

    @property
    def rugged_ratio(self) -> float:
        if not self.total_tokens:
            return 0.0
        return self.rugged_count / self.total_tokens

    @property
    def has_bad_history(self) -> bool:
        return self.scam_count > 0 or self.rugged_count > 0
