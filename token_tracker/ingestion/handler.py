"""
Ingestion handler: feeds discovered tokens into the tracker.

Takes {time, name, mint, creator} tuples from whatever discovery process is
running, bumps duplicate counters on name/creator collisions, inserts the
token, and optionally turns an authority verdict into a scam classification.
"""

from __future__ import annotations

from dataclasses import dataclass

from token_tracker.authority.checker import TokenAuthorityChecker
from token_tracker.database.database import Database
from token_tracker.database.models import CreatorReputation
from token_tracker.tracker_logging import bind_creator, get_logger

logger = get_logger(__name__)


@dataclass
class IngestResult:
    token_id: int
    name_collision: bool
    creator_collision: bool
    reputation: CreatorReputation | None

    @property
    def is_duplicate(self) -> bool:
        return self.name_collision or self.creator_collision


class TokenIngestor:
    def __init__(self, database: Database, checker: TokenAuthorityChecker | None = None) -> None:
        self._db = database
        self._checker = checker

    def handle_new_token(self, time: int, name: str, mint: str, creator: str) -> IngestResult:
        """
        Record a newly discovered token.

        Existing rows sharing the name or creator get their duplicate_count
        bumped before the new row is inserted, so the new row starts at 1.
        StorageError from the store propagates to the caller.
        """
        existing = self._db.find_by_name_or_creator(name, creator)
        name_collision = any(t.name == name for t in existing)
        creator_collision = any(t.creator == creator for t in existing)
        if name_collision or creator_collision:
            self._db.increment_duplicate_count(
                name=name if name_collision else None,
                creator=creator if creator_collision else None,
            )
            bind_creator(__name__, creator, mint=mint).info(
                "token_duplicate_detected",
                name=name,
                name_collision=name_collision,
                creator_collision=creator_collision,
            )

        token_id = self._db.insert_new_token(time, name, mint, creator)
        return IngestResult(
            token_id=token_id,
            name_collision=name_collision,
            creator_collision=creator_collision,
            reputation=self._db.get_reputation(creator),
        )

    def apply_authority_verdict(self, mint: str) -> bool | None:
        """
        Ask the injected checker whether mint is secure; classify it as scam if not.

        Returns the verdict, or None when no checker was injected.
        """
        if self._checker is None:
            return None
        secure = self._checker.is_token_secure(mint)
        if not secure:
            found = self._db.classify(mint, is_scam=True)
            logger.info("token_flagged_insecure", mint=mint, stored=found)
        return secure
