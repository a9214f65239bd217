"""
Reputation ledger

Per-principal integer scores gating who may vote. Unknown principals score 0.
Nothing in the moderation flow raises a score on its own: growth goes through
`set_reputation` (administrative seeding) or a `ReputationPolicy` plugged into
finalization.
"""

from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod
from typing import Mapping, Optional

from .events import REPUTATION_SET, EventLog
from .models import ContentRecord, ReputationRecord, check_principal
from .store import LedgerStore

logger = logging.getLogger(__name__)

DEFAULT_SCORE = 0


class ReputationLedger:
    def __init__(self, store: LedgerStore, events: EventLog):
        self.store = store
        self.events = events
        self.store.execute_schema(
            """
            CREATE TABLE IF NOT EXISTS reputation (
                principal TEXT PRIMARY KEY,
                score INTEGER NOT NULL CHECK(score >= 0)
            )
            """
        )

    def get_reputation(self, principal: str) -> int:
        """Current score for principal. Returns DEFAULT_SCORE if unknown."""
        with self.store.transaction() as conn:
            return self.score_of(conn, principal)

    def get_user_reputation(self, principal: str) -> ReputationRecord:
        return ReputationRecord(score=self.get_reputation(principal))

    def score_of(self, conn: sqlite3.Connection, principal: str) -> int:
        row = conn.execute(
            "SELECT score FROM reputation WHERE principal = ?", (principal,)
        ).fetchone()
        return row["score"] if row else DEFAULT_SCORE

    def set_reputation(self, principal: str, score: int, block_height: int = 0) -> ReputationRecord:
        """Administrative write, recorded in the event log."""
        check_principal(principal, "principal")
        if isinstance(score, bool) or not isinstance(score, int) or score < 0:
            raise ValueError("score must be a non-negative int")
        with self.store.transaction() as conn:
            self.write(conn, principal, score)
            self.events.record(conn, block_height, REPUTATION_SET, principal, {"score": score})
        logger.info("reputation of %s set to %d", principal, score)
        return ReputationRecord(score=score)

    def seed(self, scores: Mapping[str, int], block_height: int = 0) -> int:
        """Genesis seeding from a principal -> score mapping. Returns count written."""
        with self.store.transaction():
            for principal, score in scores.items():
                self.set_reputation(principal, score, block_height=block_height)
        return len(scores)

    def write(self, conn: sqlite3.Connection, principal: str, score: int) -> None:
        conn.execute(
            """
            INSERT INTO reputation (principal, score) VALUES (?, ?)
            ON CONFLICT(principal) DO UPDATE SET score = excluded.score
            """,
            (principal, score),
        )


class ReputationPolicy(ABC):
    """Hook invoked inside the finalization transaction."""

    @abstractmethod
    def on_finalized(
        self,
        record: ContentRecord,
        ledger: ReputationLedger,
        conn: sqlite3.Connection,
    ) -> None:
        ...


class NullReputationPolicy(ReputationPolicy):
    """Default: finalization never changes any score."""

    def on_finalized(self, record, ledger, conn) -> None:
        return None


def resolve_policy(policy: Optional[ReputationPolicy]) -> ReputationPolicy:
    return policy if policy is not None else NullReputationPolicy()
