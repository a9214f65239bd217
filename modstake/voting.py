"""
Voting engine

One vote per (content, principal), accepted only while the voting window is
open and only from principals whose reputation meets the threshold. Checks
run in a fixed order and the first failure wins:

    1. content exists            -> CONTENT_NOT_FOUND
    2. height < voting_ends_at   -> NOT_AUTHORIZED
    3. reputation >= threshold   -> INSUFFICIENT_REPUTATION
    4. no earlier vote           -> ALREADY_VOTED
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from .config import ProtocolParams
from .events import VOTE_CAST, EventLog
from .models import CallContext, ContentStatus, ErrorCode, Result
from .registry import ContentRegistry
from .reputation import ReputationLedger
from .store import LedgerStore

logger = logging.getLogger(__name__)


class VotingEngine:
    def __init__(
        self,
        store: LedgerStore,
        params: ProtocolParams,
        registry: ContentRegistry,
        reputation: ReputationLedger,
        events: EventLog,
    ):
        self.store = store
        self.params = params
        self.registry = registry
        self.reputation = reputation
        self.events = events
        self.store.execute_schema(
            """
            CREATE TABLE IF NOT EXISTS votes (
                content_id INTEGER NOT NULL,
                voter TEXT NOT NULL,
                in_favor INTEGER NOT NULL CHECK(in_favor IN (0, 1)),
                cast_at INTEGER NOT NULL,
                PRIMARY KEY (content_id, voter),
                FOREIGN KEY (content_id) REFERENCES content(id)
            )
            """
        )

    def vote(self, ctx: CallContext, content_id: int, in_favor: bool) -> Result[bool]:
        with self.store.transaction() as conn:
            error = self._validate(conn, ctx, content_id)
            if error is not None:
                logger.debug("vote by %s on %s rejected: %s", ctx.caller, content_id, error.name)
                return Result.err(error)

            conn.execute(
                "INSERT INTO votes (content_id, voter, in_favor, cast_at) VALUES (?, ?, ?, ?)",
                (content_id, ctx.caller, int(bool(in_favor)), ctx.block_height),
            )
            column = "votes_for" if in_favor else "votes_against"
            conn.execute(
                f"UPDATE content SET {column} = {column} + 1 WHERE id = ?",
                (content_id,),
            )
            self.events.record(
                conn,
                ctx.block_height,
                VOTE_CAST,
                ctx.caller,
                {"in_favor": bool(in_favor)},
                content_id=content_id,
            )

        logger.info(
            "vote %s on content %d by %s",
            "for" if in_favor else "against", content_id, ctx.caller,
        )
        return Result.ok(True)

    def _validate(
        self,
        conn: sqlite3.Connection,
        ctx: CallContext,
        content_id: int,
    ) -> Optional[ErrorCode]:
        record = self.registry.fetch(conn, content_id)
        if record is None:
            return ErrorCode.CONTENT_NOT_FOUND
        # Tallies are frozen once the record leaves pending.
        if ctx.block_height >= record.voting_ends_at or record.status != ContentStatus.PENDING:
            return ErrorCode.NOT_AUTHORIZED
        if self.reputation.score_of(conn, ctx.caller) < self.params.min_reputation_to_vote:
            return ErrorCode.INSUFFICIENT_REPUTATION
        if self._find(conn, content_id, ctx.caller) is not None:
            return ErrorCode.ALREADY_VOTED
        return None

    def has_voted(self, content_id: int, principal: str) -> bool:
        return self.get_vote(content_id, principal) is not None

    def get_vote(self, content_id: int, principal: str) -> Optional[bool]:
        """Direction of principal's vote on content_id, or None."""
        with self.store.transaction() as conn:
            return self._find(conn, content_id, principal)

    def _find(self, conn: sqlite3.Connection, content_id: int, principal: str) -> Optional[bool]:
        row = conn.execute(
            "SELECT in_favor FROM votes WHERE content_id = ? AND voter = ?",
            (content_id, principal),
        ).fetchone()
        return bool(row["in_favor"]) if row else None
