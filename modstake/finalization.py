"""
Finalization resolver: closes out a content record once its window has ended.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from .events import MODERATION_FINALIZED, EventLog
from .models import CallContext, ContentRecord, ContentStatus, ErrorCode, Result
from .registry import ContentRegistry
from .reputation import ReputationLedger, ReputationPolicy, resolve_policy
from .store import LedgerStore

logger = logging.getLogger(__name__)


def decide_outcome(votes_for: int, votes_against: int) -> ContentStatus:
    """Strict majority approves; ties and empty tallies reject."""
    if votes_for > votes_against:
        return ContentStatus.APPROVED
    return ContentStatus.REJECTED


class FinalizationResolver:
    def __init__(
        self,
        store: LedgerStore,
        registry: ContentRegistry,
        reputation: ReputationLedger,
        events: EventLog,
        policy: Optional[ReputationPolicy] = None,
    ):
        self.store = store
        self.registry = registry
        self.reputation = reputation
        self.events = events
        self.policy = resolve_policy(policy)

    def finalize_moderation(self, ctx: CallContext, content_id: int) -> Result[bool]:
        """Resolve content_id. Callable by anyone once the window has closed."""
        with self.store.transaction() as conn:
            record = self.registry.fetch(conn, content_id)
            if record is None:
                return self._reject(ctx, content_id, ErrorCode.CONTENT_NOT_FOUND)
            if ctx.block_height < record.voting_ends_at:
                return self._reject(ctx, content_id, ErrorCode.NOT_AUTHORIZED)
            if record.status != ContentStatus.PENDING:
                return self._reject(ctx, content_id, ErrorCode.ALREADY_FINALIZED)

            outcome = decide_outcome(record.votes_for, record.votes_against)
            conn.execute(
                "UPDATE content SET status = ? WHERE id = ? AND status = ?",
                (outcome.value, content_id, ContentStatus.PENDING.value),
            )
            resolved: ContentRecord = replace(record, status=outcome)
            self.policy.on_finalized(resolved, self.reputation, conn)
            self.events.record(
                conn,
                ctx.block_height,
                MODERATION_FINALIZED,
                ctx.caller,
                {
                    "status": outcome.value,
                    "votes_for": record.votes_for,
                    "votes_against": record.votes_against,
                },
                content_id=content_id,
            )

        logger.info(
            "content %d finalized as %s (%d for / %d against)",
            content_id, outcome.value, record.votes_for, record.votes_against,
        )
        return Result.ok(True)

    def _reject(self, ctx: CallContext, content_id: int, code: ErrorCode) -> Result[bool]:
        logger.debug("finalize of %s by %s rejected: %s", content_id, ctx.caller, code.name)
        return Result.err(code)
