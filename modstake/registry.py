"""
Content registry: the content-id counter and the content record table.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import List, Optional

from .config import CONTENT_HASH_SIZE, ProtocolParams
from .events import CONTENT_SUBMITTED, EventLog
from .models import CallContext, ContentRecord, ContentStatus, Result
from .store import LedgerStore

logger = logging.getLogger(__name__)

_COUNTER_NAME = "content"


class ContentRegistry:
    def __init__(self, store: LedgerStore, params: ProtocolParams, events: EventLog):
        self.store = store
        self.params = params
        self.events = events
        self.store.execute_schema(
            """
            CREATE TABLE IF NOT EXISTS content (
                id INTEGER PRIMARY KEY,
                author TEXT NOT NULL,
                content_hash BLOB NOT NULL,
                status TEXT NOT NULL CHECK(status IN ('pending', 'approved', 'rejected')),
                created_at INTEGER NOT NULL,
                votes_for INTEGER NOT NULL DEFAULT 0 CHECK(votes_for >= 0),
                votes_against INTEGER NOT NULL DEFAULT 0 CHECK(votes_against >= 0),
                voting_ends_at INTEGER NOT NULL
            )
            """,
            "CREATE INDEX IF NOT EXISTS idx_content_status ON content(status)",
            """
            CREATE TABLE IF NOT EXISTS counters (
                name TEXT PRIMARY KEY,
                value INTEGER NOT NULL
            )
            """,
            f"INSERT OR IGNORE INTO counters (name, value) VALUES ('{_COUNTER_NAME}', 0)",
        )

    def submit_content(self, ctx: CallContext, content_hash: bytes) -> Result[int]:
        """Register a digest for moderation. Always succeeds for a valid digest."""
        if not isinstance(content_hash, (bytes, bytearray)) or len(content_hash) != CONTENT_HASH_SIZE:
            raise ValueError(f"content_hash must be exactly {CONTENT_HASH_SIZE} bytes")

        with self.store.transaction() as conn:
            content_id = self._counter(conn) + 1
            voting_ends_at = ctx.block_height + self.params.voting_period
            conn.execute(
                """
                INSERT INTO content (id, author, content_hash, status, created_at,
                                     votes_for, votes_against, voting_ends_at)
                VALUES (?, ?, ?, ?, ?, 0, 0, ?)
                """,
                (
                    content_id,
                    ctx.caller,
                    bytes(content_hash),
                    ContentStatus.PENDING.value,
                    ctx.block_height,
                    voting_ends_at,
                ),
            )
            conn.execute(
                "UPDATE counters SET value = ? WHERE name = ?",
                (content_id, _COUNTER_NAME),
            )
            self.events.record(
                conn,
                ctx.block_height,
                CONTENT_SUBMITTED,
                ctx.caller,
                {"content_hash": bytes(content_hash).hex(), "voting_ends_at": voting_ends_at},
                content_id=content_id,
            )

        logger.info("content %d submitted by %s at height %d", content_id, ctx.caller, ctx.block_height)
        return Result.ok(content_id)

    def get_content(self, content_id: int) -> Optional[ContentRecord]:
        with self.store.transaction() as conn:
            return self.fetch(conn, content_id)

    def fetch(self, conn: sqlite3.Connection, content_id: int) -> Optional[ContentRecord]:
        row = conn.execute("SELECT * FROM content WHERE id = ?", (content_id,)).fetchone()
        return ContentRecord.from_row(row) if row else None

    def content_count(self) -> int:
        with self.store.transaction() as conn:
            return self._counter(conn)

    def list_content(
        self,
        status: Optional[ContentStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[ContentRecord]:
        with self.store.transaction() as conn:
            if status is not None:
                rows = conn.execute(
                    """
                    SELECT * FROM content
                    WHERE status = ?
                    ORDER BY id DESC
                    LIMIT ? OFFSET ?
                    """,
                    (ContentStatus(status).value, limit, offset),
                ).fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM content ORDER BY id DESC LIMIT ? OFFSET ?",
                    (limit, offset),
                ).fetchall()
        return [ContentRecord.from_row(row) for row in rows]

    def _counter(self, conn: sqlite3.Connection) -> int:
        row = conn.execute("SELECT value FROM counters WHERE name = ?", (_COUNTER_NAME,)).fetchone()
        return row["value"] if row else 0
