"""
Block-height source for hosts that drive the contract themselves.

The contract never owns time; it only reads `CallContext.block_height`.
"""

from __future__ import annotations

import threading

from .models import CallContext


class ManualClock:
    """Monotonic block counter advanced explicitly, like mining empty blocks."""

    def __init__(self, height: int = 1):
        if height < 0:
            raise ValueError("height must be non-negative")
        self._height = height
        self._lock = threading.Lock()

    @property
    def height(self) -> int:
        return self._height

    def mine(self, blocks: int = 1) -> int:
        """Advance by `blocks` and return the new height."""
        if blocks < 0:
            raise ValueError("clock cannot move backwards")
        with self._lock:
            self._height += blocks
            return self._height

    def context(self, caller: str) -> CallContext:
        return CallContext(caller=caller, block_height=self._height)


class StoredClock(ManualClock):
    """ManualClock whose height survives restarts in the `counters` table.

    On open the height resumes from the larger of the stored value and
    `floor`, so mined blocks that wrote no event are never lost.
    """

    COUNTER_NAME = "chain"

    def __init__(self, store, floor: int = 1):
        self.store = store
        self.store.execute_schema(
            """
            CREATE TABLE IF NOT EXISTS counters (
                name TEXT PRIMARY KEY,
                value INTEGER NOT NULL
            )
            """,
        )
        with self.store.transaction() as conn:
            row = conn.execute(
                "SELECT value FROM counters WHERE name = ?", (self.COUNTER_NAME,)
            ).fetchone()
            height = max(row["value"] if row else 0, floor)
            self._save(conn, height)
        super().__init__(height)

    def _save(self, conn, height: int) -> None:
        conn.execute(
            """
            INSERT INTO counters (name, value) VALUES (?, ?)
            ON CONFLICT(name) DO UPDATE SET value = MAX(value, excluded.value)
            """,
            (self.COUNTER_NAME, height),
        )

    def mine(self, blocks: int = 1) -> int:
        if blocks < 0:
            raise ValueError("clock cannot move backwards")
        with self._lock:
            with self.store.transaction() as conn:
                self._save(conn, self._height + blocks)
            self._height += blocks
            return self._height
