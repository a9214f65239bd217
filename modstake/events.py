"""
modstake event log

Hash-chained, append-only record of every committed state transition.
Entries are written on the caller's connection so an event exists if and only
if the transition it describes was committed.
"""

from __future__ import annotations

import hashlib
import json
import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .store import LedgerStore

CONTENT_SUBMITTED = "content_submitted"
VOTE_CAST = "vote_cast"
MODERATION_FINALIZED = "moderation_finalized"
TOKENS_STAKED = "tokens_staked"
TOKENS_UNSTAKED = "tokens_unstaked"
REPUTATION_SET = "reputation_set"
GENESIS = "genesis"


def _entry_hash(entry: Dict[str, Any]) -> str:
    payload = json.dumps(entry, sort_keys=True, separators=(",", ":")).encode()
    return hashlib.sha256(payload).hexdigest()


class EventLog:
    """Hash-chained audit log. Every entry references the previous hash."""

    def __init__(self, store: LedgerStore):
        self.store = store
        self.store.execute_schema(
            """
            CREATE TABLE IF NOT EXISTS event_log (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp TEXT NOT NULL,
                block_height INTEGER NOT NULL,
                action TEXT NOT NULL,
                principal TEXT NOT NULL,
                content_id INTEGER,
                details TEXT NOT NULL,
                prev_hash TEXT,
                hash TEXT NOT NULL
            )
            """,
            "CREATE INDEX IF NOT EXISTS idx_event_content ON event_log(content_id)",
            "CREATE INDEX IF NOT EXISTS idx_event_action ON event_log(action)",
        )

    def _get_last_hash(self, conn: sqlite3.Connection) -> Optional[str]:
        row = conn.execute("SELECT hash FROM event_log ORDER BY id DESC LIMIT 1").fetchone()
        return row["hash"] if row else None

    def record(
        self,
        conn: sqlite3.Connection,
        block_height: int,
        action: str,
        principal: str,
        details: Dict[str, Any],
        content_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "block_height": block_height,
            "action": action,
            "principal": principal,
            "content_id": content_id,
            "details": details,
            "prev_hash": self._get_last_hash(conn),
        }
        entry["hash"] = _entry_hash(entry)

        conn.execute(
            """
            INSERT INTO event_log (timestamp, block_height, action, principal,
                                   content_id, details, prev_hash, hash)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry["timestamp"],
                block_height,
                action,
                principal,
                content_id,
                json.dumps(details, sort_keys=True),
                entry["prev_hash"],
                entry["hash"],
            ),
        )
        return entry

    def list_entries(
        self,
        content_id: Optional[int] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """Newest first."""
        with self.store.transaction() as conn:
            if content_id is not None:
                rows = conn.execute(
                    """
                    SELECT * FROM event_log
                    WHERE content_id = ?
                    ORDER BY id DESC
                    LIMIT ? OFFSET ?
                    """,
                    (content_id, limit, offset),
                ).fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM event_log ORDER BY id DESC LIMIT ? OFFSET ?",
                    (limit, offset),
                ).fetchall()
        out = []
        for row in rows:
            item = dict(row)
            item["details"] = json.loads(item["details"])
            out.append(item)
        return out

    def last_height(self) -> Optional[int]:
        """Highest block height any committed event was recorded at."""
        with self.store.transaction() as conn:
            row = conn.execute("SELECT MAX(block_height) AS h FROM event_log").fetchone()
        return row["h"] if row else None

    def is_empty(self) -> bool:
        with self.store.transaction() as conn:
            return conn.execute("SELECT 1 FROM event_log LIMIT 1").fetchone() is None

    def verify(self) -> bool:
        """Verify the whole stored chain from genesis."""
        with self.store.transaction() as conn:
            total = conn.execute("SELECT COUNT(*) AS n FROM event_log").fetchone()["n"]
        entries = self.list_entries(limit=total, offset=0)
        return self.verify_chain(list(reversed(entries)))

    def verify_chain(self, entries: List[Dict[str, Any]]) -> bool:
        """Verify linkage and hashes of entries given in insertion order."""
        prev_hash = None
        for entry in entries:
            if entry.get("prev_hash") != prev_hash:
                return False
            check = {k: v for k, v in entry.items() if k not in ("hash", "id")}
            if entry.get("hash") != _entry_hash(check):
                return False
            prev_hash = entry.get("hash")
        return True
