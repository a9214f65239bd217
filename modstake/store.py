"""
SQLite-backed state store shared by every ledger component.

Each public contract call runs inside one `transaction()`: validation reads
and all writes share a single connection holding an immediate write lock, and
any exception rolls the whole call back. Nested `transaction()` calls on the
same thread reuse the outer connection, so collaborators such as the token
bank join the caller's transaction instead of opening a competing one.
"""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

try:
    from .config import get_db_path
except ImportError:  # Allow running as script
    import sys
    sys.path.insert(0, str(Path(__file__).parent.parent))
    from modstake.config import get_db_path


class LedgerStore:
    """Owns the database path and the per-thread active transaction."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path) if db_path else get_db_path()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._local = threading.local()

    @property
    def in_transaction(self) -> bool:
        return getattr(self._local, "conn", None) is not None

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        active = getattr(self._local, "conn", None)
        if active is not None:
            yield active
            return

        conn = sqlite3.connect(self.db_path, isolation_level=None)
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error:
            conn.close()
            raise
        self._local.conn = conn
        try:
            yield conn
            conn.execute("COMMIT")
        except Exception:
            conn.execute("ROLLBACK")
            raise
        finally:
            self._local.conn = None
            conn.close()

    def execute_schema(self, *statements: str) -> None:
        with self.transaction() as conn:
            for statement in statements:
                conn.execute(statement)
