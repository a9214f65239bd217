"""
Token custody collaborator.

Staking only needs `transfer(amount, sender, recipient) -> bool`. The ledger
implementation below keeps balances in the shared store and joins the
caller's transaction, so a refused transfer leaves no trace.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Protocol

from .models import check_principal
from .store import LedgerStore

logger = logging.getLogger(__name__)


class TokenBank(Protocol):
    def transfer(self, amount: int, sender: str, recipient: str) -> bool:
        ...


class LedgerTokenBank:
    """Fungible balances in the `balances` table."""

    def __init__(self, store: LedgerStore):
        self.store = store
        self.store.execute_schema(
            """
            CREATE TABLE IF NOT EXISTS balances (
                principal TEXT PRIMARY KEY,
                amount INTEGER NOT NULL CHECK(amount >= 0)
            )
            """
        )

    def balance_of(self, principal: str) -> int:
        with self.store.transaction() as conn:
            return self._balance(conn, principal)

    def credit(self, principal: str, amount: int) -> int:
        """Mint amount into principal's balance. Returns the new balance."""
        check_principal(principal, "principal")
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValueError("amount must be a positive int")
        with self.store.transaction() as conn:
            balance = self._balance(conn, principal) + amount
            self._set(conn, principal, balance)
        return balance

    def transfer(self, amount: int, sender: str, recipient: str) -> bool:
        if amount <= 0 or sender == recipient:
            return False
        with self.store.transaction() as conn:
            available = self._balance(conn, sender)
            if available < amount:
                logger.debug("transfer of %d from %s refused: balance %d", amount, sender, available)
                return False
            self._set(conn, sender, available - amount)
            self._set(conn, recipient, self._balance(conn, recipient) + amount)
        return True

    def _balance(self, conn: sqlite3.Connection, principal: str) -> int:
        row = conn.execute("SELECT amount FROM balances WHERE principal = ?", (principal,)).fetchone()
        return row["amount"] if row else 0

    def _set(self, conn: sqlite3.Connection, principal: str, amount: int) -> None:
        conn.execute(
            """
            INSERT INTO balances (principal, amount) VALUES (?, ?)
            ON CONFLICT(principal) DO UPDATE SET amount = excluded.amount
            """,
            (principal, amount),
        )
