"""
Staking ledger

Moderators bond tokens into contract custody for a lockup period. One active
stake per principal; the record is deleted on withdrawal so the principal can
stake again. Staking never touches content or vote state.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from .config import ProtocolParams
from .events import TOKENS_STAKED, TOKENS_UNSTAKED, EventLog
from .models import CallContext, ErrorCode, Result, StakeRecord
from .store import LedgerStore
from .tokens import TokenBank

logger = logging.getLogger(__name__)


class StakingLedger:
    def __init__(
        self,
        store: LedgerStore,
        params: ProtocolParams,
        bank: TokenBank,
        custody: str,
        events: EventLog,
    ):
        self.store = store
        self.params = params
        self.bank = bank
        self.custody = custody
        self.events = events
        self.store.execute_schema(
            """
            CREATE TABLE IF NOT EXISTS stakes (
                principal TEXT PRIMARY KEY,
                amount INTEGER NOT NULL CHECK(amount > 0),
                staked_at INTEGER NOT NULL
            )
            """
        )

    def stake_tokens(self, ctx: CallContext, amount: int) -> Result[bool]:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise TypeError("amount must be an int")

        with self.store.transaction() as conn:
            if amount < self.params.min_stake_amount:
                return self._reject(ctx, "stake", ErrorCode.INVALID_STAKE)
            if self._find(conn, ctx.caller) is not None:
                return self._reject(ctx, "stake", ErrorCode.ALREADY_STAKED)
            if not self.bank.transfer(amount, ctx.caller, self.custody):
                return self._reject(ctx, "stake", ErrorCode.TRANSFER_FAILED)

            conn.execute(
                "INSERT INTO stakes (principal, amount, staked_at) VALUES (?, ?, ?)",
                (ctx.caller, amount, ctx.block_height),
            )
            self.events.record(
                conn,
                ctx.block_height,
                TOKENS_STAKED,
                ctx.caller,
                {"amount": amount, "unlocks_at": ctx.block_height + self.params.stake_lockup_period},
            )

        logger.info("%s staked %d at height %d", ctx.caller, amount, ctx.block_height)
        return Result.ok(True)

    def unstake_tokens(self, ctx: CallContext) -> Result[bool]:
        with self.store.transaction() as conn:
            stake = self._find(conn, ctx.caller)
            if stake is None:
                return self._reject(ctx, "unstake", ErrorCode.NO_STAKE_FOUND)
            if not stake.is_unlocked(ctx.block_height):
                return self._reject(ctx, "unstake", ErrorCode.NOT_AUTHORIZED)
            if not self.bank.transfer(stake.amount, self.custody, ctx.caller):
                return self._reject(ctx, "unstake", ErrorCode.TRANSFER_FAILED)

            conn.execute("DELETE FROM stakes WHERE principal = ?", (ctx.caller,))
            self.events.record(
                conn,
                ctx.block_height,
                TOKENS_UNSTAKED,
                ctx.caller,
                {"amount": stake.amount, "staked_at": stake.staked_at},
            )

        logger.info("%s unstaked %d at height %d", ctx.caller, stake.amount, ctx.block_height)
        return Result.ok(True)

    def get_stake(self, principal: str) -> Optional[StakeRecord]:
        with self.store.transaction() as conn:
            return self._find(conn, principal)

    def _find(self, conn: sqlite3.Connection, principal: str) -> Optional[StakeRecord]:
        row = conn.execute(
            "SELECT principal, amount, staked_at FROM stakes WHERE principal = ?",
            (principal,),
        ).fetchone()
        if row is None:
            return None
        return StakeRecord(
            principal=row["principal"],
            amount=row["amount"],
            staked_at=row["staked_at"],
            lockup_period=self.params.stake_lockup_period,
        )

    def _reject(self, ctx: CallContext, op: str, code: ErrorCode) -> Result[bool]:
        logger.debug("%s by %s rejected: %s", op, ctx.caller, code.name)
        return Result.err(code)
