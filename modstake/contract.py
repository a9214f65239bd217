"""
modstake contract facade

Wires the registry, reputation, voting, finalization and staking components
over one store and exposes the public operation surface:

    submit_content, vote, finalize_moderation, stake_tokens, unstake_tokens,
    get_content, get_user_reputation, has_voted

Mutating operations take a CallContext (caller + block height) supplied by
the host and return a Result; reads are pure lookups.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional

from .config import ProtocolParams, get_custody_principal, load_params
from .events import GENESIS, EventLog
from .finalization import FinalizationResolver
from .models import CallContext, ContentRecord, ReputationRecord, Result, StakeRecord
from .registry import ContentRegistry
from .reputation import ReputationLedger, ReputationPolicy
from .staking import StakingLedger
from .store import LedgerStore
from .tokens import LedgerTokenBank, TokenBank
from .voting import VotingEngine


class ModerationContract:
    def __init__(
        self,
        db_path: Optional[Path] = None,
        params: Optional[ProtocolParams] = None,
        bank: Optional[TokenBank] = None,
        custody: Optional[str] = None,
        policy: Optional[ReputationPolicy] = None,
    ):
        self.params = params or load_params()
        self.store = LedgerStore(db_path)
        self.events = EventLog(self.store)
        self.custody = custody or get_custody_principal()
        self.bank = bank if bank is not None else LedgerTokenBank(self.store)

        self.registry = ContentRegistry(self.store, self.params, self.events)
        self.reputation = ReputationLedger(self.store, self.events)
        self.voting = VotingEngine(
            self.store, self.params, self.registry, self.reputation, self.events
        )
        self.finalizer = FinalizationResolver(
            self.store, self.registry, self.reputation, self.events, policy=policy
        )
        self.staking = StakingLedger(
            self.store, self.params, self.bank, self.custody, self.events
        )

    # --- content ---

    def submit_content(self, ctx: CallContext, content_hash: bytes) -> Result[int]:
        return self.registry.submit_content(ctx, content_hash)

    def get_content(self, content_id: int) -> Optional[ContentRecord]:
        return self.registry.get_content(content_id)

    # --- voting ---

    def vote(self, ctx: CallContext, content_id: int, in_favor: bool) -> Result[bool]:
        return self.voting.vote(ctx, content_id, in_favor)

    def has_voted(self, content_id: int, principal: str) -> bool:
        return self.voting.has_voted(content_id, principal)

    def finalize_moderation(self, ctx: CallContext, content_id: int) -> Result[bool]:
        return self.finalizer.finalize_moderation(ctx, content_id)

    # --- reputation ---

    def get_user_reputation(self, principal: str) -> ReputationRecord:
        return self.reputation.get_user_reputation(principal)

    def seed_reputation(self, scores: Mapping[str, int], block_height: int = 0) -> int:
        return self.reputation.seed(scores, block_height=block_height)

    def apply_genesis(
        self,
        reputation: Optional[Mapping[str, int]] = None,
        balances: Optional[Mapping[str, int]] = None,
    ) -> bool:
        """Seed initial scores and balances once, on an empty event log."""
        if not self.events.is_empty():
            return False
        reputation = dict(reputation or {})
        balances = dict(balances or {})
        if balances and not isinstance(self.bank, LedgerTokenBank):
            raise ValueError("genesis balances require the ledger token bank")
        with self.store.transaction() as conn:
            self.seed_reputation(reputation)
            for principal, amount in balances.items():
                self.bank.credit(principal, amount)
            self.events.record(
                conn, 0, GENESIS, self.custody,
                {"principals": len(reputation), "funded": len(balances)},
            )
        return True

    # --- staking ---

    def stake_tokens(self, ctx: CallContext, amount: int) -> Result[bool]:
        return self.staking.stake_tokens(ctx, amount)

    def unstake_tokens(self, ctx: CallContext) -> Result[bool]:
        return self.staking.unstake_tokens(ctx)

    def get_stake(self, principal: str) -> Optional[StakeRecord]:
        return self.staking.get_stake(principal)
