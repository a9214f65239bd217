"""
modstake data models

Records for content, votes, reputation and stakes, plus the call context and
the tagged Result every fallible contract operation returns.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class ContentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ErrorCode(IntEnum):
    """Contract error codes. Values match the on-chain `err uN` codes."""
    NOT_AUTHORIZED = 1
    ALREADY_VOTED = 2
    CONTENT_NOT_FOUND = 3
    INSUFFICIENT_REPUTATION = 4
    INVALID_STAKE = 5
    ALREADY_STAKED = 6
    NO_STAKE_FOUND = 7
    ALREADY_FINALIZED = 8
    TRANSFER_FAILED = 9


class ContractError(Exception):
    """Raised by Result.unwrap() for callers that want exceptions."""

    def __init__(self, code: ErrorCode):
        super().__init__(f"{code.name} (err u{int(code)})")
        self.code = code


@dataclass(frozen=True)
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[ErrorCode] = None

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def err(cls, code: ErrorCode) -> "Result[T]":
        return cls(error=code)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise ContractError(self.error)
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        if self.error is not None:
            return {"ok": False, "code": int(self.error), "error": self.error.name}
        return {"ok": True, "value": self.value}


def check_principal(value: str, field_name: str) -> None:
    if not isinstance(value, str) or not value:
        raise ValueError(f"{field_name} must be a non-empty principal string")


@dataclass(frozen=True)
class CallContext:
    """Calling principal and current block height, supplied by the host."""
    caller: str
    block_height: int

    def __post_init__(self) -> None:
        check_principal(self.caller, "caller")
        if isinstance(self.block_height, bool) or not isinstance(self.block_height, int):
            raise TypeError("block_height must be an int")
        if self.block_height < 0:
            raise ValueError("block_height must be non-negative")


@dataclass(frozen=True)
class ContentRecord:
    id: int
    author: str
    content_hash: bytes
    status: ContentStatus
    created_at: int
    votes_for: int
    votes_against: int
    voting_ends_at: int

    @classmethod
    def from_row(cls, row) -> "ContentRecord":
        return cls(
            id=row["id"],
            author=row["author"],
            content_hash=bytes(row["content_hash"]),
            status=ContentStatus(row["status"]),
            created_at=row["created_at"],
            votes_for=row["votes_for"],
            votes_against=row["votes_against"],
            voting_ends_at=row["voting_ends_at"],
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "author": self.author,
            "content_hash": self.content_hash.hex(),
            "status": self.status.value,
            "created_at": self.created_at,
            "votes_for": self.votes_for,
            "votes_against": self.votes_against,
            "voting_ends_at": self.voting_ends_at,
        }


@dataclass(frozen=True)
class ReputationRecord:
    score: int = 0

    def to_dict(self) -> dict:
        return {"score": self.score}


@dataclass(frozen=True)
class StakeRecord:
    principal: str
    amount: int
    staked_at: int
    lockup_period: int

    @property
    def unlocks_at(self) -> int:
        return self.staked_at + self.lockup_period

    def is_unlocked(self, block_height: int) -> bool:
        return block_height >= self.unlocks_at

    def to_dict(self) -> dict:
        return {
            "principal": self.principal,
            "amount": self.amount,
            "staked_at": self.staked_at,
            "unlocks_at": self.unlocks_at,
        }
