"""
modstake - Reputation-Gated Content Moderation with Token Staking

A deterministic moderation state machine:
- Content registry with sequential ids and a fixed voting window
- Reputation-gated, one-per-principal voting
- Majority finalization (ties reject)
- Token staking with a lockup period
- Hash-chained event log (audit trail)

Components:
- models.py: Records, error codes, Result and CallContext
- config.py: Environment + YAML protocol parameters
- store.py: SQLite store with per-call transactions
- registry.py / reputation.py / voting.py / finalization.py / staking.py
- tokens.py: Token custody collaborator
- contract.py: Facade exposing the public operations
- api_server.py: FastAPI server
"""

__version__ = "0.1.0"

# Lazy imports - only import what's needed when used
def __getattr__(name):
    if name == "ModerationContract":
        from .contract import ModerationContract
        return ModerationContract
    elif name == "CallContext":
        from .models import CallContext
        return CallContext
    elif name == "ContentStatus":
        from .models import ContentStatus
        return ContentStatus
    elif name == "ErrorCode":
        from .models import ErrorCode
        return ErrorCode
    elif name == "Result":
        from .models import Result
        return Result
    elif name == "ContractError":
        from .models import ContractError
        return ContractError
    elif name == "ProtocolParams":
        from .config import ProtocolParams
        return ProtocolParams
    elif name == "ManualClock":
        from .clock import ManualClock
        return ManualClock
    elif name == "ReputationPolicy":
        from .reputation import ReputationPolicy
        return ReputationPolicy
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = [
    "__version__",
    "ModerationContract",
    "CallContext",
    "ContentStatus",
    "ErrorCode",
    "Result",
    "ContractError",
    "ProtocolParams",
    "ManualClock",
    "ReputationPolicy",
]
