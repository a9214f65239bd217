"""
modstake API Server

FastAPI surface over the moderation contract:
- Content submission, lookup and listing
- Reputation-gated voting and finalization
- Token staking with lockup
- Block clock (mine empty blocks)
- Hash-chained event log

The caller is identified by the X-Principal header. Block height comes from
the server clock, persisted in the database so it never rewinds on restart.

Run: uvicorn modstake.api_server:app --reload
"""
import os
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Depends, Header, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, field_validator

from modstake.clock import StoredClock
from modstake.config import (
    CONTENT_HASH_SIZE,
    MODSTAKE_VERSION,
    get_db_path,
    load_genesis_balances,
    load_genesis_reputation,
)
from modstake.contract import ModerationContract
from modstake.models import ContentStatus, ErrorCode, Result
from modstake.observability import configure_logging, configure_observability, instrument_app

# =============================================================================
# SETUP
# =============================================================================

configure_logging()

DB_PATH = get_db_path()
DB_PATH.parent.mkdir(parents=True, exist_ok=True)

_contract = ModerationContract(db_path=DB_PATH)
_contract.apply_genesis(load_genesis_reputation(), load_genesis_balances())
_clock = StoredClock(_contract.store, floor=max(_contract.events.last_height() or 0, 1))

_STATUS_FOR_ERROR = {
    ErrorCode.NOT_AUTHORIZED: 403,
    ErrorCode.INSUFFICIENT_REPUTATION: 403,
    ErrorCode.CONTENT_NOT_FOUND: 404,
    ErrorCode.NO_STAKE_FOUND: 404,
    ErrorCode.ALREADY_VOTED: 409,
    ErrorCode.ALREADY_STAKED: 409,
    ErrorCode.ALREADY_FINALIZED: 409,
    ErrorCode.INVALID_STAKE: 400,
    ErrorCode.TRANSFER_FAILED: 402,
}

# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class SubmitContentRequest(BaseModel):
    content_hash: str = Field(..., description="Hex-encoded 32-byte digest")

    @field_validator("content_hash")
    @classmethod
    def _hex_digest(cls, value: str) -> str:
        try:
            raw = bytes.fromhex(value)
        except ValueError:
            raise ValueError("content_hash must be hex")
        if len(raw) != CONTENT_HASH_SIZE:
            raise ValueError(f"content_hash must encode {CONTENT_HASH_SIZE} bytes")
        return value.lower()

class ContentResponse(BaseModel):
    id: int
    author: str
    content_hash: str
    status: str
    created_at: int
    votes_for: int
    votes_against: int
    voting_ends_at: int

class VoteRequest(BaseModel):
    in_favor: bool

class StakeRequest(BaseModel):
    amount: int

class MineRequest(BaseModel):
    blocks: int = Field(1, ge=1, le=100000)

# =============================================================================
# CALLER DEPENDENCY
# =============================================================================

async def get_caller(x_principal: Optional[str] = Header(None)) -> str:
    if not x_principal or not x_principal.strip():
        raise HTTPException(status_code=401, detail="Missing X-Principal header")
    return x_principal.strip()


def _unwrap(result: Result):
    if result.is_ok:
        return result.value
    code = result.error
    raise HTTPException(
        status_code=_STATUS_FOR_ERROR.get(code, 400),
        detail={"code": int(code), "error": code.name},
    )

# =============================================================================
# APP
# =============================================================================

configure_observability()

app = FastAPI(
    title="modstake",
    description="Reputation-gated content moderation with token staking",
    version=MODSTAKE_VERSION,
    docs_url="/docs",
)

_cors_origins = os.environ.get("MODSTAKE_CORS_ORIGINS", "").split(",")
if not _cors_origins or _cors_origins == ['']:
    _cors_origins = ["http://localhost:3000", "http://localhost:5173"]  # Dev defaults

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["X-Principal", "Content-Type"],
)

instrument_app(app)

# =============================================================================
# CONTENT
# =============================================================================

@app.post("/content", status_code=201)
async def submit_content(req: SubmitContentRequest, caller: str = Depends(get_caller)):
    content_id = _unwrap(_contract.submit_content(_clock.context(caller), bytes.fromhex(req.content_hash)))
    return {"id": content_id, "block_height": _clock.height}


@app.get("/content", response_model=List[ContentResponse])
async def list_content(
    status: Optional[ContentStatus] = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    return [r.to_dict() for r in _contract.registry.list_content(status, limit, offset)]


@app.get("/content/{content_id}", response_model=ContentResponse)
async def get_content(content_id: int):
    record = _contract.get_content(content_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Content not found")
    return record.to_dict()


@app.post("/content/{content_id}/vote")
async def vote(content_id: int, req: VoteRequest, caller: str = Depends(get_caller)):
    return {"ok": _unwrap(_contract.vote(_clock.context(caller), content_id, req.in_favor))}


@app.post("/content/{content_id}/finalize")
async def finalize(content_id: int, caller: str = Depends(get_caller)):
    _unwrap(_contract.finalize_moderation(_clock.context(caller), content_id))
    return _contract.get_content(content_id).to_dict()


@app.get("/content/{content_id}/votes/{principal}")
async def has_voted(content_id: int, principal: str):
    direction = _contract.voting.get_vote(content_id, principal)
    return {"has_voted": direction is not None, "in_favor": direction}

# =============================================================================
# REPUTATION
# =============================================================================

@app.get("/reputation/{principal}")
async def get_reputation(principal: str):
    return _contract.get_user_reputation(principal).to_dict()

# =============================================================================
# STAKING
# =============================================================================

@app.post("/stake")
async def stake(req: StakeRequest, caller: str = Depends(get_caller)):
    return {"ok": _unwrap(_contract.stake_tokens(_clock.context(caller), req.amount))}


@app.post("/unstake")
async def unstake(caller: str = Depends(get_caller)):
    return {"ok": _unwrap(_contract.unstake_tokens(_clock.context(caller)))}


@app.get("/stake/{principal}")
async def get_stake(principal: str):
    stake = _contract.get_stake(principal)
    if stake is None:
        raise HTTPException(status_code=404, detail="No stake found")
    return stake.to_dict()


@app.get("/balance/{principal}")
async def get_balance(principal: str):
    return {"principal": principal, "balance": _contract.bank.balance_of(principal)}

# =============================================================================
# CHAIN + EVENTS
# =============================================================================

@app.get("/chain/height")
async def chain_height():
    return {"block_height": _clock.height}


@app.post("/chain/mine")
async def chain_mine(req: MineRequest):
    return {"block_height": _clock.mine(req.blocks)}


@app.get("/events")
async def list_events(
    content_id: Optional[int] = None,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
):
    return {"items": _contract.events.list_entries(content_id=content_id, limit=limit, offset=offset)}


@app.get("/events/verify")
async def verify_events():
    return {"valid": _contract.events.verify()}


@app.get("/health")
async def health():
    return {"status": "healthy", "version": MODSTAKE_VERSION,
            "block_height": _clock.height,
            "timestamp": datetime.now(timezone.utc).isoformat()}


def main() -> None:
    import uvicorn
    uvicorn.run(app, host=os.environ.get("MODSTAKE_HOST", "127.0.0.1"),
                port=int(os.environ.get("MODSTAKE_PORT", "8000")))


if __name__ == "__main__":
    main()
