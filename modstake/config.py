"""
modstake configuration: all environment-driven settings in one place.

Protocol parameters resolve in this order: explicit overrides, then
MODSTAKE_* environment variables, then the YAML params file, then defaults.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, asdict, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

REPO_ROOT = Path(__file__).resolve().parents[1]

# --- Database ---
DEFAULT_DB_PATH = REPO_ROOT / "data" / "modstake.db"


def get_db_path() -> Path:
    raw = os.environ.get("MODSTAKE_DB_PATH")
    return Path(raw) if raw else DEFAULT_DB_PATH


# --- Protocol constants ---
VOTING_PERIOD = 144
STAKE_LOCKUP_PERIOD = 720
MIN_STAKE_AMOUNT = 1000
MIN_REPUTATION_TO_VOTE = 10

CONTENT_HASH_SIZE = 32

DEFAULT_PARAMS_PATH = REPO_ROOT / "config" / "params.yaml"


def get_params_path() -> Path:
    raw = os.environ.get("MODSTAKE_PARAMS_PATH")
    return Path(raw) if raw else DEFAULT_PARAMS_PATH


# --- Custody ---
def get_custody_principal() -> str:
    return os.environ.get("MODSTAKE_CUSTODY_PRINCIPAL", "modstake.custody")


# --- Logging ---
def get_log_level() -> str:
    return os.environ.get("MODSTAKE_LOG_LEVEL", "INFO").upper()


MODSTAKE_VERSION = "0.1.0"

_ENV_KEYS = {
    "voting_period": "MODSTAKE_VOTING_PERIOD",
    "stake_lockup_period": "MODSTAKE_STAKE_LOCKUP_PERIOD",
    "min_stake_amount": "MODSTAKE_MIN_STAKE_AMOUNT",
    "min_reputation_to_vote": "MODSTAKE_MIN_REPUTATION_TO_VOTE",
}


@dataclass(frozen=True)
class ProtocolParams:
    voting_period: int = VOTING_PERIOD
    stake_lockup_period: int = STAKE_LOCKUP_PERIOD
    min_stake_amount: int = MIN_STAKE_AMOUNT
    min_reputation_to_vote: int = MIN_REPUTATION_TO_VOTE

    def __post_init__(self) -> None:
        for name, value in asdict(self).items():
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        return {}
    return raw


def _to_int(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an integer, got {value!r}")


def load_params(
    path: Optional[Path] = None,
    overrides: Optional[Mapping[str, int]] = None,
) -> ProtocolParams:
    """Resolve protocol parameters from defaults, YAML, env and overrides."""
    values: Dict[str, int] = {}

    section = _load_yaml(path or get_params_path()).get("params", {})
    if isinstance(section, dict):
        for field_name in _ENV_KEYS:
            if field_name in section:
                values[field_name] = _to_int(field_name, section[field_name])

    for field_name, env_key in _ENV_KEYS.items():
        raw = os.environ.get(env_key)
        if raw is not None and raw.strip():
            values[field_name] = _to_int(env_key, raw)

    for field_name, value in (overrides or {}).items():
        if field_name not in _ENV_KEYS:
            raise ValueError(f"unknown protocol parameter '{field_name}'")
        values[field_name] = value

    return replace(ProtocolParams(), **values)


def _load_principal_map(section: str, path: Optional[Path]) -> Dict[str, int]:
    raw = _load_yaml(path or get_params_path()).get(section, {})
    out: Dict[str, int] = {}
    if isinstance(raw, dict):
        for principal, value in raw.items():
            out[str(principal)] = _to_int(f"{section}[{principal}]", value)
    return out


def load_genesis_reputation(path: Optional[Path] = None) -> Dict[str, int]:
    """Load the `reputation:` mapping (principal -> score) from the params file."""
    return _load_principal_map("reputation", path)


def load_genesis_balances(path: Optional[Path] = None) -> Dict[str, int]:
    """Load the `balances:` mapping (principal -> token units) from the params file."""
    return _load_principal_map("balances", path)
