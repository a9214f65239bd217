"""
modstake test configuration: shared fixtures with isolated databases.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from modstake.config import ProtocolParams
from modstake.contract import ModerationContract
from modstake.models import CallContext

DEPLOYER = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
WALLET_1 = "ST1SJ3DTE5DN7X54YDH5D64R3BCB6A2AG2ZQ8YPD5"
WALLET_2 = "ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG"
WALLET_3 = "ST2JHG361ZXG51QTKY2NQCVBPPRRE2KZB1HR05NNC"

STARTING_BALANCE = 100_000_000_000_000


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    """Keep developer MODSTAKE_* settings out of every test."""
    for key in [
        "MODSTAKE_VOTING_PERIOD",
        "MODSTAKE_STAKE_LOCKUP_PERIOD",
        "MODSTAKE_MIN_STAKE_AMOUNT",
        "MODSTAKE_MIN_REPUTATION_TO_VOTE",
        "MODSTAKE_CUSTODY_PRINCIPAL",
        "MODSTAKE_OTEL_ENABLED",
    ]:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("MODSTAKE_PARAMS_PATH", str(tmp_path / "no_params.yaml"))
    monkeypatch.setenv("MODSTAKE_DB_PATH", str(tmp_path / "env_default.db"))


@pytest.fixture
def contract(tmp_path):
    """Fresh contract with funded wallets and default protocol parameters."""
    c = ModerationContract(db_path=tmp_path / "modstake_test.db", params=ProtocolParams())
    for wallet in (DEPLOYER, WALLET_1, WALLET_2, WALLET_3):
        c.bank.credit(wallet, STARTING_BALANCE)
    return c


def ctx(caller: str, height: int) -> CallContext:
    return CallContext(caller=caller, block_height=height)


def digest(fill: int) -> bytes:
    return bytes([fill]) * 32
