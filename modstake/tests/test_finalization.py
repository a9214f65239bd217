"""Finalization resolver: timing, outcome rule, single transition."""
import pytest

from conftest import WALLET_1, WALLET_2, WALLET_3, ctx, digest
from modstake.contract import ModerationContract
from modstake.config import ProtocolParams
from modstake.finalization import decide_outcome
from modstake.models import ContentStatus, ErrorCode
from modstake.reputation import ReputationPolicy

H = 20


@pytest.fixture
def content_id(contract):
    return contract.submit_content(ctx(WALLET_1, H), digest(1)).value


def _cast(contract, content_id, directions):
    for i, in_favor in enumerate(directions):
        voter = f"SPVOTER{i}"
        contract.reputation.set_reputation(voter, 10)
        assert contract.vote(ctx(voter, H + 1), content_id, in_favor).is_ok


@pytest.mark.parametrize(
    "votes_for,votes_against,expected",
    [
        (0, 0, ContentStatus.REJECTED),
        (1, 0, ContentStatus.APPROVED),
        (0, 1, ContentStatus.REJECTED),
        (2, 2, ContentStatus.REJECTED),
        (3, 2, ContentStatus.APPROVED),
    ],
)
def test_decide_outcome(votes_for, votes_against, expected):
    assert decide_outcome(votes_for, votes_against) == expected


def test_rejects_during_voting_period(contract, content_id):
    result = contract.finalize_moderation(ctx(WALLET_2, H + 143), content_id)
    assert result.error == ErrorCode.NOT_AUTHORIZED
    assert contract.get_content(content_id).status == ContentStatus.PENDING


def test_allowed_exactly_at_voting_ends_at(contract, content_id):
    assert contract.finalize_moderation(ctx(WALLET_2, H + 144), content_id).is_ok


def test_allowed_after_voting_period(contract, content_id):
    result = contract.finalize_moderation(ctx(WALLET_2, H + 145), content_id)
    assert result.is_ok and result.value is True


def test_nonexistent_content(contract):
    result = contract.finalize_moderation(ctx(WALLET_2, 10_000), 999)
    assert result.error == ErrorCode.CONTENT_NOT_FOUND


def test_no_votes_resolves_rejected(contract, content_id):
    contract.finalize_moderation(ctx(WALLET_3, H + 145), content_id)
    record = contract.get_content(content_id)
    assert record.status == ContentStatus.REJECTED
    assert (record.votes_for, record.votes_against) == (0, 0)


def test_majority_for_resolves_approved(contract, content_id):
    _cast(contract, content_id, [True, True, False])
    contract.finalize_moderation(ctx(WALLET_3, H + 144), content_id)
    assert contract.get_content(content_id).status == ContentStatus.APPROVED


def test_tie_resolves_rejected(contract, content_id):
    _cast(contract, content_id, [True, False])
    contract.finalize_moderation(ctx(WALLET_3, H + 144), content_id)
    assert contract.get_content(content_id).status == ContentStatus.REJECTED


def test_any_caller_may_finalize(contract, content_id):
    assert contract.finalize_moderation(ctx("SPANYONE", H + 200), content_id).is_ok


def test_second_finalize_is_rejected_and_state_kept(contract, content_id):
    _cast(contract, content_id, [True])
    assert contract.finalize_moderation(ctx(WALLET_2, H + 144), content_id).is_ok
    again = contract.finalize_moderation(ctx(WALLET_3, H + 300), content_id)
    assert again.error == ErrorCode.ALREADY_FINALIZED
    assert contract.get_content(content_id).status == ContentStatus.APPROVED
    finalized = [e for e in contract.events.list_entries(content_id=content_id)
                 if e["action"] == "moderation_finalized"]
    assert len(finalized) == 1


def test_each_content_finalizes_on_its_own_window(contract):
    early = contract.submit_content(ctx(WALLET_1, 100), digest(1)).value
    late = contract.submit_content(ctx(WALLET_1, 150), digest(2)).value
    assert contract.finalize_moderation(ctx(WALLET_2, 244), early).is_ok
    assert contract.finalize_moderation(ctx(WALLET_2, 244), late).error == ErrorCode.NOT_AUTHORIZED
    assert contract.finalize_moderation(ctx(WALLET_2, 294), late).is_ok


class _AuthorBonus(ReputationPolicy):
    def __init__(self):
        self.seen = []

    def on_finalized(self, record, ledger, conn):
        self.seen.append((record.id, record.status))
        if record.status == ContentStatus.APPROVED:
            ledger.write(conn, record.author, ledger.score_of(conn, record.author) + 1)


class _Exploding(ReputationPolicy):
    def on_finalized(self, record, ledger, conn):
        raise RuntimeError("policy failure")


def test_policy_must_implement_on_finalized():
    class _Incomplete(ReputationPolicy):
        pass

    with pytest.raises(TypeError):
        _Incomplete()


def test_policy_hook_sees_resolved_record(tmp_path):
    policy = _AuthorBonus()
    c = ModerationContract(db_path=tmp_path / "p.db", params=ProtocolParams(), policy=policy)
    cid = c.submit_content(ctx(WALLET_1, H), digest(1)).value
    c.reputation.set_reputation(WALLET_2, 10)
    c.vote(ctx(WALLET_2, H + 1), cid, True)
    c.finalize_moderation(ctx(WALLET_3, H + 144), cid)
    assert policy.seen == [(cid, ContentStatus.APPROVED)]
    assert c.get_user_reputation(WALLET_1).score == 1


def test_default_policy_never_grows_reputation(contract, content_id):
    _cast(contract, content_id, [True])
    contract.finalize_moderation(ctx(WALLET_3, H + 144), content_id)
    assert contract.get_user_reputation(WALLET_1).score == 0


def test_failing_policy_rolls_back_finalization(tmp_path):
    c = ModerationContract(db_path=tmp_path / "x.db", params=ProtocolParams(), policy=_Exploding())
    cid = c.submit_content(ctx(WALLET_1, H), digest(1)).value
    with pytest.raises(RuntimeError):
        c.finalize_moderation(ctx(WALLET_2, H + 144), cid)
    assert c.get_content(cid).status == ContentStatus.PENDING
    actions = [e["action"] for e in c.events.list_entries()]
    assert "moderation_finalized" not in actions
