"""Voting engine: validation order, window boundary, one vote per principal."""
import pytest

from conftest import WALLET_1, WALLET_2, WALLET_3, ctx, digest
from modstake.models import ErrorCode

H = 10
THRESHOLD = 10


@pytest.fixture
def content_id(contract):
    return contract.submit_content(ctx(WALLET_1, H), digest(1)).value


@pytest.fixture
def moderator(contract):
    contract.reputation.set_reputation(WALLET_2, THRESHOLD)
    return WALLET_2


class TestValidationOrder:
    def test_nonexistent_content(self, contract, moderator):
        for caller in (WALLET_1, moderator):
            for direction in (True, False):
                result = contract.vote(ctx(caller, H), 999, direction)
                assert result.error == ErrorCode.CONTENT_NOT_FOUND

    def test_insufficient_reputation(self, contract, content_id):
        result = contract.vote(ctx(WALLET_2, H + 1), content_id, True)
        assert result.error == ErrorCode.INSUFFICIENT_REPUTATION

    def test_one_below_threshold_is_rejected(self, contract, content_id):
        contract.reputation.set_reputation(WALLET_3, THRESHOLD - 1)
        result = contract.vote(ctx(WALLET_3, H + 1), content_id, True)
        assert result.error == ErrorCode.INSUFFICIENT_REPUTATION

    def test_expired_window_reported_before_reputation(self, contract, content_id):
        # Zero reputation, but the closed window wins.
        result = contract.vote(ctx(WALLET_3, H + 144), content_id, True)
        assert result.error == ErrorCode.NOT_AUTHORIZED

    def test_double_vote(self, contract, content_id, moderator):
        assert contract.vote(ctx(moderator, H + 1), content_id, True).is_ok
        again = contract.vote(ctx(moderator, H + 2), content_id, False)
        assert again.error == ErrorCode.ALREADY_VOTED

    def test_double_vote_without_reputation_reports_reputation(self, contract, content_id):
        first = contract.vote(ctx(WALLET_3, H + 1), content_id, True)
        second = contract.vote(ctx(WALLET_3, H + 1), content_id, True)
        assert first.error == second.error == ErrorCode.INSUFFICIENT_REPUTATION


class TestWindow:
    def test_last_open_block_accepts(self, contract, content_id, moderator):
        assert contract.vote(ctx(moderator, H + 143), content_id, True).is_ok

    def test_closes_exactly_at_voting_ends_at(self, contract, content_id, moderator):
        result = contract.vote(ctx(moderator, H + 144), content_id, True)
        assert result.error == ErrorCode.NOT_AUTHORIZED

    def test_creation_block_is_open(self, contract, content_id, moderator):
        assert contract.vote(ctx(moderator, H), content_id, False).is_ok

    def test_finalized_content_rejects_votes(self, contract, content_id, moderator):
        contract.finalize_moderation(ctx(WALLET_1, H + 144), content_id)
        result = contract.vote(ctx(moderator, H + 5), content_id, True)
        assert result.error == ErrorCode.NOT_AUTHORIZED


class TestTallies:
    def test_vote_for_increments_votes_for(self, contract, content_id, moderator):
        result = contract.vote(ctx(moderator, H + 1), content_id, True)
        assert result.is_ok and result.value is True
        record = contract.get_content(content_id)
        assert (record.votes_for, record.votes_against) == (1, 0)

    def test_vote_against_increments_votes_against(self, contract, content_id, moderator):
        contract.vote(ctx(moderator, H + 1), content_id, False)
        record = contract.get_content(content_id)
        assert (record.votes_for, record.votes_against) == (0, 1)

    def test_many_voters(self, contract, content_id):
        voters = [f"SP{i:03d}" for i in range(5)]
        for i, voter in enumerate(voters):
            contract.reputation.set_reputation(voter, THRESHOLD + i)
            contract.vote(ctx(voter, H + 1 + i), content_id, i % 2 == 0)
        record = contract.get_content(content_id)
        assert (record.votes_for, record.votes_against) == (3, 2)

    def test_rejected_vote_changes_nothing(self, contract, content_id):
        before = contract.get_content(content_id)
        events_before = len(contract.events.list_entries())
        contract.vote(ctx(WALLET_3, H + 1), content_id, True)
        assert contract.get_content(content_id) == before
        assert contract.has_voted(content_id, WALLET_3) is False
        assert len(contract.events.list_entries()) == events_before

    def test_author_may_vote_on_own_content(self, contract, content_id):
        contract.reputation.set_reputation(WALLET_1, THRESHOLD)
        assert contract.vote(ctx(WALLET_1, H + 1), content_id, True).is_ok

    def test_votes_are_per_content(self, contract, content_id, moderator):
        other = contract.submit_content(ctx(WALLET_1, H), digest(2)).value
        assert contract.vote(ctx(moderator, H + 1), content_id, True).is_ok
        assert contract.vote(ctx(moderator, H + 1), other, False).is_ok


class TestHasVoted:
    def test_false_before_voting(self, contract, content_id):
        assert contract.has_voted(content_id, WALLET_2) is False

    def test_false_for_unknown_content(self, contract):
        assert contract.has_voted(42, WALLET_2) is False

    def test_true_after_vote_and_direction_recorded(self, contract, content_id, moderator):
        contract.vote(ctx(moderator, H + 1), content_id, False)
        assert contract.has_voted(content_id, moderator) is True
        assert contract.voting.get_vote(content_id, moderator) is False
        assert contract.has_voted(content_id, WALLET_3) is False
