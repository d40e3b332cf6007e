"""
Tests for ReputationLedger.

COVERAGE:
- Counterparty counter moves by exactly one
- Guards run before any mutation
- Removed counterparty
- Standing summary
"""

import pytest

from hanger.state import (
    DuplicateEvaluationError,
    InvalidStateTransitionError,
    NotFoundError,
    TradeSide,
    TradeStatus,
    UnauthorizedError,
)


@pytest.fixture
def completed_trade(lifecycle, listing1001):
    trade = lifecycle.request_trade("bob", 1001)
    for target in (TradeStatus.ACCEPTED, TradeStatus.IN_PROGRESS, TradeStatus.COMPLETED):
        lifecycle.change_status(trade.trade_id, "alice", target)
    return trade


class TestRecordEvaluation:

    def test_favorable_moves_counterparty_only(self, ledger, members, completed_trade):
        target = ledger.record_evaluation(completed_trade, "bob", True)

        assert target.handle == "alice"
        assert (target.favorable, target.unfavorable) == (1, 0)
        bob = members.get("bob")
        assert (bob.favorable, bob.unfavorable) == (0, 0)

    def test_unfavorable(self, ledger, members, completed_trade):
        ledger.record_evaluation(completed_trade, "alice", False)

        assert members.get("bob").unfavorable == 1
        assert completed_trade.evaluation_of(TradeSide.SELLER) is False
        assert completed_trade.evaluation_of(TradeSide.BUYER) is None

    def test_updates_timestamps(self, ledger, clock, members, completed_trade):
        later = clock.advance()

        ledger.record_evaluation(completed_trade, "bob", True)

        assert completed_trade.updated_at == later
        assert members.get("alice").updated_at == later

    def test_duplicate_leaves_counters_alone(self, ledger, members, completed_trade):
        ledger.record_evaluation(completed_trade, "bob", True)

        with pytest.raises(DuplicateEvaluationError) as exc_info:
            ledger.record_evaluation(completed_trade, "bob", False)

        assert exc_info.value.context["side"] == "buyer"
        alice = members.get("alice")
        assert (alice.favorable, alice.unfavorable) == (1, 0)

    def test_not_completed(self, ledger, lifecycle, listing1001):
        trade = lifecycle.request_trade("bob", 1001)

        with pytest.raises(InvalidStateTransitionError):
            ledger.record_evaluation(trade, "bob", True)

        assert trade.buyer_evaluation is None

    def test_outsider(self, ledger, completed_trade):
        with pytest.raises(UnauthorizedError):
            ledger.record_evaluation(completed_trade, "carol", True)

    def test_removed_counterparty(self, ledger, members, completed_trade):
        members.remove_member("admin", "alice")

        with pytest.raises(NotFoundError):
            ledger.record_evaluation(completed_trade, "bob", True)

        assert completed_trade.buyer_evaluation is None

    def test_ledger_does_not_save(self, store, ledger, completed_trade):
        saves = store.save_count
        ledger.record_evaluation(completed_trade, "bob", True)
        assert store.save_count == saves


class TestStanding:

    def test_score_is_difference(self, ledger, lifecycle, completed_trade):
        lifecycle.evaluate(completed_trade.trade_id, "alice", False)

        assert ledger.standing_of("bob") == {"favorable": 0, "unfavorable": 1, "score": -1}

    def test_unknown_handle(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.standing_of("nobody")
