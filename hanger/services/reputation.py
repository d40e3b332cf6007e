"""
Reputation ledger: favorable/unfavorable counters per account.

CRITICAL RULES:
1. Counters only move through an evaluation of a completed trade
2. Each side of a trade evaluates at most once
3. An evaluation increments the counterparty's counter by exactly one
4. Counters never decrease; no decay, no recomputation

record_evaluation() mutates in memory only; TradeLifecycle.evaluate()
persists.
"""

from typing import Dict

from hanger.logging import get_logger, LogStream
from hanger.services.audit import require_account
from hanger.state.entities import Account, Trade, TradeStatus
from hanger.state.errors import (
    DuplicateEvaluationError,
    InvalidStateTransitionError,
    UnauthorizedError,
)
from hanger.state.store import EntityStore


class ReputationLedger:
    """Evaluation bookkeeping for completed trades."""

    def __init__(self, store: EntityStore):
        self.store = store
        self.logger = get_logger(LogStream.REPUTATION)

    def record_evaluation(self, trade: Trade, actor: str, is_favorable: bool) -> Account:
        """
        Record `actor`'s evaluation of the counterparty.

        All checks run before anything is mutated.

        Returns:
            The evaluated (counterparty) account

        Raises:
            InvalidStateTransitionError: trade not completed
            UnauthorizedError: actor is not buyer or seller
            DuplicateEvaluationError: actor's side already evaluated
            NotFoundError: counterparty account no longer exists
        """
        if trade.status != TradeStatus.COMPLETED:
            raise InvalidStateTransitionError(
                f"Trade {trade.trade_id} is {trade.status.value}; only completed trades can be evaluated",
                trade_id=trade.trade_id,
                status=trade.status.value,
            )

        side = trade.side_of(actor)
        if side is None:
            raise UnauthorizedError(
                f"{actor} is not a party to trade {trade.trade_id}",
                trade_id=trade.trade_id,
                actor=actor,
            )

        if trade.evaluation_of(side) is not None:
            raise DuplicateEvaluationError(
                f"{side.value} has already evaluated trade {trade.trade_id}",
                trade_id=trade.trade_id,
                side=side.value,
            )

        target = require_account(self.store, trade.counterparty_of(actor))

        now = self.store.clock.now()
        trade.record_evaluation(side, is_favorable, now)
        target.apply_evaluation(is_favorable, now)

        self.logger.info("Evaluation recorded", extra={
            "trade_id": trade.trade_id,
            "side": side.value,
            "target": target.handle,
            "favorable": is_favorable,
            "score": target.reputation_score,
        })
        return target

    def standing_of(self, handle: str) -> Dict[str, int]:
        """
        Raises:
            NotFoundError: unknown handle
        """
        account = require_account(self.store, handle)
        return {
            "favorable": account.favorable,
            "unfavorable": account.unfavorable,
            "score": account.reputation_score,
        }
