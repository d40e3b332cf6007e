"""
Trade lifecycle: requests, status changes, evaluations and reports.

ARCHITECTURE:
- TradeStateMachine decides which transitions are legal and what the
  listing's status becomes
- TradeLifecycle applies them: trade status, listing status, one
  notification to the counterparty, then one save

CRITICAL RULES:
1. Every check runs before any mutation or sequence allocation
2. Trade and listing are both updated in memory before save() is called
3. A completed listing never changes status again
4. Accept / progress / complete require a listing that is neither
   completed nor soft-deleted; cancel is always allowed
5. Each trade operation runs inside LogContext("trade-<id>"); rejected
   requests are logged under "listing-<id>"

USAGE:
    lifecycle = TradeLifecycle(store, outbox, ledger, moderation)
    trade = lifecycle.request_trade("bob", 1001)
    lifecycle.change_status(trade.trade_id, "alice", TradeStatus.ACCEPTED)
"""

from typing import List, Optional

from hanger.logging import get_logger, LogContext, LogStream
from hanger.services.audit import rejections_logged, require_account
from hanger.services.moderation import ModerationDesk
from hanger.services.notifications import NotificationOutbox
from hanger.services.reputation import ReputationLedger
from hanger.state.entities import (
    AbuseReport,
    NotificationType,
    Trade,
    TradeStatus,
)
from hanger.state.errors import (
    ListingUnavailableError,
    NotFoundError,
    SelfTradeRejectedError,
    UnauthorizedError,
)
from hanger.state.labels import DEFAULT_LOCALE, label, render_message
from hanger.state.store import EntityStore
from hanger.state.trade_machine import TradeStateMachine


class TradeLifecycle:
    """Drives trades through the state machine and keeps listings in sync."""

    def __init__(
        self,
        store: EntityStore,
        outbox: NotificationOutbox,
        ledger: Optional[ReputationLedger] = None,
        moderation: Optional[ModerationDesk] = None,
        locale: str = DEFAULT_LOCALE,
    ):
        self.store = store
        self.outbox = outbox
        self.ledger = ledger or ReputationLedger(store)
        self.moderation = moderation or ModerationDesk(store, outbox, locale=locale)
        self.locale = locale
        self.logger = get_logger(LogStream.TRADES)

    # ========================================================================
    # REQUEST
    # ========================================================================

    @rejections_logged(LogStream.TRADES, correlate="listing-{listing_id}")
    def request_trade(self, buyer: str, listing_id: int) -> Trade:
        """
        Open a trade on a listing.

        Raises:
            NotFoundError: unknown buyer or listing
            SelfTradeRejectedError: buyer owns the listing
            ListingUnavailableError: listing completed or soft-deleted
        """
        buyer_account = require_account(self.store, buyer)
        listing = self.store.listings.get(listing_id)
        if listing is None:
            raise NotFoundError("listing", listing_id)

        if listing.owner == buyer:
            raise SelfTradeRejectedError(
                f"{buyer} cannot request a trade on their own listing {listing_id}",
                listing_id=listing_id,
                buyer=buyer,
            )
        if listing.is_locked:
            raise ListingUnavailableError(
                f"Listing {listing_id} is not accepting trade requests",
                listing_id=listing_id,
                status=listing.status.value,
                deleted=listing.deleted,
            )

        now = self.store.clock.now()
        trade = Trade(
            trade_id=self.store.next_trade_id(),
            listing_id=listing_id,
            buyer=buyer,
            seller=listing.owner,
            created_at=now,
            updated_at=now,
        )

        with LogContext(f"trade-{trade.trade_id}"):
            self.store.trades[trade.trade_id] = trade
            self.outbox.push(
                listing.owner,
                NotificationType.TRADE_REQUEST,
                render_message(
                    "trade_request", self.locale,
                    buyer=buyer_account.display_name,
                    listing_id=listing_id,
                    title=listing.title,
                    trade_id=trade.trade_id,
                ),
                trade_id=trade.trade_id,
            )
            self.store.save()

            self.logger.info("Trade requested", extra={
                "trade_id": trade.trade_id,
                "listing_id": listing_id,
                "buyer": buyer,
                "seller": listing.owner,
            })
        return trade

    # ========================================================================
    # STATUS CHANGES
    # ========================================================================

    @rejections_logged(LogStream.TRADES, correlate="trade-{trade_id}")
    def change_status(self, trade_id: int, actor: str, target: TradeStatus) -> Trade:
        """
        Move a trade to `target`.

        Raises:
            NotFoundError: unknown trade or listing
            UnauthorizedError: actor is not buyer or seller
            InvalidStateTransitionError: transition not in the table
            ListingUnavailableError: non-cancel transition on a completed
                or soft-deleted listing
        """
        with LogContext(f"trade-{trade_id}"):
            trade = self.get_trade(trade_id)
            if not trade.involves(actor):
                raise UnauthorizedError(
                    f"{actor} is not a party to trade {trade_id}",
                    trade_id=trade_id,
                    actor=actor,
                )

            transition = TradeStateMachine.require(trade.status, target)

            listing = self.store.listings.get(trade.listing_id)
            if listing is None:
                raise NotFoundError("listing", trade.listing_id)
            if target != TradeStatus.CANCELLED and listing.is_locked:
                raise ListingUnavailableError(
                    f"Listing {listing.listing_id} is no longer available for trade {trade_id}",
                    trade_id=trade_id,
                    listing_id=listing.listing_id,
                    status=listing.status.value,
                    deleted=listing.deleted,
                )

            now = self.store.clock.now()
            trade.set_status(target, now)

            listing_status = TradeStateMachine.resolve_listing_status(transition, listing.status)
            if listing_status != listing.status:
                listing.set_status(listing_status, now)

            recipient = trade.counterparty_of(actor)
            self.outbox.push(
                recipient,
                transition.notification_type,
                render_message(
                    "trade_status", self.locale,
                    trade_id=trade_id,
                    status=label(target, self.locale),
                ),
                trade_id=trade_id,
            )
            self.store.save()

            self.logger.info("Trade status changed", extra={
                "trade_id": trade_id,
                "from_state": transition.from_state.value,
                "to_state": target.value,
                "actor": actor,
                "listing_id": listing.listing_id,
                "listing_status": listing.status.value,
            })
            return trade

    def accept(self, trade_id: int, actor: str) -> Trade:
        return self.change_status(trade_id, actor, TradeStatus.ACCEPTED)

    def progress(self, trade_id: int, actor: str) -> Trade:
        return self.change_status(trade_id, actor, TradeStatus.IN_PROGRESS)

    def complete(self, trade_id: int, actor: str) -> Trade:
        return self.change_status(trade_id, actor, TradeStatus.COMPLETED)

    def cancel(self, trade_id: int, actor: str) -> Trade:
        return self.change_status(trade_id, actor, TradeStatus.CANCELLED)

    # ========================================================================
    # EVALUATION AND REPORTS
    # ========================================================================

    @rejections_logged(LogStream.REPUTATION, correlate="trade-{trade_id}")
    def evaluate(self, trade_id: int, actor: str, is_favorable: bool) -> Trade:
        """
        Evaluate the counterparty of a completed trade.

        Raises:
            NotFoundError: unknown trade
            InvalidStateTransitionError: trade not completed
            UnauthorizedError: actor is not buyer or seller
            DuplicateEvaluationError: actor's side already evaluated
        """
        with LogContext(f"trade-{trade_id}"):
            trade = self.get_trade(trade_id)
            self.ledger.record_evaluation(trade, actor, is_favorable)
            self.store.save()
            return trade

    def file_report(self, reporter: str, reported: str, reason: str) -> AbuseReport:
        """See ModerationDesk.file_report."""
        return self.moderation.file_report(reporter, reported, reason)

    # ========================================================================
    # QUERIES
    # ========================================================================

    def get_trade(self, trade_id: int) -> Trade:
        """
        Raises:
            NotFoundError: unknown trade
        """
        trade = self.store.trades.get(trade_id)
        if trade is None:
            raise NotFoundError("trade", trade_id)
        return trade

    def trades_of(self, handle: str, status: Optional[TradeStatus] = None) -> List[Trade]:
        """Trades where `handle` is buyer or seller, ordered by id."""
        return sorted(
            (
                t for t in self.store.trades.values()
                if t.involves(handle) and (status is None or t.status == status)
            ),
            key=lambda t: t.trade_id,
        )

    def trades_on(self, listing_id: int) -> List[Trade]:
        return sorted(
            (t for t in self.store.trades.values() if t.listing_id == listing_id),
            key=lambda t: t.trade_id,
        )
