"""
Trade state machine: the registry of legal transitions and the listing
status each one implies.

Lifecycle:
    REQUESTED → ACCEPTED → IN_PROGRESS → COMPLETED
    REQUESTED / ACCEPTED / IN_PROGRESS → CANCELLED

CRITICAL RULES:
1. All transitions must be pre-defined as valid
2. Invalid transitions raise InvalidStateTransitionError
3. Terminal states (COMPLETED, CANCELLED) cannot transition further
4. A COMPLETED listing is never moved to another status

Pure computation: side effects (notifications, persistence) live in
hanger.services.trades.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Set, Tuple

from hanger.state.entities import ListingStatus, NotificationType, TradeStatus
from hanger.state.errors import InvalidStateTransitionError


# ============================================================================
# TRANSITION DEFINITION
# ============================================================================

@dataclass(frozen=True)
class TradeTransition:
    """Immutable definition of a valid state transition."""
    from_state: TradeStatus
    to_state: TradeStatus
    listing_status: ListingStatus
    notification_type: NotificationType
    description: str = ""


# ============================================================================
# VALID TRANSITIONS REGISTRY
# ============================================================================

VALID_TRANSITIONS: Set[TradeTransition] = {
    TradeTransition(TradeStatus.REQUESTED, TradeStatus.ACCEPTED,
                    ListingStatus.IN_PROGRESS, NotificationType.TRADE_ACCEPTED, "Seller accepted"),
    TradeTransition(TradeStatus.ACCEPTED, TradeStatus.IN_PROGRESS,
                    ListingStatus.IN_PROGRESS, NotificationType.TRADE_IN_PROGRESS, "Hand-over under way"),
    TradeTransition(TradeStatus.IN_PROGRESS, TradeStatus.COMPLETED,
                    ListingStatus.COMPLETED, NotificationType.TRADE_COMPLETED, "Item handed over"),
    TradeTransition(TradeStatus.REQUESTED, TradeStatus.CANCELLED,
                    ListingStatus.ON_SALE, NotificationType.TRADE_CANCELLED, "Withdrawn before acceptance"),
    TradeTransition(TradeStatus.ACCEPTED, TradeStatus.CANCELLED,
                    ListingStatus.ON_SALE, NotificationType.TRADE_CANCELLED, "Called off after acceptance"),
    TradeTransition(TradeStatus.IN_PROGRESS, TradeStatus.CANCELLED,
                    ListingStatus.ON_SALE, NotificationType.TRADE_CANCELLED, "Called off mid hand-over"),
}

TERMINAL_STATES = frozenset({TradeStatus.COMPLETED, TradeStatus.CANCELLED})

_TRANSITION_MAP: Dict[Tuple[TradeStatus, TradeStatus], TradeTransition] = {
    (t.from_state, t.to_state): t for t in VALID_TRANSITIONS
}


# ============================================================================
# STATE MACHINE
# ============================================================================

class TradeStateMachine:
    """Validates trade transitions and resolves their listing side-effect."""

    @staticmethod
    def is_terminal(status: TradeStatus) -> bool:
        return status in TERMINAL_STATES

    @staticmethod
    def lookup(from_state: TradeStatus, to_state: TradeStatus) -> Optional[TradeTransition]:
        return _TRANSITION_MAP.get((from_state, to_state))

    @staticmethod
    def require(from_state: TradeStatus, to_state: TradeStatus) -> TradeTransition:
        """
        Return the transition or raise.

        Raises:
            InvalidStateTransitionError: terminal source or pair not in the registry
        """
        if from_state in TERMINAL_STATES:
            raise InvalidStateTransitionError(
                f"Cannot transition from terminal state {from_state.value}",
                from_state=from_state.value, to_state=to_state.value,
            )

        transition = _TRANSITION_MAP.get((from_state, to_state))
        if transition is None:
            allowed = ", ".join(sorted(s.value for s in TradeStateMachine.valid_targets(from_state)))
            raise InvalidStateTransitionError(
                f"Invalid: {from_state.value} → {to_state.value}. Allowed: [{allowed}]",
                from_state=from_state.value, to_state=to_state.value,
            )
        return transition

    @staticmethod
    def valid_targets(from_state: TradeStatus) -> Set[TradeStatus]:
        return {to for (f, to) in _TRANSITION_MAP if f == from_state}

    @staticmethod
    def resolve_listing_status(
        transition: TradeTransition,
        current: ListingStatus,
    ) -> ListingStatus:
        """Listing status after the transition; COMPLETED is sticky."""
        if current == ListingStatus.COMPLETED:
            return current
        return transition.listing_status
