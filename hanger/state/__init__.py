"""
Marketplace state: entities, the trade state machine, id sequences and
the error taxonomy.

The entity store lives in hanger.state.store and is imported from there
(it depends on hanger.recovery, which itself decodes these entities).
"""

from hanger.state.errors import (
    MarketplaceError,
    NotFoundError,
    UnauthorizedError,
    InvalidStateTransitionError,
    ListingUnavailableError,
    SelfTradeRejectedError,
    DuplicateEvaluationError,
    DuplicateRegistrationError,
    ValidationError,
    PersistenceFailure,
    SnapshotCorruptionError,
)
from hanger.state.entities import (
    Role,
    ListingStatus,
    ConditionLevel,
    TradeStatus,
    TradeSide,
    NotificationType,
    AccountProfile,
    Account,
    ListingDraft,
    ListingEdit,
    Listing,
    Trade,
    Notification,
    AbuseReport,
)
from hanger.state.labels import label, parse_condition, render_message
from hanger.state.sequencer import IdSequencer, SequenceKind, DEFAULT_SEQUENCE_STARTS
from hanger.state.trade_machine import (
    TradeStateMachine,
    TradeTransition,
    VALID_TRANSITIONS,
    TERMINAL_STATES,
)


__all__ = [
    "MarketplaceError",
    "NotFoundError",
    "UnauthorizedError",
    "InvalidStateTransitionError",
    "ListingUnavailableError",
    "SelfTradeRejectedError",
    "DuplicateEvaluationError",
    "DuplicateRegistrationError",
    "ValidationError",
    "PersistenceFailure",
    "SnapshotCorruptionError",
    "Role",
    "ListingStatus",
    "ConditionLevel",
    "TradeStatus",
    "TradeSide",
    "NotificationType",
    "AccountProfile",
    "Account",
    "ListingDraft",
    "ListingEdit",
    "Listing",
    "Trade",
    "Notification",
    "AbuseReport",
    "label",
    "parse_condition",
    "render_message",
    "IdSequencer",
    "SequenceKind",
    "DEFAULT_SEQUENCE_STARTS",
    "TradeStateMachine",
    "TradeTransition",
    "VALID_TRANSITIONS",
    "TERMINAL_STATES",
]
