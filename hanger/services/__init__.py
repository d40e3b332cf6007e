"""
Marketplace services.

Each service receives the EntityStore it operates on; none of them holds
global state. Every mutating operation ends with one store.save().
"""

from hanger.services.accounts import AccountRegistry
from hanger.services.listings import ListingService
from hanger.services.moderation import ModerationDesk
from hanger.services.notifications import NotificationOutbox
from hanger.services.reputation import ReputationLedger
from hanger.services.trades import TradeLifecycle


__all__ = [
    "AccountRegistry",
    "ListingService",
    "ModerationDesk",
    "NotificationOutbox",
    "ReputationLedger",
    "TradeLifecycle",
]
