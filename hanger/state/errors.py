"""
Marketplace error taxonomy.

Business-rule violations are ordinary outcomes of user interaction: they
are raised to the immediate caller, never swallowed, and never terminate
the process. PersistenceFailure is the only kind that threatens
durability and is logged prominently where it happens.
"""

from typing import Optional


class MarketplaceError(Exception):
    """Base exception for all marketplace errors."""

    kind = "marketplace_error"

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message, **self.context}


class NotFoundError(MarketplaceError):
    """Referenced account, listing, trade or notification does not exist."""
    kind = "not_found"

    def __init__(self, entity: str, key, message: Optional[str] = None):
        super().__init__(message or f"{entity} {key} not found", entity=entity, key=key)
        self.entity = entity
        self.key = key


class UnauthorizedError(MarketplaceError):
    """Actor is not a legitimate party to the entity being mutated."""
    kind = "unauthorized"


class InvalidStateTransitionError(MarketplaceError):
    """Requested status change is not reachable from the current status."""
    kind = "invalid_state_transition"


class ListingUnavailableError(MarketplaceError):
    """Listing is soft-deleted or completed and refuses the operation."""
    kind = "listing_unavailable"


class SelfTradeRejectedError(MarketplaceError):
    """Buyer and listing owner are the same account."""
    kind = "self_trade_rejected"


class DuplicateEvaluationError(MarketplaceError):
    """The acting side has already evaluated this trade."""
    kind = "duplicate_evaluation"


class DuplicateRegistrationError(MarketplaceError):
    """A uniqueness constraint (handle, display name, verification id) would break."""
    kind = "duplicate_registration"

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(message or f"{field} is already registered", field=field)
        self.field = field


class ValidationError(MarketplaceError):
    """Input value rejected before touching the store (e.g. negative price)."""
    kind = "validation_error"


class PersistenceFailure(MarketplaceError):
    """Snapshot could not be read or written."""
    kind = "persistence_failure"


class SnapshotCorruptionError(ValueError):
    """Snapshot content failed decoding or checksum validation."""
    pass
