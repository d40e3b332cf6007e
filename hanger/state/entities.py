"""
Marketplace entities and their lifecycle invariants.

ENTITIES:
- Account: keyed by a caller-chosen handle; carries the reputation counters
- Listing: sequence-issued id; soft-deleted, never physically removed
- Trade: sequence-issued id; one negotiation between a buyer and a listing owner
- Notification: sequence-issued id; immutable except for the read flag
- AbuseReport: sequence-issued id; immutable

RULES:
1. Every mutator takes an explicit updated_at; nothing reads the clock here
2. Completed or soft-deleted listings refuse ordinary edits
3. A trade's listing/buyer/seller references never change after creation
4. Evaluation flags are per side: None means "not yet evaluated"

Enumerations carry no display text; see hanger.state.labels.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


# ============================================================================
# ENUMS
# ============================================================================

class Role(str, Enum):
    MEMBER = "member"
    ADMIN = "admin"


class ListingStatus(str, Enum):
    """Visibility status of a listing."""
    ON_SALE = "on_sale"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ConditionLevel(str, Enum):
    """Physical condition of the listed item."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TradeStatus(str, Enum):
    """Canonical trade states."""
    REQUESTED = "requested"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TradeSide(str, Enum):
    BUYER = "buyer"
    SELLER = "seller"


class NotificationType(str, Enum):
    TRADE_REQUEST = "trade_request"
    TRADE_ACCEPTED = "trade_accepted"
    TRADE_IN_PROGRESS = "trade_in_progress"
    TRADE_COMPLETED = "trade_completed"
    TRADE_CANCELLED = "trade_cancelled"
    REPORT_RECEIVED = "report_received"


def _ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


# Stand-in creation time for records written before created_at was stored
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _created(data: Dict[str, Any], default: Optional[datetime]) -> datetime:
    return _parse_ts(data.get("created_at")) or default or EPOCH


# ============================================================================
# ACCOUNT
# ============================================================================

@dataclass
class AccountProfile:
    """Validated registration input. Format checks happen upstream."""
    handle: str
    display_name: str
    verification_id: str
    role: Role = Role.MEMBER


@dataclass
class Account:
    """A registered marketplace user."""
    handle: str
    display_name: str
    verification_id: str
    created_at: datetime
    updated_at: datetime
    role: Role = Role.MEMBER

    # Reputation counters; only evaluations move them
    favorable: int = 0
    unfavorable: int = 0

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def reputation_score(self) -> int:
        return self.favorable - self.unfavorable

    def apply_evaluation(self, is_favorable: bool, updated_at: datetime) -> None:
        if is_favorable:
            self.favorable += 1
        else:
            self.unfavorable += 1
        self.updated_at = updated_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "handle": self.handle,
            "display_name": self.display_name,
            "verification_id": self.verification_id,
            "role": self.role.value,
            "favorable": self.favorable,
            "unfavorable": self.unfavorable,
            "created_at": _ts(self.created_at),
            "updated_at": _ts(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_created_at: Optional[datetime] = None) -> "Account":
        created_at = _created(data, default_created_at)
        return cls(
            handle=data["handle"],
            display_name=data["display_name"],
            verification_id=data["verification_id"],
            role=Role(data.get("role", Role.MEMBER.value)),
            favorable=int(data.get("favorable", 0)),
            unfavorable=int(data.get("unfavorable", 0)),
            created_at=created_at,
            updated_at=_parse_ts(data.get("updated_at")) or created_at,
        )


# ============================================================================
# LISTING
# ============================================================================

@dataclass(frozen=True)
class ListingDraft:
    """Named fields for a new listing."""
    title: str
    category: str
    price: int
    location: str
    condition: ConditionLevel
    description: str = ""


@dataclass(frozen=True)
class ListingEdit:
    """Partial update; None means "leave unchanged"."""
    title: Optional[str] = None
    category: Optional[str] = None
    price: Optional[int] = None
    location: Optional[str] = None
    condition: Optional[ConditionLevel] = None
    description: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        return {
            name: value
            for name, value in (
                ("title", self.title),
                ("category", self.category),
                ("price", self.price),
                ("location", self.location),
                ("condition", self.condition),
                ("description", self.description),
            )
            if value is not None
        }


@dataclass
class Listing:
    """A sellable item posting owned by one account."""
    listing_id: int
    owner: str
    title: str
    category: str
    price: int
    location: str
    condition: ConditionLevel
    description: str
    created_at: datetime
    updated_at: datetime
    status: ListingStatus = ListingStatus.ON_SALE
    deleted: bool = False

    @property
    def is_locked(self) -> bool:
        """Completed or soft-deleted: no edits, no new trade requests."""
        return self.deleted or self.status == ListingStatus.COMPLETED

    @property
    def is_visible(self) -> bool:
        return not self.is_locked

    def apply_edit(self, edit: ListingEdit, updated_at: datetime) -> Dict[str, Any]:
        changes = edit.changes()
        for name, value in changes.items():
            setattr(self, name, value)
        if changes:
            self.updated_at = updated_at
        return changes

    def set_status(self, status: ListingStatus, updated_at: datetime) -> None:
        self.status = status
        self.updated_at = updated_at

    def mark_deleted(self, updated_at: datetime) -> None:
        self.deleted = True
        self.updated_at = updated_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "listing_id": self.listing_id,
            "owner": self.owner,
            "title": self.title,
            "category": self.category,
            "price": self.price,
            "location": self.location,
            "condition": self.condition.value,
            "description": self.description,
            "status": self.status.value,
            "deleted": self.deleted,
            "created_at": _ts(self.created_at),
            "updated_at": _ts(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_created_at: Optional[datetime] = None) -> "Listing":
        created_at = _created(data, default_created_at)
        return cls(
            listing_id=int(data["listing_id"]),
            owner=data["owner"],
            title=data["title"],
            category=data.get("category", ""),
            price=int(data.get("price", 0)),
            location=data.get("location", ""),
            condition=ConditionLevel(data.get("condition", ConditionLevel.MEDIUM.value)),
            description=data.get("description", ""),
            status=ListingStatus(data.get("status", ListingStatus.ON_SALE.value)),
            deleted=bool(data.get("deleted", False)),
            created_at=created_at,
            updated_at=_parse_ts(data.get("updated_at")) or created_at,
        )


# ============================================================================
# TRADE
# ============================================================================

@dataclass
class Trade:
    """One negotiation between a buyer and the listing's owner."""
    trade_id: int
    listing_id: int
    buyer: str
    seller: str
    created_at: datetime
    updated_at: datetime
    status: TradeStatus = TradeStatus.REQUESTED

    # None = side has not evaluated yet
    buyer_evaluation: Optional[bool] = None
    seller_evaluation: Optional[bool] = None

    def __post_init__(self):
        if self.buyer == self.seller:
            raise ValueError(f"Trade {self.trade_id}: buyer and seller must differ ({self.buyer})")

    @property
    def is_terminal(self) -> bool:
        return self.status in (TradeStatus.COMPLETED, TradeStatus.CANCELLED)

    def side_of(self, handle: str) -> Optional[TradeSide]:
        if handle == self.buyer:
            return TradeSide.BUYER
        if handle == self.seller:
            return TradeSide.SELLER
        return None

    def counterparty_of(self, handle: str) -> Optional[str]:
        side = self.side_of(handle)
        if side is None:
            return None
        return self.seller if side == TradeSide.BUYER else self.buyer

    def involves(self, handle: str) -> bool:
        return self.side_of(handle) is not None

    def evaluation_of(self, side: TradeSide) -> Optional[bool]:
        return self.buyer_evaluation if side == TradeSide.BUYER else self.seller_evaluation

    def record_evaluation(self, side: TradeSide, is_favorable: bool, updated_at: datetime) -> None:
        if side == TradeSide.BUYER:
            self.buyer_evaluation = is_favorable
        else:
            self.seller_evaluation = is_favorable
        self.updated_at = updated_at

    def set_status(self, status: TradeStatus, updated_at: datetime) -> None:
        self.status = status
        self.updated_at = updated_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trade_id": self.trade_id,
            "listing_id": self.listing_id,
            "buyer": self.buyer,
            "seller": self.seller,
            "status": self.status.value,
            "buyer_evaluation": self.buyer_evaluation,
            "seller_evaluation": self.seller_evaluation,
            "created_at": _ts(self.created_at),
            "updated_at": _ts(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_created_at: Optional[datetime] = None) -> "Trade":
        created_at = _created(data, default_created_at)
        return cls(
            trade_id=int(data["trade_id"]),
            listing_id=int(data["listing_id"]),
            buyer=data["buyer"],
            seller=data["seller"],
            status=TradeStatus(data.get("status", TradeStatus.REQUESTED.value)),
            buyer_evaluation=data.get("buyer_evaluation"),
            seller_evaluation=data.get("seller_evaluation"),
            created_at=created_at,
            updated_at=_parse_ts(data.get("updated_at")) or created_at,
        )


# ============================================================================
# NOTIFICATION
# ============================================================================

@dataclass
class Notification:
    """Outbox record addressed to exactly one recipient."""
    notification_id: int
    recipient: str
    type: NotificationType
    message: str
    created_at: datetime
    read: bool = False
    trade_id: Optional[int] = None

    def mark_read(self) -> None:
        self.read = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "notification_id": self.notification_id,
            "recipient": self.recipient,
            "type": self.type.value,
            "message": self.message,
            "read": self.read,
            "trade_id": self.trade_id,
            "created_at": _ts(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_created_at: Optional[datetime] = None) -> "Notification":
        trade_id = data.get("trade_id")
        if data.get("type"):
            kind = NotificationType(data["type"])
        else:
            # Untyped legacy records: trade-linked ones were requests, the rest reports
            kind = NotificationType.TRADE_REQUEST if trade_id is not None else NotificationType.REPORT_RECEIVED
        return cls(
            notification_id=int(data["notification_id"]),
            recipient=data["recipient"],
            type=kind,
            message=data.get("message", ""),
            read=bool(data.get("read", False)),
            trade_id=int(trade_id) if trade_id is not None else None,
            created_at=_created(data, default_created_at),
        )


# ============================================================================
# ABUSE REPORT
# ============================================================================

@dataclass(frozen=True)
class AbuseReport:
    """Complaint filed by one account against another."""
    report_id: int
    reporter: str
    reported: str
    reason: str
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "report_id": self.report_id,
            "reporter": self.reporter,
            "reported": self.reported,
            "reason": self.reason,
            "created_at": _ts(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_created_at: Optional[datetime] = None) -> "AbuseReport":
        return cls(
            report_id=int(data["report_id"]),
            reporter=data["reporter"],
            reported=data["reported"],
            reason=data.get("reason", ""),
            created_at=_created(data, default_created_at),
        )
