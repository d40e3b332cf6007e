"""
Display labels for marketplace enumerations.

Domain enums carry only their wire value; rendering layers look the human
text up here by locale. Unknown locales fall back to Korean, the
marketplace's primary language, and unknown members fall back to the raw
enum value.
"""

from enum import Enum
from typing import Dict, Type

from hanger.state.entities import (
    ConditionLevel,
    ListingStatus,
    NotificationType,
    Role,
    TradeStatus,
)


DEFAULT_LOCALE = "ko"

# locale -> enum type -> member; equal str values from different enums stay apart
LABELS: Dict[str, Dict[Type[Enum], Dict[Enum, str]]] = {
    "ko": {
        ListingStatus: {
            ListingStatus.ON_SALE: "판매중",
            ListingStatus.IN_PROGRESS: "거래중",
            ListingStatus.COMPLETED: "거래완료",
        },
        TradeStatus: {
            TradeStatus.REQUESTED: "요청됨",
            TradeStatus.ACCEPTED: "수락됨",
            TradeStatus.IN_PROGRESS: "진행중",
            TradeStatus.COMPLETED: "완료",
            TradeStatus.CANCELLED: "취소됨",
        },
        ConditionLevel: {
            ConditionLevel.HIGH: "상",
            ConditionLevel.MEDIUM: "중",
            ConditionLevel.LOW: "하",
        },
        NotificationType: {
            NotificationType.TRADE_REQUEST: "거래 요청",
            NotificationType.TRADE_ACCEPTED: "거래 수락",
            NotificationType.TRADE_IN_PROGRESS: "거래 진행",
            NotificationType.TRADE_COMPLETED: "거래 완료",
            NotificationType.TRADE_CANCELLED: "거래 취소",
            NotificationType.REPORT_RECEIVED: "신고 접수",
        },
        Role: {
            Role.MEMBER: "회원",
            Role.ADMIN: "관리자",
        },
    },
    "en": {
        ListingStatus: {
            ListingStatus.ON_SALE: "On sale",
            ListingStatus.IN_PROGRESS: "In progress",
            ListingStatus.COMPLETED: "Sold",
        },
        TradeStatus: {
            TradeStatus.REQUESTED: "Requested",
            TradeStatus.ACCEPTED: "Accepted",
            TradeStatus.IN_PROGRESS: "In progress",
            TradeStatus.COMPLETED: "Completed",
            TradeStatus.CANCELLED: "Cancelled",
        },
        ConditionLevel: {
            ConditionLevel.HIGH: "Like new",
            ConditionLevel.MEDIUM: "Used",
            ConditionLevel.LOW: "Worn",
        },
        NotificationType: {
            NotificationType.TRADE_REQUEST: "Trade request",
            NotificationType.TRADE_ACCEPTED: "Trade accepted",
            NotificationType.TRADE_IN_PROGRESS: "Trade in progress",
            NotificationType.TRADE_COMPLETED: "Trade completed",
            NotificationType.TRADE_CANCELLED: "Trade cancelled",
            NotificationType.REPORT_RECEIVED: "Report received",
        },
        Role: {
            Role.MEMBER: "Member",
            Role.ADMIN: "Admin",
        },
    },
}

# Korean condition grades as typed by users (상/중/하)
_CONDITION_INPUTS: Dict[str, ConditionLevel] = {
    text: level for level, text in LABELS["ko"][ConditionLevel].items()
}


def label(member: Enum, locale: str = DEFAULT_LOCALE) -> str:
    table = LABELS.get(locale) or LABELS[DEFAULT_LOCALE]
    return table.get(type(member), {}).get(member, str(member.value))


def parse_condition(text: str) -> ConditionLevel:
    """
    Map user input (상/중/하 or the enum value) to a ConditionLevel.

    Raises:
        ValueError: unrecognised grade
    """
    text = text.strip()
    if text in _CONDITION_INPUTS:
        return _CONDITION_INPUTS[text]
    return ConditionLevel(text.lower())


# Notification message templates, formatted with str.format fields
MESSAGES: Dict[str, Dict[str, str]] = {
    "ko": {
        "trade_request": "{buyer} 님이 [{listing_id}] {title} 거래를 요청했습니다. (거래 {trade_id})",
        "trade_status": "거래[{trade_id}] 상태가 {status}(으)로 변경되었습니다.",
        "report_received": "신고 접수: {reporter} -> {reported} ({reason})",
    },
    "en": {
        "trade_request": "{buyer} requested a trade on [{listing_id}] {title}. (trade {trade_id})",
        "trade_status": "Trade [{trade_id}] is now {status}.",
        "report_received": "Report received: {reporter} -> {reported} ({reason})",
    },
}


def render_message(key: str, locale: str = DEFAULT_LOCALE, **fields) -> str:
    table = MESSAGES.get(locale) or MESSAGES[DEFAULT_LOCALE]
    return table[key].format(**fields)
