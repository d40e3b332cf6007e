"""
Tests for display labels, condition parsing and message templates.
"""

import pytest

from hanger.state import (
    ConditionLevel,
    ListingStatus,
    NotificationType,
    TradeStatus,
    label,
    parse_condition,
    render_message,
)
from hanger.state.labels import LABELS


class TestLabels:

    def test_korean_default(self):
        assert label(ListingStatus.ON_SALE) == "판매중"
        assert label(TradeStatus.CANCELLED) == "취소됨"

    def test_english(self):
        assert label(ListingStatus.COMPLETED, "en") == "Sold"

    def test_statuses_sharing_a_value_keep_their_own_text(self):
        assert label(ListingStatus.COMPLETED) == "거래완료"
        assert label(TradeStatus.COMPLETED) == "완료"
        assert label(ListingStatus.IN_PROGRESS) == "거래중"
        assert label(TradeStatus.IN_PROGRESS) == "진행중"
        assert label(TradeStatus.COMPLETED, "en") == "Completed"

    def test_unknown_locale_falls_back(self):
        assert label(TradeStatus.ACCEPTED, "fr") == "수락됨"

    @pytest.mark.parametrize("locale", ["ko", "en"])
    def test_every_member_labelled(self, locale):
        for enum_type in (ListingStatus, TradeStatus, ConditionLevel, NotificationType):
            for member in enum_type:
                assert member in LABELS[locale][enum_type]


class TestParseCondition:

    @pytest.mark.parametrize("text,expected", [
        ("상", ConditionLevel.HIGH),
        (" 중 ", ConditionLevel.MEDIUM),
        ("하", ConditionLevel.LOW),
        ("HIGH", ConditionLevel.HIGH),
        ("low", ConditionLevel.LOW),
    ])
    def test_accepted_inputs(self, text, expected):
        assert parse_condition(text) == expected

    def test_unknown(self):
        with pytest.raises(ValueError):
            parse_condition("최상")


class TestMessages:

    def test_status_message_uses_label(self):
        text = render_message("trade_status", "ko", trade_id=2001, status=label(TradeStatus.ACCEPTED))
        assert text == "거래[2001] 상태가 수락됨(으)로 변경되었습니다."

    def test_english_report(self):
        text = render_message("report_received", "en", reporter="bob", reported="alice", reason="no-show")
        assert text == "Report received: bob -> alice (no-show)"
