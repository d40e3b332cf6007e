"""
Tests for the clock abstraction.
"""

from datetime import datetime, timedelta, timezone

import pytest

from hanger.time import ManualClock, SystemClock, ensure_utc, to_local


class TestManualClock:

    def test_advance(self, clock):
        start = clock.now()
        assert clock.advance(timedelta(minutes=5)) == start + timedelta(minutes=5)
        assert clock.now() == start + timedelta(minutes=5)

    def test_rejects_naive(self):
        with pytest.raises(ValueError):
            ManualClock(datetime(2026, 1, 1))

    def test_set_time_normalises_to_utc(self, clock):
        kst = timezone(timedelta(hours=9))
        clock.set_time(datetime(2026, 10, 18, 18, 0, tzinfo=kst))
        assert clock.now() == datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)
        assert clock.now().utcoffset() == timedelta(0)

    def test_now_local(self, clock):
        local = clock.now_local("Asia/Seoul")
        assert (local.hour, local.utcoffset()) == (18, timedelta(hours=9))


class TestHelpers:

    def test_system_clock_is_aware(self):
        assert SystemClock().now().tzinfo is not None

    def test_ensure_utc_naive(self):
        assert ensure_utc(datetime(2026, 1, 1)).tzinfo == timezone.utc

    def test_to_local(self):
        local = to_local(datetime(2026, 1, 1, 0, 0, tzinfo=timezone.utc), "Europe/Berlin")
        assert local.hour == 1
