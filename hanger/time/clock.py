"""
Time abstraction layer for Hanger.

Every timestamp on an entity (created_at / updated_at) comes from an
injected clock, so lifecycle operations are deterministic under test.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone, timedelta
from typing import Optional
import pytz


DEFAULT_DISPLAY_TZ = "Asia/Seoul"


class Clock(ABC):
    """Abstract clock interface"""

    @abstractmethod
    def now(self) -> datetime:
        """Get current time (always UTC)"""
        pass

    def now_local(self, tz: str = DEFAULT_DISPLAY_TZ) -> datetime:
        """Get current time in specified timezone"""
        return to_local(self.now(), tz)


class SystemClock(Clock):
    """Wall clock used by the running marketplace."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class ManualClock(Clock):
    """Settable clock for tests and replays."""

    def __init__(self, start_time: Optional[datetime] = None):
        """
        Args:
            start_time: Initial time (must be timezone-aware). Defaults to now.
        """
        if start_time is None:
            start_time = datetime.now(timezone.utc)
        if start_time.tzinfo is None:
            raise ValueError("start_time must be timezone-aware (UTC)")

        self._current_time = start_time.astimezone(timezone.utc)

    def now(self) -> datetime:
        return self._current_time

    def advance(self, delta: timedelta = timedelta(seconds=1)) -> datetime:
        """Advance time by delta and return the new time."""
        self._current_time += delta
        return self._current_time

    def set_time(self, new_time: datetime) -> None:
        if new_time.tzinfo is None:
            raise ValueError("new_time must be timezone-aware (UTC)")
        self._current_time = new_time.astimezone(timezone.utc)


# ============================================================================
# Time normalization helpers
# ============================================================================

def utc_now() -> datetime:
    """Current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Ensure *dt* is timezone-aware and in UTC.

    - If naive (no tzinfo): attach UTC (assumes caller meant UTC).
    - If aware but not UTC: convert to UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_local(dt: datetime, tz: str = DEFAULT_DISPLAY_TZ) -> datetime:
    """Convert a stored UTC timestamp into a display timezone."""
    return ensure_utc(dt).astimezone(pytz.timezone(tz))
