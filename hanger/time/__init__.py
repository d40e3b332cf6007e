"""Time abstraction layer"""

from .clock import (
    Clock,
    SystemClock,
    ManualClock,
    utc_now,
    ensure_utc,
    to_local,
    DEFAULT_DISPLAY_TZ,
)

__all__ = [
    'Clock',
    'SystemClock',
    'ManualClock',
    'utc_now',
    'ensure_utc',
    'to_local',
    'DEFAULT_DISPLAY_TZ',
]
