"""
Monotonic ID sequences, one per created-entity kind.

CRITICAL RULES:
1. next_id() returns a value strictly greater than every value it returned before
2. restore() can only raise a sequence, never lower it
3. Each kind has its own lock; concurrent callers never observe a duplicate

Accounts are keyed by handle and have no sequence.
"""

from enum import Enum
from typing import Dict, Mapping, Optional
import threading


class SequenceKind(str, Enum):
    LISTING = "listing"
    TRADE = "trade"
    NOTIFICATION = "notification"
    REPORT = "report"


# Last value "issued" on a fresh store; the first real id is default + 1.
DEFAULT_SEQUENCE_STARTS: Dict[SequenceKind, int] = {
    SequenceKind.LISTING: 1000,
    SequenceKind.TRADE: 2000,
    SequenceKind.NOTIFICATION: 3000,
    SequenceKind.REPORT: 4000,
}


class IdSequencer:
    """
    Thread-safe per-kind counters.

    USAGE:
        seq = IdSequencer()
        seq.next_id(SequenceKind.LISTING)   # 1001
        seq.next_id(SequenceKind.LISTING)   # 1002
        seq.current(SequenceKind.LISTING)   # 1002
    """

    def __init__(self, starts: Optional[Mapping[SequenceKind, int]] = None):
        self._starts: Dict[SequenceKind, int] = dict(DEFAULT_SEQUENCE_STARTS)
        if starts:
            self._starts.update(starts)

        self._values: Dict[SequenceKind, int] = dict(self._starts)
        self._locks: Dict[SequenceKind, threading.Lock] = {
            kind: threading.Lock() for kind in SequenceKind
        }

    def next_id(self, kind: SequenceKind) -> int:
        with self._locks[kind]:
            self._values[kind] += 1
            return self._values[kind]

    def current(self, kind: SequenceKind) -> int:
        """Last value issued (or the starting point if none yet)."""
        with self._locks[kind]:
            return self._values[kind]

    def default_for(self, kind: SequenceKind) -> int:
        return self._starts[kind]

    def restore(self, kind: SequenceKind, value: Optional[int]) -> int:
        """
        Raise a sequence to at least `value`.

        Missing or zero values (older snapshots) keep the current value.
        Returns the resulting value.
        """
        with self._locks[kind]:
            if value:
                self._values[kind] = max(self._values[kind], int(value))
            return self._values[kind]

    def reset(self) -> None:
        for kind in SequenceKind:
            with self._locks[kind]:
                self._values[kind] = self._starts[kind]

    def snapshot(self) -> Dict[str, int]:
        return {kind.value: self.current(kind) for kind in SequenceKind}
