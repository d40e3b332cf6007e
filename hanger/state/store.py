"""
Entity store: the five marketplace collections, their id sequences and
the verification-id index, behind one load/save interface.

ARCHITECTURE:
- EntityStore (ABC) owns the collections and the IdSequencer
- InMemoryEntityStore: no durability (tests, scratch sessions)
- FileEntityStore: one JSON snapshot via SnapshotPersistence

CRITICAL RULES:
1. Accessors return the live, mutable collections (no copy-on-read)
2. Sequences are never restored below the highest id already present
3. load() never raises; the LoadReport says what happened
4. save() raises PersistenceFailure; in-memory state is kept as-is

USAGE:
    store = FileEntityStore.from_config(config.store, clock=SystemClock())
    report = store.load()
    listing_id = store.next_listing_id()
    ...
    store.save()
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Mapping, Optional, Set

from hanger.logging import get_logger, LogStream
from hanger.recovery.persistence import (
    LoadReport,
    LoadStatus,
    SnapshotPersistence,
    StoreSnapshot,
)
from hanger.state.entities import AbuseReport, Account, Listing, Notification, Trade
from hanger.state.errors import PersistenceFailure
from hanger.state.sequencer import IdSequencer, SequenceKind
from hanger.time import Clock, SystemClock


class EntityStore(ABC):
    """Collections, sequences and the verification index."""

    def __init__(
        self,
        clock: Optional[Clock] = None,
        sequence_starts: Optional[Mapping[SequenceKind, int]] = None,
    ):
        self.clock = clock or SystemClock()
        self.logger = get_logger(LogStream.STORE)
        self._sequencer = IdSequencer(sequence_starts)

        self._accounts: Dict[str, Account] = {}
        self._listings: Dict[int, Listing] = {}
        self._trades: Dict[int, Trade] = {}
        self._notifications: Dict[int, Notification] = {}
        self._reports: Dict[int, AbuseReport] = {}
        self._verification_ids: Set[str] = set()

    # ========================================================================
    # COLLECTIONS
    # ========================================================================

    @property
    def accounts(self) -> Dict[str, Account]:
        return self._accounts

    @property
    def listings(self) -> Dict[int, Listing]:
        return self._listings

    @property
    def trades(self) -> Dict[int, Trade]:
        return self._trades

    @property
    def notifications(self) -> Dict[int, Notification]:
        return self._notifications

    @property
    def reports(self) -> Dict[int, AbuseReport]:
        return self._reports

    @property
    def verification_ids(self) -> Set[str]:
        return self._verification_ids

    # ========================================================================
    # SEQUENCES
    # ========================================================================

    def next_listing_id(self) -> int:
        return self._sequencer.next_id(SequenceKind.LISTING)

    def next_trade_id(self) -> int:
        return self._sequencer.next_id(SequenceKind.TRADE)

    def next_notification_id(self) -> int:
        return self._sequencer.next_id(SequenceKind.NOTIFICATION)

    def next_report_id(self) -> int:
        return self._sequencer.next_id(SequenceKind.REPORT)

    def sequence_value(self, kind: SequenceKind) -> int:
        """Last id issued for `kind`."""
        return self._sequencer.current(kind)

    # ========================================================================
    # SNAPSHOT CONVERSION
    # ========================================================================

    def to_snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            timestamp=self.clock.now(),
            accounts=dict(self._accounts),
            listings=dict(self._listings),
            trades=dict(self._trades),
            notifications=dict(self._notifications),
            reports=dict(self._reports),
            verification_ids=set(self._verification_ids),
            sequences=self._sequencer.snapshot(),
        )

    def apply_snapshot(self, snapshot: StoreSnapshot) -> None:
        """Replace all state with the snapshot's contents."""
        self.reset_to_defaults()

        self._accounts.update(snapshot.accounts)
        self._listings.update(snapshot.listings)
        self._trades.update(snapshot.trades)
        self._notifications.update(snapshot.notifications)
        self._reports.update(snapshot.reports)
        self._verification_ids.update(snapshot.verification_ids)

        highest = snapshot.highest_ids()
        for kind in SequenceKind:
            self._sequencer.restore(kind, snapshot.sequences.get(kind.value))
            self._sequencer.restore(kind, highest[kind])

    def reset_to_defaults(self) -> None:
        self._accounts.clear()
        self._listings.clear()
        self._trades.clear()
        self._notifications.clear()
        self._reports.clear()
        self._verification_ids.clear()
        self._sequencer.reset()

    def summary(self) -> Dict[str, int]:
        return {
            "accounts": len(self._accounts),
            "listings": len(self._listings),
            "trades": len(self._trades),
            "notifications": len(self._notifications),
            "reports": len(self._reports),
        }

    # ========================================================================
    # DURABILITY
    # ========================================================================

    @abstractmethod
    def load(self) -> LoadReport:
        """Replace in-memory state with the persisted state. Never raises."""

    @abstractmethod
    def save(self) -> None:
        """
        Persist the current state.

        Raises:
            PersistenceFailure: snapshot could not be written
        """


class InMemoryEntityStore(EntityStore):
    """Store without durability; save() only counts calls."""

    def __init__(
        self,
        clock: Optional[Clock] = None,
        sequence_starts: Optional[Mapping[SequenceKind, int]] = None,
    ):
        super().__init__(clock=clock, sequence_starts=sequence_starts)
        self.save_count = 0

    def load(self) -> LoadReport:
        return LoadReport(status=LoadStatus.EMPTY, counts=self.summary())

    def save(self) -> None:
        self.save_count += 1


class FileEntityStore(EntityStore):
    """Store persisted as a single checksummed JSON snapshot."""

    def __init__(
        self,
        persistence: SnapshotPersistence,
        clock: Optional[Clock] = None,
        sequence_starts: Optional[Mapping[SequenceKind, int]] = None,
    ):
        super().__init__(clock=clock, sequence_starts=sequence_starts)
        self.persistence = persistence

    @classmethod
    def from_config(cls, store_config, clock: Optional[Clock] = None) -> "FileEntityStore":
        """Build from a hanger.config.StoreConfig."""
        persistence = SnapshotPersistence(
            snapshot_path=store_config.snapshot_path,
            backup_count=store_config.backup_count,
            auto_backup=store_config.auto_backup,
        )
        return cls(persistence, clock=clock)

    @classmethod
    def at_path(cls, snapshot_path: Path, clock: Optional[Clock] = None, backup_count: int = 5) -> "FileEntityStore":
        return cls(SnapshotPersistence(snapshot_path, backup_count=backup_count), clock=clock)

    def load(self) -> LoadReport:
        snapshot, report = self.persistence.load_latest()

        if snapshot is None:
            self.reset_to_defaults()
        else:
            self.apply_snapshot(snapshot)

        self.logger.info("Store loaded", extra={
            "status": report.status.value,
            "sequences": self._sequencer.snapshot(),
            **self.summary(),
        })
        return report

    def save(self) -> None:
        if not self.persistence.save_snapshot(self.to_snapshot()):
            get_logger(LogStream.SYSTEM).error(
                "Persistence failure: snapshot not written, in-memory state retained",
                extra={"snapshot_path": str(self.persistence.snapshot_path)},
            )
            raise PersistenceFailure(
                f"Failed to write snapshot {self.persistence.snapshot_path}",
                snapshot_path=str(self.persistence.snapshot_path),
            )
