"""
Snapshot persistence and recovery for the entity store.

ARCHITECTURE:
- One JSON snapshot holds every collection plus the sequence counters
- Atomic writes: temp file + fsync + rename, so a failed save never
  truncates the last good snapshot
- Previous snapshot copied to <name>.bak before each replace
- Timestamped backups with rotation
- SHA-256 checksum validation on read

FILE STRUCTURE:
data/
  ├─ store.json          (active snapshot)
  ├─ store.json.bak      (previous snapshot)
  └─ backups/
     ├─ store_20261018_120000_000000.json
     └─ ...

SNAPSHOT VERSIONS:
- 1: no verification index, no notification trade references
- 2: current
Absent fields decode to documented defaults, and sequences are never
restored below the highest id present in the decoded collections.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple
import hashlib
import json
import os
import shutil
from threading import Lock

from hanger.logging import get_logger, LogStream, log_performance
from hanger.state.entities import AbuseReport, Account, Listing, Notification, Trade
from hanger.state.errors import SnapshotCorruptionError
from hanger.state.sequencer import SequenceKind


SNAPSHOT_VERSION = 2


# ============================================================================
# SNAPSHOT DEFINITION
# ============================================================================

@dataclass
class StoreSnapshot:
    """Complete store state at one instant."""
    version: int = SNAPSHOT_VERSION
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    accounts: Dict[str, Account] = field(default_factory=dict)
    listings: Dict[int, Listing] = field(default_factory=dict)
    trades: Dict[int, Trade] = field(default_factory=dict)
    notifications: Dict[int, Notification] = field(default_factory=dict)
    reports: Dict[int, AbuseReport] = field(default_factory=dict)
    verification_ids: Set[str] = field(default_factory=set)

    # Last issued value per SequenceKind.value; missing kinds use defaults
    sequences: Dict[str, int] = field(default_factory=dict)

    checksum: Optional[str] = None

    def counts(self) -> Dict[str, int]:
        return {
            "accounts": len(self.accounts),
            "listings": len(self.listings),
            "trades": len(self.trades),
            "notifications": len(self.notifications),
            "reports": len(self.reports),
        }

    def highest_ids(self) -> Dict[SequenceKind, int]:
        """Largest id present per kind (0 when the collection is empty)."""
        return {
            SequenceKind.LISTING: max(self.listings, default=0),
            SequenceKind.TRADE: max(self.trades, default=0),
            SequenceKind.NOTIFICATION: max(self.notifications, default=0),
            SequenceKind.REPORT: max(self.reports, default=0),
        }

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "version": self.version,
            "timestamp": self.timestamp.isoformat(),
            "accounts": {handle: a.to_dict() for handle, a in self.accounts.items()},
            "listings": {str(k): v.to_dict() for k, v in self.listings.items()},
            "trades": {str(k): v.to_dict() for k, v in self.trades.items()},
            "notifications": {str(k): v.to_dict() for k, v in self.notifications.items()},
            "reports": {str(k): v.to_dict() for k, v in self.reports.items()},
            "verification_ids": sorted(self.verification_ids),
            "sequences": dict(self.sequences),
        }

        self.checksum = self._calculate_checksum(data)
        data["checksum"] = self.checksum
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoreSnapshot":
        """
        Decode and validate.

        Raises:
            SnapshotCorruptionError: checksum mismatch or undecodable content
        """
        if not isinstance(data, dict):
            raise SnapshotCorruptionError(f"Snapshot root must be an object, got {type(data).__name__}")

        data = dict(data)
        stored_checksum = data.pop("checksum", None)

        # Version 1 snapshots carry no checksum
        if stored_checksum is not None:
            calculated = cls._calculate_checksum(data)
            if stored_checksum != calculated:
                raise SnapshotCorruptionError(
                    f"Checksum mismatch: stored={stored_checksum}, calculated={calculated}"
                )

        try:
            timestamp = data.get("timestamp")
            taken_at = datetime.fromisoformat(timestamp) if timestamp else None

            # Records without created_at inherit the snapshot time
            def decode(entity_cls, key):
                return [entity_cls.from_dict(raw, taken_at) for raw in (data.get(key) or {}).values()]

            accounts = {a.handle: a for a in decode(Account, "accounts")}
            listings = {x.listing_id: x for x in decode(Listing, "listings")}
            trades = {x.trade_id: x for x in decode(Trade, "trades")}
            notifications = {x.notification_id: x for x in decode(Notification, "notifications")}
            reports = {x.report_id: x for x in decode(AbuseReport, "reports")}

            if "verification_ids" in data and data["verification_ids"] is not None:
                verification_ids = set(data["verification_ids"])
            else:
                verification_ids = {a.verification_id for a in accounts.values()}

            sequences = {
                str(k): int(v)
                for k, v in (data.get("sequences") or {}).items()
                if v is not None
            }

            return cls(
                version=int(data.get("version", 1)),
                timestamp=taken_at or datetime.now(timezone.utc),
                accounts=accounts,
                listings=listings,
                trades=trades,
                notifications=notifications,
                reports=reports,
                verification_ids=verification_ids,
                sequences=sequences,
                checksum=stored_checksum,
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise SnapshotCorruptionError(f"Undecodable snapshot: {type(e).__name__}: {e}") from e

    @staticmethod
    def _calculate_checksum(data: Dict[str, Any]) -> str:
        json_str = json.dumps(data, sort_keys=True)
        return hashlib.sha256(json_str.encode()).hexdigest()


# ============================================================================
# LOAD REPORT
# ============================================================================

class LoadStatus(Enum):
    """Snapshot load outcome."""
    LOADED = "LOADED"
    EMPTY = "EMPTY"                                  # No snapshot yet (first run)
    RECOVERED_FROM_BACKUP = "RECOVERED_FROM_BACKUP"  # Active snapshot missing, backup used
    FAILED = "FAILED"                                # Unreadable; store starts empty


@dataclass
class LoadReport:
    """Report of one load attempt, handed back to the caller."""
    status: LoadStatus
    source: Optional[Path] = None
    error: Optional[str] = None
    quarantined: Optional[Path] = None
    counts: Dict[str, int] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def ok(self) -> bool:
        return self.status != LoadStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "source": str(self.source) if self.source else None,
            "error": self.error,
            "quarantined": str(self.quarantined) if self.quarantined else None,
            "counts": dict(self.counts),
            "timestamp": self.timestamp.isoformat(),
        }


# ============================================================================
# SNAPSHOT PERSISTENCE MANAGER
# ============================================================================

class SnapshotPersistence:
    """
    Snapshot file manager.

    DESIGN:
    - Write to temporary file first (same directory, so rename is atomic)
    - Copy current snapshot to .bak
    - Atomic replace of the active snapshot
    - Rotate timestamped backups
    - Validate on read

    USAGE:
        persistence = SnapshotPersistence(Path("data/store.json"), backup_count=5)
        persistence.save_snapshot(snapshot)
        snapshot, report = persistence.load_latest()
    """

    def __init__(
        self,
        snapshot_path: Path = Path("data/store.json"),
        backup_count: int = 5,
        auto_backup: bool = True
    ):
        """
        Args:
            snapshot_path: Active snapshot file
            backup_count: Number of timestamped backups to keep (0 disables them)
            auto_backup: Keep .bak and timestamped copies on save
        """
        self.snapshot_path = Path(snapshot_path)
        self.backup_count = backup_count
        self.auto_backup = auto_backup

        self.logger = get_logger(LogStream.STORE)

        self.state_dir = self.snapshot_path.parent
        self.backup_file = self.snapshot_path.with_name(self.snapshot_path.name + ".bak")
        self.temp_file = self.snapshot_path.with_name(self.snapshot_path.name + ".tmp")
        self.backup_dir = self.state_dir / "backups"

        self._write_lock = Lock()

        self.state_dir.mkdir(parents=True, exist_ok=True)

        self.logger.info("SnapshotPersistence initialized", extra={
            "snapshot_path": str(self.snapshot_path),
            "backup_count": backup_count
        })

    # ========================================================================
    # SAVE OPERATIONS
    # ========================================================================

    @log_performance(LogStream.STORE)
    def save_snapshot(self, snapshot: StoreSnapshot) -> bool:
        """
        Save snapshot to disk.

        Returns:
            True if successful, False otherwise (the previous snapshot is untouched)
        """
        with self._write_lock:
            try:
                json_str = json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False)

                with open(self.temp_file, "w", encoding="utf-8") as f:
                    f.write(json_str)
                    f.flush()
                    os.fsync(f.fileno())

                if self.auto_backup and self.snapshot_path.exists():
                    shutil.copy2(self.snapshot_path, self.backup_file)

                os.replace(self.temp_file, self.snapshot_path)

                if self.auto_backup and self.backup_count > 0:
                    self._create_timestamped_backup(snapshot.timestamp)
                    self._rotate_backups()

                self.logger.debug("Snapshot saved", extra={
                    "timestamp": snapshot.timestamp.isoformat(),
                    **snapshot.counts(),
                })
                return True

            except Exception as e:
                self.logger.error(
                    "Failed to save snapshot",
                    extra={"error": str(e), "snapshot_path": str(self.snapshot_path)},
                    exc_info=True
                )
                self._discard_temp()
                return False

    def _discard_temp(self) -> None:
        try:
            if self.temp_file.exists():
                self.temp_file.unlink()
        except OSError as e:
            self.logger.warning(f"Failed to remove temp snapshot: {e}")

    def _create_timestamped_backup(self, timestamp: datetime) -> None:
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            stem = self.snapshot_path.stem
            backup_name = f"{stem}_{timestamp.strftime('%Y%m%d_%H%M%S_%f')}.json"
            shutil.copy2(self.snapshot_path, self.backup_dir / backup_name)
        except OSError as e:
            self.logger.warning(f"Failed to create timestamped backup: {e}")

    def _timestamped_backups(self) -> List[Path]:
        if not self.backup_dir.exists():
            return []
        # Names embed the snapshot timestamp, so lexical order is age order
        return sorted(
            self.backup_dir.glob(f"{self.snapshot_path.stem}_*.json"),
            key=lambda p: p.name,
            reverse=True
        )

    def _rotate_backups(self) -> None:
        try:
            for backup in self._timestamped_backups()[self.backup_count:]:
                backup.unlink()
                self.logger.debug(f"Deleted old backup: {backup.name}")
        except OSError as e:
            self.logger.warning(f"Failed to rotate backups: {e}")

    # ========================================================================
    # LOAD OPERATIONS
    # ========================================================================

    @log_performance(LogStream.STORE)
    def load_latest(self) -> Tuple[Optional[StoreSnapshot], LoadReport]:
        """
        Load the latest snapshot.

        Tries in order:
        1. Active snapshot. If it exists but is unreadable: FAILED, the file
           is moved aside so the next save cannot overwrite it, no fallback.
        2. .bak snapshot (only if the active one doesn't exist)
        3. Most recent timestamped backup (only if the active one doesn't exist)

        Never raises; the report says what happened.
        """
        if self.snapshot_path.exists():
            try:
                snapshot = self._load_file(self.snapshot_path)
            except (OSError, SnapshotCorruptionError) as e:
                quarantined = self._quarantine(self.snapshot_path)
                self.logger.error(
                    "Snapshot unreadable, starting from empty state",
                    extra={"error": str(e), "quarantined": str(quarantined) if quarantined else None}
                )
                return None, LoadReport(
                    status=LoadStatus.FAILED,
                    source=self.snapshot_path,
                    error=str(e),
                    quarantined=quarantined,
                )

            self.logger.info("Loaded snapshot", extra={
                "timestamp": snapshot.timestamp.isoformat(),
                **snapshot.counts(),
            })
            return snapshot, LoadReport(
                status=LoadStatus.LOADED,
                source=self.snapshot_path,
                counts=snapshot.counts(),
            )

        for candidate in [self.backup_file, *self._timestamped_backups()]:
            if not candidate.exists():
                continue
            try:
                snapshot = self._load_file(candidate)
            except (OSError, SnapshotCorruptionError) as e:
                self.logger.warning(f"Skipping unreadable backup {candidate.name}: {e}")
                continue

            self.logger.warning(
                f"Loaded from backup: {candidate.name} (active snapshot missing)",
                extra={"backup": candidate.name}
            )
            return snapshot, LoadReport(
                status=LoadStatus.RECOVERED_FROM_BACKUP,
                source=candidate,
                counts=snapshot.counts(),
            )

        self.logger.info("No snapshot found, starting empty")
        return None, LoadReport(status=LoadStatus.EMPTY)

    def _load_file(self, file_path: Path) -> StoreSnapshot:
        """
        Raises:
            OSError: file could not be read
            SnapshotCorruptionError: bad encoding, bad JSON or bad content
        """
        try:
            json_str = file_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise SnapshotCorruptionError(f"Invalid UTF-8 in {file_path.name}: {e}") from e
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise SnapshotCorruptionError(f"Invalid JSON in {file_path.name}: {e}") from e
        except (ValueError, RecursionError) as e:
            raise SnapshotCorruptionError(f"Undecodable JSON in {file_path.name}: {type(e).__name__}: {e}") from e
        try:
            return StoreSnapshot.from_dict(data)
        except RecursionError as e:
            raise SnapshotCorruptionError(f"Snapshot nested too deeply in {file_path.name}") from e

    def _quarantine(self, file_path: Path) -> Optional[Path]:
        stamp = datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S_%f')
        target = file_path.with_name(f"{file_path.name}.corrupt-{stamp}")
        try:
            os.replace(file_path, target)
            return target
        except OSError as e:
            self.logger.error(f"Failed to quarantine {file_path.name}: {e}")
            return None

    # ========================================================================
    # UTILITY METHODS
    # ========================================================================

    def has_saved_state(self) -> bool:
        return self.snapshot_path.exists()

    def clear_state(self) -> None:
        """Remove the active snapshot and its .bak (backups are kept)."""
        with self._write_lock:
            for path in (self.snapshot_path, self.backup_file):
                if path.exists():
                    path.unlink()
            self.logger.info("Cleared saved snapshot")
