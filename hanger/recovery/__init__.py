"""
Recovery system package.

COMPONENTS:
- StoreSnapshot: versioned, checksummed image of the whole entity store
- SnapshotPersistence: atomic snapshot writes with backup rotation
- LoadReport / LoadStatus: outcome of a startup load, returned to the caller

USAGE:
    from hanger.recovery import SnapshotPersistence

    persistence = SnapshotPersistence(Path("data/store.json"), backup_count=5)
    snapshot, report = persistence.load_latest()
    if report.status == LoadStatus.FAILED:
        logger.error("Starting from empty state", extra=report.to_dict())
"""

from hanger.recovery.persistence import (
    StoreSnapshot,
    SnapshotPersistence,
    LoadReport,
    LoadStatus,
    SNAPSHOT_VERSION,
)


__all__ = [
    "StoreSnapshot",
    "SnapshotPersistence",
    "LoadReport",
    "LoadStatus",
    "SNAPSHOT_VERSION",
]
