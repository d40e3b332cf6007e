# tests/conftest.py
"""
Shared fixtures.

Every test gets its own store; nothing is shared between tests. Timestamps
come from a ManualClock pinned to 2026-10-18 09:00 UTC.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from hanger.config import ConfigSchema, LoggingConfig, StoreConfig
from hanger.logging import reset_logging
from hanger.services import (
    AccountRegistry,
    ListingService,
    ModerationDesk,
    NotificationOutbox,
    ReputationLedger,
    TradeLifecycle,
)
from hanger.state import AccountProfile, ConditionLevel, ListingDraft
from hanger.state.store import FileEntityStore, InMemoryEntityStore
from hanger.time import ManualClock


START = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)


# -------------------------
# Infrastructure
# -------------------------

@pytest.fixture(autouse=True)
def _isolated_logging():
    """Undo any setup_logging() a test performed."""
    yield
    reset_logging()


@pytest.fixture
def clock():
    return ManualClock(START)


@pytest.fixture
def store(clock):
    return InMemoryEntityStore(clock=clock)


@pytest.fixture
def snapshot_path(tmp_path):
    return tmp_path / "data" / "store.json"


@pytest.fixture
def file_store(snapshot_path, clock):
    return FileEntityStore.at_path(snapshot_path, clock=clock)


@pytest.fixture
def app_config(tmp_path):
    return ConfigSchema(
        store=StoreConfig(data_dir=tmp_path / "data"),
        logging=LoggingConfig(log_dir=tmp_path / "logs"),
    )


# -------------------------
# Services over the in-memory store
# -------------------------

@pytest.fixture
def outbox(store):
    return NotificationOutbox(store)


@pytest.fixture
def ledger(store):
    return ReputationLedger(store)


@pytest.fixture
def moderation(store, outbox):
    return ModerationDesk(store, outbox, admin_handle="admin")


@pytest.fixture
def registry(store):
    return AccountRegistry(store)


@pytest.fixture
def listings(store):
    return ListingService(store)


@pytest.fixture
def lifecycle(store, outbox, ledger, moderation):
    return TradeLifecycle(store, outbox, ledger=ledger, moderation=moderation)


# -------------------------
# Seed data
# -------------------------

@pytest.fixture
def make_draft():
    def _make(title="리바이스 청바지", price=15000, description="한 번 입었습니다", **overrides):
        fields = dict(
            title=title,
            category="하의",
            price=price,
            location="신촌역",
            condition=ConditionLevel.HIGH,
            description=description,
        )
        fields.update(overrides)
        return ListingDraft(**fields)
    return _make


@pytest.fixture
def members(registry):
    """admin, alice, bob and carol registered, in that order."""
    registry.ensure_default_admin()
    for handle, name, vid in (
        ("alice", "앨리스", "990101-2000001"),
        ("bob", "밥", "980202-1000002"),
        ("carol", "캐롤", "970303-2000003"),
    ):
        registry.register(AccountProfile(handle=handle, display_name=name, verification_id=vid))
    return registry


@pytest.fixture
def listing1001(members, listings, make_draft):
    """First listing in the store, owned by alice."""
    return listings.create_listing("alice", make_draft())
