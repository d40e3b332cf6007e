"""
Composition root.

Builds every marketplace component in dependency order and wires them
together. No component reaches for a global; tests build their own
Marketplace (or individual services) around an isolated store.

ORDER:
1. Config
2. Clock
3. Store (snapshot-file backend unless one is injected)
4. Outbox, ledger, moderation
5. Accounts, listings, trade lifecycle

bootstrap() then sets up logging, loads the snapshot and ensures the
default admin account exists.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from hanger.config import ConfigSchema, load_config
from hanger.logging import get_logger, LogStream, setup_logging
from hanger.recovery import LoadReport, LoadStatus
from hanger.services import (
    AccountRegistry,
    ListingService,
    ModerationDesk,
    NotificationOutbox,
    ReputationLedger,
    TradeLifecycle,
)
from hanger.state.store import EntityStore, FileEntityStore
from hanger.time import Clock, SystemClock


class Marketplace:
    """
    Wired marketplace.

    USAGE:
        market = Marketplace.from_config_dir(Path("config"))
        report = market.bootstrap()
        listing = market.listings.create_listing("alice", draft)
        trade = market.trades.request_trade("bob", listing.listing_id)
    """

    def __init__(
        self,
        config: Optional[ConfigSchema] = None,
        clock: Optional[Clock] = None,
        store: Optional[EntityStore] = None,
    ):
        self.config = config or ConfigSchema()
        self.clock = clock or SystemClock()
        self.store = store or FileEntityStore.from_config(self.config.store, clock=self.clock)

        locale = self.config.marketplace.locale.value
        admin_handle = self.config.admin.handle

        self.notifications = NotificationOutbox(self.store)
        self.reputation = ReputationLedger(self.store)
        self.moderation = ModerationDesk(self.store, self.notifications, admin_handle=admin_handle, locale=locale)

        self.accounts = AccountRegistry(self.store, self.config.admin)
        self.listings = ListingService(self.store)
        self.trades = TradeLifecycle(
            self.store,
            self.notifications,
            ledger=self.reputation,
            moderation=self.moderation,
            locale=locale,
        )

        self._load_report: Optional[LoadReport] = None

    @classmethod
    def from_config_dir(cls, config_dir: Path = Path("config"), clock: Optional[Clock] = None) -> "Marketplace":
        """
        Raises:
            ValueError: configuration invalid
        """
        return cls(load_config(config_dir), clock=clock)

    @property
    def load_report(self) -> Optional[LoadReport]:
        return self._load_report

    def bootstrap(self, configure_logging: bool = True) -> LoadReport:
        """
        Load persisted state and make sure the admin account exists.

        A FAILED load is reported, not raised: the store starts empty and
        the unreadable snapshot has been moved aside.

        Raises:
            RuntimeError: already bootstrapped
            PersistenceFailure: the default admin could not be saved
        """
        if self._load_report is not None:
            raise RuntimeError("Marketplace already bootstrapped")

        if configure_logging:
            log_cfg = self.config.logging
            setup_logging(
                log_dir=log_cfg.log_dir,
                log_level=log_cfg.log_level.value,
                console_level=log_cfg.console_level.value,
                json_logs=log_cfg.json_logs,
                max_bytes=log_cfg.max_bytes,
                backup_count=log_cfg.backup_count,
            )

        logger = get_logger(LogStream.SYSTEM)

        report = self.store.load()
        self._load_report = report
        if report.status == LoadStatus.FAILED:
            logger.error("Snapshot load failed; running with empty state", extra=report.to_dict())
        elif report.status == LoadStatus.RECOVERED_FROM_BACKUP:
            logger.warning("Snapshot recovered from backup", extra=report.to_dict())

        if self.accounts.ensure_default_admin() is not None:
            logger.info("Default admin provisioned", extra={"handle": self.config.admin.handle})

        logger.info("Marketplace ready", extra=self.summary())
        return report

    def summary(self) -> Dict[str, Any]:
        return {
            **self.store.summary(),
            "load_status": self._load_report.status.value if self._load_report else None,
        }
