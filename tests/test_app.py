"""
Tests for the composition root and the main entrypoint.

COVERAGE:
- bootstrap() loads the snapshot and provisions the admin once
- State and sequences survive a restart through the composed services
- Unreadable snapshot -> FAILED report, empty store, process continues
- main() exit codes
"""

import json

import pytest

from hanger.app import Marketplace
from hanger.config import Locale, MarketplaceConfig
from hanger.recovery import LoadStatus
from hanger.state import AccountProfile, NotificationType, TradeStatus
from hanger.state.store import InMemoryEntityStore

import main as entrypoint


def restart(app_config, clock):
    market = Marketplace(app_config, clock=clock)
    report = market.bootstrap(configure_logging=False)
    return market, report


class TestBootstrap:

    def test_first_start(self, app_config, clock):
        market, report = restart(app_config, clock)

        assert report.status == LoadStatus.EMPTY
        assert market.accounts.get("admin").is_admin
        assert app_config.store.snapshot_path.exists()
        assert market.summary()["load_status"] == "EMPTY"

    def test_second_start_loads_without_recreating_admin(self, app_config, clock):
        restart(app_config, clock)

        market, report = restart(app_config, clock)

        assert report.status == LoadStatus.LOADED
        assert market.store.summary()["accounts"] == 1

    def test_bootstrap_twice_refused(self, app_config, clock):
        market, _ = restart(app_config, clock)

        with pytest.raises(RuntimeError):
            market.bootstrap(configure_logging=False)

    def test_injected_store(self, app_config, clock):
        store = InMemoryEntityStore(clock=clock)
        market = Marketplace(app_config, clock=clock, store=store)

        market.bootstrap(configure_logging=False)

        assert "admin" in store.accounts
        assert not app_config.store.snapshot_path.exists()

    def test_bootstrap_sets_up_logging(self, app_config, clock):
        Marketplace(app_config, clock=clock).bootstrap()

        assert (app_config.logging.log_dir / "system" / "system.log").exists()

    def test_corrupt_snapshot_reported(self, app_config, clock):
        path = app_config.store.snapshot_path
        path.parent.mkdir(parents=True)
        path.write_text("{", encoding="utf-8")

        market, report = restart(app_config, clock)

        assert report.status == LoadStatus.FAILED
        assert market.load_report is report
        assert market.accounts.get("admin").is_admin


class TestEndToEnd:

    def test_trade_across_restart(self, app_config, clock, make_draft):
        market, _ = restart(app_config, clock)
        market.accounts.register(AccountProfile("alice", "앨리스", "990101-2000001"))
        market.accounts.register(AccountProfile("bob", "밥", "980202-1000002"))
        listing = market.listings.create_listing("alice", make_draft())
        trade = market.trades.request_trade("bob", listing.listing_id)
        market.trades.accept(trade.trade_id, "alice")

        market, _ = restart(app_config, clock)
        market.trades.progress(2001, "bob")
        market.trades.complete(2001, "alice")
        market.trades.evaluate(2001, "bob", True)

        assert market.accounts.get("alice").favorable == 1
        assert market.listings.create_listing("alice", make_draft(title="모자")).listing_id == 1002
        assert market.trades.get_trade(2001).status == TradeStatus.COMPLETED

    def test_report_reaches_configured_admin(self, app_config, clock):
        app_config.admin.handle = "root"
        market, _ = restart(app_config, clock)
        market.accounts.register(AccountProfile("alice", "앨리스", "990101-2000001"))
        market.accounts.register(AccountProfile("bob", "밥", "980202-1000002"))

        market.trades.file_report("alice", "bob", "no-show")

        inbox = market.notifications.for_recipient("root")
        assert [n.type for n in inbox] == [NotificationType.REPORT_RECEIVED]

    def test_english_locale_messages(self, app_config, clock, make_draft):
        app_config.marketplace = MarketplaceConfig(locale=Locale.EN)
        market, _ = restart(app_config, clock)
        market.accounts.register(AccountProfile("alice", "Alice", "990101-2000001"))
        market.accounts.register(AccountProfile("bob", "Bob", "980202-1000002"))
        listing = market.listings.create_listing("alice", make_draft(title="Jeans"))

        market.trades.request_trade("bob", listing.listing_id)

        assert market.notifications.for_recipient("alice")[0].message == (
            "Bob requested a trade on [1001] Jeans. (trade 2001)"
        )


class TestMain:

    @pytest.fixture
    def config_file(self, tmp_path, app_config):
        path = tmp_path / "config" / "config.yaml"
        path.parent.mkdir()
        app_config.to_yaml(path)
        return path

    def test_success(self, config_file, app_config, capsys):
        assert entrypoint.main(["--config", str(config_file), "--summary"]) == 0

        out = json.loads(capsys.readouterr().out)
        assert out["load"]["status"] == "EMPTY"
        assert out["store"]["accounts"] == 1

    def test_invalid_config(self, config_file):
        config_file.write_text("store:\n  backup_count: -3\n", encoding="utf-8")

        assert entrypoint.main(["--config", str(config_file)]) == 2

    def test_corrupt_snapshot_exit_code(self, config_file, app_config):
        path = app_config.store.snapshot_path
        path.parent.mkdir(parents=True)
        path.write_text("garbage", encoding="utf-8")

        assert entrypoint.main(["--config", str(config_file)]) == 1
