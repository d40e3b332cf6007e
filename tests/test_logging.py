"""
Tests for the logging package and the service audit decorator.

COVERAGE:
- setup_logging creates one file per stream and is idempotent
- JSONFormatter fields: extra, correlation id, exception, source
- LogContext scoping
- log_performance / rejections_logged re-raise after logging
- Rejected trade operations are logged under their listing or trade id
"""

import contextvars
import json
import logging
import sys

import pytest

from hanger.logging import (
    ConsoleFormatter,
    JSONFormatter,
    LogContext,
    LogStream,
    get_correlation_id,
    get_logger,
    log_performance,
    set_correlation_id,
    setup_logging,
)
from hanger.services.audit import rejections_logged
from hanger.state import (
    NotFoundError,
    PersistenceFailure,
    SelfTradeRejectedError,
    UnauthorizedError,
)


def make_record(msg="hello", level=logging.INFO, **extra):
    logger = get_logger(LogStream.TRADES)
    record = logger.makeRecord(logger.name, level, __file__, 10, msg, (), None, extra=extra)
    return record


class TestSetup:

    def test_one_file_per_stream(self, tmp_path):
        setup_logging(log_dir=tmp_path, console_level="CRITICAL")
        get_logger(LogStream.TRADES).info("Trade requested", extra={"trade_id": 2001})

        for stream in LogStream.ALL:
            assert (tmp_path / stream / f"{stream}.log").exists()

        line = (tmp_path / "trades" / "trades.log").read_text(encoding="utf-8").strip().splitlines()[-1]
        data = json.loads(line)
        assert data["message"] == "Trade requested"
        assert data["extra"]["trade_id"] == 2001

    def test_idempotent(self, tmp_path):
        setup_logging(log_dir=tmp_path / "a", console_level="CRITICAL")
        setup_logging(log_dir=tmp_path / "b", console_level="CRITICAL")

        assert not (tmp_path / "b").exists()
        assert len(get_logger(LogStream.STORE).handlers) == 1

    def test_get_logger_name(self):
        assert get_logger(LogStream.MODERATION).name == "hanger.moderation"


class TestFormatters:

    def test_json_extra_and_correlation(self):
        with LogContext("trade-2001"):
            record = make_record(listing_id=1001)

        data = json.loads(JSONFormatter().format(record))

        assert data["correlation_id"] == "trade-2001"
        assert data["extra"] == {"listing_id": 1001}
        assert data["logger"] == "hanger.trades"
        assert data["timestamp"].endswith("Z")
        assert "source" not in data

    def test_json_warning_has_source(self):
        data = json.loads(JSONFormatter().format(make_record(level=logging.WARNING)))
        assert data["source"]["line"] == 10

    def test_json_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = get_logger(LogStream.SYSTEM).makeRecord(
                "hanger.system", logging.ERROR, __file__, 1, "failed", (), sys.exc_info()
            )

        data = json.loads(JSONFormatter().format(record))

        assert data["exception"]["type"] == "RuntimeError"
        assert data["exception"]["message"] == "boom"

    def test_console_plain(self):
        with LogContext("trade-2001"):
            record = make_record("Trade accepted")

        line = ConsoleFormatter(use_colors=False).format(record)

        assert "[TRADES      ]" in line
        assert "[corr:trade-2001]" in line
        assert line.endswith("Trade accepted")


class TestCorrelation:

    def test_log_context_restores_previous(self):
        with LogContext("outer"):
            with LogContext("inner"):
                assert get_correlation_id() == "inner"
            assert get_correlation_id() == "outer"
        assert get_correlation_id() is None

    def test_log_context_generates_id(self):
        with LogContext() as cid:
            assert cid and get_correlation_id() == cid

    def test_set_correlation_id(self):
        def run():
            cid = set_correlation_id()
            return cid, get_correlation_id()

        cid, seen = contextvars.copy_context().run(run)

        assert cid == seen
        assert get_correlation_id() is None


class TestDecorators:

    def test_log_performance_reraises(self, caplog):
        @log_performance(LogStream.STORE)
        def explode():
            raise OSError("disk")

        with caplog.at_level(logging.DEBUG, logger="hanger.store"):
            with pytest.raises(OSError):
                explode()

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.error_type == "OSError"

    def test_log_performance_success(self, caplog):
        @log_performance(LogStream.STORE)
        def fine():
            return 42

        with caplog.at_level(logging.DEBUG, logger="hanger.store"):
            assert fine() == 42

        assert caplog.records[-1].success is True

    def test_rejections_logged_warns_and_reraises(self, caplog):
        @rejections_logged(LogStream.TRADES)
        def lookup():
            raise NotFoundError("trade", 2999)

        with caplog.at_level(logging.WARNING, logger="hanger.trades"):
            with pytest.raises(NotFoundError):
                lookup()

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.error_kind == "not_found"
        assert record.operation == "lookup"

    def test_rejections_logged_ignores_persistence_failure(self, caplog):
        @rejections_logged(LogStream.TRADES)
        def save():
            raise PersistenceFailure("disk full")

        with caplog.at_level(logging.WARNING, logger="hanger.trades"):
            with pytest.raises(PersistenceFailure):
                save()

        assert not [r for r in caplog.records if r.name == "hanger.trades"]

    def test_service_rejection_is_logged(self, caplog, lifecycle, members):
        with caplog.at_level(logging.WARNING, logger="hanger.trades"):
            with pytest.raises(NotFoundError):
                lifecycle.request_trade("bob", 4242)

        assert any(r.name == "hanger.trades" and r.error_kind == "not_found" for r in caplog.records)

    def test_rejection_logged_under_argument_correlation(self, caplog):
        @rejections_logged(LogStream.TRADES, correlate="trade-{trade_id}")
        def lookup(trade_id, actor=None):
            raise NotFoundError("trade", trade_id)

        with caplog.at_level(logging.WARNING, logger="hanger.trades"):
            with pytest.raises(NotFoundError):
                lookup(2999, actor="bob")

        assert caplog.records[-1].correlation_id == "trade-2999"
        assert get_correlation_id() is None

    def test_rejected_request_carries_listing_correlation(self, caplog, lifecycle, listing1001):
        with caplog.at_level(logging.WARNING, logger="hanger.trades"):
            with pytest.raises(SelfTradeRejectedError):
                lifecycle.request_trade("alice", 1001)

        record = [r for r in caplog.records if r.name == "hanger.trades"][-1]
        assert record.error_kind == "self_trade_rejected"
        assert record.correlation_id == "listing-1001"

    def test_rejected_status_change_carries_trade_correlation(self, caplog, lifecycle, listing1001):
        lifecycle.request_trade("bob", 1001)

        with caplog.at_level(logging.WARNING, logger="hanger.trades"):
            with pytest.raises(UnauthorizedError):
                lifecycle.accept(2001, "carol")

        record = [r for r in caplog.records if r.name == "hanger.trades"][-1]
        assert record.correlation_id == "trade-2001"
