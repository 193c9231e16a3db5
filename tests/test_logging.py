"""Tests for structured logging helpers."""

import json
import logging

from tv_screener.logging import (
    JSONFormatter,
    RequestContext,
    TimedOperation,
    request_id_ctx,
    setup_logging,
)


def make_record(message="hello", **extra):
    record = logging.LogRecord("tv_screener.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_request_context():
    formatter = JSONFormatter()

    with RequestContext(request_id="req-1", market="crypto", url="https://x/crypto/scan"):
        entry = json.loads(formatter.format(make_record(rows=5, exec_ms=12.5)))

    assert entry["message"] == "hello"
    assert entry["level"] == "INFO"
    assert entry["request_id"] == "req-1"
    assert entry["market"] == "crypto"
    assert entry["url"] == "https://x/crypto/scan"
    assert entry["rows"] == 5
    assert entry["exec_ms"] == 12.5


def test_request_context_is_reset_on_exit():
    with RequestContext(request_id="outer"):
        with RequestContext(request_id="inner"):
            assert request_id_ctx.get() == "inner"
        assert request_id_ctx.get() == "outer"
    assert request_id_ctx.get() is None


def test_timed_operation_records_duration(caplog):
    logger = logging.getLogger("tv_screener.test")

    with caplog.at_level(logging.DEBUG, logger="tv_screener.test"):
        with TimedOperation("scan", logger) as timer:
            pass

    assert timer.exec_ms is not None and timer.exec_ms >= 0
    assert "scan completed" in caplog.text


def test_timed_operation_logs_failure(caplog):
    logger = logging.getLogger("tv_screener.test")

    with caplog.at_level(logging.WARNING, logger="tv_screener.test"):
        try:
            with TimedOperation("scan", logger):
                raise RuntimeError("boom")
        except RuntimeError:
            pass

    record = caplog.records[-1]
    assert record.getMessage() == "scan failed"
    assert record.error_kind == "RuntimeError"


def test_setup_logging_json(restore_root_logging):
    setup_logging(level="DEBUG", format="json", force=True)

    root = restore_root_logging
    assert root.level == logging.DEBUG
    assert isinstance(root.handlers[0].formatter, JSONFormatter)


def test_setup_logging_is_idempotent_without_force(restore_root_logging):
    setup_logging(level="DEBUG", format="json", force=True)
    handler = restore_root_logging.handlers[0]

    setup_logging(level="ERROR", format="text")

    assert restore_root_logging.handlers[0] is handler
    assert restore_root_logging.level == logging.DEBUG
