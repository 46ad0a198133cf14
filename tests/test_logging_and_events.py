"""Tests for structured logging helpers and run observers."""

from __future__ import annotations

import json
import logging

from trendwire.config import LoggingConfig
from trendwire.events import LoggingObserver, RunObserver, notify
from trendwire.utils.logging import (
    log_event,
    redact_text,
    setup_llm_logger,
    setup_logging,
    truncate_text,
)


def test_setup_logging_writes_jsonl_records(tmp_path):
    logger = setup_logging(LoggingConfig(console=False, file=True, format="jsonl"), log_dir=tmp_path)
    log_event(logger, "Feed fetched", event="feed_fetched", feed_id=3, item_count=12)
    for handler in logger.handlers:
        handler.flush()

    logger.handlers = []
    logger.propagate = True

    lines = (tmp_path / "run.jsonl").read_text(encoding="utf-8").splitlines()
    record = json.loads(lines[-1])
    assert record["message"] == "Feed fetched"
    assert record["event"] == "feed_fetched"
    assert record["feed_id"] == 3
    assert record["item_count"] == 12
    assert record["logger"] == "trendwire"


def test_setup_llm_logger_disabled_returns_none(tmp_path):
    assert setup_llm_logger(LoggingConfig(llm_log_enabled=False), log_dir=tmp_path) is None


def test_log_event_ignores_missing_logger():
    log_event(None, "nothing happens", event="noop")


def test_redaction_modes():
    text = "See https://example.com/story for details"
    assert redact_text(text, "none") == text
    assert redact_text(text, "redact_content") == ""
    assert redact_text(text, "redact_urls") == "See [REDACTED_URL] for details"


def test_truncate_text_marks_cut():
    assert truncate_text("abc", 10) == "abc"
    assert truncate_text("abcdef", 3) == "abc...(truncated)"


class _Collect(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


def _collecting(name: str) -> tuple[logging.Logger, _Collect]:
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    handler = _Collect()
    logger.addHandler(handler)
    return logger, handler


def test_notify_contains_observer_failures():
    class Broken(RunObserver):
        def on_complete(self, kind, **fields):
            raise RuntimeError("observer down")

    logger, handler = _collecting("trendwire.events")
    try:
        notify(Broken(), "on_complete", "fetch", run_id="r1")
    finally:
        logger.removeHandler(handler)
    assert "observer down" in handler.records[0].getMessage()


def test_notify_without_observer_is_noop():
    notify(None, "on_start", "fetch")


def test_logging_observer_emits_structured_records():
    target, handler = _collecting("trendwire.test.runs")
    observer = LoggingObserver(target)
    observer.on_start("fetch", run_id="r1", total_feeds=2)
    observer.on_error("trending", "timeout", category="india")

    start, error = handler.records
    assert start.event == "fetch_start"
    assert start.total_feeds == 2
    assert error.levelno == logging.ERROR
    assert error.category == "india"
    assert error.error == "timeout"
