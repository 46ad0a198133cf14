"""Run-level orchestration: one ingestion run and one ranking pass."""

from __future__ import annotations

import logging
import time
import uuid

import httpx

from .config import AppConfig
from .core.types import (
    RUN_ERROR,
    RUN_PARTIAL,
    RUN_SUCCESS,
    CategoryResult,
    FetchRun,
    IngestSummary,
    RankingSummary,
    utcnow,
)
from .events import RunObserver, notify
from .feeds.fetcher import fetch_all
from .ingest.reconciler import IngestionReconciler
from .llm.providers.base import LLMProvider
from .llm.providers.factory import create_provider
from .store.base import ArticleStore
from .trending.ranker import TrendingRanker
from .utils.logging import log_event

logger = logging.getLogger(__name__)


def new_run_id() -> str:
    return f"run-{utcnow().strftime('%Y%m%d%H%M%S')}-{uuid.uuid4().hex[:8]}"


def build_provider(cfg: AppConfig, llm_logger=None) -> LLMProvider:
    """Create the configured LLM provider."""
    return create_provider(cfg.provider, cfg.logging, llm_logger)


def run_fetch(
    store: ArticleStore,
    cfg: AppConfig,
    observer: RunObserver | None = None,
    trigger_type: str = "manual",
    triggered_by: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> IngestSummary:
    """Fetch every active feed and reconcile its items into the store.

    Feeds are downloaded concurrently and reconciled one after another. A
    failing feed is recorded in its FetchLog and the run carries on.
    """
    run_id = new_run_id()
    feeds = store.list_active_feeds()
    if not feeds:
        log_event(logger, "No active feeds configured", event="fetch_nothing_to_do", run_id=run_id)
        return IngestSummary(run_id=run_id, message="No active feeds configured")

    started_at = utcnow()
    start = time.monotonic()
    notify(observer, "on_start", "fetch", run_id=run_id, total_feeds=len(feeds))

    results = fetch_all(feeds, cfg.fetch, transport=transport)
    reconciler = IngestionReconciler(store, cfg.dedup, observer=observer)
    summary = IngestSummary(run_id=run_id)

    feeds_by_id = {feed.id: feed for feed in feeds}
    for result in results:
        feed = feeds_by_id.get(result.feed_id)
        if feed is None:
            continue
        try:
            if result.ok:
                fetch_log = reconciler.ingest_feed(feed, result.items, run_id)
            else:
                fetch_log = reconciler.record_failed_fetch(feed, result.error, run_id, result.duration_ms)
        except Exception as exc:  # noqa: BLE001
            message = f"{feed.name}: {type(exc).__name__}: {exc}"
            summary.errors.append(message)
            notify(observer, "on_error", "fetch", message, run_id=run_id, feed_id=feed.id)
            continue
        summary.feed_logs.append(fetch_log)
        summary.processed += 1
        summary.new += fetch_log.new_articles
        summary.skipped += fetch_log.skipped
        summary.errors.extend(f"{feed.name}: {detail}" for detail in fetch_log.error_details)

    run = FetchRun(
        run_id=run_id,
        trigger_type=trigger_type,
        triggered_by=triggered_by,
        total_feeds=len(feeds),
        total_items_fetched=sum(log.items_fetched for log in summary.feed_logs),
        total_new_articles=summary.new,
        total_skipped=summary.skipped,
        total_errors=len(summary.errors),
        overall_status=_overall_status([log.status for log in summary.feed_logs], len(feeds)),
        duration_ms=int((time.monotonic() - start) * 1000),
        started_at=started_at,
        completed_at=utcnow(),
    )
    try:
        store.add_fetch_run(run)
    except Exception as exc:  # noqa: BLE001
        summary.errors.append(f"Could not store fetch run: {exc}")
        logger.error("Could not store fetch run %s: %s", run_id, exc)
    summary.run = run
    summary.message = f"Fetched {len(feeds)} feeds: {summary.new} new, {summary.skipped} skipped"

    notify(
        observer,
        "on_complete",
        "fetch",
        run_id=run_id,
        processed=summary.processed,
        new=summary.new,
        skipped=summary.skipped,
        errors_count=len(summary.errors),
        status=run.overall_status,
        duration_ms=run.duration_ms,
    )
    return summary


def run_trending(
    store: ArticleStore,
    provider: LLMProvider | None,
    cfg: AppConfig,
    categories: list[str] | None = None,
    observer: RunObserver | None = None,
) -> RankingSummary:
    """Rank every category and report per-category outcomes.

    Categories default to those holding published articles. Each category is
    ranked on its own; a failure is reported in its CategoryResult and leaves
    that category's stored trending set as it was.
    """
    if categories is None:
        categories = store.categories_with_articles()
    if not categories:
        log_event(logger, "No categories to rank", event="trending_nothing_to_do")
        return RankingSummary(message="No categories with published articles")

    start = time.monotonic()
    ranker = TrendingRanker(store, provider, cfg.trending, observer=observer)
    summary = RankingSummary()
    for category in categories:
        category_start = time.monotonic()
        try:
            entries = ranker.rank(category)
        except Exception as exc:  # noqa: BLE001
            message = f"{category}: {exc}"
            summary.errors.append(message)
            summary.results.append(
                CategoryResult(
                    category=category,
                    duration_ms=int((time.monotonic() - category_start) * 1000),
                    error=str(exc),
                )
            )
            log_event(
                logger,
                "Trending ranking failed",
                level=logging.WARNING,
                event="trending_failed",
                category=category,
                error=str(exc),
            )
            continue
        summary.results.append(
            CategoryResult(
                category=category,
                trending=len(entries),
                duration_ms=int((time.monotonic() - category_start) * 1000),
                batch_id=entries[0].batch_id if entries else None,
            )
        )
    summary.categories_processed = len(categories)
    summary.duration_ms = int((time.monotonic() - start) * 1000)
    summary.message = (
        f"Ranked {summary.success_count} of {len(categories)} categories"
    )
    return summary


def _overall_status(statuses: list[str], total_feeds: int) -> str:
    if not statuses or (len(statuses) == total_feeds and all(s == RUN_ERROR for s in statuses)):
        return RUN_ERROR
    if len(statuses) < total_feeds or any(s in (RUN_ERROR, RUN_PARTIAL) for s in statuses):
        return RUN_PARTIAL
    return RUN_SUCCESS
