"""
Reconcile fetched feed items against the article store.

For each item the reconciler decides new / skipped / error, inserts new
articles under a unique slug and records an audit trail: one FetchItemLog
per item and one FetchLog per feed.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from ..config import DedupConfig
from ..core.dedup import find_similar_title
from ..core.text import reading_time, slugify
from ..core.types import (
    ACTION_ERROR,
    ACTION_NEW,
    ACTION_SKIPPED,
    RUN_ERROR,
    RUN_PARTIAL,
    RUN_SUCCESS,
    STATUS_PUBLISHED,
    Article,
    FeedSource,
    FetchItemLog,
    FetchLog,
    RawFeedItem,
    utcnow,
)
from ..events import RunObserver, notify
from ..store.base import ArticleStore
from ..utils.logging import log_event

logger = logging.getLogger(__name__)


class IngestionReconciler:
    """Turns RawFeedItems into Articles, one feed at a time.

    Items are processed sequentially. A failure on one item is recorded and
    never stops the rest of the feed.
    """

    def __init__(
        self,
        store: ArticleStore,
        dedup_cfg: DedupConfig | None = None,
        observer: RunObserver | None = None,
        clock: Callable = utcnow,
    ):
        self.store = store
        self.dedup_cfg = dedup_cfg or DedupConfig()
        self.observer = observer
        self.clock = clock

    def ingest_feed(self, feed: FeedSource, items: list[RawFeedItem], run_id: str) -> FetchLog:
        """Insert the new items of one feed and return its FetchLog."""
        started_at = self.clock()
        start = time.monotonic()
        new_count = 0
        skipped = 0
        error_details: list[str] = []
        recent_titles = self._recent_titles(feed)

        for item in items:
            try:
                reason = self._skip_reason(item, recent_titles)
                if reason:
                    skipped += 1
                    self._record_item(run_id, feed, item, ACTION_SKIPPED, skip_reason=reason)
                    continue
                article = self.store.insert_article(self._build_article(feed, item))
                new_count += 1
                if recent_titles is not None:
                    recent_titles.insert(0, article.title)
                self._record_item(run_id, feed, item, ACTION_NEW, article_id=article.id)
            except Exception as exc:  # noqa: BLE001
                message = f"{item.title}: {exc}"
                error_details.append(message)
                log_event(
                    logger,
                    "Item ingest failed",
                    level=logging.WARNING,
                    event="item_ingest_failed",
                    run_id=run_id,
                    feed_id=feed.id,
                    item_url=item.link,
                    error=str(exc),
                )
                self._record_item(run_id, feed, item, ACTION_ERROR, error_message=str(exc))

        self.store.touch_feed(feed.id, self.clock())

        errors_count = len(error_details)
        if errors_count and errors_count == len(items):
            status = RUN_ERROR
        elif errors_count:
            status = RUN_PARTIAL
        else:
            status = RUN_SUCCESS

        fetch_log = FetchLog(
            run_id=run_id,
            feed_id=feed.id,
            feed_name=feed.name,
            category=feed.category,
            items_fetched=len(items),
            new_articles=new_count,
            skipped=skipped,
            errors_count=errors_count,
            error_details=error_details,
            duration_ms=int((time.monotonic() - start) * 1000),
            status=status,
            started_at=started_at,
            completed_at=self.clock(),
        )
        self.store.add_fetch_log(fetch_log)
        log_event(
            logger,
            "Feed reconciled",
            event="feed_reconciled",
            run_id=run_id,
            feed_id=feed.id,
            feed_name=feed.name,
            items_fetched=len(items),
            new_articles=new_count,
            skipped=skipped,
            errors_count=errors_count,
            status=status,
        )
        return fetch_log

    def record_failed_fetch(
        self,
        feed: FeedSource,
        error: str,
        run_id: str,
        duration_ms: int = 0,
    ) -> FetchLog:
        """Store the FetchLog of a feed whose download or parse failed."""
        now = self.clock()
        fetch_log = FetchLog(
            run_id=run_id,
            feed_id=feed.id,
            feed_name=feed.name,
            category=feed.category,
            errors_count=1,
            error_details=[error],
            duration_ms=duration_ms,
            status=RUN_ERROR,
            started_at=now,
            completed_at=now,
        )
        self.store.add_fetch_log(fetch_log)
        notify(self.observer, "on_error", "fetch", error, run_id=run_id, feed_id=feed.id, feed_name=feed.name)
        return fetch_log

    def unique_slug(self, title: str) -> str:
        """Slug for ``title``; a taken slug gets an epoch-millisecond suffix."""
        slug = slugify(title)
        if not self.store.slug_exists(slug):
            return slug
        base = f"{slug}-{int(self.clock().timestamp() * 1000)}"
        candidate = base
        counter = 2
        while self.store.slug_exists(candidate):
            candidate = f"{base}-{counter}"
            counter += 1
        return candidate

    def _recent_titles(self, feed: FeedSource) -> list[str] | None:
        if not self.dedup_cfg.fuzzy_titles:
            return None
        return self.store.recent_titles(feed.category, self.dedup_cfg.fuzzy_window)

    def _skip_reason(self, item: RawFeedItem, recent_titles: list[str] | None) -> str | None:
        existing = self.store.find_duplicate(item.link, item.title)
        if existing is not None:
            if existing.source_url == item.link:
                return "duplicate source_url"
            return "duplicate title"
        if recent_titles:
            match = find_similar_title(
                item.title,
                recent_titles,
                threshold=self.dedup_cfg.title_similarity_threshold,
            )
            if match is not None:
                return f"similar title: {match}"
        return None

    def _build_article(self, feed: FeedSource, item: RawFeedItem) -> Article:
        body = item.description or item.title
        now = self.clock()
        return Article(
            id=None,
            title=item.title,
            slug=self.unique_slug(item.title),
            excerpt=body,
            content=body,
            category=feed.category,
            source_name=item.source_name,
            source_url=item.link,
            featured_image=item.image_url,
            status=STATUS_PUBLISHED,
            reading_time=reading_time(body),
            published_at=item.pub_date,
            created_at=now,
            updated_at=now,
        )

    def _record_item(
        self,
        run_id: str,
        feed: FeedSource,
        item: RawFeedItem,
        action: str,
        skip_reason: str | None = None,
        error_message: str | None = None,
        article_id: int | None = None,
    ) -> None:
        record = FetchItemLog(
            run_id=run_id,
            feed_id=feed.id,
            feed_name=feed.name,
            item_title=item.title,
            item_url=item.link,
            item_pub_date=item.pub_date,
            action=action,
            skip_reason=skip_reason,
            error_message=error_message,
            article_id=article_id,
        )
        try:
            self.store.add_fetch_item(record)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Could not store item log for %s: %s", item.link, exc)
        notify(
            self.observer,
            "on_item",
            "fetch",
            run_id=run_id,
            feed_id=feed.id,
            action=action,
            item_url=item.link,
            skip_reason=skip_reason,
            error=error_message,
        )
