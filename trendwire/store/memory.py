"""In-process ArticleStore, used for tests and dry runs."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
import threading

from ..core.types import (
    Article,
    FeedSource,
    FetchItemLog,
    FetchLog,
    FetchRun,
    TrendingEntry,
)
from ..exceptions import DuplicateArticleError
from .base import ArticleStore


class MemoryStore(ArticleStore):
    """Keeps every record in lists guarded by a single lock.

    Returned objects are copies, so callers cannot mutate stored state.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._feeds: dict[int, FeedSource] = {}
        self._articles: dict[int, Article] = {}
        self._trending: dict[str, list[TrendingEntry]] = {}
        self.fetch_logs: list[FetchLog] = []
        self.fetch_runs: list[FetchRun] = []
        self.fetch_items: list[FetchItemLog] = []
        self._next_feed_id = 1
        self._next_article_id = 1

    def add_feed(self, feed: FeedSource) -> FeedSource:
        with self._lock:
            stored = replace(feed, id=self._next_feed_id)
            self._next_feed_id += 1
            self._feeds[stored.id] = stored
            return replace(stored)

    def get_feed(self, feed_id: int) -> FeedSource | None:
        with self._lock:
            feed = self._feeds.get(feed_id)
            return replace(feed) if feed else None

    def list_feeds(self, active_only: bool = False) -> list[FeedSource]:
        with self._lock:
            return [
                replace(feed)
                for feed in self._feeds.values()
                if feed.is_active or not active_only
            ]

    def touch_feed(self, feed_id: int, fetched_at: datetime) -> None:
        with self._lock:
            feed = self._feeds.get(feed_id)
            if feed is not None:
                feed.last_fetched_at = fetched_at

    def find_duplicate(self, source_url: str, title: str) -> Article | None:
        with self._lock:
            for article in self._articles.values():
                if article.source_url == source_url or article.title == title:
                    return replace(article)
            return None

    def slug_exists(self, slug: str) -> bool:
        with self._lock:
            return any(a.slug == slug for a in self._articles.values())

    def insert_article(self, article: Article) -> Article:
        with self._lock:
            for existing in self._articles.values():
                if existing.slug == article.slug:
                    raise DuplicateArticleError(f"Duplicate slug: {article.slug}")
                if existing.source_url == article.source_url:
                    raise DuplicateArticleError(f"Duplicate source_url: {article.source_url}")
            stored = replace(article, id=self._next_article_id)
            self._next_article_id += 1
            self._articles[stored.id] = stored
            return replace(stored)

    def all_articles(self) -> list[Article]:
        with self._lock:
            return [replace(a) for a in self._articles.values()]

    def recent_titles(self, category: str, limit: int) -> list[str]:
        return [a.title for a in self._recent(category, limit, status=None)]

    def recent_articles(self, category: str, limit: int, status: str = "published") -> list[Article]:
        return [replace(a) for a in self._recent(category, limit, status=status)]

    def _recent(self, category: str, limit: int, status: str | None) -> list[Article]:
        with self._lock:
            matching = [
                a
                for a in self._articles.values()
                if a.category == category and (status is None or a.status == status)
            ]
        matching.sort(key=lambda a: (a.published_at, a.id or 0), reverse=True)
        return matching[:limit]

    def categories_with_articles(self, status: str = "published") -> list[str]:
        with self._lock:
            return sorted({a.category for a in self._articles.values() if a.status == status})

    def add_fetch_log(self, log: FetchLog) -> None:
        with self._lock:
            self.fetch_logs.append(replace(log, error_details=list(log.error_details)))

    def add_fetch_run(self, run: FetchRun) -> None:
        with self._lock:
            self.fetch_runs.append(replace(run))

    def add_fetch_item(self, item: FetchItemLog) -> None:
        with self._lock:
            self.fetch_items.append(replace(item))

    def replace_trending(self, category: str, entries: list[TrendingEntry]) -> None:
        for entry in entries:
            if entry.category != category:
                raise ValueError(f"Entry for {entry.category!r} passed to replace {category!r}")
        with self._lock:
            self._trending[category] = [replace(e) for e in entries]

    def get_trending(self, category: str) -> list[TrendingEntry]:
        with self._lock:
            entries = [replace(e) for e in self._trending.get(category, [])]
        return sorted(entries, key=lambda e: e.rank)
