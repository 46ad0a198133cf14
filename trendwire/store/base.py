"""
Abstract article store.

The ingestion and ranking core only talk to storage through this interface.
Each method is expected to be atomic on its own; ``replace_trending`` must
swap a category's whole trending set in one transaction.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from ..core.types import (
    Article,
    FeedSource,
    FetchItemLog,
    FetchLog,
    FetchRun,
    TrendingEntry,
)


class ArticleStore(ABC):
    """Storage primitives required by the ingestion and trending pipelines."""

    # Feeds

    @abstractmethod
    def add_feed(self, feed: FeedSource) -> FeedSource:
        """Insert a feed and return it with its id assigned."""
        raise NotImplementedError

    @abstractmethod
    def get_feed(self, feed_id: int) -> FeedSource | None:
        raise NotImplementedError

    @abstractmethod
    def list_feeds(self, active_only: bool = False) -> list[FeedSource]:
        raise NotImplementedError

    def list_active_feeds(self) -> list[FeedSource]:
        return self.list_feeds(active_only=True)

    @abstractmethod
    def touch_feed(self, feed_id: int, fetched_at: datetime) -> None:
        """Set the feed's last_fetched_at."""
        raise NotImplementedError

    # Articles

    @abstractmethod
    def find_duplicate(self, source_url: str, title: str) -> Article | None:
        """Return an article with the same source_url or the same title."""
        raise NotImplementedError

    @abstractmethod
    def slug_exists(self, slug: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def insert_article(self, article: Article) -> Article:
        """Insert an article and return it with its id assigned.

        Raises:
            DuplicateArticleError: If the slug or source_url is already taken
        """
        raise NotImplementedError

    @abstractmethod
    def recent_titles(self, category: str, limit: int) -> list[str]:
        """Titles of the most recently published articles in a category."""
        raise NotImplementedError

    @abstractmethod
    def recent_articles(self, category: str, limit: int, status: str = "published") -> list[Article]:
        """Most recent articles of a category with the given status, newest first."""
        raise NotImplementedError

    @abstractmethod
    def categories_with_articles(self, status: str = "published") -> list[str]:
        raise NotImplementedError

    # Audit trail

    @abstractmethod
    def add_fetch_log(self, log: FetchLog) -> None:
        raise NotImplementedError

    @abstractmethod
    def add_fetch_run(self, run: FetchRun) -> None:
        raise NotImplementedError

    @abstractmethod
    def add_fetch_item(self, item: FetchItemLog) -> None:
        raise NotImplementedError

    # Trending

    @abstractmethod
    def replace_trending(self, category: str, entries: list[TrendingEntry]) -> None:
        """Delete every trending entry of ``category`` and insert ``entries`` atomically."""
        raise NotImplementedError

    @abstractmethod
    def get_trending(self, category: str) -> list[TrendingEntry]:
        """Trending entries of a category ordered by rank."""
        raise NotImplementedError
