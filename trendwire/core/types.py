"""
Core data types for trendwire.

This module defines the data structures shared by every pipeline stage:
- FeedSource: A configured RSS feed with its category tag
- RawFeedItem: One parsed <item>, before deduplication
- Article: The persisted, de-duplicated story
- FetchLog / FetchRun / FetchItemLog: Append-only ingestion audit records
- TrendingEntry: One ranked pointer to an Article within a trending batch
- IngestSummary / CategoryResult / RankingSummary: Run results handed back to callers
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


STATUS_DRAFT = "draft"
STATUS_PUBLISHED = "published"
STATUS_ARCHIVED = "archived"

RUN_SUCCESS = "success"
RUN_PARTIAL = "partial"
RUN_ERROR = "error"

ACTION_NEW = "new"
ACTION_SKIPPED = "skipped"
ACTION_ERROR = "error"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class FeedSource:
    """A subscribable RSS feed.

    Attributes:
        id: Store identifier
        name: Display name
        url: Feed URL
        category: Category tag applied to every article from this feed
        is_active: Inactive feeds are not fetched
        last_fetched_at: Time of the last completed fetch for this feed
        fetch_interval_minutes: Scheduling hint for external triggers
    """
    id: int | None
    name: str
    url: str
    category: str
    is_active: bool = True
    last_fetched_at: datetime | None = None
    fetch_interval_minutes: int = 60


@dataclass
class RawFeedItem:
    """Fields extracted from one <item> block.

    Never persisted directly; promoted to an Article or discarded.
    """
    title: str
    description: str
    link: str
    image_url: str | None
    pub_date: datetime
    guid: str
    source_name: str


@dataclass
class Article:
    """A persisted news story.

    Attributes:
        id: Store identifier, None until inserted
        title: Normalized headline
        slug: Unique, URL-safe identifier derived from the title
        excerpt: Normalized description (or the title when none)
        content: Same as excerpt; full-text scraping is not performed
        category: Category inherited from the feed
        source_name: Publication name
        source_url: Canonical link of the story, unique across articles
        featured_image: Optional image URL
        status: "draft", "published" or "archived"
        featured: Editorial flag
        ai_generated: Whether the content was generated by an LLM
        ai_confidence: Optional confidence attached to AI-generated content
        view_count: Incremented by view tracking
        reading_time: Estimated minutes to read
        published_at: Publication time reported by the feed
        created_at: Insert time
        updated_at: Last modification time
    """
    id: int | None
    title: str
    slug: str
    excerpt: str
    content: str
    category: str
    source_name: str
    source_url: str
    featured_image: str | None = None
    status: str = STATUS_PUBLISHED
    featured: bool = False
    ai_generated: bool = False
    ai_confidence: float | None = None
    view_count: int = 0
    reading_time: int = 1
    published_at: datetime = field(default_factory=utcnow)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class FetchLog:
    """Audit record for one feed within one ingestion run."""
    run_id: str
    feed_id: int | None
    feed_name: str
    category: str
    items_fetched: int = 0
    new_articles: int = 0
    skipped: int = 0
    errors_count: int = 0
    error_details: list[str] = field(default_factory=list)
    duration_ms: int = 0
    status: str = RUN_SUCCESS
    started_at: datetime = field(default_factory=utcnow)
    completed_at: datetime | None = None


@dataclass
class FetchRun:
    """Audit record for one whole ingestion run."""
    run_id: str
    trigger_type: str = "manual"
    triggered_by: str | None = None
    total_feeds: int = 0
    total_items_fetched: int = 0
    total_new_articles: int = 0
    total_skipped: int = 0
    total_errors: int = 0
    overall_status: str = RUN_SUCCESS
    duration_ms: int = 0
    started_at: datetime = field(default_factory=utcnow)
    completed_at: datetime | None = None


@dataclass
class FetchItemLog:
    """Audit record for the decision taken on a single feed item."""
    run_id: str
    feed_id: int | None
    feed_name: str
    item_title: str
    item_url: str | None
    item_pub_date: datetime | None
    action: str
    skip_reason: str | None = None
    error_message: str | None = None
    article_id: int | None = None


@dataclass
class TrendingEntry:
    """A ranked article within one category's trending batch."""
    article_id: int
    category: str
    rank: int
    score: int
    reasoning: str
    batch_id: str
    expires_at: datetime
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class IngestSummary:
    """Result of one ingestion run returned to the caller.

    Attributes:
        run_id: Identifier shared by the run's FetchRun and FetchLogs
        processed: Number of feeds that were processed
        new: Articles inserted across all feeds
        skipped: Items recognized as duplicates
        errors: Human-readable error messages (per item or per feed)
        feed_logs: FetchLog of every processed feed
        run: The FetchRun roll-up, None when there was nothing to do
        message: Short status line
    """
    run_id: str
    processed: int = 0
    new: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    feed_logs: list[FetchLog] = field(default_factory=list)
    run: FetchRun | None = None
    message: str = ""


@dataclass
class CategoryResult:
    """Outcome of ranking one category."""
    category: str
    trending: int = 0
    duration_ms: int = 0
    batch_id: str | None = None
    error: str | None = None


@dataclass
class RankingSummary:
    """Result of a rank-all pass returned to the caller."""
    categories_processed: int = 0
    results: list[CategoryResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    duration_ms: int = 0
    message: str = ""

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.error is None)

    @property
    def fail_count(self) -> int:
        return sum(1 for r in self.results if r.error is not None)
