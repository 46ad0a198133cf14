"""Tests for the SQLAlchemy-backed store."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from trendwire.config import StoreConfig
from trendwire.core.types import Article, FeedSource, FetchLog, FetchRun, TrendingEntry
from trendwire.exceptions import DuplicateArticleError
from trendwire.store import MemoryStore, SqlStore, open_store


NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def store(tmp_path):
    return SqlStore(f"sqlite:///{tmp_path / 'data' / 'trendwire.db'}")


def _article(n: int, category: str = "india", **overrides) -> Article:
    values = dict(
        id=None,
        title=f"Story number {n}",
        slug=f"story-number-{n}",
        excerpt="excerpt",
        content="content",
        category=category,
        source_name="Example",
        source_url=f"https://example.com/{n}",
        published_at=NOW - timedelta(hours=n),
        created_at=NOW,
        updated_at=NOW,
    )
    values.update(overrides)
    return Article(**values)


def _entry(article_id: int, rank: int, category: str = "india", batch: str = "b1") -> TrendingEntry:
    return TrendingEntry(
        article_id=article_id,
        category=category,
        rank=rank,
        score=90,
        reasoning="hot",
        batch_id=batch,
        expires_at=NOW + timedelta(hours=4),
        created_at=NOW,
    )


def test_open_store_selects_backend(tmp_path):
    assert isinstance(open_store(StoreConfig(url="memory")), MemoryStore)
    assert isinstance(open_store(StoreConfig(url=f"sqlite:///{tmp_path / 'x.db'}")), SqlStore)


def test_feeds_round_trip(store):
    feed = store.add_feed(FeedSource(id=None, name="Hindu", url="https://thehindu.com/rss", category="india"))
    store.add_feed(FeedSource(id=None, name="Off", url="https://off.example.com/rss", category="india", is_active=False))

    assert feed.id is not None
    assert [f.name for f in store.list_feeds()] == ["Hindu", "Off"]
    assert [f.name for f in store.list_active_feeds()] == ["Hindu"]

    store.touch_feed(feed.id, NOW)
    assert store.get_feed(feed.id).last_fetched_at == NOW
    assert store.get_feed(9999) is None


def test_article_insert_and_duplicate_lookup(store):
    inserted = store.insert_article(_article(1))

    assert inserted.id is not None
    assert inserted.published_at == NOW - timedelta(hours=1)
    assert store.find_duplicate("https://example.com/1", "other").id == inserted.id
    assert store.find_duplicate("https://other", "Story number 1").id == inserted.id
    assert store.find_duplicate("https://other", "other") is None
    assert store.slug_exists("story-number-1")
    assert not store.slug_exists("story-number-2")


def test_unique_constraints_raise_duplicate_error(store):
    store.insert_article(_article(1))
    with pytest.raises(DuplicateArticleError):
        store.insert_article(_article(2, slug="story-number-1"))
    with pytest.raises(DuplicateArticleError):
        store.insert_article(_article(3, source_url="https://example.com/1"))


def test_recent_articles_are_newest_first_and_filtered(store):
    for n in (3, 1, 2):
        store.insert_article(_article(n))
    store.insert_article(_article(4, status="draft"))
    store.insert_article(_article(5, category="sports"))

    recent = store.recent_articles("india", 2)
    assert [a.title for a in recent] == ["Story number 1", "Story number 2"]
    assert store.recent_titles("india", 10)[0] == "Story number 1"
    assert store.categories_with_articles() == ["india", "sports"]


def test_replace_trending_swaps_whole_category(store):
    ids = [store.insert_article(_article(n)).id for n in range(1, 4)]
    sports_id = store.insert_article(_article(9, category="sports")).id
    store.replace_trending("india", [_entry(ids[0], 1), _entry(ids[1], 2)])
    store.replace_trending("sports", [_entry(sports_id, 1, category="sports")])

    store.replace_trending("india", [_entry(ids[2], 1, batch="b2")])

    india = store.get_trending("india")
    assert [(e.article_id, e.batch_id) for e in india] == [(ids[2], "b2")]
    assert india[0].expires_at == NOW + timedelta(hours=4)
    assert [e.article_id for e in store.get_trending("sports")] == [sports_id]


def test_replace_trending_rejects_foreign_entries(store):
    store.replace_trending("india", [_entry(1, 1)])
    with pytest.raises(ValueError):
        store.replace_trending("india", [_entry(2, 1, category="sports")])
    assert [e.article_id for e in store.get_trending("india")] == [1]


def test_audit_records_are_stored(store):
    store.add_fetch_log(
        FetchLog(run_id="r1", feed_id=1, feed_name="Hindu", category="india", error_details=["a: b"], started_at=NOW)
    )
    store.add_fetch_run(FetchRun(run_id="r1", total_feeds=1, started_at=NOW, completed_at=NOW))

    runs = store.list_fetch_runs()
    assert [r.run_id for r in runs] == ["r1"]
    assert runs[0].started_at == NOW
