"""Tests for concurrent feed fetching with failure isolation."""

from __future__ import annotations

import asyncio

import httpx

from trendwire.config import FetchConfig
from trendwire.core.types import FeedSource
from trendwire.feeds.fetcher import fetch_all


GOOD_FEED = """<?xml version="1.0"?>
<rss><channel>
<item><title>First headline of the day</title><link>https://good.example.com/1</link></item>
<item><title>Second headline of the day</title><link>https://good.example.com/2</link></item>
</channel></rss>"""


def _feed(feed_id: int, url: str) -> FeedSource:
    return FeedSource(id=feed_id, name=f"Feed {feed_id}", url=url, category="india")


def _handler(request: httpx.Request) -> httpx.Response:
    host = request.url.host
    if host == "good.example.com":
        return httpx.Response(200, text=GOOD_FEED)
    if host == "missing.example.com":
        return httpx.Response(404, text="not found")
    if host == "down.example.com":
        raise httpx.ConnectError("connection refused", request=request)
    return httpx.Response(200, text="<html>not a feed</html>")


def test_fetch_all_isolates_failures():
    feeds = [
        _feed(1, "https://good.example.com/rss"),
        _feed(2, "https://missing.example.com/rss"),
        _feed(3, "https://down.example.com/rss"),
        _feed(4, "https://html.example.com/rss"),
    ]
    results = fetch_all(feeds, FetchConfig(), transport=httpx.MockTransport(_handler))

    assert [r.feed_id for r in results] == [1, 2, 3, 4]

    good, missing, down, html = results
    assert good.ok
    assert [item.link for item in good.items] == [
        "https://good.example.com/1",
        "https://good.example.com/2",
    ]
    assert not missing.ok
    assert "404" in missing.error
    assert missing.items == []
    assert not down.ok
    assert "ConnectError" in down.error
    assert html.ok
    assert html.items == []


def test_fetch_all_sends_reader_headers():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text=GOOD_FEED)

    cfg = FetchConfig(user_agent="test-agent/1.0")
    fetch_all([_feed(1, "https://good.example.com/rss")], cfg, transport=httpx.MockTransport(handler))

    assert seen[0].headers["User-Agent"] == "test-agent/1.0"
    assert "application/rss+xml" in seen[0].headers["Accept"]


def test_fetch_all_with_no_feeds():
    assert fetch_all([], FetchConfig()) == []


def test_duration_excludes_time_waiting_for_a_slot():
    async def slow_handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0.2)
        return httpx.Response(200, text=GOOD_FEED)

    feeds = [_feed(i, f"https://good.example.com/{i}") for i in range(1, 4)]
    results = fetch_all(feeds, FetchConfig(max_concurrency=1), transport=httpx.MockTransport(slow_handler))

    assert all(r.ok for r in results)
    # Serialized by the semaphore; each feed still only reports its own request time
    assert max(r.duration_ms for r in results) < 390
