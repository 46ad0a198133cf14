"""
Concurrent RSS feed fetching.

Every feed of a run is requested at once on a shared ``httpx.AsyncClient``
and the results are gathered with a settle-all barrier: one feed's network
error, bad status or unreadable body never affects another feed. A failed
feed comes back as a FeedFetchResult with no items and an error message.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging
import time

import httpx

from ..config import FetchConfig
from ..core.types import FeedSource, RawFeedItem
from ..exceptions import FeedFetchError
from ..utils.logging import log_event
from .extractor import extract_item
from .scanner import find_item_blocks

logger = logging.getLogger(__name__)


@dataclass
class FeedFetchResult:
    """Outcome of fetching one feed.

    Either items holds the extracted entries (possibly empty) and error is
    None, or error describes why the feed could not be read.

    Attributes:
        feed_id: Identifier of the fetched feed
        items: Extracted items, in document order
        error: Error message if the fetch failed, None otherwise
        duration_ms: Wall time spent on this feed
    """
    feed_id: int | None
    items: list[RawFeedItem] = field(default_factory=list)
    error: str | None = None
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_feed(xml: str, feed_url: str) -> list[RawFeedItem]:
    """Extract every usable item from a feed body.

    Each <item> block is extracted independently; a block that raises is
    logged and skipped.
    """
    items: list[RawFeedItem] = []
    for index, block in enumerate(find_item_blocks(xml)):
        try:
            item = extract_item(block, feed_url)
        except Exception as exc:  # noqa: BLE001
            log_event(
                logger,
                "Item extraction failed",
                level=logging.WARNING,
                event="item_extract_failed",
                feed_url=feed_url,
                item_index=index,
                error=f"{type(exc).__name__}: {exc}",
            )
            continue
        if item is not None:
            items.append(item)
    return items


async def fetch_feed(client: httpx.AsyncClient, feed: FeedSource) -> list[RawFeedItem]:
    """Fetch one feed and extract its items.

    Raises:
        FeedFetchError: On network errors, timeouts and non-2xx responses
    """
    try:
        resp = await client.get(feed.url)
    except httpx.HTTPError as exc:
        raise FeedFetchError(f"{type(exc).__name__}: {exc}") from exc
    if not resp.is_success:
        raise FeedFetchError(f"HTTP {resp.status_code} for {feed.url}")
    return parse_feed(resp.text, feed.url)


async def fetch_all_async(
    feeds: list[FeedSource],
    cfg: FetchConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[FeedFetchResult]:
    """Fetch all feeds concurrently and wait for every one to settle.

    Args:
        feeds: Feeds to fetch
        cfg: Fetch configuration (timeout, headers, concurrency)
        transport: Optional httpx transport, used by tests

    Returns:
        One FeedFetchResult per input feed, in input order
    """
    if not feeds:
        return []

    headers = {"User-Agent": cfg.user_agent, "Accept": cfg.accept}
    semaphore = asyncio.Semaphore(max(1, cfg.max_concurrency))

    async with httpx.AsyncClient(
        timeout=cfg.timeout_seconds,
        headers=headers,
        follow_redirects=True,
        trust_env=cfg.trust_env,
        transport=transport,
    ) as client:

        async def _fetch_single(feed: FeedSource) -> FeedFetchResult:
            async with semaphore:
                start = time.monotonic()
                try:
                    items = await fetch_feed(client, feed)
                except Exception as exc:  # noqa: BLE001
                    message = str(exc) if isinstance(exc, FeedFetchError) else f"{type(exc).__name__}: {exc}"
                    duration_ms = int((time.monotonic() - start) * 1000)
                    log_event(
                        logger,
                        "Feed fetch failed",
                        level=logging.WARNING,
                        event="feed_fetch_failed",
                        feed_id=feed.id,
                        feed_url=feed.url,
                        error=message,
                        duration_ms=duration_ms,
                    )
                    return FeedFetchResult(feed_id=feed.id, error=message, duration_ms=duration_ms)
            duration_ms = int((time.monotonic() - start) * 1000)
            log_event(
                logger,
                "Feed fetched",
                event="feed_fetched",
                feed_id=feed.id,
                feed_url=feed.url,
                item_count=len(items),
                duration_ms=duration_ms,
            )
            return FeedFetchResult(feed_id=feed.id, items=items, duration_ms=duration_ms)

        # gather() preserves input order, which keeps per-feed reconciliation order stable.
        tasks = [asyncio.create_task(_fetch_single(feed)) for feed in feeds]
        return await asyncio.gather(*tasks)


def fetch_all(
    feeds: list[FeedSource],
    cfg: FetchConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[FeedFetchResult]:
    """Synchronous entry point for ``fetch_all_async``."""
    return asyncio.run(fetch_all_async(feeds, cfg, transport=transport))
