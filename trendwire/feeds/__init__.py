"""
RSS feed fetching and item extraction.

This package handles concurrent HTTP fetching of feeds, tolerant
scanning of their XML, and field extraction per item.
"""

from .extractor import extract_item, parse_google_news_description, source_name_for
from .fetcher import FeedFetchResult, fetch_all, fetch_all_async, parse_feed
from .scanner import extract_tag, find_item_blocks, find_tag_attrs

__all__ = [
    "FeedFetchResult",
    "extract_item",
    "extract_tag",
    "fetch_all",
    "fetch_all_async",
    "find_item_blocks",
    "find_tag_attrs",
    "parse_feed",
    "parse_google_news_description",
    "source_name_for",
]
