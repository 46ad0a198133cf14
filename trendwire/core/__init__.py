"""
Core domain models and text helpers.

This package contains data types and logic that is independent of any
specific pipeline stage.
"""

from .dedup import find_similar_title
from .text import normalize, reading_time, slugify, truncate
from .types import (
    Article,
    CategoryResult,
    FeedSource,
    FetchItemLog,
    FetchLog,
    FetchRun,
    IngestSummary,
    RankingSummary,
    RawFeedItem,
    TrendingEntry,
)

__all__ = [
    "Article",
    "CategoryResult",
    "FeedSource",
    "FetchItemLog",
    "FetchLog",
    "FetchRun",
    "IngestSummary",
    "RankingSummary",
    "RawFeedItem",
    "TrendingEntry",
    "find_similar_title",
    "normalize",
    "reading_time",
    "slugify",
    "truncate",
]
