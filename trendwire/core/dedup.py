"""
Fuzzy title comparison for near-duplicate stories.

Exact duplicates (same source_url or same title) are caught by the store
lookup. This module adds the optional second pass: the same story syndicated
under a slightly different headline.
"""

from __future__ import annotations

from typing import Iterable

from rapidfuzz import fuzz


def find_similar_title(title: str, titles: Iterable[str], threshold: int = 92) -> str | None:
    """Return the first title similar to ``title``, or None.

    Uses rapidfuzz's ratio function which calculates the Levenshtein
    distance as a similarity percentage. Comparison is case-insensitive.

    Args:
        title: The title to check
        titles: Existing titles to compare against
        threshold: Minimum similarity (0-100) to consider titles duplicate

    Returns:
        The matching existing title, or None if nothing is similar enough
    """
    needle = title.lower()
    for existing in titles:
        if fuzz.ratio(needle, existing.lower()) >= threshold:
            return existing
    return None
