"""
Plain-text helpers for feed content.

Feed titles and descriptions arrive wrapped in CDATA, sprinkled with HTML
tags and a handful of entities. ``normalize`` reduces them to a single line
of plain text. The remaining helpers derive article fields from that text.
"""

from __future__ import annotations

import math
import re
import unicodedata


CDATA_RE = re.compile(r"<!\[CDATA\[([\s\S]*?)\]\]>")
TAG_RE = re.compile(r"<[^>]*>")
WHITESPACE_RE = re.compile(r"\s+")

# Decoded sequentially, in this order
ENTITIES = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&nbsp;", " "),
    ("&#x27;", "'"),
    ("&#x2F;", "/"),
)

WORDS_PER_MINUTE = 200


def normalize(raw: str | None) -> str | None:
    """Strip CDATA wrappers, tags and common entities, then collapse whitespace.

    Args:
        raw: Raw feed text, possibly None or empty

    Returns:
        The cleaned text; empty or None input is returned unchanged

    Examples:
        >>> normalize("<![CDATA[<b>Hello</b> &amp;  World]]>")
        'Hello & World'
    """
    if not raw:
        return raw
    text = CDATA_RE.sub(r"\1", raw)
    text = TAG_RE.sub("", text)
    for entity, char in ENTITIES:
        text = text.replace(entity, char)
    return WHITESPACE_RE.sub(" ", text).strip()


def slugify(text: str) -> str:
    """Convert text to URL-safe slug.

    Accented characters are folded to ASCII before non-alphanumeric runs
    are replaced with hyphens.

    Args:
        text: The text to slugify

    Returns:
        A lowercase, hyphenated slug
    """
    folded = unicodedata.normalize("NFKD", text or "").encode("ascii", "ignore").decode("ascii")
    slug = folded.lower()
    slug = re.sub(r"[^a-z0-9]+", "-", slug)
    slug = slug.strip("-")
    if not slug:
        slug = "untitled"
    return slug


def reading_time(text: str | None) -> int:
    """Estimated reading time in minutes, never less than one."""
    words = len((text or "").split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


def truncate(text: str, limit: int) -> str:
    """Cut text to ``limit`` characters, ending with an ellipsis when cut."""
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."
