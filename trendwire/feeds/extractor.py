"""
Field extraction for a single RSS <item>.

``extract_item`` turns one item fragment into a RawFeedItem, or None when
the item is unusable. Google News search feeds get special handling: their
real headline, link and publication are embedded as HTML inside
<description>.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import logging
import re
from urllib.parse import urlparse

from dateutil import parser as date_parser

from ..core.text import normalize, truncate
from ..core.types import RawFeedItem, utcnow
from .scanner import extract_tag, find_tag_attrs

logger = logging.getLogger(__name__)


MIN_TITLE_CHARS = 10
MAX_DESCRIPTION_CHARS = 500

GOOGLE_NEWS_HOST = "news.google.com"
GOOGLE_NEWS_SOURCE = "News.google.com"

KNOWN_SOURCES = (
    ("hindustantimes.com", "Hindustan Times"),
    ("thehindu.com", "The Hindu"),
    (GOOGLE_NEWS_HOST, GOOGLE_NEWS_SOURCE),
    ("oneindia.com", "OneIndia"),
)

ANCHOR_RE = re.compile(r"""<a\s+href=["']([^"']+)["'][^>]*>([^<]+)</a>""", re.IGNORECASE)
FONT_RE = re.compile(r"<font[^>]*>([^<]+)</font>", re.IGNORECASE)
IMG_RE = re.compile(r"""<img[^>]+src=["']([^"']+)["']""", re.IGNORECASE)
IMAGE_EXT_RE = re.compile(r"\.(jpg|jpeg|png|gif|webp)", re.IGNORECASE)

# Offsets for zone abbreviations seen in RFC-822 dates that dateutil does not know
TZINFOS = {
    "EST": timezone(timedelta(hours=-5)),
    "EDT": timezone(timedelta(hours=-4)),
    "CST": timezone(timedelta(hours=-6)),
    "CDT": timezone(timedelta(hours=-5)),
    "MST": timezone(timedelta(hours=-7)),
    "MDT": timezone(timedelta(hours=-6)),
    "PST": timezone(timedelta(hours=-8)),
    "PDT": timezone(timedelta(hours=-7)),
    "GMT": timezone.utc,
    "UTC": timezone.utc,
    "BST": timezone(timedelta(hours=1)),
    "IST": timezone(timedelta(hours=5, minutes=30)),
}


def extract_item(block: str, feed_url: str) -> RawFeedItem | None:
    """Extract a RawFeedItem from one <item> fragment.

    Args:
        block: The inner text of an <item> element
        feed_url: URL of the feed the item came from

    Returns:
        The extracted item, or None if the title or link is missing or the
        normalized title is shorter than 10 characters
    """
    title = extract_tag(block, "title")
    link = extract_tag(block, "link")
    description = extract_tag(block, "description")
    pub_date_raw = extract_tag(block, "pubDate")
    guid = extract_tag(block, "guid") or link
    source_name = source_name_for(feed_url)

    if _is_google_news(feed_url) and description:
        decoded = parse_google_news_description(description)
        if decoded:
            title = decoded["title"]
            link = decoded["link"]
            source_name = decoded["source"]
            # The real snippet is not published in this dialect
            description = decoded["title"]
        else:
            description = normalize(description)

    if not title or not link:
        return None

    clean_title = normalize(title)
    if len(clean_title) < MIN_TITLE_CHARS:
        return None

    clean_description = normalize(description) if description else ""
    if not clean_description:
        clean_description = clean_title
    link = _clean_url(link)

    return RawFeedItem(
        title=clean_title,
        description=truncate(clean_description, MAX_DESCRIPTION_CHARS),
        link=link,
        image_url=extract_image_url(block),
        pub_date=parse_pub_date(pub_date_raw),
        guid=_clean_url(guid) if guid else link,
        source_name=source_name,
    )


def parse_google_news_description(html: str) -> dict[str, str] | None:
    """Decode the anchor/font pair Google News embeds in <description>.

    Format: ``<a href="URL" target="_blank">Title</a> <font color="#6f6f6f">Source</font>``.
    The HTML may arrive entity-escaped rather than CDATA-wrapped.

    Returns:
        Dict with title, link and source, or None if no anchor is present
    """
    if "&lt;a" in html.lower():
        html = html.replace("&lt;", "<").replace("&gt;", ">").replace("&quot;", '"')
    link_match = ANCHOR_RE.search(html)
    if not link_match:
        return None
    source_match = FONT_RE.search(html)
    return {
        "title": normalize(link_match.group(2)) or "",
        "link": _clean_url(link_match.group(1)),
        "source": normalize(source_match.group(1)) if source_match else GOOGLE_NEWS_SOURCE,
    }


def extract_image_url(block: str) -> str | None:
    """Find an image for the item.

    Priority: media:content, media:thumbnail, an enclosure typed image/*,
    an enclosure whose URL looks like an image file, then the first <img>
    inside the description.
    """
    for name in ("media:content", "media:thumbnail"):
        for attrs in find_tag_attrs(block, name):
            if attrs.get("url"):
                return _clean_url(attrs["url"])

    enclosures = [attrs for attrs in find_tag_attrs(block, "enclosure") if attrs.get("url")]
    for attrs in enclosures:
        if attrs.get("type", "").lower().startswith("image/"):
            return _clean_url(attrs["url"])
    for attrs in enclosures:
        if IMAGE_EXT_RE.search(attrs["url"]):
            return _clean_url(attrs["url"])

    description = extract_tag(block, "description")
    if description:
        img_match = IMG_RE.search(description.replace("&lt;", "<").replace("&gt;", ">"))
        if img_match:
            return _clean_url(img_match.group(1))
    return None


def parse_pub_date(value: str | None) -> datetime:
    """Parse a feed date into an aware UTC datetime, defaulting to now."""
    if not value:
        return utcnow()
    try:
        parsed = date_parser.parse(value, tzinfos=TZINFOS)
    except (ValueError, OverflowError):
        logger.debug("Unparsable pubDate %r, using current time", value)
        return utcnow()
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def source_name_for(feed_url: str) -> str:
    """Derive a publication name from the feed URL.

    Examples:
        >>> source_name_for("https://www.thehindu.com/news/feeder/default.rss")
        'The Hindu'
        >>> source_name_for("https://www.example.org/rss")
        'Example.org'
    """
    for domain, name in KNOWN_SOURCES:
        if domain in feed_url:
            return name
    try:
        host = urlparse(feed_url).hostname
    except ValueError:
        host = None
    if not host:
        return "Unknown Source"
    host = host.replace("www.", "", 1)
    return host[:1].upper() + host[1:]


def _is_google_news(feed_url: str) -> bool:
    return GOOGLE_NEWS_HOST in feed_url


def _clean_url(url: str) -> str:
    return url.strip().replace("&amp;", "&")
