"""
Tolerant, non-validating scanner for RSS payloads.

Real-world feeds are frequently malformed (unescaped ampersands, stray HTML,
truncated documents), so items and fields are located with bounded regular
expressions instead of a full XML parser. Callers only use the three
functions below, which keeps a real parser swappable behind them.
"""

from __future__ import annotations

from functools import lru_cache
import re


ITEM_RE = re.compile(r"<item(?:\s[^>]*)?>([\s\S]*?)</item>", re.IGNORECASE)
ATTR_RE = re.compile(r"""([\w:.-]+)\s*=\s*(?:"([^"]*)"|'([^']*)')""")


@lru_cache(maxsize=None)
def _tag_patterns(name: str) -> tuple[re.Pattern[str], re.Pattern[str]]:
    tag = re.escape(name)
    cdata = re.compile(
        rf"<{tag}(?:\s[^>]*)?>\s*<!\[CDATA\[([\s\S]*?)\]\]>\s*</{tag}>", re.IGNORECASE
    )
    plain = re.compile(rf"<{tag}(?:\s[^>]*)?>([\s\S]*?)</{tag}>", re.IGNORECASE)
    return cdata, plain


@lru_cache(maxsize=None)
def _open_tag_pattern(name: str) -> re.Pattern[str]:
    return re.compile(rf"<{re.escape(name)}(\s[^>]*)?/?>", re.IGNORECASE)


def find_item_blocks(xml: str) -> list[str]:
    """Return the inner text of every <item>...</item> block, in document order."""
    if not xml:
        return []
    return [match.group(1) for match in ITEM_RE.finditer(xml)]


def extract_tag(block: str, name: str) -> str | None:
    """Return the stripped content of the first ``<name>`` element in ``block``.

    CDATA-wrapped content is preferred over plain content; the CDATA
    payload is returned without its wrapper.

    Args:
        block: An item fragment
        name: Tag name, including any namespace prefix (e.g. "dc:creator")

    Returns:
        The element content, or None when the element is absent
    """
    cdata_re, plain_re = _tag_patterns(name)
    match = cdata_re.search(block)
    if match:
        return match.group(1).strip()
    match = plain_re.search(block)
    return match.group(1).strip() if match else None


def find_tag_attrs(block: str, name: str) -> list[dict[str, str]]:
    """Return the attributes of every opening ``<name ...>`` tag in ``block``.

    Attribute names are lowercased. Tags without attributes yield an empty dict.
    """
    found: list[dict[str, str]] = []
    for match in _open_tag_pattern(name).finditer(block):
        raw = match.group(1) or ""
        attrs: dict[str, str] = {}
        for attr in ATTR_RE.finditer(raw):
            key = attr.group(1).lower()
            value = attr.group(2) if attr.group(2) is not None else attr.group(3)
            attrs.setdefault(key, value)
        found.append(attrs)
    return found
