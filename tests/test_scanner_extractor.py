"""Tests for the RSS scanner and per-item field extraction."""

from __future__ import annotations

from datetime import datetime, timezone

from trendwire.feeds.extractor import (
    extract_image_url,
    extract_item,
    parse_google_news_description,
    parse_pub_date,
    source_name_for,
)
from trendwire.feeds.fetcher import parse_feed
from trendwire.feeds.scanner import extract_tag, find_item_blocks, find_tag_attrs


FEED_URL = "https://example.com/rss"


def _block(**fields: str) -> str:
    return "".join(f"<{name}>{value}</{name}>" for name, value in fields.items())


def test_find_item_blocks_returns_inner_text_in_order():
    xml = "<rss><channel><item><title>A</title></item><item id='2'><title>B</title></item></channel></rss>"
    assert find_item_blocks(xml) == ["<title>A</title>", "<title>B</title>"]


def test_find_item_blocks_tolerates_empty_or_broken_documents():
    assert find_item_blocks("") == []
    assert find_item_blocks("<rss><item><title>never closed") == []


def test_extract_tag_prefers_cdata_content():
    block = "<title><![CDATA[Inside & <b>bold</b>]]></title>"
    assert extract_tag(block, "title") == "Inside & <b>bold</b>"


def test_extract_tag_missing_returns_none():
    assert extract_tag("<title>x</title>", "link") is None


def test_find_tag_attrs_lowercases_names():
    block = '<media:content URL="https://img.example.com/a.jpg" medium="image"/>'
    assert find_tag_attrs(block, "media:content") == [
        {"url": "https://img.example.com/a.jpg", "medium": "image"}
    ]


def test_extract_item_round_trip():
    block = _block(
        title="Example Headline Here",
        link="https://ex.com/a",
        description="<p>Body</p>",
        pubDate="Mon, 01 Jan 2024 10:00:00 GMT",
    )
    item = extract_item(block, FEED_URL)

    assert item is not None
    assert item.title == "Example Headline Here"
    assert item.link == "https://ex.com/a"
    assert item.description == "Body"
    assert item.pub_date == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
    assert item.guid == "https://ex.com/a"
    assert item.source_name == "Example.com"
    assert item.image_url is None


def test_extract_item_rejects_short_titles():
    block = _block(title="Short", link="https://ex.com/a")
    assert extract_item(block, FEED_URL) is None


def test_extract_item_rejects_missing_link():
    block = _block(title="A perfectly long headline")
    assert extract_item(block, FEED_URL) is None


def test_extract_item_truncates_long_descriptions():
    block = _block(title="A perfectly long headline", link="https://ex.com/a", description="y" * 800)
    item = extract_item(block, FEED_URL)
    assert len(item.description) == 500
    assert item.description.endswith("...")


def test_extract_item_falls_back_to_title_for_empty_description():
    block = _block(title="A perfectly long headline", link="https://ex.com/a", description="<br/>")
    item = extract_item(block, FEED_URL)
    assert item.description == "A perfectly long headline"


def test_extract_item_decodes_ampersands_in_links():
    block = _block(title="A perfectly long headline", link="https://ex.com/a?x=1&amp;y=2")
    assert extract_item(block, FEED_URL).link == "https://ex.com/a?x=1&y=2"


def test_google_news_description_is_decoded():
    description = (
        '<![CDATA[<a href="https://news.google.com/rss/articles/abc" target="_blank">'
        'Real Headline From Publisher</a>&nbsp;&nbsp;<font color="#6f6f6f">The Publisher</font>]]>'
    )
    block = _block(
        title="Real Headline From Publisher - The Publisher",
        link="https://news.google.com/rss/articles/abc?oc=5",
        description=description,
    )
    item = extract_item(block, "https://news.google.com/rss/search?q=india")

    assert item.title == "Real Headline From Publisher"
    assert item.link == "https://news.google.com/rss/articles/abc"
    assert item.source_name == "The Publisher"
    assert item.description == "Real Headline From Publisher"


def test_google_news_entity_escaped_description():
    html = (
        "&lt;a href=&quot;https://news.google.com/x&quot;&gt;Escaped Headline&lt;/a&gt;"
        "&lt;font color=&quot;#6f6f6f&quot;&gt;Wire Service&lt;/font&gt;"
    )
    assert parse_google_news_description(html) == {
        "title": "Escaped Headline",
        "link": "https://news.google.com/x",
        "source": "Wire Service",
    }


def test_google_news_source_defaults_without_font():
    decoded = parse_google_news_description('<a href="https://n.example/1">Some Story Title</a>')
    assert decoded["source"] == "News.google.com"


def test_google_news_without_anchor_keeps_plain_description():
    block = _block(
        title="Plain Google News Item",
        link="https://news.google.com/rss/articles/plain",
        description="<p>No anchor here</p>",
    )
    item = extract_item(block, "https://news.google.com/rss")
    assert item.title == "Plain Google News Item"
    assert item.description == "No anchor here"
    assert item.source_name == "News.google.com"


def test_image_priority_prefers_media_content():
    block = (
        '<enclosure url="https://img.example.com/e.jpg" type="image/jpeg"/>'
        '<media:thumbnail url="https://img.example.com/t.jpg"/>'
        '<media:content url="https://img.example.com/c.jpg"/>'
    )
    assert extract_image_url(block) == "https://img.example.com/c.jpg"


def test_image_priority_thumbnail_before_enclosure():
    block = (
        '<enclosure url="https://img.example.com/e.jpg" type="image/jpeg"/>'
        '<media:thumbnail url="https://img.example.com/t.jpg"/>'
    )
    assert extract_image_url(block) == "https://img.example.com/t.jpg"


def test_image_enclosure_by_type_then_extension():
    typed = '<enclosure url="https://cdn.example.com/photo?id=1" type="image/png"/>'
    assert extract_image_url(typed) == "https://cdn.example.com/photo?id=1"

    by_extension = (
        '<enclosure url="https://cdn.example.com/audio.mp3" type="audio/mpeg"/>'
        '<enclosure url="https://cdn.example.com/pic.webp"/>'
    )
    assert extract_image_url(by_extension) == "https://cdn.example.com/pic.webp"


def test_image_falls_back_to_description_img():
    block = '<description><![CDATA[<p><img src="https://img.example.com/d.gif"> text</p>]]></description>'
    assert extract_image_url(block) == "https://img.example.com/d.gif"


def test_image_absent_returns_none():
    assert extract_image_url("<title>No image at all</title>") is None


def test_parse_pub_date_handles_zone_abbreviations():
    parsed = parse_pub_date("Tue, 02 Jan 2024 15:30:00 IST")
    assert parsed == datetime(2024, 1, 2, 10, 0, tzinfo=timezone.utc)


def test_parse_pub_date_falls_back_to_now():
    before = datetime.now(timezone.utc)
    parsed = parse_pub_date("not a date")
    assert parsed.tzinfo is not None
    assert parsed >= before
    assert parse_pub_date(None) >= before


def test_source_name_lookup_and_fallbacks():
    assert source_name_for("https://www.hindustantimes.com/feeds/rss/india") == "Hindustan Times"
    assert source_name_for("https://www.thehindu.com/news/feeder/default.rss") == "The Hindu"
    assert source_name_for("https://www.oneindia.com/rss/news-fb.xml") == "OneIndia"
    assert source_name_for("https://www.example.org/rss") == "Example.org"
    assert source_name_for("not a url") == "Unknown Source"


def test_parse_feed_skips_invalid_items():
    xml = (
        "<rss><channel>"
        + "<item>" + _block(title="First valid headline", link="https://ex.com/1") + "</item>"
        + "<item>" + _block(title="Tiny", link="https://ex.com/2") + "</item>"
        + "<item>" + _block(title="Second valid headline", link="https://ex.com/3") + "</item>"
        + "</channel></rss>"
    )
    items = parse_feed(xml, FEED_URL)
    assert [item.link for item in items] == ["https://ex.com/1", "https://ex.com/3"]
