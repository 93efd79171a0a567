"""Tests for RSS parsing."""

from datetime import UTC, datetime

import pytest

from podarchiver.exceptions import FeedFetchError
from podarchiver.feed import parse_feed
from podarchiver.feed.feed_parser import parse_pub_date

SAMPLE_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
     xmlns:itunes="http://www.itunes.com/dtds/podcast-1.0.dtd"
     xmlns:atom="http://www.w3.org/2005/Atom">
  <channel>
    <title>Show</title>
    <atom:link href="https://feeds.example.com/show?token=abc" rel="self"/>
    <image>
      <url> https://cdn.example.com/cover.png?size=3000 </url>
    </image>
    <item>
      <title>Newest #2</title>
      <guid isPermaLink="false">5D1F9C6E-8A3B-4F21-9C0D-1E2F3A4B5C6D</guid>
      <pubDate>Tue, 02 Jan 2024 05:04:05 +0200</pubDate>
      <itunes:episode>2</itunes:episode>
      <itunes:season>1</itunes:season>
      <enclosure url="https://cdn.example.com/2.mp3" length="2048" type="audio/mpeg"/>
    </item>
    <item>
      <title>Oldest</title>
      <guid>123</guid>
      <pubDate>not a date</pubDate>
      <enclosure url="https://cdn.example.com/1.mp3" length="unknown"/>
    </item>
    <item>
      <title>   </title>
    </item>
  </channel>
</rss>
"""


@pytest.mark.unit
def test_parse_feed_reads_channel_and_items():
    feed = parse_feed(SAMPLE_FEED)

    assert feed.cover_url == "https://cdn.example.com/cover.png?size=3000"
    assert len(feed.entries) == 3

    newest = feed.entries[0]
    assert newest.title == "Newest #2"
    assert newest.raw_identifier == "5D1F9C6E-8A3B-4F21-9C0D-1E2F3A4B5C6D"
    assert newest.published == datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)
    assert (newest.season, newest.episode) == ("1", "2")
    assert newest.enclosure_url == "https://cdn.example.com/2.mp3"
    assert newest.enclosure_length == 2048


@pytest.mark.unit
def test_parse_feed_keeps_defective_entries():
    """Defects are left for metadata resolution to report."""
    feed = parse_feed(SAMPLE_FEED)

    oldest = feed.entries[1]
    assert oldest.raw_identifier == "123"
    assert oldest.published is None
    assert oldest.enclosure_length == -1
    assert oldest.episode is None

    blank = feed.entries[2]
    assert blank.title is None
    assert blank.enclosure_url is None


@pytest.mark.unit
@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"<rss><channel>",
        b"<feed xmlns='http://www.w3.org/2005/Atom'></feed>",
        b"<rss version='2.0'></rss>",
    ],
)
def test_parse_feed_rejects_non_rss(data: bytes):
    with pytest.raises(FeedFetchError):
        parse_feed(data)


@pytest.mark.unit
def test_parse_feed_does_not_expand_external_entities(tmp_path):
    secret = tmp_path / "secret.txt"
    secret.write_text("do not leak")
    data = f"""<?xml version="1.0"?>
<!DOCTYPE rss [<!ENTITY xxe SYSTEM "file://{secret}">]>
<rss><channel><item><title>&xxe;</title></item></channel></rss>
""".encode()
    feed = parse_feed(data)
    assert "do not leak" not in (feed.entries[0].title or "")


@pytest.mark.unit
@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("Mon, 01 Jan 2024 00:00:00 GMT", datetime(2024, 1, 1, tzinfo=UTC)),
        ("Mon, 01 Jan 2024 00:00:00 -0500", datetime(2024, 1, 1, 5, tzinfo=UTC)),
        ("Mon, 01 Jan 2024 00:00:00", datetime(2024, 1, 1, tzinfo=UTC)),
        ("", None),
        (None, None),
        ("yesterday", None),
    ],
)
def test_parse_pub_date(value: str | None, expected: datetime | None):
    assert parse_pub_date(value) == expected
