"""Tests for pointing a feed snapshot at the remote mirror."""

from lxml import etree
import pytest

from podarchiver.archiver.types import FileSummary
from podarchiver.exceptions import RemoteSyncError
from podarchiver.feed.feed_parser import ATOM_NS, ITUNES_NS
from podarchiver.path_manager import PathManager
from podarchiver.uploader import RssRewriter

SHOW = "Show"
ITEM_ID = "show-archive"
GUID = "5d1f9c6e-8a3b-4f21-9c0d-1e2f3a4b5c6d"
LEGACY_IDENTITY = "00000000-0000-0000-0000-00007b000000"
BASE = "https://archive.example.org/download/show-archive"

FEED_XML = f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:itunes="{ITUNES_NS}" xmlns:atom="{ATOM_NS}">
  <channel>
    <title>Show</title>
    <atom:link href="https://feeds.example.com/show?token=secret" rel="self"/>
    <image><url>https://cdn.example.com/art.png?size=600</url></image>
    <itunes:image href="https://cdn.example.com/art.png?size=600"/>
    <item>
      <title>Episode One</title>
      <guid>{GUID.upper()}</guid>
      <enclosure url="https://cdn.example.com/1.mp3?token=secret" length="1"/>
    </item>
    <item>
      <title>Legacy</title>
      <guid>123</guid>
      <enclosure url="https://cdn.example.com/2.mp3?token=secret" length="2"/>
    </item>
    <item>
      <title>Not Archived</title>
      <guid>999</guid>
      <enclosure url="https://cdn.example.com/3.mp3?token=secret" length="3"/>
    </item>
  </channel>
</rss>
""".encode()

NS = {"atom": ATOM_NS, "itunes": ITUNES_NS}


@pytest.fixture
def rewriter(paths: PathManager) -> RssRewriter:
    return RssRewriter(paths)


@pytest.fixture
def summaries(paths: PathManager) -> list[FileSummary]:
    return [
        FileSummary(
            identity=GUID,
            local_filename=str(paths.episode_path(SHOW, "2024 - Episode One.mp3")),
            show=SHOW,
            reported_length=1,
            actual_length=1111,
        ),
        FileSummary(
            identity=LEGACY_IDENTITY,
            local_filename=str(paths.episode_path(SHOW, "2023 - Legacy.mp3")),
            show=SHOW,
            reported_length=2,
        ),
    ]


@pytest.mark.unit
def test_rewrite_points_channel_at_mirror(
    rewriter: RssRewriter, summaries: list[FileSummary]
):
    root = etree.fromstring(rewriter.rewrite(FEED_XML, SHOW, ITEM_ID, summaries))
    channel = root.find("channel")
    assert channel is not None

    assert channel.find("atom:link", NS).get("href") == f"{BASE}/podcast.rss"
    assert channel.findtext("image/url") == f"{BASE}/cover.png"
    assert channel.find("itunes:image", NS).get("href") == f"{BASE}/cover.png"


@pytest.mark.unit
def test_rewrite_items(rewriter: RssRewriter, summaries: list[FileSummary]):
    root = etree.fromstring(rewriter.rewrite(FEED_XML, SHOW, ITEM_ID, summaries))
    enclosures = [item.find("enclosure") for item in root.iter("item")]

    assert enclosures[0].get("url") == f"{BASE}/2024%20-%20Episode%20One.mp3"
    assert enclosures[0].get("length") == "1111"
    # unknown local length and episodes missing from the manifest stay as-is
    assert enclosures[1].get("url") == "https://cdn.example.com/2.mp3?token=secret"
    assert enclosures[2].get("url") == "https://cdn.example.com/3.mp3?token=secret"
    assert enclosures[2].get("length") == "3"


@pytest.mark.unit
def test_rewrite_without_optional_channel_elements(rewriter: RssRewriter):
    feed = b"<rss><channel><title>Bare</title></channel></rss>"
    root = etree.fromstring(rewriter.rewrite(feed, SHOW, ITEM_ID, []))
    assert root.findtext("channel/title") == "Bare"


@pytest.mark.unit
@pytest.mark.parametrize("feed", [b"<rss><channel>", b"<html></html>"])
def test_rewrite_rejects_invalid_snapshot(rewriter: RssRewriter, feed: bytes):
    with pytest.raises(RemoteSyncError):
        rewriter.rewrite(feed, SHOW, ITEM_ID, [])
