"""Parse podcast RSS documents into FeedEntry views using lxml."""

from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
import logging

from lxml import etree

from ..exceptions import FeedFetchError
from .types import FeedDocument, FeedEntry

logger = logging.getLogger(__name__)

ITUNES_NS = "http://www.itunes.com/dtds/podcast-1.0.dtd"
ATOM_NS = "http://www.w3.org/2005/Atom"

_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)


def safe_parser() -> etree.XMLParser:
    """Return the XML parser used for untrusted feed documents."""
    return _PARSER


def _text(element: etree._Element, path: str) -> str | None:
    node = element.find(path, namespaces={"itunes": ITUNES_NS})
    if node is None or node.text is None:
        return None
    text = node.text.strip()
    return text or None


def parse_pub_date(value: str | None) -> datetime | None:
    """Parse an RFC 822 date into an aware UTC datetime.

    Returns None for missing or unparseable values; naive dates are taken as UTC.
    """
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        logger.debug("Unparseable pubDate.", extra={"pub_date": value})
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _parse_length(value: str | None) -> int:
    if value is None:
        return -1
    try:
        length = int(value.strip())
    except ValueError:
        return -1
    return length if length >= 0 else -1


def _parse_item(item: etree._Element) -> FeedEntry:
    enclosure = item.find("enclosure")
    enclosure_url: str | None = None
    enclosure_length = -1
    if enclosure is not None:
        enclosure_url = (enclosure.get("url") or "").strip() or None
        enclosure_length = _parse_length(enclosure.get("length"))

    return FeedEntry(
        title=_text(item, "title"),
        raw_identifier=_text(item, "guid"),
        published=parse_pub_date(_text(item, "pubDate")),
        episode=_text(item, "itunes:episode"),
        season=_text(item, "itunes:season"),
        enclosure_url=enclosure_url,
        enclosure_length=enclosure_length,
    )


def parse_feed(data: bytes) -> FeedDocument:
    """Parse RSS bytes into a FeedDocument.

    Args:
        data: Raw feed bytes.

    Returns:
        The channel cover URL and every item in document order.

    Raises:
        FeedFetchError: If the document is not well-formed RSS.
    """
    try:
        root = etree.fromstring(data, parser=_PARSER)
    except etree.XMLSyntaxError as e:
        raise FeedFetchError("Failed to parse feed XML.") from e

    channel = root.find("channel")
    if root.tag != "rss" or channel is None:
        raise FeedFetchError(f"Document is not an RSS feed (root <{root.tag}>).")

    entries = [_parse_item(item) for item in channel.findall("item")]
    return FeedDocument(cover_url=_text(channel, "image/url"), entries=entries)
