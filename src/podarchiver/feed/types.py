"""Read-only views of a parsed feed."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class FeedEntry:
    """One ``<item>`` of a feed, with only the fields the archiver reads.

    Every field may be missing; validation happens during metadata resolution
    so that a defective entry is skipped on its own.

    Attributes:
        title: Entry title.
        raw_identifier: ``<guid>`` text, a GUID or a legacy integer.
        published: Publish timestamp (UTC), None if absent or unparseable.
        episode: Raw ``itunes:episode`` text.
        season: Raw ``itunes:season`` text.
        enclosure_url: Audio URL from ``<enclosure url>``.
        enclosure_length: Declared byte length, -1 when unknown.
    """

    title: str | None = None
    raw_identifier: str | None = None
    published: datetime | None = None
    episode: str | None = None
    season: str | None = None
    enclosure_url: str | None = None
    enclosure_length: int = -1


@dataclass(frozen=True)
class FeedDocument:
    """A parsed feed.

    Attributes:
        cover_url: Channel ``<image><url>``, if present.
        entries: Entries in document order (newest first for most providers).
    """

    cover_url: str | None = None
    entries: list[FeedEntry] = field(default_factory=list[FeedEntry])
