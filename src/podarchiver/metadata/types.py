"""Resolved episode descriptor."""

from dataclasses import dataclass
from datetime import datetime

UNSET = -1


@dataclass(frozen=True)
class EpisodeDescriptor:
    """Everything the archiver derives about one episode.

    Recomputed every run from the feed entry and the show rules; never
    persisted. Season and episode use -1 for "unresolved" so comparisons
    stay total.

    Attributes:
        show: Show name.
        identity: Canonical 36-character identity.
        season: Resolved season, or -1.
        episode: Resolved episode ordinal, or -1.
        title: Title, progressively cleaned by the resolver stages.
        published: Publish timestamp (UTC), after any override shift.
        enclosure_url: Remote audio URL.
        declared_length: Feed-declared byte length, -1 when unknown.
        extension: Audio file extension including the leading dot.
    """

    show: str
    identity: str
    season: int
    episode: int
    title: str
    published: datetime
    enclosure_url: str
    declared_length: int
    extension: str

    @property
    def has_episode(self) -> bool:
        return self.episode >= 0
