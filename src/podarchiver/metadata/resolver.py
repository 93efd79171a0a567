"""Episode metadata resolution.

Turns a raw feed entry into an EpisodeDescriptor and a canonical filename.
Resolution is a fixed pipeline of pure stages, each taking and returning a
descriptor:

1. structured ``itunes:season`` / ``itunes:episode`` fields
2. the show's override for this identity
3. the show's title patterns, recovering an ordinal and stripping it
4. title cleanup

Later stages may override earlier ones.
"""

from collections.abc import Callable
from dataclasses import replace
import logging
from pathlib import PurePosixPath
import re
from urllib.parse import urlparse

from ..config.show_rules import ShowRuleBook, ShowRules
from ..exceptions import MissingFieldError
from ..feed.types import FeedEntry
from ..identity import normalize_identity
from .title_cleaner import clean_title
from .types import UNSET, EpisodeDescriptor

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".mp3"
MAX_FILENAME_BYTES = 255

_DIGITS = re.compile(r"^\s*\d+\s*$")

type Stage = Callable[[EpisodeDescriptor, ShowRules], EpisodeDescriptor]


def parse_ordinal(value: str | None) -> int:
    """Return a non-negative ordinal from feed text, or -1."""
    if value is None or not _DIGITS.match(value):
        return UNSET
    return int(value)


def enclosure_extension(url: str) -> str:
    """Return the file extension of an enclosure URL's path, or ``.mp3``."""
    suffix = PurePosixPath(urlparse(url).path).suffix
    return suffix if suffix else DEFAULT_EXTENSION


# --- Stages ---


def apply_override(descriptor: EpisodeDescriptor, rules: ShowRules) -> EpisodeDescriptor:
    """Apply the show's forced corrections for this identity, if any."""
    override = rules.override_for(descriptor.identity)
    if override is None:
        return descriptor

    season = override.season if override.season is not None else descriptor.season
    episode = override.episode if override.episode is not None else descriptor.episode
    title = override.title if override.title is not None else descriptor.title
    for substitution in override.title_substitutions:
        title = substitution.pattern.sub(substitution.replacement, title)
    published = descriptor.published
    if override.publish_shift is not None:
        published = published + override.publish_shift

    logger.debug(
        "Applied episode override.",
        extra={
            "show": descriptor.show,
            "identity": descriptor.identity,
            "note": override.note,
        },
    )
    return replace(
        descriptor, season=season, episode=episode, title=title, published=published
    )


def apply_title_patterns(
    descriptor: EpisodeDescriptor, rules: ShowRules
) -> EpisodeDescriptor:
    """Recover an episode ordinal from the title and strip the matched suffix.

    The first matching pattern wins. Its number is taken when no ordinal is
    resolved yet; when one already is, the suffix is only stripped if it
    repeats that same number.
    """
    for pattern in rules.title_patterns:
        match = pattern.search(descriptor.title)
        if match is None:
            continue
        number = int(match.group("episode"))
        if descriptor.has_episode and number != descriptor.episode:
            return descriptor
        stripped = (
            descriptor.title[: match.start()] + descriptor.title[match.end() :]
        ).strip()
        if not stripped:
            return replace(descriptor, episode=number)
        return replace(descriptor, episode=number, title=stripped)
    return descriptor


def apply_title_cleanup(
    descriptor: EpisodeDescriptor, rules: ShowRules
) -> EpisodeDescriptor:
    return replace(descriptor, title=clean_title(descriptor.title))


PIPELINE: tuple[Stage, ...] = (
    apply_override,
    apply_title_patterns,
    apply_title_cleanup,
)


# --- Filenames ---


def season_episode_prefix(season: int, episode: int) -> str:
    """Return the ``S03 E7 - `` style prefix for resolved ordinals.

    Seasons are zero-padded to two digits; episodes are never padded.
    """
    if season >= 0:
        if episode >= 0:
            return f"S{season:02d} E{episode} - "
        return f"S{season:02d} - "
    if episode >= 0:
        return f"E{episode} - "
    return ""


def compose_filename(descriptor: EpisodeDescriptor) -> str:
    """Return the canonical archive filename for an episode.

    ``{published:%Y-%m-%d %H:%M:%S} - {prefix}{title} ({identity}){ext}``,
    with the title shortened if the name would exceed the filesystem limit.
    """
    head = f"{descriptor.published:%Y-%m-%d %H:%M:%S} - " + season_episode_prefix(
        descriptor.season, descriptor.episode
    )
    tail = f" ({descriptor.identity}){descriptor.extension}"
    title = descriptor.title

    budget = MAX_FILENAME_BYTES - len(head.encode()) - len(tail.encode())
    if len(title.encode()) > budget:
        while title and len(title.encode()) > budget:
            title = title[:-1]
        title = title.rstrip()
    return f"{head}{title}{tail}"


class EpisodeMetadataResolver:
    """Resolve feed entries into descriptors using the show rule book.

    Attributes:
        _rule_book: Immutable per-show rules loaded at startup.
    """

    def __init__(self, rule_book: ShowRuleBook):
        self._rule_book = rule_book

    def initial_descriptor(self, show: str, entry: FeedEntry) -> EpisodeDescriptor:
        """Validate required fields and build the stage-1 descriptor.

        Raises:
            MissingFieldError: If title, identifier, publish date or enclosure
                URL is missing.
            InvalidIdentifierError: If the identifier cannot be normalized.
        """
        if not entry.title:
            raise MissingFieldError("title")
        if not entry.raw_identifier:
            raise MissingFieldError("guid", entry.title)
        if entry.published is None:
            raise MissingFieldError("pubDate", entry.title)
        if not entry.enclosure_url:
            raise MissingFieldError("enclosure", entry.title)

        return EpisodeDescriptor(
            show=show,
            identity=normalize_identity(entry.raw_identifier, entry.title),
            season=parse_ordinal(entry.season),
            episode=parse_ordinal(entry.episode),
            title=entry.title,
            published=entry.published,
            enclosure_url=entry.enclosure_url,
            declared_length=entry.enclosure_length,
            extension=enclosure_extension(entry.enclosure_url),
        )

    def resolve(self, show: str, entry: FeedEntry) -> EpisodeDescriptor:
        """Run the full resolution pipeline for one entry.

        Raises:
            EpisodeDataError: If the entry is missing data or the cleaned
                title ends up empty.
        """
        rules = self._rule_book.rules_for(show)
        descriptor = self.initial_descriptor(show, entry)
        for stage in PIPELINE:
            descriptor = stage(descriptor, rules)
        if not descriptor.title:
            raise MissingFieldError("title", entry.title)
        return descriptor
