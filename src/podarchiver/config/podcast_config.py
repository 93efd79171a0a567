"""Podcast list configuration.

The podcast list is a JSON array of ``{name, url, ia_identifier, enabled}``
objects. Feed URLs are per-subscriber, so a fresh install gets a template
holding only show names for the operator to fill in.
"""

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from ..exceptions import ConfigLoadError

logger = logging.getLogger(__name__)


class PodcastConfig(BaseModel):
    """Configuration for a single archived show.

    Attributes:
        name: Show name; also the show's directory name in the archive.
        url: Subscriber-specific feed URL.
        ia_identifier: Remote item identifier the show is mirrored to.
        enabled: Whether the show is processed.
    """

    name: str = Field(min_length=1)
    url: str = ""
    ia_identifier: str = ""
    enabled: bool = False


_PODCAST_LIST = TypeAdapter(list[PodcastConfig])


def load_podcasts(config_file: Path) -> list[PodcastConfig]:
    """Load the podcast list.

    Args:
        config_file: Path to the JSON array.

    Returns:
        Configured podcasts in file order.

    Raises:
        ConfigLoadError: If the file cannot be read, parsed or validated.
    """
    try:
        with Path.open(config_file, encoding="utf-8") as f:
            raw = f.read()
    except OSError as e:
        raise ConfigLoadError(
            "Failed to read podcasts file.", config_file=str(config_file)
        ) from e

    try:
        podcasts = _PODCAST_LIST.validate_json(raw)
    except ValidationError as e:
        raise ConfigLoadError(
            "Failed to parse podcasts file.", config_file=str(config_file)
        ) from e

    names = [p.name for p in podcasts]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ConfigLoadError(
            f"Duplicate podcast names: {', '.join(duplicates)}",
            config_file=str(config_file),
        )

    logger.debug(
        "Podcasts loaded.",
        extra={"config_file": str(config_file), "podcast_count": len(podcasts)},
    )
    return podcasts


def write_podcasts_template(config_file: Path, show_names: list[str]) -> None:
    """Write a podcasts template listing ``show_names`` with empty URLs.

    Raises:
        ConfigLoadError: If the template cannot be written.
    """
    template = [PodcastConfig(name=name, enabled=True) for name in show_names]
    payload = _PODCAST_LIST.dump_python(template, mode="json")
    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)
        with Path.open(config_file, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
            f.write("\n")
    except OSError as e:
        raise ConfigLoadError(
            "Failed to write podcasts template.", config_file=str(config_file)
        ) from e
