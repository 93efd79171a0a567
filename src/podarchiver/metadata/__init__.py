from .resolver import (
    EpisodeMetadataResolver,
    compose_filename,
    season_episode_prefix,
)
from .title_cleaner import clean_title
from .types import UNSET, EpisodeDescriptor

__all__ = [
    "UNSET",
    "EpisodeDescriptor",
    "EpisodeMetadataResolver",
    "clean_title",
    "compose_filename",
    "season_episode_prefix",
]
