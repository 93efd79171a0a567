from .config import AppSettings, RunMode
from .podcast_config import PodcastConfig, load_podcasts, write_podcasts_template
from .show_rules import (
    EpisodeOverride,
    ShowRuleBook,
    ShowRules,
    TitleSubstitution,
    load_show_rules,
)

__all__ = [
    "AppSettings",
    "EpisodeOverride",
    "PodcastConfig",
    "RunMode",
    "ShowRuleBook",
    "ShowRules",
    "TitleSubstitution",
    "load_podcasts",
    "load_show_rules",
    "write_podcasts_template",
]
