"""Per-show episode rules: title patterns, length tolerance and overrides.

Upstream feeds carry plenty of known data-quality defects (missing or wrong
ordinals, duplicate episode numbers, reissued entries). Corrections for them
live in a YAML rule book rather than in code, so adding a show or fixing an
episode never needs a code change. The rule book is loaded once at startup.
"""

from datetime import timedelta
from importlib import resources
import logging
from pathlib import Path
import re
from typing import Any, cast

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
import yaml

from ..exceptions import ConfigLoadError, InvalidIdentifierError
from ..identity import normalize_identity
from .types import PublishShift

logger = logging.getLogger(__name__)

DEFAULT_RULES_RESOURCE = "data/shows.yaml"


class TitleSubstitution(BaseModel):
    """A regex substitution applied to an episode title."""

    model_config = ConfigDict(frozen=True)

    pattern: re.Pattern[str]
    replacement: str = ""


class EpisodeOverride(BaseModel):
    """Forced corrections for a single episode identity.

    Attributes:
        season: Forced season; -1 clears a wrong season.
        episode: Forced episode ordinal; -1 clears a wrong ordinal.
        title: Replacement title.
        title_substitutions: Regex substitutions applied to the title.
        publish_shift: Offset added to the publish timestamp.
        note: Free-form reason, e.g. which reissued identity this pairs with.
    """

    model_config = ConfigDict(frozen=True)

    season: int | None = Field(default=None, ge=-1)
    episode: int | None = Field(default=None, ge=-1)
    title: str | None = Field(default=None, min_length=1)
    title_substitutions: list[TitleSubstitution] = Field(
        default_factory=list[TitleSubstitution]
    )
    publish_shift: timedelta | None = None
    note: str | None = None

    @field_validator("publish_shift", mode="before")
    @classmethod
    def parse_publish_shift(cls, v: Any) -> timedelta | None:
        """Parse a shift string such as '+1h' or '-2d' into a timedelta.

        Raises:
            ValueError: If the shift string format is invalid.
            TypeError: If the value is not a string, timedelta, or None.
        """
        match v:
            case None:
                return None
            case str() as s:
                return PublishShift(s).timedelta
            case timedelta():
                return v
            case _:
                raise TypeError(
                    f"publish_shift must be a duration string (e.g., '+1h', '-1d'), "
                    f"got {type(v).__name__}"
                )


class ShowRules(BaseModel):
    """Rules for one show.

    Attributes:
        tolerate_length_mismatch: The provider's declared lengths are known to be
            wrong for this show, so a size mismatch alone never triggers a download.
        title_patterns: Ordered regexes with an ``episode`` group, tried against
            the title to recover an ordinal; the matched span is stripped.
        overrides: Corrections keyed by canonical identity.
    """

    model_config = ConfigDict(frozen=True)

    tolerate_length_mismatch: bool = False
    title_patterns: list[re.Pattern[str]] = Field(default_factory=list[re.Pattern[str]])
    overrides: dict[str, EpisodeOverride] = Field(
        default_factory=dict[str, EpisodeOverride]
    )

    @field_validator("title_patterns", mode="after")
    @classmethod
    def require_episode_group(
        cls, patterns: list[re.Pattern[str]]
    ) -> list[re.Pattern[str]]:
        for pattern in patterns:
            if "episode" not in pattern.groupindex:
                raise ValueError(
                    f"Title pattern '{pattern.pattern}' has no named group 'episode'"
                )
        return patterns

    @field_validator("overrides", mode="before")
    @classmethod
    def normalize_override_keys(cls, v: Any) -> Any:
        """Accept legacy integer identifiers as override keys."""
        if not isinstance(v, dict):
            return v
        normalized: dict[str, Any] = {}
        for key, value in cast(dict[Any, Any], v).items():
            try:
                identity = normalize_identity(str(key))
            except InvalidIdentifierError as e:
                raise ValueError(f"Invalid override identity '{key}'") from e
            if identity in normalized:
                raise ValueError(f"Duplicate override identity '{identity}'")
            normalized[identity] = value
        return normalized

    def override_for(self, identity: str) -> EpisodeOverride | None:
        return self.overrides.get(identity)


class ShowRuleBook(BaseModel):
    """Every show's rules plus the fallback used for unlisted shows.

    Attributes:
        default: Rules for shows without an entry in ``shows``.
        shows: Rules keyed by show name.
        template_shows: Show names written to a fresh podcasts template.
    """

    model_config = ConfigDict(frozen=True)

    default: ShowRules = Field(default_factory=ShowRules)
    shows: dict[str, ShowRules] = Field(default_factory=dict[str, ShowRules])
    template_shows: list[str] = Field(default_factory=list[str])

    def rules_for(self, show: str) -> ShowRules:
        return self.shows.get(show, self.default)

    def tolerates_length_mismatch(self, show: str) -> bool:
        return self.rules_for(show).tolerate_length_mismatch


def _read_rules_text(rules_file: Path | None) -> tuple[str, str]:
    if rules_file is None:
        resource = resources.files("podarchiver.config").joinpath(
            DEFAULT_RULES_RESOURCE
        )
        return resource.read_text(encoding="utf-8"), str(resource)
    with Path.open(rules_file.expanduser(), encoding="utf-8") as f:
        return f.read(), str(rules_file)


def load_show_rules(rules_file: Path | None = None) -> ShowRuleBook:
    """Load and validate the show rule book.

    Args:
        rules_file: YAML rule book; the packaged default is used when None.

    Returns:
        The validated, immutable rule book.

    Raises:
        ConfigLoadError: If the file cannot be read, parsed or validated.
    """
    source = str(rules_file) if rules_file else DEFAULT_RULES_RESOURCE
    try:
        text, source = _read_rules_text(rules_file)
        loaded = yaml.safe_load(text)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigLoadError(
            "Failed to load or parse show rules file.", config_file=source
        ) from e

    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise ConfigLoadError(
            f"Invalid show rules format: expected mapping, got {type(loaded).__name__}",
            config_file=source,
        )

    try:
        rule_book = ShowRuleBook.model_validate(loaded)
    except ValidationError as e:
        raise ConfigLoadError(
            "Show rules file failed validation.", config_file=source
        ) from e

    logger.debug(
        "Show rules loaded.",
        extra={
            "rules_file": source,
            "show_count": len(rule_book.shows),
            "override_count": sum(len(r.overrides) for r in rule_book.shows.values()),
        },
    )
    return rule_book
