"""Tests for loading and querying the show rule book."""

from datetime import timedelta
from pathlib import Path
import textwrap

import pytest

from podarchiver.config import ShowRuleBook, load_show_rules
from podarchiver.exceptions import ConfigLoadError

GUID = "5d1f9c6e-8a3b-4f21-9c0d-1e2f3a4b5c6d"


def write_rules(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "shows.yaml"
    path.write_text(textwrap.dedent(text), encoding="utf-8")
    return path


@pytest.mark.unit
def test_packaged_rules_load():
    """The bundled rule book is valid and lists template shows."""
    rule_book = load_show_rules()
    assert rule_book.template_shows
    assert rule_book.tolerates_length_mismatch("Black Box Down (FIRST Member Ad-Free)")
    assert not rule_book.tolerates_length_mismatch("Some Other Show")


@pytest.mark.unit
def test_rules_file_is_parsed(tmp_path: Path):
    path = write_rules(
        tmp_path,
        f"""
        shows:
          "My Show":
            tolerate_length_mismatch: true
            title_patterns:
              - '\\s*#(?P<episode>\\d+)$'
            overrides:
              "{GUID}":
                season: 1
                publish_shift: "-2h"
                note: reissue of 42
              42:
                episode: 3
        template_shows: ["My Show"]
        """,
    )
    rule_book = load_show_rules(path)

    rules = rule_book.rules_for("My Show")
    assert rules.tolerate_length_mismatch
    assert rules.title_patterns[0].search("Title #12")
    override = rules.override_for(GUID)
    assert override is not None
    assert override.season == 1
    assert override.publish_shift == timedelta(hours=-2)
    # legacy integer keys are stored under their canonical identity
    legacy = rules.override_for("00000000-0000-0000-0000-00002a000000")
    assert legacy is not None
    assert legacy.episode == 3
    assert rule_book.template_shows == ["My Show"]


@pytest.mark.unit
def test_unknown_show_uses_default():
    rule_book = ShowRuleBook.model_validate(
        {"default": {"tolerate_length_mismatch": True}}
    )
    assert rule_book.tolerates_length_mismatch("Anything")
    assert rule_book.rules_for("Anything").override_for(GUID) is None


@pytest.mark.unit
def test_empty_rules_file(tmp_path: Path):
    rule_book = load_show_rules(write_rules(tmp_path, ""))
    assert rule_book.shows == {}


@pytest.mark.unit
def test_missing_rules_file(tmp_path: Path):
    with pytest.raises(ConfigLoadError) as exc_info:
        load_show_rules(tmp_path / "nope.yaml")
    assert exc_info.value.config_file == str(tmp_path / "nope.yaml")


@pytest.mark.unit
@pytest.mark.parametrize(
    "text",
    [
        "shows: [not, a, mapping]",
        "- just a list",
        "shows: {'S': {title_patterns: ['#(\\d+)']}}",
        "shows: {'S': {overrides: {'not-an-id': {episode: 1}}}}",
        "shows: {'S': {overrides: {'1': {publish_shift: 'soon'}}}}",
        "shows: {'S': {overrides: {'1': {episode: -5}}}}",
        "shows: {'S': [unclosed",
    ],
)
def test_invalid_rules_file(tmp_path: Path, text: str):
    with pytest.raises(ConfigLoadError):
        load_show_rules(write_rules(tmp_path, text))


@pytest.mark.unit
def test_duplicate_override_identity_rejected(tmp_path: Path):
    """'1' and 1 normalize to the same identity."""
    path = write_rules(
        tmp_path,
        """
        shows:
          S:
            overrides:
              "1": {episode: 1}
              1: {episode: 2}
        """,
    )
    with pytest.raises(ConfigLoadError):
        load_show_rules(path)


@pytest.mark.unit
def test_rule_book_is_frozen():
    rule_book = ShowRuleBook()
    with pytest.raises(ValueError):
        rule_book.template_shows = ["x"]  # type: ignore[misc]
