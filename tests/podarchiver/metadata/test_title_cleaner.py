"""Tests for episode title cleanup."""

import pytest

from podarchiver.metadata import clean_title


@pytest.mark.unit
@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Plain Title", "Plain Title"),
        ("  Too    many   spaces  ", "Too many spaces"),
        ("Dash – and — more", "Dash - and - more"),
        ("“Quoted” and ‘single’", "'Quoted' and 'single'"),
        ('Say "hi"', "Say 'hi'"),
        ("Wait… what", "Wait... what"),
        ("Part 1: The Beginning", "Part 1 The Beginning"),
        ("AC/DC Tribute", "AC-DC Tribute"),
        ("100% Real", "100 percent Real"),
        ("Fish &amp; Chips", "Fish & Chips"),
        ("What? <Really>*|", "What Really"),
        ("Non\u00a0breaking", "Non breaking"),
    ],
)
def test_clean_title(raw: str, expected: str):
    assert clean_title(raw) == expected


@pytest.mark.unit
def test_clean_title_trims_dangling_separators():
    """Separators left over at either end after stripping are removed."""
    assert clean_title("- Intro -") == "Intro"
    assert clean_title("Finale - ") == "Finale"


@pytest.mark.unit
def test_clean_title_strips_trailing_dots():
    assert clean_title("The End.") == "The End"


@pytest.mark.unit
def test_clean_title_drops_control_characters():
    assert clean_title("Line\x00One\x1fTwo") == "LineOneTwo"


@pytest.mark.unit
def test_clean_title_is_idempotent():
    once = clean_title("“Who”: 50% – Done…")
    assert clean_title(once) == once
