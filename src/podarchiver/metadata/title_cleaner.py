"""Title normalization for episode filenames."""

import re

# Applied in order, before illegal characters are stripped
_SUBSTITUTIONS: tuple[tuple[str, str], ...] = (
    ("\u2010", "-"),
    ("\u2011", "-"),
    ("\u2012", "-"),
    ("\u2013", "-"),
    ("\u2014", "-"),
    ("\u2015", "-"),
    ("\u2018", "'"),
    ("\u2019", "'"),
    ("\u201a", "'"),
    ("\u201c", "'"),
    ("\u201d", "'"),
    ("\u201e", "'"),
    ('"', "'"),
    ("\u2026", "..."),
    ("\u00a0", " "),
    ("&amp;", "&"),
    ("/", "-"),
    ("\\", "-"),
    (":", ""),
)

_PERCENT = re.compile(r"\s*%")
_ILLEGAL = re.compile(r"[<>|?*\x00-\x1f\x7f]")
_WHITESPACE = re.compile(r"\s+")
_TRAILING_SEPARATORS = re.compile(r"(?:\s*-)+$")
_LEADING_SEPARATORS = re.compile(r"^(?:-\s*)+")


def clean_title(title: str) -> str:
    """Return ``title`` made safe and tidy for use inside a filename.

    Unifies dash, quote and ellipsis variants, spells out ``%``, drops
    characters that are illegal in filenames, collapses whitespace and trims
    separators left dangling at either end.
    """
    cleaned = title
    for old, new in _SUBSTITUTIONS:
        cleaned = cleaned.replace(old, new)
    cleaned = _PERCENT.sub(" percent", cleaned)
    cleaned = _ILLEGAL.sub("", cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    cleaned = _TRAILING_SEPARATORS.sub("", cleaned)
    cleaned = _LEADING_SEPARATORS.sub("", cleaned)
    return cleaned.strip().rstrip(".").strip()
