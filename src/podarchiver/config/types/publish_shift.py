"""Publish shift data type for show override rules.

This module provides the PublishShift dataclass for representing signed
durations that move an episode's publish timestamp, used when a provider
publishes two episodes with identical timestamps or the wrong date.
"""

from dataclasses import dataclass
from datetime import timedelta
import re

# Pattern for shift strings: optional sign, number, unit (s, m, h, d, w)
_SHIFT_PATTERN = re.compile(r"^([+-]?)\s*(\d+)\s*(s|m|h|d|w)$", re.IGNORECASE)

_UNIT_TO_SECONDS: dict[str, int] = {
    "s": 1,
    "m": 60,
    "h": 60 * 60,
    "d": 60 * 60 * 24,
    "w": 60 * 60 * 24 * 7,
}


@dataclass(frozen=True)
class PublishShift:
    """Data representation of a signed publish-time shift.

    Examples:
        - "+1h" or "1h" -> one hour later
        - "-30m" -> thirty minutes earlier
        - "2d" -> two days later

    Attributes:
        shift_str: Original shift string.
        timedelta: Shift as a timedelta object.
    """

    shift_str: str
    timedelta: timedelta

    def __init__(self, shift_str: str):
        """Initialize PublishShift from a shift string.

        Args:
            shift_str: Shift string in format "[+-]<number><unit>".

        Raises:
            ValueError: If the shift string format is invalid or value is zero.
        """
        stripped = shift_str.strip()
        match = _SHIFT_PATTERN.match(stripped)
        if not match:
            raise ValueError(
                f"Invalid publish shift format: '{shift_str}'. "
                "Expected format: [+-]<number><unit> where unit is s, m, h, d or w. "
                "Examples: '+1h', '-30m', '2d'"
            )

        sign = -1 if match.group(1) == "-" else 1
        value = int(match.group(2))
        if value == 0:
            raise ValueError(f"Publish shift must be non-zero, got '{shift_str}'")

        seconds = sign * value * _UNIT_TO_SECONDS[match.group(3).lower()]

        # Use object.__setattr__ since dataclass is frozen
        object.__setattr__(self, "shift_str", stripped)
        object.__setattr__(self, "timedelta", timedelta(seconds=seconds))

    def __str__(self) -> str:
        """Return the original shift string."""
        return self.shift_str
