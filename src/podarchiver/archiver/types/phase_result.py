"""Outcome tracking for the phases of processing one show."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PhaseResult:
    """Results from a single processing phase.

    Attributes:
        success: Whether the phase completed successfully.
        count: Number of items the phase handled.
        errors: Errors that occurred during the phase.
        duration_seconds: Time taken to complete the phase.
    """

    success: bool
    count: int
    errors: list[Exception] = field(default_factory=list[Exception])
    duration_seconds: float = 0.0
