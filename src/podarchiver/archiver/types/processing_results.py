"""Results of archiving one show."""

from dataclasses import dataclass, field
from datetime import datetime
from itertools import chain
from typing import Any

from .phase_result import PhaseResult


def _not_run() -> PhaseResult:
    return PhaseResult(success=False, count=0)


@dataclass
class ShowProcessingResults:
    """Per-phase outcome of ArchiveCoordinator.process_show().

    A show whose feed could not be fetched only has ``fatal_error`` set; its
    phases keep their not-run defaults. ``overall_success`` means the feed was
    fetched and the manifest written, individual episode failures aside.
    """

    show: str
    start_time: datetime
    total_duration_seconds: float = 0.0
    overall_success: bool = False
    resolve_result: PhaseResult = field(default_factory=_not_run)
    reconcile_result: PhaseResult = field(default_factory=_not_run)
    fetch_result: PhaseResult = field(default_factory=_not_run)
    summary_result: PhaseResult = field(default_factory=_not_run)
    fatal_error: Exception | None = None

    @property
    def phases(self) -> tuple[PhaseResult, ...]:
        return (
            self.resolve_result,
            self.reconcile_result,
            self.fetch_result,
            self.summary_result,
        )

    @property
    def all_errors(self) -> list[Exception]:
        fatal = [self.fatal_error] if self.fatal_error else []
        return fatal + list(chain.from_iterable(p.errors for p in self.phases))

    def summary_dict(self) -> dict[str, Any]:
        """Flatten the results into logging extras."""
        return {
            "show": self.show,
            "overall_success": self.overall_success,
            "total_duration_seconds": round(self.total_duration_seconds, 3),
            "resolved": self.resolve_result.count,
            "needs_download": self.reconcile_result.count,
            "downloaded": self.fetch_result.count,
            "error_count": len(self.all_errors),
            "fatal_error": str(self.fatal_error) if self.fatal_error else None,
        }
