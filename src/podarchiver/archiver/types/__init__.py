from .download_decision import DownloadDecision
from .file_summary import FILE_SUMMARY_LIST, FileSummary
from .phase_result import PhaseResult
from .processing_results import ShowProcessingResults

__all__ = [
    "FILE_SUMMARY_LIST",
    "DownloadDecision",
    "FileSummary",
    "PhaseResult",
    "ShowProcessingResults",
]
