"""Per-episode outcome of download reconciliation."""

from enum import Enum


class DownloadDecision(str, Enum):
    """What the archiver should do about one resolved episode.

    UNKNOWN is the state before reconciliation. Only NEEDS_DOWNLOAD results
    in a transfer; both skip states leave the episode untouched.
    """

    UNKNOWN = "unknown"
    SKIP_UP_TO_DATE = "skip_up_to_date"
    SKIP_SIZE_MISMATCH_TOLERATED = "skip_size_mismatch_tolerated"
    NEEDS_DOWNLOAD = "needs_download"
