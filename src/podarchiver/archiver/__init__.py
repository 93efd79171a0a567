from .coordinator import ArchiveCoordinator, ArchiveRunResults
from .cover_downloader import CoverDownloader
from .feed_downloader import FeedDownloader
from .fetcher import FetchExecutor, FetchJob, FetchResult, FetchStatus
from .reconciler import DownloadReconciler
from .summary_writer import SummaryWriter

__all__ = [
    "ArchiveCoordinator",
    "ArchiveRunResults",
    "CoverDownloader",
    "DownloadReconciler",
    "FeedDownloader",
    "FetchExecutor",
    "FetchJob",
    "FetchResult",
    "FetchStatus",
    "SummaryWriter",
]
