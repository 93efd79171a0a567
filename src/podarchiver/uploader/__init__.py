from .credentials import IACredentials, load_credentials
from .ia_tool import IATool
from .remote_reconciler import (
    RemoteSyncReconciler,
    RemoteSyncResults,
    UploadDecision,
    is_content_file,
)
from .rss_rewriter import RssRewriter

__all__ = [
    "IACredentials",
    "IATool",
    "RemoteSyncReconciler",
    "RemoteSyncResults",
    "RssRewriter",
    "UploadDecision",
    "is_content_file",
    "load_credentials",
]
