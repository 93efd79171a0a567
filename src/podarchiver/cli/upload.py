"""Upload mode: mirror the local archive to remote storage."""

import logging

import httpx

from ..archiver import SummaryWriter
from ..config import AppSettings, load_podcasts
from ..exceptions import ConfigLoadError, SetupError, UploadToolError
from ..file_manager import FileManager
from ..path_manager import PathManager
from ..uploader import IATool, RemoteSyncReconciler, RssRewriter, load_credentials

logger = logging.getLogger(__name__)


async def run_upload_mode(settings: AppSettings, paths: PathManager) -> int:
    """Upload every enabled show's new or changed files.

    Returns:
        Process exit code.
    """
    podcasts_file = settings.podcasts_file
    if not podcasts_file.exists():
        logger.error(
            "Podcasts file not found.", extra={"config_file": str(podcasts_file)}
        )
        return 1
    try:
        podcasts = load_podcasts(podcasts_file)
    except ConfigLoadError as e:
        logger.error(
            "Failed to load podcasts.", extra={"config_file": e.config_file}, exc_info=e
        )
        return 1
    if not podcasts:
        logger.info("No podcasts configured, nothing to upload.")
        return 0

    ia_tool = IATool(settings.ia_executable)
    try:
        version = await ia_tool.version()
    except UploadToolError as e:
        logger.error(
            "Upload tool not available; is it installed?",
            extra={"executable": settings.ia_executable, "output": e.output},
            exc_info=e,
        )
        return 1
    logger.info("Using upload tool.", extra={"version": version})

    try:
        credentials = load_credentials(
            settings.ia_access_key, settings.ia_secret_key, settings.ia_config_file
        )
    except SetupError as e:
        logger.error(
            "Cannot continue without an access key and secret key.",
            extra={"path": e.path},
            exc_info=e,
        )
        return 1

    file_manager = FileManager(paths)
    async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
        reconciler = RemoteSyncReconciler(
            client=client,
            credentials=credentials,
            paths=paths,
            file_manager=file_manager,
            summary_writer=SummaryWriter(paths, file_manager),
            rss_rewriter=RssRewriter(paths),
            ia_tool=ia_tool,
            workers=settings.workers,
        )
        results = await reconciler.run(podcasts)

    logger.info(
        "Upload run finished.",
        extra={
            "show_count": len(results),
            "uploaded": sum(r.uploaded for r in results),
            "error_count": sum(len(r.errors) for r in results),
        },
    )
    return 0
