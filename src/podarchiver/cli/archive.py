"""Archive mode: mirror every enabled feed into the local archive."""

import logging

import httpx

from ..archiver import (
    ArchiveCoordinator,
    CoverDownloader,
    DownloadReconciler,
    FeedDownloader,
    FetchExecutor,
    SummaryWriter,
)
from ..config import (
    AppSettings,
    load_podcasts,
    load_show_rules,
    write_podcasts_template,
)
from ..db import LedgerDatabase, SqlalchemyCore
from ..exceptions import ConfigLoadError, DatabaseOperationError, FileOperationError
from ..file_manager import FileManager
from ..metadata import EpisodeMetadataResolver
from ..path_manager import PathManager

logger = logging.getLogger(__name__)


async def run_archive_mode(settings: AppSettings, paths: PathManager) -> int:
    """Run one archive pass over all configured shows.

    A missing podcasts file is replaced by a template and the run ends
    successfully so the operator can fill in feed URLs.

    Returns:
        Process exit code.
    """
    try:
        rule_book = load_show_rules(settings.rules_file)
    except ConfigLoadError as e:
        logger.error(
            "Failed to load show rules.",
            extra={"config_file": e.config_file},
            exc_info=e,
        )
        return 1

    podcasts_file = settings.podcasts_file
    if not podcasts_file.exists():
        try:
            write_podcasts_template(podcasts_file, rule_book.template_shows)
        except ConfigLoadError as e:
            logger.error("Failed to write podcasts template.", exc_info=e)
            return 1
        logger.info(
            "Podcasts file created; fill in the feed URLs and run again.",
            extra={"config_file": str(podcasts_file)},
        )
        return 0

    try:
        podcasts = load_podcasts(podcasts_file)
    except ConfigLoadError as e:
        logger.error(
            "Failed to load podcasts.", extra={"config_file": e.config_file}, exc_info=e
        )
        return 1

    db_core = SqlalchemyCore(paths.database_path)
    try:
        await db_core.create_schema()
        ledger = LedgerDatabase(db_core)
        file_manager = FileManager(paths)

        async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
            coordinator = ArchiveCoordinator(
                paths=paths,
                file_manager=file_manager,
                feed_downloader=FeedDownloader(client, paths, file_manager),
                cover_downloader=CoverDownloader(client, paths, file_manager),
                resolver=EpisodeMetadataResolver(rule_book),
                ledger=ledger,
                reconciler=DownloadReconciler(rule_book, ledger, file_manager),
                fetcher=FetchExecutor(
                    client, ledger, file_manager, paths, workers=settings.workers
                ),
                summary_writer=SummaryWriter(paths, file_manager),
            )
            results = await coordinator.run(podcasts)
    except (DatabaseOperationError, FileOperationError) as e:
        logger.error("Archive run aborted.", exc_info=e)
        return 1
    finally:
        await db_core.close()

    logger.info(
        "Archive run finished.",
        extra={
            "show_count": len(results.shows),
            "overall_success": results.overall_success,
            "episode_count": sum(len(f) for f in results.files_by_show.values()),
        },
    )
    return 0
