"""Command-line interface entry point for podarchiver.

Loads settings, prepares directories and logging, then routes to the
archive or upload mode.
"""

import logging

from ..config import AppSettings, RunMode
from ..exceptions import FileOperationError
from ..logging_config import setup_logging
from ..path_manager import PathManager
from .archive import run_archive_mode
from .upload import run_upload_mode


async def main_cli() -> int:
    """Run podarchiver according to its settings.

    Returns:
        Process exit code: 0 on normal completion, 1 on a setup failure.
    """
    settings = AppSettings()  # type: ignore

    paths = PathManager(
        base_data_dir=settings.data_dir,
        download_base_url=settings.ia_download_base_url,
        s3_base_url=settings.ia_s3_base_url,
    )

    try:
        await paths.ensure_base_dirs()
    except FileOperationError as e:
        setup_logging(
            log_format_type=settings.log_format,
            app_log_level_name=settings.log_level,
            include_stacktrace=settings.log_include_stacktrace,
        )
        logging.getLogger(__name__).error(
            "Failed to create data directories.",
            extra={"data_dir": str(paths.base_data_dir)},
            exc_info=e,
        )
        return 1

    setup_logging(
        log_format_type=settings.log_format,
        app_log_level_name=settings.log_level,
        include_stacktrace=settings.log_include_stacktrace,
        log_file=paths.log_file_path,
    )

    logger = logging.getLogger(__name__)
    logger.debug(
        "Application settings loaded.",
        extra={
            "mode": settings.mode.value,
            "data_dir": str(paths.base_data_dir),
            "config_file": str(settings.podcasts_file),
            "rules_file": str(settings.rules_file) if settings.rules_file else None,
            "workers": settings.workers,
        },
    )

    match settings.mode:
        case RunMode.ARCHIVE:
            logger.info("Starting archive run.")
            exit_code = await run_archive_mode(settings, paths)
        case RunMode.UPLOAD:
            logger.info("Starting upload run.")
            exit_code = await run_upload_mode(settings, paths)

    logger.info("Done.", extra={"exit_code": exit_code})
    return exit_code
