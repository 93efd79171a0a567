"""Orchestrate archiving of every configured show.

For each enabled show, in order: fetch and snapshot the feed, fetch covers,
resolve entries oldest-first, reconcile them against the ledger and local
files, download what is missing or changed, and write the manifest. Shows
are processed one at a time; episodes within a show concurrently.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
import logging
from pathlib import Path
import time

from ..config import PodcastConfig
from ..db import LedgerDatabase, LedgerRecord
from ..exceptions import (
    CoverDownloadError,
    DatabaseOperationError,
    EpisodeDataError,
    FeedFetchError,
    FileOperationError,
    LedgerRecordNotFoundError,
)
from ..feed import FeedEntry
from ..file_manager import FileManager
from ..logging_config import set_context_id
from ..metadata import EpisodeDescriptor, EpisodeMetadataResolver, compose_filename
from ..path_manager import PathManager
from .cover_downloader import CoverDownloader
from .feed_downloader import FeedDownloader
from .fetcher import FetchExecutor, FetchJob
from .reconciler import DownloadReconciler
from .summary_writer import SummaryWriter
from .types import DownloadDecision, FileSummary, PhaseResult, ShowProcessingResults

logger = logging.getLogger(__name__)


@dataclass
class ResolvedEpisode:
    descriptor: EpisodeDescriptor
    record: LedgerRecord
    summary: FileSummary


@dataclass
class ArchiveRunResults:
    """Results of one archive run over all shows.

    Attributes:
        shows: Per-show results in processing order.
        files_by_show: Resolved filenames per show, for the archive listing.
    """

    shows: list[ShowProcessingResults] = field(
        default_factory=list[ShowProcessingResults]
    )
    files_by_show: dict[str, list[str]] = field(default_factory=dict[str, list[str]])

    @property
    def overall_success(self) -> bool:
        return all(result.overall_success for result in self.shows)


class ArchiveCoordinator:
    """Run the archive flow for each show.

    Attributes:
        _paths: Archive path resolver.
        _file_manager: Local file operations.
        _feed_downloader: Feed fetch and snapshot.
        _cover_downloader: Cover art fetch.
        _resolver: Feed entry to descriptor resolution.
        _ledger: Sync ledger.
        _reconciler: Download decision per episode.
        _fetcher: Bounded-concurrency transfers.
        _summary_writer: Manifest and listing output.
    """

    def __init__(
        self,
        paths: PathManager,
        file_manager: FileManager,
        feed_downloader: FeedDownloader,
        cover_downloader: CoverDownloader,
        resolver: EpisodeMetadataResolver,
        ledger: LedgerDatabase,
        reconciler: DownloadReconciler,
        fetcher: FetchExecutor,
        summary_writer: SummaryWriter,
    ):
        self._paths = paths
        self._file_manager = file_manager
        self._feed_downloader = feed_downloader
        self._cover_downloader = cover_downloader
        self._resolver = resolver
        self._ledger = ledger
        self._reconciler = reconciler
        self._fetcher = fetcher
        self._summary_writer = summary_writer
        logger.debug("ArchiveCoordinator initialized.")

    async def _migrate_filename(
        self, record: LedgerRecord, file_name: str
    ) -> LedgerRecord:
        """Move an episode to its newly resolved filename.

        The old file is renamed only when it exists and the new one does
        not; the ledger always ends up holding the new name.
        """
        old_path = self._paths.episode_path(record.show, record.filename)
        new_path = self._paths.episode_path(record.show, file_name)
        log_params = {
            "show": record.show,
            "identity": record.identity,
            "old_file_name": record.filename,
            "file_name": file_name,
        }
        if await self._file_manager.file_exists(
            old_path
        ) and not await self._file_manager.file_exists(new_path):
            await self._file_manager.rename(old_path, new_path)
            logger.info("Renamed episode to its resolved filename.", extra=log_params)
        else:
            logger.debug("Ledger filename updated.", extra=log_params)
        record.filename = file_name
        await self._ledger.update(record)
        return record

    async def _record_episode(self, descriptor: EpisodeDescriptor) -> ResolvedEpisode:
        """Make sure the ledger knows about a resolved episode.

        Raises:
            DatabaseOperationError: If the ledger cannot be read or written.
            FileOperationError: If a rename migration fails.
        """
        show = descriptor.show
        file_name = compose_filename(descriptor)
        record = await self._ledger.get_or_create(show, descriptor.identity, file_name)
        if record.filename != file_name:
            record = await self._migrate_filename(record, file_name)

        summary = FileSummary(
            identity=descriptor.identity,
            local_filename=str(self._paths.episode_path(show, file_name)),
            show=show,
            reported_length=descriptor.declared_length,
        )
        return ResolvedEpisode(descriptor, record, summary)

    async def _execute_resolve_phase(
        self, show: str, entries: list[FeedEntry]
    ) -> tuple[PhaseResult, list[ResolvedEpisode]]:
        phase_start = time.time()
        resolved: list[ResolvedEpisode] = []
        seen: set[str] = set()
        errors: list[Exception] = []

        # feeds list newest first
        for entry in reversed(entries):
            try:
                descriptor = self._resolver.resolve(show, entry)
            except EpisodeDataError as e:
                logger.warning(
                    "Skipping defective feed entry.",
                    extra={"show": show, "title": e.title},
                    exc_info=e,
                )
                errors.append(e)
                continue

            if descriptor.identity in seen:
                logger.warning(
                    "Feed lists the same episode twice; keeping the first.",
                    extra={"show": show, "identity": descriptor.identity},
                )
                continue
            seen.add(descriptor.identity)

            try:
                episode = await self._record_episode(descriptor)
            except LedgerRecordNotFoundError:
                raise
            except (DatabaseOperationError, FileOperationError, FileExistsError) as e:
                logger.error(
                    "Failed to record feed entry.",
                    extra={"show": show, "title": entry.title},
                    exc_info=e,
                )
                errors.append(e)
                continue

            resolved.append(episode)

        return (
            PhaseResult(
                success=True,
                count=len(resolved),
                errors=errors,
                duration_seconds=time.time() - phase_start,
            ),
            resolved,
        )

    async def _execute_reconcile_phase(
        self, show: str, episodes: list[ResolvedEpisode]
    ) -> tuple[PhaseResult, list[FetchJob]]:
        phase_start = time.time()
        jobs: list[FetchJob] = []
        errors: list[Exception] = []
        for episode in episodes:
            try:
                decision = await self._reconciler.reconcile(
                    episode.descriptor, episode.record, episode.summary
                )
            except LedgerRecordNotFoundError:
                raise
            except (DatabaseOperationError, FileOperationError) as e:
                logger.error(
                    "Failed to reconcile episode.",
                    extra={"show": show, "identity": episode.descriptor.identity},
                    exc_info=e,
                )
                errors.append(e)
                continue
            if decision == DownloadDecision.NEEDS_DOWNLOAD:
                jobs.append(FetchJob(episode.descriptor, episode.summary))

        logger.info(
            "Reconcile phase completed.",
            extra={
                "show": show,
                "episode_count": len(episodes),
                "needs_download": len(jobs),
            },
        )
        return (
            PhaseResult(
                success=not errors,
                count=len(jobs),
                errors=errors,
                duration_seconds=time.time() - phase_start,
            ),
            jobs,
        )

    async def process_show(
        self, podcast: PodcastConfig, run_started_at: datetime
    ) -> tuple[ShowProcessingResults, list[FileSummary]]:
        """Archive one show.

        Returns:
            The show's results and its manifest entries (empty if the feed
            could not be fetched).

        Raises:
            LedgerRecordNotFoundError: On a ledger bookkeeping defect.
        """
        show = podcast.name
        set_context_id(show)
        results = ShowProcessingResults(show=show, start_time=datetime.now(UTC))
        start = time.time()
        logger.info("Processing show.", extra={"show": show})

        try:
            feed = await self._feed_downloader.download(show, podcast.url)
        except (FeedFetchError, FileOperationError) as e:
            logger.error(
                "Skipping show, feed unavailable.", extra={"show": show}, exc_info=e
            )
            results.fatal_error = e
            results.total_duration_seconds = time.time() - start
            return results, []

        try:
            await self._cover_downloader.ensure_covers(show, feed.cover_url)
        except (CoverDownloadError, FileOperationError) as e:
            logger.warning("Cover download failed.", extra={"show": show}, exc_info=e)

        results.resolve_result, episodes = await self._execute_resolve_phase(
            show, feed.entries
        )
        results.reconcile_result, jobs = await self._execute_reconcile_phase(
            show, episodes
        )
        results.fetch_result = await self._fetcher.fetch_all(jobs, run_started_at)
        logger.info(
            "Fetch phase completed.",
            extra={
                "show": show,
                "downloaded": results.fetch_result.count,
                "failed": len(results.fetch_result.errors),
            },
        )

        summaries = [episode.summary for episode in episodes]
        phase_start = time.time()
        try:
            await self._summary_writer.write_manifest(show, summaries)
        except FileOperationError as e:
            logger.error("Failed to write manifest.", extra={"show": show}, exc_info=e)
            results.summary_result = PhaseResult(
                success=False,
                count=0,
                errors=[e],
                duration_seconds=time.time() - phase_start,
            )
        else:
            results.summary_result = PhaseResult(
                success=True,
                count=len(summaries),
                duration_seconds=time.time() - phase_start,
            )

        results.overall_success = results.summary_result.success
        results.total_duration_seconds = time.time() - start
        logger.info("Show processed.", extra=results.summary_dict())
        return results, summaries

    async def run(self, podcasts: list[PodcastConfig]) -> ArchiveRunResults:
        """Archive every enabled show, then write the archive listing.

        Raises:
            FileOperationError: If the scratch directory cannot be prepared.
            LedgerRecordNotFoundError: On a ledger bookkeeping defect.
        """
        run_started_at = datetime.now(UTC)
        await self._file_manager.clear_scratch_dir()

        run_results = ArchiveRunResults()
        for podcast in podcasts:
            if not podcast.enabled:
                logger.info("Skipping disabled show.", extra={"show": podcast.name})
                continue
            show_results, summaries = await self.process_show(podcast, run_started_at)
            run_results.shows.append(show_results)
            if summaries:
                file_names = [Path(s.local_filename).name for s in summaries]
            else:
                # keep the last known state of shows whose feed was unavailable
                records = await self._ledger.list_for_show(podcast.name)
                file_names = [record.filename for record in records]
            run_results.files_by_show[podcast.name] = file_names

        await self._summary_writer.write_listing(run_results.files_by_show)
        return run_results
