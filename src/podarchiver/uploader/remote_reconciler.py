"""Mirror the local archive to remote storage.

For every content file of a show, the storage front-end is asked where the
file lives (a single 307 redirect), the true location is probed, and the
file is queued for upload when it is missing remotely or its ETag differs
from the local MD5. Queued files are uploaded in path order through the
external upload tool with bounded concurrency.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
import logging
from pathlib import Path
from urllib.parse import urljoin

import httpx

from ..archiver.fetcher import normalize_etag
from ..archiver.summary_writer import SummaryWriter
from ..config import PodcastConfig
from ..exceptions import FileOperationError, RemoteSyncError, UploadToolError
from ..file_manager import FileManager
from ..logging_config import set_context_id
from ..path_manager import PathManager
from .credentials import IACredentials
from .ia_tool import IATool
from .rss_rewriter import RssRewriter

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 8
EXCLUDED_SUFFIXES = frozenset({".xml", ".csv", ".sh", ".json"})
EXCLUDED_NAMES = frozenset({".DS_Store"})


def is_content_file(path: Path) -> bool:
    """Return True for files that belong in the remote item."""
    return (
        path.name not in EXCLUDED_NAMES
        and path.suffix.lower() not in EXCLUDED_SUFFIXES
    )


class UploadDecision(str, Enum):
    UPLOAD = "upload"
    SKIP_MATCHES = "skip_matches"
    SKIP_UNVERIFIABLE = "skip_unverifiable"


@dataclass
class RemoteSyncResults:
    """Outcome of mirroring one show.

    Attributes:
        show: The show.
        checked: Content files probed.
        queued: Files that needed uploading, in upload order.
        uploaded: Files uploaded successfully.
        errors: Per-file and per-show errors.
    """

    show: str
    checked: int = 0
    queued: list[Path] = field(default_factory=list[Path])
    uploaded: int = 0
    errors: list[Exception] = field(default_factory=list[Exception])


class RemoteSyncReconciler:
    """Decide which local files need uploading and upload them.

    Attributes:
        _client: HTTP client for the storage front-end.
        _credentials: Key pair sent with every probe.
        _paths: Archive paths and remote URLs.
        _file_manager: Local file operations.
        _summary_writer: Manifest reader.
        _rss_rewriter: Feed rewriter.
        _ia_tool: External upload tool.
        _workers: Maximum concurrent probes and uploads.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        credentials: IACredentials,
        paths: PathManager,
        file_manager: FileManager,
        summary_writer: SummaryWriter,
        rss_rewriter: RssRewriter,
        ia_tool: IATool,
        workers: int = DEFAULT_WORKERS,
    ):
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self._client = client
        self._credentials = credentials
        self._paths = paths
        self._file_manager = file_manager
        self._summary_writer = summary_writer
        self._rss_rewriter = rss_rewriter
        self._ia_tool = ia_tool
        self._workers = workers

    async def probe(
        self, show: str, ia_identifier: str, local_path: Path
    ) -> UploadDecision:
        """Decide whether one local file must be uploaded.

        Network errors and unexpected responses are logged and the file is
        left alone.
        """
        s3_url = self._paths.remote_s3_url(ia_identifier, local_path.name)
        headers = self._credentials.authorization_header
        log_params = {"show": show, "file_name": local_path.name, "url": s3_url}

        try:
            first = await self._client.get(
                s3_url, headers=headers, follow_redirects=False
            )
            if first.status_code != httpx.codes.TEMPORARY_REDIRECT:
                logger.error(
                    "Expected a redirect from the storage front-end.",
                    extra={**log_params, "status_code": first.status_code},
                )
                return UploadDecision.SKIP_UNVERIFIABLE
            location = first.headers.get("location")
            if not location:
                logger.error("Redirect has no location.", extra=log_params)
                return UploadDecision.SKIP_UNVERIFIABLE
            location = urljoin(s3_url, location)

            async with self._client.stream(
                "GET", location, headers=headers, follow_redirects=False
            ) as response:
                status_code = response.status_code
                etag = response.headers.get("etag")
        except httpx.HTTPError as e:
            logger.error("Remote probe failed.", extra=log_params, exc_info=e)
            return UploadDecision.SKIP_UNVERIFIABLE

        if status_code == httpx.codes.NOT_FOUND:
            logger.info(
                "File missing remotely.", extra={**log_params, "decision": "upload"}
            )
            return UploadDecision.UPLOAD
        if status_code != httpx.codes.OK:
            logger.error(
                "Unexpected status probing remote file.",
                extra={**log_params, "status_code": status_code},
            )
            return UploadDecision.SKIP_UNVERIFIABLE
        if not etag:
            logger.error(
                "File exists remotely but has no ETag, not uploading.",
                extra=log_params,
            )
            return UploadDecision.SKIP_UNVERIFIABLE

        try:
            local_hash = await self._file_manager.md5_hash(local_path)
        except (FileOperationError, FileNotFoundError) as e:
            logger.error("Could not hash local file.", extra=log_params, exc_info=e)
            return UploadDecision.SKIP_UNVERIFIABLE
        if normalize_etag(etag) == local_hash:
            logger.debug(
                "Remote file matches.", extra={**log_params, "decision": "skip"}
            )
            return UploadDecision.SKIP_MATCHES
        logger.info(
            "Remote file differs.",
            extra={
                **log_params,
                "decision": "upload",
                "etag": etag,
                "md5_hash": local_hash,
            },
        )
        return UploadDecision.UPLOAD

    async def _write_rss(self, podcast: PodcastConfig) -> None:
        """Write the rewritten feed next to the snapshot.

        Raises:
            FileOperationError: If the manifest or snapshot cannot be read,
                or the rewritten feed cannot be written.
            RemoteSyncError: If the snapshot cannot be parsed.
        """
        show = podcast.name
        summaries = await self._summary_writer.read_manifest(show)
        snapshot = self._paths.podcast_xml_path(show)
        try:
            chunks = [c async for c in self._file_manager.stream_file_chunks(snapshot)]
        except OSError as e:
            raise FileOperationError(
                "Failed to read feed snapshot.", show=show, file_name=str(snapshot)
            ) from e
        rss = self._rss_rewriter.rewrite(
            b"".join(chunks), show, podcast.ia_identifier, summaries
        )
        await self._file_manager.write_bytes(self._paths.podcast_rss_path(show), rss)

    async def _upload_all(
        self, show: str, ia_identifier: str, queued: list[Path]
    ) -> tuple[int, list[Exception]]:
        semaphore = asyncio.Semaphore(self._workers)

        async def upload(path: Path) -> Exception | None:
            async with semaphore:
                logger.info(
                    "Uploading file.", extra={"show": show, "file_name": path.name}
                )
                try:
                    await self._ia_tool.upload(ia_identifier, path, show)
                except UploadToolError as e:
                    logger.error(
                        "Could not upload file.",
                        extra={
                            "show": show,
                            "file_name": path.name,
                            "output": e.output,
                        },
                        exc_info=e,
                    )
                    return e
            logger.info("Uploaded file.", extra={"show": show, "file_name": path.name})
            return None

        outcomes = await asyncio.gather(*(upload(path) for path in queued))
        errors = [outcome for outcome in outcomes if outcome is not None]
        return len(queued) - len(errors), errors

    async def sync_show(self, podcast: PodcastConfig) -> RemoteSyncResults:
        """Rewrite the feed, probe every content file and upload what differs."""
        show = podcast.name
        set_context_id(show)
        results = RemoteSyncResults(show=show)

        if not podcast.ia_identifier:
            error = RemoteSyncError("No remote identifier configured.", show=show)
            logger.error("Skipping show.", extra={"show": show}, exc_info=error)
            results.errors.append(error)
            return results

        try:
            await self._write_rss(podcast)
            files = await self._file_manager.list_files(self._paths.show_dir(show))
        except (FileOperationError, RemoteSyncError) as e:
            logger.error("Skipping show.", extra={"show": show}, exc_info=e)
            results.errors.append(e)
            return results

        content_files = [path for path in files if is_content_file(path)]
        semaphore = asyncio.Semaphore(self._workers)

        async def probe(path: Path) -> UploadDecision:
            async with semaphore:
                return await self.probe(show, podcast.ia_identifier, path)

        decisions = await asyncio.gather(*(probe(path) for path in content_files))
        results.checked = len(content_files)
        results.queued = sorted(
            path
            for path, decision in zip(content_files, decisions, strict=True)
            if decision == UploadDecision.UPLOAD
        )
        logger.info(
            "Remote check completed.",
            extra={
                "show": show,
                "checked": results.checked,
                "to_upload": len(results.queued),
            },
        )
        if not results.queued:
            logger.info("No files to upload.", extra={"show": show})
            return results

        results.uploaded, errors = await self._upload_all(
            show, podcast.ia_identifier, results.queued
        )
        results.errors.extend(errors)
        return results

    async def run(self, podcasts: list[PodcastConfig]) -> list[RemoteSyncResults]:
        """Mirror every enabled show, one show at a time."""
        all_results: list[RemoteSyncResults] = []
        for podcast in podcasts:
            if not podcast.enabled:
                logger.info("Skipping disabled show.", extra={"show": podcast.name})
                continue
            all_results.append(await self.sync_show(podcast))
        return all_results
