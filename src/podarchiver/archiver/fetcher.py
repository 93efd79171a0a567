"""Bounded-concurrency transfer of episodes that need downloading.

Each transfer streams into a uniquely named scratch file while hashing, then
atomically replaces the destination. A destination path is therefore either
untouched or complete, never half-written. One episode's failure is logged
and never aborts its siblings.
"""

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
import hashlib
import logging
from pathlib import Path
from typing import Any

import aiofiles
import httpx

from ..db import LedgerDatabase, LedgerRecord
from ..exceptions import (
    DatabaseOperationError,
    FetchError,
    FileOperationError,
    LedgerRecordNotFoundError,
)
from ..file_manager import FileManager
from ..metadata import EpisodeDescriptor
from ..path_manager import PathManager
from .types import FileSummary, PhaseResult

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 8


class FetchStatus(str, Enum):
    DOWNLOADED = "downloaded"
    ALREADY_SATISFIED = "already_satisfied"
    FAILED = "failed"


@dataclass(frozen=True)
class FetchJob:
    """One episode flagged for download.

    Attributes:
        descriptor: The resolved episode.
        summary: Its manifest entry; ``actual_length`` is updated on success.
    """

    descriptor: EpisodeDescriptor
    summary: FileSummary

    @property
    def destination(self) -> Path:
        return Path(self.summary.local_filename)


@dataclass(frozen=True)
class FetchResult:
    identity: str
    status: FetchStatus
    error: Exception | None = None


def normalize_etag(etag: str) -> str:
    """Return an ETag without weak prefix or quotes, lowercased."""
    return etag.strip().removeprefix("W/").strip('"').lower()


def _is_encoded(response: httpx.Response) -> bool:
    encoding = response.headers.get("content-encoding", "").strip().lower()
    return encoding not in ("", "identity")


class FetchExecutor:
    """Download episodes through a bounded worker pool.

    Attributes:
        _client: Shared HTTP client.
        _ledger: Ledger updated after every successful transfer.
        _file_manager: Local file operations.
        _paths: Source of scratch file paths.
        _workers: Maximum concurrent transfers.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        ledger: LedgerDatabase,
        file_manager: FileManager,
        paths: PathManager,
        workers: int = DEFAULT_WORKERS,
    ):
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self._client = client
        self._ledger = ledger
        self._file_manager = file_manager
        self._paths = paths
        self._workers = workers
        logger.debug("FetchExecutor initialized.", extra={"workers": workers})

    async def _load_record(self, descriptor: EpisodeDescriptor) -> LedgerRecord:
        record = await self._ledger.get(descriptor.show, descriptor.identity)
        if record is None:
            raise LedgerRecordNotFoundError(
                "Episode queued for download has no ledger record.",
                show=descriptor.show,
                identity=descriptor.identity,
            )
        return record

    async def _already_satisfied(
        self, job: FetchJob, record: LedgerRecord, run_started_at: datetime
    ) -> bool:
        """Return True if this run already downloaded the file as recorded.

        The coordinator drops duplicate identities before building jobs, so
        this only fires when ``fetch_all`` is handed the same episode twice
        by a direct caller.
        """
        if record.date_last_downloaded < run_started_at:
            return False
        if record.filename != job.destination.name:
            return False
        local_size = await self._file_manager.file_size(job.destination)
        return local_size >= 0 and local_size == record.size

    async def _revalidate_existing(
        self, job: FetchJob, response: httpx.Response
    ) -> tuple[int, str] | None:
        """Compare an existing local file with the response headers.

        The ETag is compared with the local MD5 when present; otherwise
        Content-Length is compared with the local size, unless the body is
        content-encoded and the header counts compressed bytes.

        Returns:
            ``(size, md5)`` of the local file when it matches, else None.
        """
        local_size = await self._file_manager.file_size(job.destination)
        if local_size < 0:
            return None

        etag = response.headers.get("etag")
        if etag:
            local_hash = await self._file_manager.md5_hash(job.destination)
            if normalize_etag(etag) == local_hash:
                return local_size, local_hash
            return None

        if _is_encoded(response):
            return None
        content_length = response.headers.get("content-length")
        if content_length is not None and content_length.isdigit():
            if int(content_length) == local_size:
                return local_size, await self._file_manager.md5_hash(job.destination)
        return None

    async def _stream_to_scratch(
        self, job: FetchJob, response: httpx.Response, tmp_path: Path
    ) -> tuple[int, str]:
        """Write the response body to ``tmp_path`` while hashing it.

        Raises:
            FetchError: If fewer or more bytes arrived than Content-Length
                declares. The header counts bytes on the wire, so it is
                compared with the raw byte count, not the decoded size.
            OSError: If the scratch file cannot be written.
        """
        digest = hashlib.md5()
        written = 0
        async with aiofiles.open(tmp_path, "wb") as file:
            async for chunk in response.aiter_bytes():
                digest.update(chunk)
                await file.write(chunk)
                written += len(chunk)

        content_length = response.headers.get("content-length")
        received = response.num_bytes_downloaded
        if content_length is not None and content_length.isdigit():
            if int(content_length) != received:
                raise FetchError(
                    f"Received {received} bytes, expected {content_length}.",
                    show=job.descriptor.show,
                    identity=job.descriptor.identity,
                    url=job.descriptor.enclosure_url,
                )
        return written, digest.hexdigest()

    async def _record_success(
        self, job: FetchJob, record: LedgerRecord, size: int, md5_hash: str
    ) -> None:
        record.filename = job.destination.name
        record.size = size
        record.md5_hash = md5_hash
        record.date_last_downloaded = datetime.now(UTC)
        await self._ledger.update(record)
        job.summary.actual_length = size

    async def fetch_one(self, job: FetchJob, run_started_at: datetime) -> FetchResult:
        """Download one episode.

        Per-episode network, file and ledger failures are logged and
        reported as FAILED. Cancellation deletes the scratch file and
        propagates without touching the ledger.

        Raises:
            LedgerRecordNotFoundError: If the episode was never recorded.
            asyncio.CancelledError: If the transfer is cancelled.
        """
        descriptor = job.descriptor
        log_params: dict[str, Any] = {
            "show": descriptor.show,
            "identity": descriptor.identity,
            "file_name": job.destination.name,
            "url": descriptor.enclosure_url,
        }
        tmp_path: Path | None = None
        try:
            record = await self._load_record(descriptor)
            if await self._already_satisfied(job, record, run_started_at):
                logger.debug("Already downloaded during this run.", extra=log_params)
                job.summary.actual_length = record.size
                return FetchResult(descriptor.identity, FetchStatus.ALREADY_SATISFIED)

            async with self._client.stream(
                "GET", descriptor.enclosure_url, follow_redirects=True
            ) as response:
                response.raise_for_status()

                existing = await self._revalidate_existing(job, response)
                if existing is not None:
                    await self._record_success(job, record, *existing)
                    logger.info(
                        "Local file matches remote, skipping transfer.",
                        extra={**log_params, "decision": "skip_revalidated"},
                    )
                    return FetchResult(
                        descriptor.identity, FetchStatus.ALREADY_SATISFIED
                    )

                logger.info(
                    "Downloading episode.",
                    extra={**log_params, "decision": "download"},
                )
                tmp_path = self._paths.scratch_file()
                size, md5_hash = await self._stream_to_scratch(
                    job, response, tmp_path
                )

            await self._file_manager.publish(tmp_path, job.destination)
            tmp_path = None
            await self._record_success(job, record, size, md5_hash)
        except LedgerRecordNotFoundError:
            raise
        except (
            httpx.HTTPError,
            OSError,
            FetchError,
            FileOperationError,
            DatabaseOperationError,
        ) as e:
            logger.error("Episode download failed.", extra=log_params, exc_info=e)
            return FetchResult(descriptor.identity, FetchStatus.FAILED, e)
        finally:
            if tmp_path is not None:
                await self._file_manager.remove_quietly(tmp_path)

        logger.info(
            "Episode downloaded.",
            extra={**log_params, "size": size, "md5_hash": md5_hash},
        )
        return FetchResult(descriptor.identity, FetchStatus.DOWNLOADED)

    async def fetch_all(
        self, jobs: list[FetchJob], run_started_at: datetime
    ) -> PhaseResult:
        """Download every job with at most ``workers`` transfers in flight.

        Returns:
            PhaseResult counting downloaded episodes; failures are listed
            as errors.

        Raises:
            LedgerRecordNotFoundError: If any job was never recorded.
        """
        semaphore = asyncio.Semaphore(self._workers)

        async def worker(job: FetchJob) -> FetchResult:
            async with semaphore:
                return await self.fetch_one(job, run_started_at)

        results = await asyncio.gather(
            *(worker(job) for job in jobs), return_exceptions=True
        )

        errors: list[Exception] = []
        downloaded = 0
        for result in results:
            if isinstance(result, BaseException):
                # invariant violations and cancellation surface unchanged
                raise result
            if result.status == FetchStatus.DOWNLOADED:
                downloaded += 1
            elif result.error is not None:
                errors.append(result.error)

        return PhaseResult(success=not errors, count=downloaded, errors=errors)
