"""Decide per episode whether the local archive must be refreshed."""

import logging
from pathlib import Path

from ..config.show_rules import ShowRuleBook
from ..db import LedgerDatabase, LedgerRecord
from ..file_manager import FileManager
from ..metadata import EpisodeDescriptor
from .types import DownloadDecision, FileSummary

logger = logging.getLogger(__name__)


class DownloadReconciler:
    """Compare local state with the feed's declared length.

    Byte-length equality is only a heuristic; the fetcher applies a stronger
    ETag / Content-Length check before actually transferring anything.

    Attributes:
        _rule_book: Source of the per-show length tolerance flag.
        _ledger: Ledger used to backfill unknown sizes.
        _file_manager: Local file probes.
    """

    def __init__(
        self,
        rule_book: ShowRuleBook,
        ledger: LedgerDatabase,
        file_manager: FileManager,
    ):
        self._rule_book = rule_book
        self._ledger = ledger
        self._file_manager = file_manager

    def decide(
        self, show: str, local_size: int, declared_length: int
    ) -> DownloadDecision:
        """Pure decision for one episode given its local and declared sizes.

        Args:
            show: Show name, for the length tolerance allowlist.
            local_size: Size of the local file, -1 if there is none.
            declared_length: Feed-declared enclosure length.
        """
        if local_size < 0:
            return DownloadDecision.NEEDS_DOWNLOAD
        if local_size == declared_length:
            return DownloadDecision.SKIP_UP_TO_DATE
        if self._rule_book.tolerates_length_mismatch(show):
            return DownloadDecision.SKIP_SIZE_MISMATCH_TOLERATED
        return DownloadDecision.NEEDS_DOWNLOAD

    async def reconcile(
        self,
        descriptor: EpisodeDescriptor,
        record: LedgerRecord,
        summary: FileSummary,
    ) -> DownloadDecision:
        """Decide and record the outcome on the episode's manifest entry.

        NEEDS_DOWNLOAD sets ``summary.remote_url``; the skip decisions leave it
        empty. ``summary.actual_length`` is set to the current local size.

        Raises:
            FileOperationError: If the local file cannot be inspected.
            DatabaseOperationError: If the size backfill fails.
        """
        local_path = Path(summary.local_filename)
        local_size = await self._file_manager.file_size(local_path)
        decision = self.decide(descriptor.show, local_size, descriptor.declared_length)

        summary.actual_length = local_size
        summary.remote_url = (
            descriptor.enclosure_url
            if decision == DownloadDecision.NEEDS_DOWNLOAD
            else ""
        )

        if decision == DownloadDecision.SKIP_UP_TO_DATE and record.size < 0:
            record.size = local_size
            await self._ledger.update(record)
            logger.debug(
                "Backfilled unknown ledger size.",
                extra={
                    "show": descriptor.show,
                    "identity": descriptor.identity,
                    "size": local_size,
                },
            )

        logger.debug(
            "Episode reconciled.",
            extra={
                "show": descriptor.show,
                "identity": descriptor.identity,
                "file_name": local_path.name,
                "decision": decision.value,
                "local_size": local_size,
                "declared_length": descriptor.declared_length,
            },
        )
        return decision
