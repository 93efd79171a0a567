"""Sync ledger: the durable per-episode record of what has been archived.

Records are keyed by ``(show, identity)``, created on first sighting and
never deleted. Writes are serialized by one lock, so concurrent first
sightings of the same episode produce exactly one record.
"""

import asyncio
import logging

from sqlalchemy import func, update
from sqlmodel import col, select

from ..exceptions import LedgerRecordNotFoundError
from .decorators import handle_ledger_db_errors
from .sqlalchemy_core import SqlalchemyCore
from .types import LedgerRecord, ledger_key

logger = logging.getLogger(__name__)


class LedgerDatabase:
    """Manage all ledger reads and writes.

    Every method returns detached records: callers may hold and mutate them
    freely and hand them back to ``update``.

    Attributes:
        _db: Core SQLAlchemy database manager.
        _lock: Serializes every write (get-or-create and update).
    """

    def __init__(self, db_core: SqlalchemyCore):
        self._db = db_core
        self._lock = asyncio.Lock()

    @handle_ledger_db_errors("get or create ledger record")
    async def get_or_create(
        self, show: str, identity: str, filename: str
    ) -> LedgerRecord:
        """Return the record for ``(show, identity)``, creating it if absent.

        A new record carries ``filename``, size -1, an empty hash and a
        last-downloaded time of epoch zero. An existing record is returned
        unchanged, even if ``filename`` differs.

        Args:
            show: Show name.
            identity: Canonical episode identity.
            filename: Canonical filename, used only when creating.

        Returns:
            The existing or newly created record.

        Raises:
            DatabaseOperationError: If the database operation fails.
        """
        key = ledger_key(show, identity)
        async with self._lock, self._db.session() as session:
            existing = await session.get(LedgerRecord, key)
            if existing is not None:
                return existing
            record = LedgerRecord.new(show, identity, filename)
            session.add(record)
            await session.commit()
        logger.debug(
            "Ledger record created.",
            extra={"show": show, "identity": identity, "file_name": filename},
        )
        return record

    @handle_ledger_db_errors("get ledger record")
    async def get(self, show: str, identity: str) -> LedgerRecord | None:
        """Return the record for ``(show, identity)`` or None."""
        async with self._db.session() as session:
            return await session.get(LedgerRecord, ledger_key(show, identity))

    @handle_ledger_db_errors(
        "update ledger record", show_from="record.show", identity_from="record.identity"
    )
    async def update(self, record: LedgerRecord) -> None:
        """Persist every mutable field of a record in place.

        Raises:
            LedgerRecordNotFoundError: If the record was never created.
            DatabaseOperationError: If the database operation fails.
        """
        async with self._lock, self._db.session() as session:
            stmt = (
                update(LedgerRecord)
                .where(col(LedgerRecord.key) == record.key)
                .values(
                    filename=record.filename,
                    size=record.size,
                    md5_hash=record.md5_hash,
                    date_last_downloaded=record.date_last_downloaded,
                )
            )
            res = await session.execute(stmt)
            await session.commit()

        if self._db.rowcount(res) == 0:
            raise LedgerRecordNotFoundError(
                "Ledger record not found.", show=record.show, identity=record.identity
            )
        logger.debug(
            "Ledger record updated.",
            extra={
                "show": record.show,
                "identity": record.identity,
                "size": record.size,
            },
        )

    @handle_ledger_db_errors("count ledger records", identity_from=None)
    async def count(self, show: str | None = None) -> int:
        """Return the number of records, optionally for a single show."""
        stmt = select(func.count()).select_from(LedgerRecord)
        if show is not None:
            stmt = stmt.where(col(LedgerRecord.show) == show)
        async with self._db.session() as session:
            return (await session.execute(stmt)).scalar_one()

    @handle_ledger_db_errors("list ledger records", identity_from=None)
    async def list_for_show(self, show: str) -> list[LedgerRecord]:
        """Return all records of a show ordered by filename."""
        stmt = (
            select(LedgerRecord)
            .where(col(LedgerRecord.show) == show)
            .order_by(col(LedgerRecord.filename))
        )
        async with self._db.session() as session:
            return list((await session.execute(stmt)).scalars().all())
