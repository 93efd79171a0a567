"""Async SQLite engine and session management for the ledger."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
import logging
from pathlib import Path
import sqlite3
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import CursorResult, Result
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import ConnectionPoolEntry
from sqlmodel import SQLModel

from ..exceptions import DatabaseOperationError

logger = logging.getLogger(__name__)

SQLITE_PRAGMAS = ("journal_mode = WAL", "synchronous = NORMAL")
BUSY_TIMEOUT_SECONDS = 60.0


def _apply_pragmas(
    dbapi_connection: sqlite3.Connection, _record: ConnectionPoolEntry
) -> None:
    cursor = dbapi_connection.cursor()
    try:
        for pragma in SQLITE_PRAGMAS:
            cursor.execute(f"PRAGMA {pragma};")
    finally:
        cursor.close()


class SqlalchemyCore:
    """Own the async engine for one ledger database file.

    Every new connection is switched to WAL journaling. The pool may open
    overflow connections, so writers are serialized by LedgerDatabase, not
    here.

    Attributes:
        engine: The async SQLAlchemy engine.
        async_session_maker: Factory for sessions that do not expire on commit.
    """

    def __init__(self, db_path: Path) -> None:
        self.engine: AsyncEngine = create_async_engine(
            f"sqlite+aiosqlite:///{db_path.resolve()}",
            pool_size=1,
            connect_args={
                "check_same_thread": False,
                "timeout": BUSY_TIMEOUT_SECONDS,
            },
        )
        event.listen(self.engine.sync_engine, "connect", _apply_pragmas)
        self.async_session_maker = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def create_schema(self) -> None:
        """Create any missing tables. Existing tables are left untouched.

        Raises:
            DatabaseOperationError: If the schema cannot be created.
        """
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
        except SQLAlchemyError as e:
            raise DatabaseOperationError("Failed to create ledger schema.") from e
        logger.debug("Ledger schema ensured.", extra={"db_url": str(self.engine.url)})

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession]:
        async with self.async_session_maker() as session:
            yield session

    async def close(self) -> None:
        await self.engine.dispose()

    @staticmethod
    def rowcount(result: Result[Any]) -> int:
        """Rows matched by an UPDATE.

        Raises:
            DatabaseOperationError: If the result does not come from a cursor.
        """
        if not isinstance(result, CursorResult):
            raise DatabaseOperationError(
                f"Cannot count rows of a {type(result).__name__}."
            )
        return result.rowcount
