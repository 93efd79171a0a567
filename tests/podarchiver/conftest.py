"""Shared fixtures for podarchiver tests."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio

from podarchiver.db import LedgerDatabase, SqlalchemyCore
from podarchiver.file_manager import FileManager
from podarchiver.path_manager import PathManager

DOWNLOAD_BASE_URL = "https://archive.example.org/download"
S3_BASE_URL = "https://s3.example.org"


@pytest.fixture
def paths(tmp_path: Path) -> PathManager:
    """Provides a PathManager rooted in a temporary data directory."""
    return PathManager(tmp_path / "data", DOWNLOAD_BASE_URL, S3_BASE_URL)


@pytest.fixture
def file_manager(paths: PathManager) -> FileManager:
    return FileManager(paths)


@pytest_asyncio.fixture
async def db_core(tmp_path: Path) -> AsyncGenerator[SqlalchemyCore]:
    """Provides a SqlalchemyCore with the ledger schema created."""
    core = SqlalchemyCore(tmp_path / "database.db")
    await core.create_schema()
    yield core
    await core.close()


@pytest_asyncio.fixture
async def ledger(db_core: SqlalchemyCore) -> LedgerDatabase:
    return LedgerDatabase(db_core)
