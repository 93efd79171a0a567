"""File system management for the podcast archive.

This module provides the FileManager class for the small set of file
operations the archiver and uploader need: size and hash probes, timestamped
backups, atomic publishing of finished downloads and scratch cleanup.
"""

from collections.abc import AsyncIterator
from datetime import UTC, datetime
import hashlib
import logging
from pathlib import Path

import aiofiles
import aiofiles.os

from .exceptions import FileOperationError
from .path_manager import PathManager

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def backup_name(path: Path, when: datetime) -> Path:
    """Return the timestamped sibling used to back up ``path``.

    ``summary.json`` becomes ``summary_20240131_235959.json``.
    """
    stamp = when.astimezone(UTC).strftime("%Y%m%d_%H%M%S")
    return path.with_name(f"{path.stem}_{stamp}{path.suffix}")


class FileManager:
    """Manage archive files on the filesystem.

    Attributes:
        _paths: PathManager instance for coordinating file paths.
    """

    def __init__(self, paths: PathManager):
        self._paths = paths
        logger.debug(
            "FileManager initialized.",
            extra={"archive_dir": str(self._paths.archive_dir)},
        )

    async def file_size(self, path: Path) -> int:
        """Return the byte size of a regular file, or -1 if it does not exist.

        Raises:
            FileOperationError: If an OS-level error occurs other than absence.
        """
        try:
            if not await aiofiles.os.path.isfile(path):
                return -1
            stat = await aiofiles.os.stat(path)
        except FileNotFoundError:
            return -1
        except OSError as e:
            raise FileOperationError(
                "Failed to stat file.", file_name=str(path)
            ) from e
        return stat.st_size

    async def file_exists(self, path: Path) -> bool:
        return await self.file_size(path) >= 0

    async def md5_hash(self, path: Path) -> str:
        """Compute the lowercase hex MD5 digest of a file.

        Raises:
            FileNotFoundError: If the file does not exist.
            FileOperationError: If the file cannot be read.
        """
        digest = hashlib.md5()
        try:
            async for chunk in self.stream_file_chunks(path):
                digest.update(chunk)
        except FileNotFoundError:
            raise
        except OSError as e:
            raise FileOperationError(
                "Failed to hash file.", file_name=str(path)
            ) from e
        return digest.hexdigest()

    async def stream_file_chunks(self, path: Path) -> AsyncIterator[bytes]:
        """Yield a file's content in fixed-size chunks."""
        async with aiofiles.open(path, mode="rb") as file:
            while chunk := await file.read(CHUNK_SIZE):
                yield chunk

    async def backup_file(self, path: Path, when: datetime | None = None) -> Path | None:
        """Move an existing file aside to a timestamped backup name.

        Args:
            path: The file to back up.
            when: Timestamp used for the backup name; defaults to now.

        Returns:
            The backup path, or None when there was nothing to back up.

        Raises:
            FileOperationError: If the file exists but cannot be moved.
        """
        if not await self.file_exists(path):
            return None
        target = backup_name(path, when or datetime.now(UTC))
        try:
            await aiofiles.os.replace(path, target)
        except OSError as e:
            raise FileOperationError(
                "Failed to back up file.", file_name=str(path)
            ) from e
        logger.debug(
            "Backed up file.", extra={"file_path": str(path), "backup": str(target)}
        )
        return target

    async def write_bytes(self, path: Path, data: bytes) -> None:
        """Write a whole file.

        Raises:
            FileOperationError: If the file cannot be written.
        """
        try:
            async with aiofiles.open(path, "wb") as file:
                await file.write(data)
        except OSError as e:
            raise FileOperationError(
                "Failed to write file.", file_name=str(path)
            ) from e

    async def publish(self, tmp_path: Path, final_path: Path) -> None:
        """Atomically move a finished scratch file over its destination.

        Raises:
            FileOperationError: If the rename fails.
        """
        try:
            await aiofiles.os.replace(tmp_path, final_path)
        except OSError as e:
            raise FileOperationError(
                "Failed to move file to final location.", file_name=str(final_path)
            ) from e

    async def rename(self, old_path: Path, new_path: Path) -> None:
        """Rename a file, refusing to clobber an existing destination.

        Raises:
            FileExistsError: If the destination already exists.
            FileOperationError: If the rename fails.
        """
        if await self.file_exists(new_path):
            raise FileExistsError(f"Destination already exists: {new_path}")
        try:
            await aiofiles.os.rename(old_path, new_path)
        except OSError as e:
            raise FileOperationError(
                "Failed to rename file.", file_name=str(old_path)
            ) from e

    async def remove_quietly(self, path: Path) -> None:
        """Delete a file if present, logging instead of raising on failure."""
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            pass
        except OSError:
            logger.warning(
                "Failed to clean up temporary file.", extra={"tmp_path": str(path)}
            )

    async def clear_scratch_dir(self) -> int:
        """Delete every file in the scratch directory.

        Files left behind by an interrupted run are never trusted.

        Returns:
            Number of files removed.

        Raises:
            FileOperationError: If the directory cannot be created or listed.
        """
        scratch = self._paths.scratch_dir
        try:
            await aiofiles.os.makedirs(scratch, exist_ok=True)
            names = await aiofiles.os.listdir(scratch)
        except OSError as e:
            raise FileOperationError(
                "Failed to prepare scratch directory.", file_name=str(scratch)
            ) from e

        removed = 0
        for name in names:
            path = scratch / name
            if await aiofiles.os.path.isfile(path):
                await self.remove_quietly(path)
                removed += 1
        if removed:
            logger.info(
                "Purged stale scratch files.",
                extra={"scratch_dir": str(scratch), "count": removed},
            )
        return removed

    async def list_files(self, directory: Path) -> list[Path]:
        """Return the regular files directly inside ``directory``, sorted.

        Raises:
            FileOperationError: If the directory cannot be listed.
        """
        try:
            names = await aiofiles.os.listdir(directory)
        except OSError as e:
            raise FileOperationError(
                "Failed to list directory.", file_name=str(directory)
            ) from e
        files = [
            directory / name
            for name in names
            if await aiofiles.os.path.isfile(directory / name)
        ]
        return sorted(files)
