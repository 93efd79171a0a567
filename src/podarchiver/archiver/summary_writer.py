"""Write the per-show manifest and the archive-wide listing."""

from collections.abc import Mapping
import json
import logging
from pathlib import Path

from ..exceptions import FileOperationError
from ..file_manager import FileManager
from ..path_manager import PathManager
from .types import FILE_SUMMARY_LIST, FileSummary

logger = logging.getLogger(__name__)


def render_listing(files_by_show: Mapping[str, list[str]]) -> str:
    """Render ``all_mp3s.txt``: each show name followed by its indented files.

    Shows and files are sorted so the listing diffs cleanly between runs.
    """
    lines: list[str] = []
    for show in sorted(files_by_show):
        lines.append(show)
        lines.extend(f"    {name}" for name in sorted(files_by_show[show]))
        lines.append("")
    return "\n".join(lines)


class SummaryWriter:
    """Serialize manifests; any previous file is backed up before overwrite.

    Attributes:
        _paths: Archive path resolver.
        _file_manager: Local file operations.
    """

    def __init__(self, paths: PathManager, file_manager: FileManager):
        self._paths = paths
        self._file_manager = file_manager

    async def write_manifest(self, show: str, summaries: list[FileSummary]) -> Path:
        """Write ``summary.json`` for a show.

        Raises:
            FileOperationError: If the backup or write fails.
        """
        path = self._paths.summary_path(show)
        payload = FILE_SUMMARY_LIST.dump_python(summaries, mode="json", by_alias=True)
        data = (json.dumps(payload, indent=2) + "\n").encode()
        await self._file_manager.backup_file(path)
        await self._file_manager.write_bytes(path, data)
        logger.info(
            "Manifest written.",
            extra={"show": show, "file_path": str(path), "entry_count": len(summaries)},
        )
        return path

    async def read_manifest(self, show: str) -> list[FileSummary]:
        """Load a show's ``summary.json``.

        Raises:
            FileOperationError: If the manifest is missing or unreadable.
        """
        path = self._paths.summary_path(show)
        try:
            chunks = [c async for c in self._file_manager.stream_file_chunks(path)]
            return FILE_SUMMARY_LIST.validate_json(b"".join(chunks))
        except (OSError, ValueError) as e:
            raise FileOperationError(
                "Failed to read manifest.", show=show, file_name=str(path)
            ) from e

    async def write_listing(self, files_by_show: Mapping[str, list[str]]) -> Path:
        """Write ``all_mp3s.txt`` for the whole archive.

        Raises:
            FileOperationError: If the backup or write fails.
        """
        path = self._paths.all_mp3s_path
        await self._file_manager.backup_file(path)
        data = render_listing(files_by_show).encode()
        await self._file_manager.write_bytes(path, data)
        logger.info(
            "Archive listing written.",
            extra={"file_path": str(path), "show_count": len(files_by_show)},
        )
        return path
