"""Helpers for resolving archive file system paths and remote URLs."""

import logging
from pathlib import Path
from urllib.parse import quote
import uuid

import aiofiles.os

from .exceptions import FileOperationError

logger = logging.getLogger(__name__)

PODCAST_XML = "podcast.xml"
PODCAST_RSS = "podcast.rss"
SUMMARY_JSON = "summary.json"
DATABASE_FILE = "database.db"
ALL_MP3S_TXT = "all_mp3s.txt"
LOG_FILE = "podarchiver.log"


class PathManager:
    """Centralized management of archive paths and remote URLs.

    Provides a single source of truth for where every artifact of a show
    lives on disk, and where its remote counterpart lives once mirrored.

    Layout::

        {data_dir}/archive/database.db
        {data_dir}/archive/all_mp3s.txt
        {data_dir}/archive/{show}/podcast.xml, podcast.rss, summary.json, cover.*
        {data_dir}/tmp/          scratch space for in-flight downloads
        {data_dir}/logs/         rolling log files

    Attributes:
        _base_data_dir: Root directory for all application data.
        _download_base_url: Public download base of the remote store.
        _s3_base_url: Authenticated S3-like base of the remote store.
    """

    def __init__(
        self,
        base_data_dir: Path,
        download_base_url: str = "https://archive.org/download",
        s3_base_url: str = "https://s3.us.archive.org",
    ):
        self._base_data_dir = Path(base_data_dir).expanduser().resolve()
        self._download_base_url = download_base_url.rstrip("/")
        self._s3_base_url = s3_base_url.rstrip("/")

    @property
    def base_data_dir(self) -> Path:
        """Return the root data directory."""
        return self._base_data_dir

    @property
    def archive_dir(self) -> Path:
        """Return the directory holding every show's archive."""
        return self._base_data_dir / "archive"

    @property
    def scratch_dir(self) -> Path:
        """Return the directory used for in-flight downloads."""
        return self._base_data_dir / "tmp"

    @property
    def logs_dir(self) -> Path:
        """Return the directory used for log files."""
        return self._base_data_dir / "logs"

    @property
    def database_path(self) -> Path:
        return self.archive_dir / DATABASE_FILE

    @property
    def all_mp3s_path(self) -> Path:
        return self.archive_dir / ALL_MP3S_TXT

    @property
    def log_file_path(self) -> Path:
        return self.logs_dir / LOG_FILE

    async def ensure_base_dirs(self) -> None:
        """Create the archive, scratch and logs directories.

        Raises:
            FileOperationError: If any directory cannot be created.
        """
        for path in (self.archive_dir, self.scratch_dir, self.logs_dir):
            try:
                await aiofiles.os.makedirs(path, exist_ok=True)
            except OSError as e:
                raise FileOperationError(
                    "Failed to create base directory.",
                    file_name=str(path),
                ) from e

    def show_dir(self, show: str) -> Path:
        """Return the directory for a show's archive without creating it.

        Args:
            show: The show name.

        Returns:
            Path to the show's directory.

        Raises:
            ValueError: If show is empty or whitespace-only.
        """
        if not show or not show.strip():
            raise ValueError("show cannot be empty or whitespace-only")
        return self.archive_dir / show

    async def ensure_show_dir(self, show: str) -> Path:
        """Return the directory for a show's archive, creating it if needed.

        Raises:
            ValueError: If show is empty or whitespace-only.
            FileOperationError: If the directory cannot be created.
        """
        path = self.show_dir(show)
        try:
            await aiofiles.os.makedirs(path, exist_ok=True)
        except OSError as e:
            raise FileOperationError(
                "Failed to create show directory.",
                show=show,
                file_name=str(path),
            ) from e
        return path

    def podcast_xml_path(self, show: str) -> Path:
        return self.show_dir(show) / PODCAST_XML

    def podcast_rss_path(self, show: str) -> Path:
        return self.show_dir(show) / PODCAST_RSS

    def summary_path(self, show: str) -> Path:
        return self.show_dir(show) / SUMMARY_JSON

    def cover_path(self, show: str, ext: str, original: bool = False) -> Path:
        """Return the path of a show's cover image.

        Args:
            show: The show name.
            ext: File extension including the leading dot (may be empty).
            original: Whether this is the unresized original cover.
        """
        stem = "cover_original" if original else "cover"
        return self.show_dir(show) / f"{stem}{ext}"

    def episode_path(self, show: str, file_name: str) -> Path:
        """Return the path of an episode file.

        Raises:
            ValueError: If show or file_name is empty, or file_name is not a bare name.
        """
        if not file_name or not file_name.strip():
            raise ValueError("file_name cannot be empty or whitespace-only")
        if Path(file_name).name != file_name:
            raise ValueError(f"file_name must not contain a directory: {file_name}")
        return self.show_dir(show) / file_name

    def scratch_file(self) -> Path:
        """Return a unique temporary file path inside the scratch directory."""
        return self.scratch_dir / f"tmp_{uuid.uuid4().hex}.part"

    def remote_download_url(self, ia_identifier: str, file_name: str) -> str:
        """Return the public URL of a mirrored file.

        Args:
            ia_identifier: Remote item identifier of the show.
            file_name: Bare file name; it is percent-encoded.
        """
        return f"{self._download_base_url}/{ia_identifier}/{quote(file_name, safe='')}"

    def remote_s3_url(self, ia_identifier: str, file_name: str) -> str:
        """Return the storage front-end URL of a mirrored file."""
        return f"{self._s3_base_url}/{ia_identifier}/{quote(file_name, safe='')}"
