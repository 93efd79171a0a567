"""Cover art downloading for shows."""

import logging
from pathlib import Path, PurePosixPath
from urllib.parse import urlparse, urlunparse

import aiofiles
import httpx

from ..exceptions import CoverDownloadError
from ..file_manager import FileManager
from ..path_manager import PathManager

logger = logging.getLogger(__name__)

DEFAULT_COVER_EXTENSION = ".jpg"


def cover_extension(url: str) -> str:
    """Return the extension of a cover URL's path, or ``.jpg``."""
    suffix = PurePosixPath(urlparse(url).path).suffix
    return suffix if suffix else DEFAULT_COVER_EXTENSION


def original_cover_url(url: str) -> str | None:
    """Return the URL without its query string, or None if it has none.

    Providers serve resized covers through query parameters; dropping them
    yields the original image.
    """
    parsed = urlparse(url)
    if not parsed.query:
        return None
    return urlunparse(parsed._replace(query=""))


class CoverDownloader:
    """Download and store show covers as ``cover{ext}`` / ``cover_original{ext}``.

    Covers are only fetched when missing locally.

    Attributes:
        _client: Shared HTTP client.
        _paths: Archive path resolver.
        _file_manager: Local file operations.
    """

    def __init__(
        self, client: httpx.AsyncClient, paths: PathManager, file_manager: FileManager
    ):
        self._client = client
        self._paths = paths
        self._file_manager = file_manager
        logger.debug("CoverDownloader initialized.")

    async def _download_to(self, show: str, url: str, final_path: Path) -> None:
        """Download ``url`` to ``final_path`` through a scratch file.

        Raises:
            CoverDownloadError: If the image cannot be downloaded or stored.
        """
        try:
            response = await self._client.get(url, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise CoverDownloadError(
                "HTTP request failed for cover download", show=show, url=url
            ) from e

        tmp_path = self._paths.scratch_file()
        try:
            try:
                async with aiofiles.open(tmp_path, "wb") as file:
                    await file.write(response.content)
            except OSError as e:
                raise CoverDownloadError(
                    "Failed to write temporary cover file", show=show, url=url
                ) from e
            await self._file_manager.publish(tmp_path, final_path)
        finally:
            await self._file_manager.remove_quietly(tmp_path)

    async def ensure_covers(self, show: str, cover_url: str | None) -> list[Path]:
        """Download whichever of the show's covers are missing.

        Returns:
            Paths of the covers written by this call.

        Raises:
            CoverDownloadError: If a cover cannot be downloaded or stored.
            FileOperationError: If a downloaded cover cannot be moved into place.
        """
        if not cover_url:
            logger.debug("Feed declares no cover.", extra={"show": show})
            return []

        ext = cover_extension(cover_url)
        targets: list[tuple[str, Path]] = [
            (cover_url, self._paths.cover_path(show, ext))
        ]
        original_url = original_cover_url(cover_url)
        if original_url is not None:
            targets.append(
                (original_url, self._paths.cover_path(show, ext, original=True))
            )

        written: list[Path] = []
        for url, path in targets:
            if await self._file_manager.file_exists(path):
                continue
            await self._download_to(show, url, path)
            logger.info(
                "Cover downloaded.",
                extra={"show": show, "url": url, "file_path": str(path)},
            )
            written.append(path)
        return written
