"""Retrieve a show's feed and keep a snapshot of it."""

import logging

import httpx

from ..exceptions import FeedFetchError
from ..feed import FeedDocument, parse_feed
from ..file_manager import FileManager
from ..path_manager import PathManager

logger = logging.getLogger(__name__)


class FeedDownloader:
    """Fetch feeds and snapshot them to ``podcast.xml``.

    The previous snapshot is backed up with a timestamp suffix on each
    refresh.

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

    async def fetch(self, show: str, url: str) -> bytes:
        """Return the raw feed bytes.

        Raises:
            FeedFetchError: If the request fails or does not return 200.
        """
        if not url:
            raise FeedFetchError("Feed URL is not configured.", show=show, url=url)
        try:
            response = await self._client.get(url, follow_redirects=True)
        except httpx.HTTPError as e:
            raise FeedFetchError("Feed request failed.", show=show, url=url) from e
        if response.status_code != httpx.codes.OK:
            raise FeedFetchError(
                f"Feed request returned HTTP {response.status_code}.",
                show=show,
                url=url,
            )
        return response.content

    async def download(self, show: str, url: str) -> FeedDocument:
        """Fetch, snapshot and parse a show's feed.

        Raises:
            FeedFetchError: If the feed cannot be fetched or parsed.
            FileOperationError: If the snapshot cannot be written.
        """
        data = await self.fetch(show, url)
        await self._paths.ensure_show_dir(show)
        snapshot = self._paths.podcast_xml_path(show)
        await self._file_manager.backup_file(snapshot)
        await self._file_manager.write_bytes(snapshot, data)
        logger.debug(
            "Feed snapshot saved.",
            extra={"show": show, "file_path": str(snapshot), "size": len(data)},
        )
        try:
            return parse_feed(data)
        except FeedFetchError as e:
            e.show = show
            e.url = url
            raise
