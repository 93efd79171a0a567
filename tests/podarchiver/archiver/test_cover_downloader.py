"""Tests for cover art downloads."""

from collections.abc import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
import respx

from podarchiver.archiver import CoverDownloader
from podarchiver.archiver.cover_downloader import cover_extension, original_cover_url
from podarchiver.exceptions import CoverDownloadError
from podarchiver.file_manager import FileManager
from podarchiver.path_manager import PathManager

COVER_URL = "https://cdn.example.com/art/cover.png?size=600"
ORIGINAL_URL = "https://cdn.example.com/art/cover.png"


@pytest_asyncio.fixture
async def cover_downloader(
    paths: PathManager, file_manager: FileManager
) -> AsyncGenerator[CoverDownloader]:
    await paths.ensure_base_dirs()
    await paths.ensure_show_dir("Show")
    async with httpx.AsyncClient() as client:
        yield CoverDownloader(client, paths, file_manager)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("url", "expected"),
    [
        (COVER_URL, ".png"),
        ("https://cdn.example.com/cover.JPEG", ".JPEG"),
        ("https://cdn.example.com/cover", ".jpg"),
    ],
)
def test_cover_extension(url: str, expected: str):
    assert cover_extension(url) == expected


@pytest.mark.unit
def test_original_cover_url():
    assert original_cover_url(COVER_URL) == ORIGINAL_URL
    assert original_cover_url(ORIGINAL_URL) is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_ensure_covers_downloads_both(
    cover_downloader: CoverDownloader, paths: PathManager, respx_mock: respx.MockRouter
):
    respx_mock.get(COVER_URL).mock(return_value=httpx.Response(200, content=b"small"))
    respx_mock.get(ORIGINAL_URL).mock(
        return_value=httpx.Response(200, content=b"original")
    )

    written = await cover_downloader.ensure_covers("Show", COVER_URL)

    assert written == [
        paths.cover_path("Show", ".png"),
        paths.cover_path("Show", ".png", original=True),
    ]
    assert paths.cover_path("Show", ".png").read_bytes() == b"small"
    assert paths.cover_path("Show", ".png", original=True).read_bytes() == b"original"
    assert list(paths.scratch_dir.iterdir()) == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_ensure_covers_skips_existing(
    cover_downloader: CoverDownloader, paths: PathManager, respx_mock: respx.MockRouter
):
    paths.cover_path("Show", ".png").write_bytes(b"kept")
    route = respx_mock.get(ORIGINAL_URL).mock(
        return_value=httpx.Response(200, content=b"original")
    )

    written = await cover_downloader.ensure_covers("Show", COVER_URL)

    assert written == [paths.cover_path("Show", ".png", original=True)]
    assert route.call_count == 1
    assert paths.cover_path("Show", ".png").read_bytes() == b"kept"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_ensure_covers_without_cover(cover_downloader: CoverDownloader):
    assert await cover_downloader.ensure_covers("Show", None) == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_ensure_covers_http_error(
    cover_downloader: CoverDownloader, paths: PathManager, respx_mock: respx.MockRouter
):
    respx_mock.get(ORIGINAL_URL).mock(return_value=httpx.Response(404))
    with pytest.raises(CoverDownloadError) as exc_info:
        await cover_downloader.ensure_covers("Show", ORIGINAL_URL)
    assert exc_info.value.url == ORIGINAL_URL
    assert not paths.cover_path("Show", ".png").exists()
