"""Tests for the upload tool wrapper."""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from podarchiver.exceptions import UploadToolError
from podarchiver.uploader import IATool


def make_process(returncode: int, stdout: bytes = b"", stderr: bytes = b""):
    mock_proc = AsyncMock()
    mock_proc.returncode = returncode
    mock_proc.communicate.return_value = (stdout, stderr)
    return mock_proc


@pytest.mark.unit
@pytest.mark.asyncio
@patch("asyncio.create_subprocess_exec", new_callable=AsyncMock)
async def test_upload_success(mock_cse: AsyncMock, tmp_path: Path) -> None:
    mock_cse.return_value = make_process(0, b"uploaded")
    file_path = tmp_path / "episode.mp3"

    await IATool("ia").upload("my-item", file_path, "Show")

    args = mock_cse.call_args.args
    assert args == ("ia", "upload", "my-item", str(file_path))


@pytest.mark.unit
@pytest.mark.asyncio
@patch("asyncio.create_subprocess_exec", new_callable=AsyncMock)
async def test_upload_failure(mock_cse: AsyncMock, tmp_path: Path) -> None:
    mock_cse.return_value = make_process(1, b"", b"403 Forbidden")

    with pytest.raises(UploadToolError) as exc_info:
        await IATool().upload("my-item", tmp_path / "episode.mp3", "Show")

    assert exc_info.value.return_code == 1
    assert exc_info.value.output == "403 Forbidden"
    assert exc_info.value.file_name == "episode.mp3"
    assert exc_info.value.show == "Show"


@pytest.mark.unit
@pytest.mark.asyncio
@patch("asyncio.create_subprocess_exec", new_callable=AsyncMock)
async def test_version(mock_cse: AsyncMock) -> None:
    mock_cse.return_value = make_process(0, b"5.4.0\n")
    assert await IATool().version() == "5.4.0"


@pytest.mark.unit
@pytest.mark.asyncio
@patch("asyncio.create_subprocess_exec", new_callable=AsyncMock)
async def test_missing_executable(mock_cse: AsyncMock) -> None:
    mock_cse.side_effect = FileNotFoundError("ia")
    with pytest.raises(UploadToolError, match="not found"):
        await IATool().version()
