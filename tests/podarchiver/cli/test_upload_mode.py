"""Tests for the upload mode entry point."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from pytest import MonkeyPatch

from podarchiver.cli.upload import run_upload_mode
from podarchiver.config import AppSettings
from podarchiver.exceptions import UploadToolError
from podarchiver.path_manager import PathManager


@pytest.fixture
def settings(monkeypatch: MonkeyPatch, tmp_path: Path) -> AppSettings:
    for name in ("CONFIG_FILE", "IAS3_ACCESS_KEY", "IAS3_SECRET_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("IA_CONFIG_FILE", str(tmp_path / "missing-ia.ini"))
    return AppSettings(_cli_parse_args=False)  # type: ignore[call-arg]


@pytest.fixture
def upload_paths(settings: AppSettings) -> PathManager:
    return PathManager(settings.data_dir)


def write_podcasts(settings: AppSettings, podcasts: list[dict[str, object]]) -> None:
    settings.podcasts_file.parent.mkdir(parents=True, exist_ok=True)
    settings.podcasts_file.write_text(json.dumps(podcasts))


@pytest.mark.unit
@pytest.mark.asyncio
async def test_missing_podcasts_file(settings: AppSettings, upload_paths: PathManager):
    assert await run_upload_mode(settings, upload_paths) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_no_podcasts(settings: AppSettings, upload_paths: PathManager):
    write_podcasts(settings, [])
    assert await run_upload_mode(settings, upload_paths) == 0


@pytest.mark.unit
@pytest.mark.asyncio
@patch("podarchiver.cli.upload.IATool.version", new_callable=AsyncMock)
async def test_upload_tool_missing(
    mock_version: AsyncMock, settings: AppSettings, upload_paths: PathManager
):
    write_podcasts(settings, [{"name": "Show", "ia_identifier": "x", "enabled": True}])
    mock_version.side_effect = UploadToolError("ia executable not found")
    assert await run_upload_mode(settings, upload_paths) == 1


@pytest.mark.unit
@pytest.mark.asyncio
@patch("podarchiver.cli.upload.IATool.version", new_callable=AsyncMock)
async def test_missing_credentials(
    mock_version: AsyncMock, settings: AppSettings, upload_paths: PathManager
):
    write_podcasts(settings, [{"name": "Show", "ia_identifier": "x", "enabled": True}])
    mock_version.return_value = "5.4.0"
    assert await run_upload_mode(settings, upload_paths) == 1


@pytest.mark.unit
@pytest.mark.asyncio
@patch("podarchiver.cli.upload.IATool.version", new_callable=AsyncMock)
async def test_upload_run_with_disabled_shows(
    mock_version: AsyncMock,
    monkeypatch: MonkeyPatch,
    settings: AppSettings,
    upload_paths: PathManager,
):
    write_podcasts(settings, [{"name": "Show", "ia_identifier": "x", "enabled": False}])
    mock_version.return_value = "5.4.0"
    monkeypatch.setattr(settings, "ia_access_key", "access")
    monkeypatch.setattr(settings, "ia_secret_key", "secret")
    assert await run_upload_mode(settings, upload_paths) == 0
