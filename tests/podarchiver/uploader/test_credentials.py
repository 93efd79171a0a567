"""Tests for remote storage credential resolution."""

from pathlib import Path

import pytest

from podarchiver.exceptions import SetupError
from podarchiver.uploader import IACredentials, load_credentials


@pytest.fixture
def ia_config(tmp_path: Path) -> Path:
    path = tmp_path / "ia.ini"
    path.write_text("[s3]\naccess = file-access\nsecret = file-secret\n")
    return path


@pytest.mark.unit
def test_explicit_pair_wins(ia_config: Path):
    credentials = load_credentials("env-access", "env-secret", ia_config)
    assert credentials == IACredentials("env-access", "env-secret")


@pytest.mark.unit
def test_falls_back_to_config_file(ia_config: Path):
    credentials = load_credentials("env-access", None, ia_config)
    assert credentials == IACredentials("file-access", "file-secret")


@pytest.mark.unit
def test_missing_config_file(tmp_path: Path):
    with pytest.raises(SetupError) as exc_info:
        load_credentials(None, None, tmp_path / "missing.ini")
    assert exc_info.value.path == str(tmp_path / "missing.ini")


@pytest.mark.unit
@pytest.mark.parametrize(
    "content",
    ["[s3]\naccess = only-access\n", "[cookies]\nlogged-in-user = x\n", "no section"],
)
def test_incomplete_config_file(tmp_path: Path, content: str):
    path = tmp_path / "ia.ini"
    path.write_text(content)
    with pytest.raises(SetupError):
        load_credentials(None, None, path)


@pytest.mark.unit
def test_authorization_header_and_masked_repr():
    credentials = IACredentials("key", "hunter2")
    assert credentials.authorization_header == {"authorization": "LOW key:hunter2"}
    assert "hunter2" not in repr(credentials)
