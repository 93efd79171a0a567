"""Remote storage credentials."""

import configparser
from dataclasses import dataclass
import logging
from pathlib import Path

from ..exceptions import SetupError

logger = logging.getLogger(__name__)


def default_ia_config_file() -> Path:
    return Path.home() / ".config" / "internetarchive" / "ia.ini"


@dataclass(frozen=True)
class IACredentials:
    """An S3-style key pair for the remote store.

    Attributes:
        access_key: Access key.
        secret_key: Secret key.
    """

    access_key: str
    secret_key: str

    @property
    def authorization_header(self) -> dict[str, str]:
        """Return the header that authenticates storage front-end requests."""
        return {"authorization": f"LOW {self.access_key}:{self.secret_key}"}

    def __repr__(self) -> str:
        return f"IACredentials(access_key={self.access_key!r}, secret_key='***')"


def read_ia_config(config_file: Path) -> tuple[str, str] | None:
    """Return the ``[s3] access/secret`` pair from an upload tool config file.

    Returns:
        The pair, or None if the file lacks either value.

    Raises:
        SetupError: If the file cannot be read or parsed.
    """
    parser = configparser.ConfigParser()
    try:
        with Path.open(config_file, encoding="utf-8") as f:
            parser.read_file(f)
    except (OSError, configparser.Error) as e:
        raise SetupError(
            "Failed to read upload tool config file.", path=str(config_file)
        ) from e
    access = parser.get("s3", "access", fallback="").strip()
    secret = parser.get("s3", "secret", fallback="").strip()
    if not access or not secret:
        return None
    return access, secret


def load_credentials(
    access_key: str | None,
    secret_key: str | None,
    config_file: Path | None = None,
) -> IACredentials:
    """Resolve credentials from explicit values, falling back to the config file.

    Args:
        access_key: Access key from settings, if any.
        secret_key: Secret key from settings, if any.
        config_file: Upload tool config file; defaults to the tool's own.

    Raises:
        SetupError: If no complete key pair can be found.
    """
    if access_key and secret_key:
        return IACredentials(access_key, secret_key)

    config_file = (config_file or default_ia_config_file()).expanduser()
    if not config_file.is_file():
        raise SetupError(
            "No credentials in settings and no upload tool config file found.",
            path=str(config_file),
        )
    pair = read_ia_config(config_file)
    if pair is None:
        raise SetupError(
            "Upload tool config file has no [s3] access and secret.",
            path=str(config_file),
        )
    logger.debug(
        "Loaded credentials from upload tool config.",
        extra={"config_file": str(config_file)},
    )
    return IACredentials(*pair)
