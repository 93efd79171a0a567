"""Application configuration management for podarchiver.

This module defines the application settings model. Settings are sourced
from init arguments, environment variables and command-line flags; the
podcast list and show rule book are separate files referenced from here.
"""

from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RunMode(str, Enum):
    """Represent the two halves of the tool.

    ARCHIVE mirrors feeds into the local archive; UPLOAD mirrors the local
    archive to remote storage.
    """

    ARCHIVE = "archive"
    UPLOAD = "upload"


class AppSettings(BaseSettings):
    """Application settings.

    Attributes:
        mode: Which half of the tool to run.
        log_format: Format for application logs (human or json).
        log_level: Logging level for the application.
        log_include_stacktrace: Include full stack traces in error logs.
        data_dir: Root directory for the archive, scratch space and logs.
        config_file: Path to the podcasts JSON array.
        rules_file: Path to the show rule book YAML.
        workers: Concurrent transfers per show.
        http_timeout: Network timeout in seconds.
        ia_executable: Name or path of the remote upload tool.
        ia_download_base_url: Public download base URL of the remote store.
        ia_s3_base_url: Authenticated storage front-end base URL.
        ia_access_key: Remote storage access key.
        ia_secret_key: Remote storage secret key.
        ia_config_file: Upload tool config file holding the key pair.
    """

    mode: RunMode = Field(
        default=RunMode.ARCHIVE,
        validation_alias="MODE",
        description="Which half of the tool to run ('archive' or 'upload').",
    )
    log_format: Literal["human", "json"] = Field(
        default="human",
        validation_alias="LOG_FORMAT",
        description="Format for application logs ('human' or 'json').",
    )
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level for the application (e.g., DEBUG, INFO, WARNING, ERROR). Case-insensitive.",
    )
    log_include_stacktrace: bool = Field(
        default=False,
        validation_alias="LOG_INCLUDE_STACKTRACE",
        description="Include full stack traces in error logs (true/false).",
    )
    data_dir: Path = Field(
        default=Path("~/PodcastArchive"),
        validation_alias="DATA_DIR",
        description="Root directory for the archive, scratch files and logs.",
    )
    config_file: Path | None = Field(
        default=None,
        validation_alias="CONFIG_FILE",
        description="Path to the podcasts JSON file. Defaults to {data_dir}/podcasts.json.",
    )
    rules_file: Path | None = Field(
        default=None,
        validation_alias="RULES_FILE",
        description="Path to the show rules YAML file. Defaults to the bundled rules.",
    )
    workers: int = Field(
        default=8,
        ge=1,
        validation_alias="WORKERS",
        description="Concurrent downloads/uploads per show. Use 1 for sequential debugging.",
    )
    http_timeout: float = Field(
        default=900.0,
        gt=0,
        validation_alias="HTTP_TIMEOUT",
        description="Network timeout in seconds.",
    )

    # Remote storage
    ia_executable: str = Field(
        default="ia",
        validation_alias="IA_EXECUTABLE",
        description="Remote upload command-line tool.",
    )
    ia_download_base_url: str = Field(
        default="https://archive.org/download",
        validation_alias="IA_DOWNLOAD_BASE_URL",
        description="Public base URL that mirrored files are served from.",
    )
    ia_s3_base_url: str = Field(
        default="https://s3.us.archive.org",
        validation_alias="IA_S3_BASE_URL",
        description="Storage front-end base URL probed before uploading.",
    )
    ia_access_key: str | None = Field(
        default=None,
        validation_alias="IAS3_ACCESS_KEY",
        description="Remote storage access key.",
    )
    ia_secret_key: str | None = Field(
        default=None,
        validation_alias="IAS3_SECRET_KEY",
        description="Remote storage secret key.",
    )
    ia_config_file: Path | None = Field(
        default=None,
        validation_alias="IA_CONFIG_FILE",
        description="Upload tool config file; defaults to ~/.config/internetarchive/ia.ini.",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        cli_parse_args=True,
        cli_ignore_unknown_args=True,
        cli_kebab_case=True,
        extra="ignore",
    )

    @property
    def podcasts_file(self) -> Path:
        """Return the resolved podcasts JSON path."""
        if self.config_file is not None:
            return self.config_file.expanduser()
        return self.data_dir.expanduser() / "podcasts.json"
