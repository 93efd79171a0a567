"""Custom exceptions for the podarchiver application.

This module defines all custom exception classes used throughout the
application, organized by functional area and providing structured
error information for better debugging and error handling.
"""


class PodArchiverError(Exception):
    """Base class for application-specific errors."""


class ConfigLoadError(PodArchiverError):
    """Raised when a configuration file fails to load.

    Attributes:
        config_file: Path to the configuration file that failed to load.
    """

    def __init__(
        self,
        message: str,
        config_file: str | None = None,
    ):
        super().__init__(message)
        self.config_file = config_file


class SetupError(PodArchiverError):
    """Raised when the run cannot be set up (directories, external tools).

    Attributes:
        path: The path or tool associated with the error.
    """

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class FileOperationError(PodArchiverError):
    """Raised when a file operation fails.

    Attributes:
        show: The show associated with the error.
        file_name: The file name associated with the error.
    """

    def __init__(
        self,
        message: str,
        show: str | None = None,
        file_name: str | None = None,
    ):
        super().__init__(message)
        self.show = show
        self.file_name = file_name


# --- Per-entry data defects ---


class EpisodeDataError(PodArchiverError):
    """Base class for defects in a single feed entry.

    These are expected data messiness: the entry is logged and skipped.

    Attributes:
        title: The raw title of the offending entry, if known.
    """

    def __init__(self, message: str, title: str | None = None):
        super().__init__(message)
        self.title = title


class InvalidIdentifierError(EpisodeDataError):
    """Raised when a raw identifier is neither a 36-char identity nor an int32.

    Attributes:
        raw_identifier: The identifier as it appeared in the feed.
        title: The raw title of the offending entry.
    """

    def __init__(self, raw_identifier: str, title: str | None = None):
        super().__init__("Identifier is not a valid identity or integer.", title)
        self.raw_identifier = raw_identifier


class MissingFieldError(EpisodeDataError):
    """Raised when a required feed entry field is absent or empty.

    Attributes:
        field_name: The name of the missing field.
        title: The raw title of the offending entry, if known.
    """

    def __init__(self, field_name: str, title: str | None = None):
        super().__init__("Field is required", title)
        self.field_name = field_name


# --- Transfers ---


class FeedFetchError(PodArchiverError):
    """Raised when a show's feed cannot be retrieved or parsed.

    Attributes:
        show: The show whose feed failed.
        url: The feed URL.
    """

    def __init__(self, message: str, show: str | None = None, url: str | None = None):
        super().__init__(message)
        self.show = show
        self.url = url


class FetchError(PodArchiverError):
    """Raised when a single episode transfer fails.

    Attributes:
        show: The show the episode belongs to.
        identity: The episode identity.
        url: The remote URL being fetched.
    """

    def __init__(
        self,
        message: str,
        show: str | None = None,
        identity: str | None = None,
        url: str | None = None,
    ):
        super().__init__(message)
        self.show = show
        self.identity = identity
        self.url = url


class CoverDownloadError(PodArchiverError):
    """Raised when cover art cannot be downloaded.

    Attributes:
        show: The show whose cover failed.
        url: The cover URL.
    """

    def __init__(self, message: str, show: str | None = None, url: str | None = None):
        super().__init__(message)
        self.show = show
        self.url = url


# --- Ledger ---


class DatabaseOperationError(PodArchiverError):
    """Raised when a ledger database operation fails.

    Attributes:
        show: The show associated with the error.
        identity: The episode identity associated with the error.
    """

    def __init__(
        self,
        message: str,
        show: str | None = None,
        identity: str | None = None,
    ):
        super().__init__(message)
        self.show = show
        self.identity = identity


class LedgerRecordNotFoundError(DatabaseOperationError):
    """Raised when updating a ledger record that was never created.

    This signals a bookkeeping bug, not bad upstream data, and is never
    swallowed by per-episode error handling.
    """


# --- Remote sync ---


class RemoteSyncError(PodArchiverError):
    """Raised when a remote storage probe or feed rewrite fails.

    Attributes:
        show: The show associated with the error.
        file_name: The file associated with the error.
    """

    def __init__(
        self,
        message: str,
        show: str | None = None,
        file_name: str | None = None,
    ):
        super().__init__(message)
        self.show = show
        self.file_name = file_name


class UploadToolError(RemoteSyncError):
    """Raised when the external upload tool is missing or fails.

    Attributes:
        return_code: Exit code of the tool, if it ran.
        output: Captured tool output.
    """

    def __init__(
        self,
        message: str,
        show: str | None = None,
        file_name: str | None = None,
        return_code: int | None = None,
        output: str | None = None,
    ):
        super().__init__(message, show=show, file_name=file_name)
        self.return_code = return_code
        self.output = output
