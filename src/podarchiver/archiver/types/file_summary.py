"""Manifest entries written to each show's summary.json."""

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class FileSummary(BaseModel):
    """One resolved episode as recorded in the per-show manifest.

    The JSON keys are the manifest's wire names, so the uploader can read a
    manifest written by any earlier run.

    Attributes:
        identity: Canonical episode identity.
        local_filename: Absolute path of the episode file.
        show: Show name.
        reported_length: Feed-declared byte length, -1 when unknown.
        actual_length: Byte length on disk, -1 until known.
        remote_url: Enclosure URL when a download is pending, else empty.
    """

    model_config = ConfigDict(populate_by_name=True)

    identity: str = Field(alias="guid")
    local_filename: str
    show: str = Field(alias="podcast_name")
    reported_length: int = -1
    actual_length: int = -1
    remote_url: str = ""

    @property
    def needs_download(self) -> bool:
        return bool(self.remote_url)


FILE_SUMMARY_LIST = TypeAdapter(list[FileSummary])
