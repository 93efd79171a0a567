"""Ledger table mapped with SQLModel."""

from datetime import UTC, datetime

from sqlalchemy import Column, Integer
from sqlmodel import Field, SQLModel

from .timezone_aware_datetime import EPOCH_ZERO, TimezoneAwareDatetime


def ledger_key(show: str, identity: str) -> str:
    """Return the composite primary key for a (show, identity) pair."""
    return f"{show}_{identity}"


class LedgerRecord(SQLModel, table=True):
    """What the archive knows about one episode of one show.

    Created on first sighting, never deleted, updated in place after each
    successful download.

    Attributes:
        key: ``{show}_{identity}`` composite key.
        show: Show name.
        identity: Canonical episode identity.
        filename: Canonical filename last resolved for the episode.
        size: Byte size of the downloaded file, -1 when unknown.
        md5_hash: Hex MD5 of the downloaded file, empty when unknown.
        date_added: When the episode was first seen (UTC).
        date_last_downloaded: Last successful download (UTC); epoch zero means never.
    """

    key: str = Field(primary_key=True)
    show: str = Field(index=True)
    identity: str
    filename: str = Field(index=True)
    size: int = Field(
        default=-1, sa_column=Column(Integer, nullable=False, server_default="-1")
    )
    md5_hash: str = ""
    date_added: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TimezoneAwareDatetime, nullable=False),
    )
    date_last_downloaded: datetime = Field(
        default=EPOCH_ZERO,
        sa_column=Column(TimezoneAwareDatetime, nullable=False),
    )

    @classmethod
    def new(cls, show: str, identity: str, filename: str) -> "LedgerRecord":
        """Build a fresh, never-downloaded record."""
        return cls(
            key=ledger_key(show, identity),
            show=show,
            identity=identity,
            filename=filename,
            size=-1,
            md5_hash="",
            date_added=datetime.now(UTC),
            date_last_downloaded=EPOCH_ZERO,
        )
