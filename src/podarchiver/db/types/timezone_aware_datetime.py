"""Column type for UTC timestamps on SQLite."""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import DateTime, TypeDecorator

# stored in place of "never" for ledger timestamps
EPOCH_ZERO = datetime(1970, 1, 1, tzinfo=UTC)


def _is_aware(value: datetime) -> bool:
    return value.tzinfo is not None and value.utcoffset() is not None


class TimezoneAwareDatetime(TypeDecorator[datetime]):
    """Store aware datetimes as naive UTC and read them back as UTC.

    Naive values are rejected on write with ``TypeError``.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(
        self, value: datetime | None, dialect: Any
    ) -> datetime | None:
        if value is None:
            return None
        if not _is_aware(value):
            raise TypeError(f"Ledger timestamps must be timezone-aware: {value!r}")
        return value.astimezone(UTC).replace(tzinfo=None)

    def process_result_value(
        self, value: datetime | None, dialect: Any
    ) -> datetime | None:
        return None if value is None else value.replace(tzinfo=UTC)
