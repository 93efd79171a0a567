# pyright: reportPrivateUsage=false

"""Tests for the LedgerDatabase and LedgerRecord model."""

import asyncio
from datetime import UTC, datetime, timedelta, timezone
from pathlib import Path

import pytest
from sqlalchemy.exc import OperationalError

from podarchiver.db import EPOCH_ZERO, LedgerDatabase, LedgerRecord, SqlalchemyCore
from podarchiver.db.decorators import handle_ledger_db_errors
from podarchiver.exceptions import DatabaseOperationError, LedgerRecordNotFoundError

SHOW = "Show"
GUID = "5d1f9c6e-8a3b-4f21-9c0d-1e2f3a4b5c6d"
REISSUED_GUID = "0c3a1f9e-2b7d-4e8a-9f10-112233445566"


# --- get_or_create ---


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_or_create_new_record(ledger: LedgerDatabase):
    record = await ledger.get_or_create(SHOW, GUID, "a.mp3")

    assert record.key == f"{SHOW}_{GUID}"
    assert record.filename == "a.mp3"
    assert record.size == -1
    assert record.md5_hash == ""
    assert record.date_last_downloaded == EPOCH_ZERO
    assert await ledger.count() == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_or_create_returns_existing_unchanged(ledger: LedgerDatabase):
    await ledger.get_or_create(SHOW, GUID, "a.mp3")
    again = await ledger.get_or_create(SHOW, GUID, "renamed.mp3")

    assert again.filename == "a.mp3"
    assert await ledger.count() == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_concurrent_first_sightings_create_one_record(ledger: LedgerDatabase):
    records = await asyncio.gather(
        *(ledger.get_or_create(SHOW, GUID, f"{i}.mp3") for i in range(50))
    )

    assert await ledger.count() == 1
    assert {r.filename for r in records} == {"0.mp3"}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_same_identity_in_two_shows(ledger: LedgerDatabase):
    await ledger.get_or_create("Show A", GUID, "a.mp3")
    await ledger.get_or_create("Show B", GUID, "a.mp3")
    assert await ledger.count() == 2
    assert await ledger.count("Show A") == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_reissued_identity_is_separate_record(ledger: LedgerDatabase):
    """A provider reissue under a new GUID is kept as a second record."""
    await ledger.get_or_create(SHOW, GUID, "x (old).mp3")
    await ledger.get_or_create(SHOW, REISSUED_GUID, "x (new).mp3")
    assert await ledger.count(SHOW) == 2


# --- get / update ---


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_missing(ledger: LedgerDatabase):
    assert await ledger.get(SHOW, GUID) is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_update_persists_fields(ledger: LedgerDatabase):
    record = await ledger.get_or_create(SHOW, GUID, "a.mp3")
    downloaded_at = datetime(2024, 5, 6, 7, 8, 9, tzinfo=UTC)
    record.filename = "b.mp3"
    record.size = 1234
    record.md5_hash = "0" * 32
    record.date_last_downloaded = downloaded_at

    await ledger.update(record)

    stored = await ledger.get(SHOW, GUID)
    assert stored is not None
    assert stored.filename == "b.mp3"
    assert stored.size == 1234
    assert stored.md5_hash == "0" * 32
    assert stored.date_last_downloaded == downloaded_at
    assert stored.date_last_downloaded > EPOCH_ZERO


@pytest.mark.unit
@pytest.mark.asyncio
async def test_update_unknown_record(ledger: LedgerDatabase):
    record = LedgerRecord.new(SHOW, GUID, "a.mp3")
    with pytest.raises(LedgerRecordNotFoundError) as exc_info:
        await ledger.update(record)
    assert exc_info.value.show == SHOW
    assert exc_info.value.identity == GUID


@pytest.mark.unit
@pytest.mark.asyncio
async def test_update_waits_for_write_lock(ledger: LedgerDatabase):
    """Updates share the lock that serializes record creation."""
    record = await ledger.get_or_create(SHOW, GUID, "a.mp3")
    record.size = 99

    async with ledger._lock:
        pending = asyncio.create_task(ledger.update(record))
        await asyncio.sleep(0.05)
        assert not pending.done()
    await pending

    stored = await ledger.get(SHOW, GUID)
    assert stored is not None
    assert stored.size == 99


@pytest.mark.unit
@pytest.mark.asyncio
async def test_concurrent_updates_and_creates(ledger: LedgerDatabase):
    await ledger.get_or_create(SHOW, GUID, "a.mp3")

    async def bump(size: int) -> None:
        record = LedgerRecord.new(SHOW, GUID, "a.mp3")
        record.size = size
        await ledger.update(record)

    await asyncio.gather(
        *(bump(i) for i in range(20)),
        *(ledger.get_or_create(SHOW, REISSUED_GUID, f"{i}.mp3") for i in range(20)),
    )

    assert await ledger.count(SHOW) == 2
    stored = await ledger.get(SHOW, GUID)
    assert stored is not None
    assert stored.size in range(20)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_datetimes_round_trip_as_utc(ledger: LedgerDatabase):
    record = await ledger.get_or_create(SHOW, GUID, "a.mp3")
    eastern = timezone(timedelta(hours=-5))
    record.date_last_downloaded = datetime(2024, 1, 1, 12, tzinfo=eastern)
    await ledger.update(record)

    stored = await ledger.get(SHOW, GUID)
    assert stored is not None
    assert stored.date_last_downloaded == datetime(2024, 1, 1, 17, tzinfo=UTC)
    assert stored.date_last_downloaded.tzinfo == UTC


@pytest.mark.unit
@pytest.mark.asyncio
async def test_naive_datetime_rejected(ledger: LedgerDatabase):
    record = await ledger.get_or_create(SHOW, GUID, "a.mp3")
    record.date_last_downloaded = datetime(2024, 1, 1, 12)
    with pytest.raises(DatabaseOperationError):
        await ledger.update(record)


# --- listing ---


@pytest.mark.unit
@pytest.mark.asyncio
async def test_list_for_show_ordered_by_filename(ledger: LedgerDatabase):
    await ledger.get_or_create(SHOW, GUID, "b.mp3")
    await ledger.get_or_create(SHOW, REISSUED_GUID, "a.mp3")
    await ledger.get_or_create("Other", GUID, "c.mp3")

    records = await ledger.list_for_show(SHOW)

    assert [r.filename for r in records] == ["a.mp3", "b.mp3"]
    assert await ledger.list_for_show("Nobody") == []


# --- error wrapping ---


@pytest.mark.unit
@pytest.mark.asyncio
async def test_errors_carry_show_and_identity(tmp_path: Path):
    """A ledger without its schema surfaces wrapped database errors."""
    core = SqlalchemyCore(tmp_path / "empty.db")
    try:
        ledger = LedgerDatabase(core)
        with pytest.raises(DatabaseOperationError) as exc_info:
            await ledger.get(SHOW, GUID)
        assert exc_info.value.show == SHOW
        assert exc_info.value.identity == GUID
        assert isinstance(exc_info.value.__cause__, OperationalError)
    finally:
        await core.close()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_create_schema_is_idempotent(db_core: SqlalchemyCore):
    ledger = LedgerDatabase(db_core)
    await ledger.get_or_create(SHOW, GUID, "a.mp3")
    await db_core.create_schema()
    assert await ledger.count() == 1


@pytest.mark.unit
def test_error_decorator_rejects_unknown_parameter():
    with pytest.raises(TypeError):

        @handle_ledger_db_errors("do something", show_from="podcast.name")
        async def operation(show: str, identity: str) -> None:
            pass
