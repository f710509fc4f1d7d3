"""Tests for src.data.schedule_repo — date-keyed schedule persistence."""

import json

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.data.models import ChoreAssignment, Schedule, schedule_id_for
from src.data.schedule_repo import SCHEDULES_KEY, ScheduleRepository, ScheduleWriteError
from src.ports.storage_port import StorageError


def _schedule(date, **fields):
    return Schedule(id=schedule_id_for(date), date=date, **fields)


@pytest.fixture
def repo(storage):
    return ScheduleRepository(storage)


class TestUpsert:
    @pytest.mark.asyncio
    async def test_new_schedule_returns_true(self, repo):
        assert await repo.upsert(_schedule("2026-02-11")) is True
        assert await repo.get_for_date("2026-02-11") == _schedule("2026-02-11")

    @pytest.mark.asyncio
    async def test_same_date_replaces(self, repo):
        await repo.upsert(_schedule("2026-02-11", working_staff=["1"]))
        assert await repo.upsert(_schedule("2026-02-11", working_staff=["2", "3"])) is False

        schedules = await repo.list_schedules()
        assert len(schedules) == 1
        assert schedules[0].working_staff == ["2", "3"]

    @pytest.mark.asyncio
    async def test_other_dates_untouched(self, repo):
        await repo.upsert(_schedule("2026-02-10", final_checklist_staff="4"))
        await repo.upsert(_schedule("2026-02-11"))
        await repo.upsert(_schedule("2026-02-11", final_checklist_staff="7"))

        assert (await repo.get_for_date("2026-02-10")).final_checklist_staff == "4"
        assert [s.date for s in await repo.list_schedules()] == ["2026-02-10", "2026-02-11"]

    @pytest.mark.asyncio
    async def test_read_error_raises_instead_of_clobbering(self):
        broken = MagicMock()
        broken.get = AsyncMock(side_effect=StorageError("locked"))
        broken.set = AsyncMock()
        repo = ScheduleRepository(broken)

        with pytest.raises(ScheduleWriteError):
            await repo.upsert(_schedule("2026-02-11"))
        broken.set.assert_not_called()

    @pytest.mark.asyncio
    async def test_write_error_raises(self):
        broken = MagicMock()
        broken.get = AsyncMock(return_value=None)
        broken.set = AsyncMock(side_effect=StorageError("disk full"))
        repo = ScheduleRepository(broken)

        with pytest.raises(ScheduleWriteError, match="disk full"):
            await repo.upsert(_schedule("2026-02-11"))

    @pytest.mark.asyncio
    async def test_unverified_write_raises(self):
        # Storage accepts the write but reads back something else
        flaky = MagicMock()
        flaky.get = AsyncMock(side_effect=[None, "[]"])
        flaky.set = AsyncMock()
        repo = ScheduleRepository(flaky)

        with pytest.raises(ScheduleWriteError, match="did not verify"):
            await repo.upsert(_schedule("2026-02-11"))

    @pytest.mark.asyncio
    async def test_garbled_read_back_raises(self):
        flaky = MagicMock()
        flaky.get = AsyncMock(side_effect=[None, "undefined"])
        flaky.set = AsyncMock()
        repo = ScheduleRepository(flaky)

        with pytest.raises(ScheduleWriteError, match="read back"):
            await repo.upsert(_schedule("2026-02-11"))


class TestLoad:
    @pytest.mark.asyncio
    async def test_absent_is_empty(self, repo):
        assert await repo.list_schedules() == []
        assert await repo.get_for_date("2026-02-11") is None

    @pytest.mark.asyncio
    async def test_corrupt_blob_removed(self, storage, repo):
        await storage.set(SCHEDULES_KEY, "undefined")
        assert await repo.list_schedules() == []
        assert await storage.get(SCHEDULES_KEY) is None

    @pytest.mark.asyncio
    async def test_invalid_record_skipped(self, storage, repo):
        good = _schedule("2026-02-11").to_json_dict()
        await storage.set(SCHEDULES_KEY, json.dumps([{"date": "2026-02-10"}, good]))
        assert [s.date for s in await repo.list_schedules()] == ["2026-02-11"]

    @pytest.mark.asyncio
    async def test_duplicate_dates_keep_last(self, storage, repo):
        first = _schedule("2026-02-11", final_checklist_staff="1").to_json_dict()
        second = _schedule("2026-02-11", final_checklist_staff="2").to_json_dict()
        await storage.set(SCHEDULES_KEY, json.dumps([first, second]))
        schedules = await repo.list_schedules()
        assert len(schedules) == 1
        assert schedules[0].final_checklist_staff == "2"

    @pytest.mark.asyncio
    async def test_legacy_blob_with_missing_optional_fields(self, storage, repo):
        await storage.set(SCHEDULES_KEY, json.dumps([{"id": "x", "date": "2026-02-11"}]))
        schedule = await repo.get_for_date("2026-02-11")
        assert schedule.chore_assignments == []
        assert schedule.final_checklist_staff == ""

    @pytest.mark.asyncio
    async def test_list_swallows_storage_error(self):
        broken = MagicMock()
        broken.get = AsyncMock(side_effect=StorageError("locked"))
        assert await ScheduleRepository(broken).list_schedules() == []


@pytest.mark.asyncio
async def test_replace_all(repo):
    await repo.upsert(_schedule("2026-02-09"))
    chores = [ChoreAssignment(chore_id="1", staff_id="2")]
    await repo.replace_all([_schedule("2026-02-10", chore_assignments=chores)])
    schedules = await repo.list_schedules()
    assert [s.date for s in schedules] == ["2026-02-10"]
    assert schedules[0].chore_assignments == chores
