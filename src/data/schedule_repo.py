"""
Daily Roster — Schedule Repository.

All schedules live in one JSON array under the "schedules" key, at most one
per date. Writes are read-modify-write under a lock and are verified by
reading the blob back; a write that cannot be verified raises
ScheduleWriteError so the caller can tell the user and retry.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError

from src.data.codec import CorruptBlobError, decode_blob, encode_blob
from src.data.models import Schedule
from src.ports.storage_port import StorageError

if TYPE_CHECKING:
    from src.ports.storage_port import StoragePort

logger = logging.getLogger(__name__)

SCHEDULES_KEY = "schedules"

_RAW_LIST = TypeAdapter(list[dict])
_SCHEDULES = TypeAdapter(list[Schedule])


class ScheduleError(Exception):
    """Base error for schedule persistence."""


class ScheduleWriteError(ScheduleError):
    """Raised when a schedule could not be written or the write did not verify."""


def _dedupe_by_date(schedules: list[Schedule]) -> list[Schedule]:
    """Keep the last record per date, in first-seen date order."""
    by_date: dict[str, Schedule] = {}
    for schedule in schedules:
        by_date[schedule.date] = schedule
    return list(by_date.values())


class ScheduleRepository:
    """Date-keyed schedule collection on top of StoragePort."""

    def __init__(self, storage: StoragePort) -> None:
        self._storage = storage
        self._lock = asyncio.Lock()

    async def list_schedules(self) -> list[Schedule]:
        """All stored schedules. Unreadable or corrupt data yields []."""
        try:
            return await self._load()
        except StorageError as exc:
            logger.warning("Could not read schedules: %s", exc)
            return []

    async def _load(self) -> list[Schedule]:
        """Like list_schedules() but storage errors propagate."""
        raw = await self._storage.get(SCHEDULES_KEY)
        try:
            records = decode_blob(raw, _RAW_LIST)
        except CorruptBlobError as exc:
            logger.warning("Discarding corrupt schedules blob: %s", exc)
            try:
                await self._storage.remove(SCHEDULES_KEY)
            except StorageError as rm_exc:
                logger.warning("Could not remove corrupt schedules: %s", rm_exc)
            return []
        if records is None:
            return []

        schedules: list[Schedule] = []
        for i, record in enumerate(records):
            try:
                schedules.append(Schedule.model_validate(record))
            except ValidationError as exc:
                logger.warning("Skipping invalid schedule record #%d: %s", i, exc.errors()[0]["msg"])
        return _dedupe_by_date(schedules)

    async def get_for_date(self, date: str) -> Schedule | None:
        """Exact date-string lookup."""
        for schedule in await self.list_schedules():
            if schedule.date == date:
                return schedule
        return None

    async def upsert(self, schedule: Schedule) -> bool:
        """Replace the schedule for schedule.date, or append it. Returns True if new."""
        async with self._lock:
            try:
                schedules = await self._load()
            except StorageError as exc:
                raise ScheduleWriteError(f"Failed to read schedules before saving: {exc}") from exc
            is_new = True
            for i, existing in enumerate(schedules):
                if existing.date == schedule.date:
                    schedules[i] = schedule
                    is_new = False
                    break
            if is_new:
                schedules.append(schedule)
            await self._write_verified(schedules, schedule)

        logger.info("Schedule for %s %s", schedule.date, "created" if is_new else "replaced")
        return is_new

    async def replace_all(self, schedules: list[Schedule]) -> None:
        """Overwrite the whole collection (used for bulk edits)."""
        async with self._lock:
            await self._write_verified(_dedupe_by_date(list(schedules)), None)

    async def _write_verified(self, schedules: list[Schedule], expected: Schedule | None) -> None:
        payload = encode_blob(schedules, _SCHEDULES)
        try:
            await self._storage.set(SCHEDULES_KEY, payload)
            stored = decode_blob(await self._storage.get(SCHEDULES_KEY), _SCHEDULES)
        except StorageError as exc:
            raise ScheduleWriteError(f"Failed to save schedules: {exc}") from exc
        except CorruptBlobError as exc:
            raise ScheduleWriteError(f"Saved schedules could not be read back: {exc}") from exc

        if stored is None or len(stored) != len(schedules):
            raise ScheduleWriteError("Saved schedules did not verify")
        if expected is not None and expected not in stored:
            raise ScheduleWriteError(f"Schedule for {expected.date} missing after save")
