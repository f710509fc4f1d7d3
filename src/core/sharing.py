"""
Daily Roster — Sharing Codes.

Store-and-forward exchange of one schedule between independent app
instances: the sender stores a snapshot under a random 6-digit code, the
receiver imports it onto its own selected date. Codes expire after
SHARE_CODE_TTL_HOURS and are swept by cleanup_expired_codes() at startup.
"""

from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Awaitable, Callable

from pydantic import TypeAdapter

from src.data.codec import CorruptBlobError, decode_blob, encode_blob
from src.data.models import ActiveCode, Schedule, SharedSchedule, schedule_id_for
from src.data.schedule_repo import ScheduleError
from src.ports.storage_port import StorageError

if TYPE_CHECKING:
    from src.ports.storage_port import StoragePort

logger = logging.getLogger(__name__)

SHARED_PREFIX = "shared_"
ACTIVE_CODES_KEY = "active_sharing_codes"

CODE_MIN = 100000
CODE_MAX = 999999
_CODE_RE = re.compile(r"[0-9]{6}")
_MAX_CODE_ATTEMPTS = 20

_SHARED = TypeAdapter(SharedSchedule)
_ACTIVE = TypeAdapter(list[ActiveCode])


class SharingError(Exception):
    """Raised when a schedule cannot be shared."""


@dataclass
class ImportResult:
    success: bool
    schedule: Schedule | None = None
    error: str = ""


def shared_key(code: str) -> str:
    return f"{SHARED_PREFIX}{code}"


def is_valid_code(code: str) -> bool:
    """Six decimal digits in [100000, 999999]."""
    return bool(_CODE_RE.fullmatch(code)) and CODE_MIN <= int(code) <= CODE_MAX


class SharingService:
    """Creates, redeems and expires sharing codes."""

    def __init__(
        self,
        storage: StoragePort,
        save_schedule: Callable[[Schedule], Awaitable[object]],
        selected_date: Callable[[], str],
        clock: Callable[[], datetime],
        rng: random.Random | None = None,
        ttl_hours: int | None = None,
    ) -> None:
        if ttl_hours is None:
            from src.config import settings
            ttl_hours = settings.SHARE_CODE_TTL_HOURS

        self._storage = storage
        self._save_schedule = save_schedule
        self._selected_date = selected_date
        self._clock = clock
        self._rng = rng or random.Random()
        self._ttl = timedelta(hours=ttl_hours)

    async def share_schedule_with_code(self, schedule: Schedule) -> str:
        """Snapshot *schedule* under a fresh code and return the code."""
        try:
            code = await self._unused_code()
            now = self._clock()
            shared = SharedSchedule(
                code=code,
                schedule=schedule.model_copy(deep=True),
                created_at=now,
                expires_at=now + self._ttl,
            )
            await self._storage.set(shared_key(code), encode_blob(shared, _SHARED))

            active = await self._active_codes()
            active.append(ActiveCode(code=code, expires_at=shared.expires_at))
            await self._storage.set(ACTIVE_CODES_KEY, encode_blob(active, _ACTIVE))
        except StorageError as exc:
            raise SharingError(f"Failed to share schedule: {exc}") from exc

        logger.info("Schedule for %s shared as code %s (expires %s)",
                    schedule.date, code, shared.expires_at.isoformat())
        return code

    async def import_schedule_with_code(self, code: str) -> ImportResult:
        """Copy a shared schedule onto the selected date, replacing any schedule there."""
        code = code.strip()
        if not is_valid_code(code):
            return ImportResult(success=False, error="Invalid code format. Please enter a 6-digit code.")

        key = shared_key(code)
        try:
            shared = decode_blob(await self._storage.get(key), _SHARED)
        except CorruptBlobError as exc:
            logger.warning("Discarding corrupt shared schedule %s: %s", code, exc)
            await self._discard(key)
            return ImportResult(success=False, error="Schedule not found. Please check the code.")
        except StorageError as exc:
            logger.error("Failed to read shared schedule %s: %s", code, exc)
            return ImportResult(success=False, error="Could not read shared schedule. Please try again.")

        if shared is None:
            return ImportResult(success=False, error="Schedule not found. Please check the code.")

        if self._clock() > shared.expires_at:
            logger.info("Shared schedule %s expired at %s", code, shared.expires_at.isoformat())
            await self._discard(key)
            return ImportResult(success=False, error="This code has expired. Please ask for a new one.")

        target_date = self._selected_date()
        imported = shared.schedule.model_copy(
            update={"id": schedule_id_for(target_date), "date": target_date}, deep=True,
        )
        try:
            await self._save_schedule(imported)
        except (ScheduleError, StorageError) as exc:
            logger.error("Failed to save imported schedule %s: %s", code, exc)
            return ImportResult(success=False, error="Failed to save imported schedule. Please try again.")

        logger.info("Imported shared schedule %s onto %s", code, target_date)
        return ImportResult(success=True, schedule=imported)

    async def cleanup_expired_codes(self) -> int:
        """Delete expired snapshots and prune the index. Returns how many were removed.

        Storage failures are logged and reported as 0; the next sweep retries.
        """
        try:
            active = await self._active_codes()
        except StorageError as exc:
            logger.warning("Could not read sharing code index, skipping cleanup: %s", exc)
            return 0
        now = self._clock()
        expired = [entry for entry in active if now > entry.expires_at]
        still_valid = [entry for entry in active if now <= entry.expires_at]

        if not expired:
            return 0

        try:
            await self._storage.multi_remove([shared_key(entry.code) for entry in expired])
            await self._storage.set(ACTIVE_CODES_KEY, encode_blob(still_valid, _ACTIVE))
        except StorageError as exc:
            logger.warning("Could not remove expired sharing codes: %s", exc)
            return 0
        logger.info("Cleaned up %d expired sharing code(s)", len(expired))
        return len(expired)

    async def _unused_code(self) -> str:
        for _ in range(_MAX_CODE_ATTEMPTS):
            code = str(self._rng.randint(CODE_MIN, CODE_MAX))
            if await self._storage.get(shared_key(code)) is None:
                return code
            logger.debug("Sharing code %s already in use, retrying", code)
        raise SharingError("Could not find an unused sharing code")

    async def _active_codes(self) -> list[ActiveCode]:
        try:
            return decode_blob(await self._storage.get(ACTIVE_CODES_KEY), _ACTIVE) or []
        except CorruptBlobError as exc:
            logger.warning("Discarding corrupt sharing code index: %s", exc)
            await self._discard(ACTIVE_CODES_KEY)
            return []

    async def _discard(self, key: str) -> None:
        try:
            await self._storage.remove(key)
        except StorageError as exc:
            logger.warning("Could not remove '%s': %s", key, exc)
