"""
Daily Roster — Weekly Chore Distribution Engine.

Gives every chore exactly one staff member per day while spreading chores
fairly across the Monday-starting week. The only cross-date memory is the
week map persisted under weeklyChoreAssignments_<monday>:

    {choreId: [staffId | None] * 7}   # Monday .. Sunday

Selection for one chore falls through three tiers:
  a. staff who have not done this chore this week and have no chore today;
  b. staff with no chore today;
  c. staff with the fewest chores today (only when chores outnumber staff).
Ties are broken uniformly at random.

Storage or parse problems never reach the caller: the engine falls back to
a plain shuffle-and-round-robin assignment with no weekly memory.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections import Counter
from datetime import date, timedelta
from typing import TYPE_CHECKING, Iterable, Sequence

from pydantic import TypeAdapter

from src.data.codec import CorruptBlobError, decode_blob, encode_blob
from src.data.models import Chore, ChoreAssignment, Staff
from src.ports.storage_port import StorageError

if TYPE_CHECKING:
    from src.ports.storage_port import StoragePort

logger = logging.getLogger(__name__)

WEEKLY_KEY_PREFIX = "weeklyChoreAssignments_"
DAYS_PER_WEEK = 7

WeekMap = dict[str, list[str | None]]
_WEEK_MAP = TypeAdapter(WeekMap)


# ---------------------------------------------------------------------------
# Week arithmetic
# ---------------------------------------------------------------------------


def week_start(target: date) -> date:
    """Monday of the week containing *target* (Sunday belongs to the week before)."""
    return target - timedelta(days=target.weekday())


def day_index(target: date) -> int:
    """0 for Monday .. 6 for Sunday."""
    return target.weekday()


def week_key(target: date) -> str:
    return f"{WEEKLY_KEY_PREFIX}{week_start(target).isoformat()}"


def chore_eligible_staff_ids(staff: Iterable[Staff], working_staff_ids: Iterable[str]) -> list[str]:
    """Working staff, in working order, who may receive automatic chores."""
    by_id = {s.id: s for s in staff}
    result: list[str] = []
    for staff_id in working_staff_ids:
        member = by_id.get(staff_id)
        if member is not None and member.can_do_chores and staff_id not in result:
            result.append(staff_id)
    return result


# ---------------------------------------------------------------------------
# Pure algorithms
# ---------------------------------------------------------------------------


def distribute_chores(
    chore_ids: Sequence[str],
    staff_ids: Sequence[str],
    week_map: WeekMap,
    today: int,
    force_regenerate: bool = False,
    rng: random.Random | None = None,
) -> tuple[list[ChoreAssignment], WeekMap]:
    """Assign each chore to one staff member for day *today* of the week.

    Returns the assignments (in chore_ids order) and an updated copy of
    week_map. Other days' history is never modified.
    """
    rng = rng or random.Random()
    updated: WeekMap = {cid: list(days) for cid, days in week_map.items()}
    for days in updated.values():
        if len(days) < DAYS_PER_WEEK:
            days.extend([None] * (DAYS_PER_WEEK - len(days)))
        del days[DAYS_PER_WEEK:]
    if not staff_ids:
        return [], updated

    eligible = set(staff_ids)
    order = list(chore_ids)
    rng.shuffle(order)

    chosen: dict[str, str] = {}
    used_today: Counter[str] = Counter()

    # Keep today's existing picks first so they count as "used today"
    pending: list[str] = []
    for chore_id in order:
        days = updated.setdefault(chore_id, [None] * DAYS_PER_WEEK)
        existing = days[today]
        if existing and not force_regenerate and existing in eligible:
            chosen[chore_id] = existing
            used_today[existing] += 1
        else:
            pending.append(chore_id)

    for chore_id in pending:
        days = updated[chore_id]
        done_this_week = {sid for i, sid in enumerate(days) if i != today and sid}

        candidates = [
            sid for sid in staff_ids
            if sid not in done_this_week and used_today[sid] == 0
        ]
        if not candidates:
            candidates = [sid for sid in staff_ids if used_today[sid] == 0]
        if not candidates:
            fewest = min(used_today[sid] for sid in staff_ids)
            candidates = [sid for sid in staff_ids if used_today[sid] == fewest]
            logger.debug("More chores than staff; doubling up on chore %s", chore_id)

        pick = rng.choice(candidates)
        chosen[chore_id] = pick
        used_today[pick] += 1
        days[today] = pick

    assignments = [
        ChoreAssignment(chore_id=cid, staff_id=chosen[cid])
        for cid in chore_ids if cid in chosen
    ]
    return assignments, updated


def fallback_chores(
    chore_ids: Sequence[str],
    staff_ids: Sequence[str],
    rng: random.Random | None = None,
) -> list[ChoreAssignment]:
    """History-free assignment: shuffle both lists and deal chores round-robin."""
    rng = rng or random.Random()
    if not staff_ids:
        return []
    chores = list(chore_ids)
    staff = list(staff_ids)
    rng.shuffle(chores)
    rng.shuffle(staff)
    return [
        ChoreAssignment(chore_id=chore_id, staff_id=staff[i % len(staff)])
        for i, chore_id in enumerate(chores)
    ]


# ---------------------------------------------------------------------------
# Engine with persisted weekly memory
# ---------------------------------------------------------------------------


class ChoreEngine:
    """Runs distribute_chores() against the persisted week map."""

    def __init__(
        self,
        storage: StoragePort,
        rng: random.Random | None = None,
        history_weeks: int | None = None,
    ) -> None:
        if history_weeks is None:
            from src.config import settings
            history_weeks = settings.CHORE_HISTORY_WEEKS

        self._storage = storage
        self._rng = rng or random.Random()
        self._history_weeks = history_weeks
        self._lock = asyncio.Lock()

    async def get_week(self, target: date) -> WeekMap:
        """The stored week map for the week containing *target* (empty if none).

        Raises CorruptBlobError or StorageError.
        """
        return decode_blob(await self._storage.get(week_key(target)), _WEEK_MAP) or {}

    async def assign_chores(
        self,
        working_staff_ids: Iterable[str],
        staff: Sequence[Staff],
        chores: Sequence[Chore],
        target: date,
        force_regenerate: bool = False,
    ) -> list[ChoreAssignment]:
        """Today's chore assignments; never raises."""
        staff_ids = chore_eligible_staff_ids(staff, working_staff_ids)
        chore_ids = [c.id for c in chores]
        if not staff_ids or not chore_ids:
            logger.info("No chores assigned for %s (%d staff, %d chores)",
                        target, len(staff_ids), len(chore_ids))
            return []

        async with self._lock:
            try:
                week = await self.get_week(target)
            except (CorruptBlobError, StorageError) as exc:
                logger.warning("Weekly chore history unavailable for %s, using fallback: %s", target, exc)
                return fallback_chores(chore_ids, staff_ids, self._rng)

            assignments, updated = distribute_chores(
                chore_ids, staff_ids, week, day_index(target),
                force_regenerate=force_regenerate, rng=self._rng,
            )

            try:
                await self._storage.set(week_key(target), encode_blob(updated, _WEEK_MAP))
                await self._prune_old_weeks(target)
            except StorageError as exc:
                logger.warning("Could not persist weekly chore history for %s: %s", target, exc)

        logger.info(
            "Assigned %d chores to %d staff for %s (day %d of week %s)",
            len(assignments), len({a.staff_id for a in assignments}), target,
            day_index(target), week_start(target).isoformat(),
        )
        return assignments

    async def _prune_old_weeks(self, target: date) -> None:
        oldest_kept = week_start(target) - timedelta(weeks=self._history_weeks)
        stale: list[str] = []
        for key in await self._storage.get_all_keys():
            if not key.startswith(WEEKLY_KEY_PREFIX):
                continue
            try:
                monday = date.fromisoformat(key.removeprefix(WEEKLY_KEY_PREFIX))
            except ValueError:
                stale.append(key)
                continue
            if monday < oldest_kept:
                stale.append(key)
        if stale:
            await self._storage.multi_remove(stale)
            logger.info("Pruned %d old weekly chore record(s)", len(stale))
