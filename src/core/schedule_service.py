"""
Daily Roster — Schedule Service.

UI-agnostic service layer that owns the stores and engines and exposes the
operations screens need: create a schedule for the selected date, edit one
category, regenerate rosters, share/import by code, and check or reset data.

Storage is injected, never global. Edits are last-write-wins on the whole
Schedule: callers must read-modify-write (apply_edit() does this for them).
"""

from __future__ import annotations

import logging
import random
from datetime import date, datetime
from typing import TYPE_CHECKING, Callable
from zoneinfo import ZoneInfo

from src.core import integrity
from src.core.categories import CategoryEdit, ScheduleCategory, apply_edit, category_of
from src.core.chore_engine import ChoreEngine
from src.core.sharing import ImportResult, SharingService
from src.core.slot_engine import SlotRosters, find_roster_violations, generate_time_slot_assignments
from src.core.update_tracker import UpdateTracker
from src.data.defaults import TIME_SLOTS
from src.data.entity_store import EntityKind, EntityStore
from src.data.models import Assignment, Schedule, TimeSlot, schedule_id_for
from src.data.schedule_repo import ScheduleError, ScheduleRepository
from src.ports.storage_port import StorageError

if TYPE_CHECKING:
    from src.data.models import CategoryUpdate
    from src.ports.storage_port import StoragePort

logger = logging.getLogger(__name__)


def _default_clock() -> datetime:
    from src.config import settings
    return datetime.now(ZoneInfo(settings.TIMEZONE))


class ScheduleService:
    """Single entry point for schedule creation, edits, sharing and recovery."""

    def __init__(
        self,
        storage: StoragePort,
        clock: Callable[[], datetime] | None = None,
        rng: random.Random | None = None,
        time_slots: tuple[TimeSlot, ...] = TIME_SLOTS,
    ) -> None:
        self._storage = storage
        self._clock = clock or _default_clock
        self._rng = rng or random.Random()
        self.time_slots = time_slots

        self.tracker = UpdateTracker(storage, self._clock)
        self.entities = EntityStore(storage, self.tracker)
        self.schedules = ScheduleRepository(storage)
        self.chores = ChoreEngine(storage, rng=self._rng)
        self.sharing = SharingService(
            storage,
            save_schedule=self.save_schedule,
            selected_date=lambda: self.selected_date,
            clock=self._clock,
            rng=self._rng,
        )
        self._selected_date = self.today()

    # ------------------------------------------------------------------
    # Dates
    # ------------------------------------------------------------------

    def today(self) -> str:
        return self._clock().date().isoformat()

    @property
    def selected_date(self) -> str:
        return self._selected_date

    def select_date(self, target: str) -> None:
        """Switch the working date (YYYY-MM-DD)."""
        date.fromisoformat(target)
        self._selected_date = target
        logger.debug("Selected date: %s", target)

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Startup housekeeping: version banner and expired sharing codes."""
        await self.tracker.check_app_version()
        removed = await self.sharing.cleanup_expired_codes()
        logger.info(
            "Schedule service ready for %s (new updates: %s, expired codes removed: %d)",
            self.selected_date, self.tracker.has_new_updates, removed,
        )

    # ------------------------------------------------------------------
    # Schedule creation
    # ------------------------------------------------------------------

    async def generate_rosters(
        self, working_staff: list[str], attending_participants: list[str],
    ) -> SlotRosters:
        staff = await self.entities.staff()
        participants = await self.entities.participants()
        return generate_time_slot_assignments(
            working_staff, staff, participants, attending_participants,
            self.time_slots, rng=self._rng,
        )

    async def create_schedule(
        self,
        working_staff: list[str],
        attending_participants: list[str],
        assignments: list[Assignment],
        final_checklist_staff: str,
        force_regenerate: bool = False,
    ) -> Schedule:
        """Generate rosters and chores for the selected date and save the schedule.

        An existing schedule for the date is replaced. Raises ScheduleError
        if the save cannot be verified.
        """
        target = self.selected_date
        rosters = await self.generate_rosters(working_staff, attending_participants)
        chore_assignments = await self.chores.assign_chores(
            working_staff,
            await self.entities.staff(),
            await self.entities.chores(),
            date.fromisoformat(target),
            force_regenerate=force_regenerate,
        )

        schedule = Schedule(
            id=schedule_id_for(target),
            date=target,
            working_staff=list(working_staff),
            attending_participants=list(attending_participants),
            assignments=list(assignments),
            front_room_slots=rosters.front_room,
            scotty_slots=rosters.scotty,
            twins_slots=rosters.twins,
            chore_assignments=chore_assignments,
            final_checklist_staff=final_checklist_staff,
        )
        await self.save_schedule(schedule)
        return schedule

    async def regenerate_assignments(self, target: str) -> Schedule | None:
        """Re-run both engines for an existing schedule. None if there is no schedule."""
        schedule = await self.schedules.get_for_date(target)
        if schedule is None:
            logger.warning("No schedule for %s to regenerate", target)
            return None

        rosters = await self.generate_rosters(schedule.working_staff, schedule.attending_participants)
        chore_assignments = await self.chores.assign_chores(
            schedule.working_staff,
            await self.entities.staff(),
            await self.entities.chores(),
            date.fromisoformat(target),
            force_regenerate=True,
        )
        updated = schedule.model_copy(
            update={
                "front_room_slots": rosters.front_room,
                "scotty_slots": rosters.scotty,
                "twins_slots": rosters.twins,
                "chore_assignments": chore_assignments,
            },
            deep=True,
        )
        await self.save_schedule(updated)
        return updated

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def get_schedule_for_date(self, target: str) -> Schedule | None:
        return await self.schedules.get_for_date(target)

    async def list_schedules(self) -> list[Schedule]:
        return await self.schedules.list_schedules()

    async def save_schedule(self, schedule: Schedule) -> bool:
        """Upsert a schedule and record it. Returns True if it is new for its date."""
        is_new = await self.schedules.upsert(schedule)
        if is_new:
            try:
                await self.tracker.record_category_update(schedule.date, "schedule", "created")
            except StorageError as exc:
                logger.warning("Schedule for %s saved but not logged: %s", schedule.date, exc)
        await self.tracker.track_critical_update("schedule_saved")
        return is_new

    async def update_category(self, category: ScheduleCategory, schedule: Schedule) -> None:
        """Save the whole *schedule* and log that *category* changed."""
        await self.save_schedule(schedule)
        await self.tracker.record_category_update(schedule.date, category.value, "updated")

    async def apply_edit(self, target: str, edit: CategoryEdit) -> Schedule:
        """Read the schedule for *target*, apply one category edit, save it."""
        schedule = await self.schedules.get_for_date(target)
        if schedule is None:
            raise ScheduleError(f"No schedule for {target}")
        updated = apply_edit(schedule, edit)
        await self.update_category(category_of(edit), updated)
        return updated

    async def add_new_staff_to_schedules(self, staff_ids: list[str]) -> int:
        """Add newly created staff to every stored schedule's working staff.

        Returns the number of schedules changed.
        """
        if not staff_ids:
            return 0
        schedules = await self.schedules.list_schedules()
        changed = 0
        updated: list[Schedule] = []
        for schedule in schedules:
            missing = [sid for sid in staff_ids if sid not in schedule.working_staff]
            if missing:
                schedule = schedule.model_copy(
                    update={"working_staff": [*schedule.working_staff, *missing]}
                )
                changed += 1
            updated.append(schedule)
        if changed:
            await self.schedules.replace_all(updated)
            logger.info("Added %d new staff to %d schedule(s)", len(staff_ids), changed)
        return changed

    async def validate_schedule(self, schedule: Schedule) -> list[str]:
        """Roster rule violations in a (possibly hand-edited) schedule."""
        rosters = SlotRosters(
            front_room=schedule.front_room_slots,
            scotty=schedule.scotty_slots,
            twins=schedule.twins_slots,
        )
        return find_roster_violations(rosters, await self.entities.staff(), self.time_slots)

    # ------------------------------------------------------------------
    # Reference lists
    # ------------------------------------------------------------------

    async def save_reference_list(self, kind: EntityKind, items: list) -> list[str]:
        """Save a reference list; returns ids added since the previous save."""
        return await self.entities.save(kind, items)

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    @property
    def has_new_updates(self) -> bool:
        return self.tracker.has_new_updates

    async def mark_updates_as_viewed(self) -> None:
        await self.tracker.mark_updates_as_viewed()

    async def category_updates(self, target: str | None = None) -> list[CategoryUpdate]:
        return await self.tracker.get_category_updates(target or self.selected_date)

    async def latest_update_message(self, target: str | None = None) -> str | None:
        return await self.tracker.latest_update_message(target or self.selected_date)

    async def refresh_all_data(self) -> bool:
        """Drop caches and reload everything. False if something failed."""
        self.entities.invalidate()
        try:
            for kind in EntityKind:
                await self.entities.load(kind)
            await self.schedules.list_schedules()
            await self.tracker.get_category_updates(self.selected_date)
        except Exception as exc:
            logger.error("Data refresh failed: %s", exc)
            return False
        logger.info("Data refresh completed for %s", self.selected_date)
        return True

    # ------------------------------------------------------------------
    # Sharing
    # ------------------------------------------------------------------

    async def share_schedule_with_code(self, schedule: Schedule) -> str:
        return await self.sharing.share_schedule_with_code(schedule)

    async def import_schedule_with_code(self, code: str) -> ImportResult:
        return await self.sharing.import_schedule_with_code(code)

    async def cleanup_expired_codes(self) -> int:
        return await self.sharing.cleanup_expired_codes()

    # ------------------------------------------------------------------
    # Integrity
    # ------------------------------------------------------------------

    async def check_data_integrity(self) -> integrity.IntegrityReport:
        return await integrity.check_data_integrity(self._storage)

    async def clear_corrupted_data(self) -> bool:
        """Factory reset: wipe stored data and in-memory state."""
        cleared = await integrity.clear_corrupted_data(self._storage)
        if cleared:
            self.entities.invalidate()
            self.tracker.reset()
        return cleared
