"""
Daily Roster — Time-Slot Assignment Engine.

Builds the three parallel duty rosters (front room, Scotty, twins) for one
day. Slots are filled in temporal order and the categories are interleaved
per slot, so every decision sees all earlier slots of every category.

Rules, in the order they are applied:
  1. placeholder staff (is_assignable=False) are never rostered;
  2. team leaders only from TEAM_LEADER_EARLIEST_SLOT onwards;
  3. no twins roster at all unless a twin participant is attending;
  4. one category per staff member per slot;
  5. nobody works two adjacent slots, whatever the categories;
  6. least-loaded staff first, uniform random among equals.
A slot nobody can take is left empty. Pure: no I/O, never raises.
"""

from __future__ import annotations

import logging
import random
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Sequence

from src.data.models import Participant, Staff, TimeSlot, TimeSlotAssignment

logger = logging.getLogger(__name__)


class DutyCategory(Enum):
    FRONT_ROOM = "frontRoom"
    SCOTTY = "scotty"
    TWINS = "twins"


# Per-slot processing order
CATEGORY_ORDER = (DutyCategory.FRONT_ROOM, DutyCategory.SCOTTY, DutyCategory.TWINS)


@dataclass
class SlotRosters:
    """The three rosters for one day, at most one entry per slot each."""

    front_room: list[TimeSlotAssignment] = field(default_factory=list)
    scotty: list[TimeSlotAssignment] = field(default_factory=list)
    twins: list[TimeSlotAssignment] = field(default_factory=list)

    def roster(self, category: DutyCategory) -> list[TimeSlotAssignment]:
        if category is DutyCategory.FRONT_ROOM:
            return self.front_room
        if category is DutyCategory.SCOTTY:
            return self.scotty
        if category is DutyCategory.TWINS:
            return self.twins
        raise ValueError(f"Unknown duty category: {category!r}")


def _hhmm_to_minutes(hhmm: str) -> int:
    hour, minute = hhmm.split(":")
    return int(hour) * 60 + int(minute)


def twins_attending(
    participants: Iterable[Participant], attending_ids: Iterable[str],
) -> bool:
    """True when at least one participant flagged as a twin is attending."""
    attending = set(attending_ids)
    return any(p.is_twin and p.id in attending for p in participants)


def eligible_staff(staff: Iterable[Staff], working_staff_ids: Iterable[str]) -> list[Staff]:
    """Working staff who may receive automatic slot assignments."""
    working = set(working_staff_ids)
    return [s for s in staff if s.id in working and s.is_assignable]


def generate_time_slot_assignments(
    working_staff_ids: Iterable[str],
    staff: Sequence[Staff],
    participants: Sequence[Participant],
    attending_participant_ids: Iterable[str],
    time_slots: Sequence[TimeSlot],
    rng: random.Random | None = None,
    team_leader_earliest: str | None = None,
) -> SlotRosters:
    """Produce front-room, Scotty and twins rosters for one day.

    Args:
        working_staff_ids: Staff on duty today.
        staff: Full staff reference list.
        participants: Full participant reference list.
        attending_participant_ids: Participants present today (gates twins).
        time_slots: Fixed slots, in temporal order.
        rng: Source of randomness for tie-breaks (seed it in tests).
        team_leader_earliest: HH:MM; team leaders only from slots starting
            at or after this time. Defaults to TEAM_LEADER_EARLIEST_SLOT.
    """
    if team_leader_earliest is None:
        from src.config import settings
        team_leader_earliest = settings.TEAM_LEADER_EARLIEST_SLOT
    rng = rng or random.Random()
    leader_cutoff = _hhmm_to_minutes(team_leader_earliest)

    available = eligible_staff(staff, working_staff_ids)
    with_twins = twins_attending(participants, attending_participant_ids)

    rosters = SlotRosters()
    used_in_slot: list[set[str]] = [set() for _ in time_slots]
    load: Counter[str] = Counter()

    for index, slot in enumerate(time_slots):
        before_cutoff = slot.start_minutes < leader_cutoff
        neighbours: set[str] = set()
        if index > 0:
            neighbours |= used_in_slot[index - 1]
        if index + 1 < len(time_slots):
            neighbours |= used_in_slot[index + 1]

        for category in CATEGORY_ORDER:
            if category is DutyCategory.TWINS and not with_twins:
                continue

            candidates = [
                s.id for s in available
                if not (s.is_team_leader and before_cutoff)
                and s.id not in used_in_slot[index]
                and s.id not in neighbours
            ]
            if not candidates:
                logger.debug("No staff available for %s at %s", category.value, slot.display_time)
                continue

            fewest = min(load[sid] for sid in candidates)
            chosen = rng.choice([sid for sid in candidates if load[sid] == fewest])

            rosters.roster(category).append(
                TimeSlotAssignment(time_slot_id=slot.id, staff_id=chosen)
            )
            used_in_slot[index].add(chosen)
            load[chosen] += 1

    logger.info(
        "Generated rosters from %d staff: front room %d, scotty %d, twins %d%s",
        len(available), len(rosters.front_room), len(rosters.scotty),
        len(rosters.twins), "" if with_twins else " (no twins attending)",
    )
    return rosters


def find_roster_violations(
    rosters: SlotRosters,
    staff: Sequence[Staff],
    time_slots: Sequence[TimeSlot],
    team_leader_earliest: str | None = None,
) -> list[str]:
    """Check rosters against the engine's guarantees.

    Returns a human-readable line per violation; empty means valid. Useful
    for schedules whose rosters were edited by hand.
    """
    if team_leader_earliest is None:
        from src.config import settings
        team_leader_earliest = settings.TEAM_LEADER_EARLIEST_SLOT
    leader_cutoff = _hhmm_to_minutes(team_leader_earliest)

    position = {slot.id: i for i, slot in enumerate(time_slots)}
    slot_by_id = {slot.id: slot for slot in time_slots}
    staff_by_id = {s.id: s for s in staff}
    issues: list[str] = []

    # staff id -> list of (slot index, category)
    placements: dict[str, list[tuple[int, DutyCategory]]] = {}
    for category in CATEGORY_ORDER:
        seen_slots: set[str] = set()
        for entry in rosters.roster(category):
            if entry.time_slot_id not in position:
                issues.append(f"{category.value}: unknown time slot {entry.time_slot_id}")
                continue
            if entry.time_slot_id in seen_slots:
                issues.append(f"{category.value}: slot {entry.time_slot_id} assigned twice")
            seen_slots.add(entry.time_slot_id)
            placements.setdefault(entry.staff_id, []).append(
                (position[entry.time_slot_id], category)
            )

            member = staff_by_id.get(entry.staff_id)
            slot = slot_by_id[entry.time_slot_id]
            if member is not None and member.is_team_leader and slot.start_minutes < leader_cutoff:
                issues.append(
                    f"{category.value}: team leader {member.name} rostered at {slot.display_time}"
                )

    for staff_id, spots in placements.items():
        by_index = Counter(i for i, _ in spots)
        for i, count in sorted(by_index.items()):
            if count > 1:
                issues.append(f"staff {staff_id} double-booked in slot {time_slots[i].id}")
            if by_index.get(i + 1):
                issues.append(
                    f"staff {staff_id} in adjacent slots {time_slots[i].id} and {time_slots[i + 1].id}"
                )
    return issues
