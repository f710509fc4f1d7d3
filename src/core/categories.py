"""
Daily Roster — Schedule categories and typed category edits.

A category edit replaces exactly one part of a Schedule. Each edit type
carries its own payload and knows which category it records, so callers
never route on bare strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from src.data.models import (
    Assignment,
    ChoreAssignment,
    DropOffAssignment,
    PickupAssignment,
    Schedule,
    TimeSlotAssignment,
)


class ScheduleCategory(Enum):
    """Editable parts of a schedule; the value is what the update log stores."""

    STAFF = "staff"
    PARTICIPANTS = "participants"
    ASSIGNMENTS = "assignments"
    FRONT_ROOM = "frontRoom"
    SCOTTY = "scotty"
    TWINS = "twins"
    CHORES = "chores"
    DROP_OFFS = "dropOffs"
    PICKUPS = "pickups"
    DROP_OFFS_PICKUPS = "dropoffs_pickups"
    FINAL_CHECKLIST = "finalChecklist"


@dataclass(frozen=True)
class WorkingStaffEdit:
    staff_ids: list[str]


@dataclass(frozen=True)
class ParticipantsEdit:
    participant_ids: list[str]


@dataclass(frozen=True)
class AssignmentsEdit:
    assignments: list[Assignment]


@dataclass(frozen=True)
class FrontRoomEdit:
    slots: list[TimeSlotAssignment]


@dataclass(frozen=True)
class ScottyEdit:
    slots: list[TimeSlotAssignment]


@dataclass(frozen=True)
class TwinsEdit:
    slots: list[TimeSlotAssignment]


@dataclass(frozen=True)
class ChoresEdit:
    chore_assignments: list[ChoreAssignment]


@dataclass(frozen=True)
class DropOffsEdit:
    drop_offs: list[DropOffAssignment]


@dataclass(frozen=True)
class PickupsEdit:
    pickups: list[PickupAssignment]


@dataclass(frozen=True)
class TransportEdit:
    """Drop-offs and pickups saved together from one screen."""

    drop_offs: list[DropOffAssignment] = field(default_factory=list)
    pickups: list[PickupAssignment] = field(default_factory=list)


@dataclass(frozen=True)
class FinalChecklistEdit:
    staff_id: str


CategoryEdit = Union[
    WorkingStaffEdit, ParticipantsEdit, AssignmentsEdit, FrontRoomEdit,
    ScottyEdit, TwinsEdit, ChoresEdit, DropOffsEdit, PickupsEdit,
    TransportEdit, FinalChecklistEdit,
]


def category_of(edit: CategoryEdit) -> ScheduleCategory:
    """The category an edit is recorded under."""
    if isinstance(edit, WorkingStaffEdit):
        return ScheduleCategory.STAFF
    if isinstance(edit, ParticipantsEdit):
        return ScheduleCategory.PARTICIPANTS
    if isinstance(edit, AssignmentsEdit):
        return ScheduleCategory.ASSIGNMENTS
    if isinstance(edit, FrontRoomEdit):
        return ScheduleCategory.FRONT_ROOM
    if isinstance(edit, ScottyEdit):
        return ScheduleCategory.SCOTTY
    if isinstance(edit, TwinsEdit):
        return ScheduleCategory.TWINS
    if isinstance(edit, ChoresEdit):
        return ScheduleCategory.CHORES
    if isinstance(edit, DropOffsEdit):
        return ScheduleCategory.DROP_OFFS
    if isinstance(edit, PickupsEdit):
        return ScheduleCategory.PICKUPS
    if isinstance(edit, TransportEdit):
        return ScheduleCategory.DROP_OFFS_PICKUPS
    if isinstance(edit, FinalChecklistEdit):
        return ScheduleCategory.FINAL_CHECKLIST
    raise TypeError(f"Unknown category edit: {type(edit).__name__}")


def apply_edit(schedule: Schedule, edit: CategoryEdit) -> Schedule:
    """Return a copy of *schedule* with the edited category replaced."""
    if isinstance(edit, WorkingStaffEdit):
        changes = {"working_staff": list(edit.staff_ids)}
    elif isinstance(edit, ParticipantsEdit):
        changes = {"attending_participants": list(edit.participant_ids)}
    elif isinstance(edit, AssignmentsEdit):
        changes = {"assignments": list(edit.assignments)}
    elif isinstance(edit, FrontRoomEdit):
        changes = {"front_room_slots": list(edit.slots)}
    elif isinstance(edit, ScottyEdit):
        changes = {"scotty_slots": list(edit.slots)}
    elif isinstance(edit, TwinsEdit):
        changes = {"twins_slots": list(edit.slots)}
    elif isinstance(edit, ChoresEdit):
        changes = {"chore_assignments": list(edit.chore_assignments)}
    elif isinstance(edit, DropOffsEdit):
        changes = {"drop_offs": list(edit.drop_offs)}
    elif isinstance(edit, PickupsEdit):
        changes = {"pickups": list(edit.pickups)}
    elif isinstance(edit, TransportEdit):
        changes = {"drop_offs": list(edit.drop_offs), "pickups": list(edit.pickups)}
    elif isinstance(edit, FinalChecklistEdit):
        changes = {"final_checklist_staff": edit.staff_id}
    else:
        raise TypeError(f"Unknown category edit: {type(edit).__name__}")
    return schedule.model_copy(update=changes, deep=True)
