"""
Daily Roster — Data Models.

Every persisted blob is one of these models (or a list of them). Field names
are snake_case in Python and camelCase in the stored JSON, so blobs written
by older app versions load unchanged.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

# Staff records written before isAssignable existed are recognised by name.
LEGACY_PLACEHOLDER_NAMES = ("Everyone", "Drive/Outing", "Audit")


class StoredModel(BaseModel):
    """Base for all persisted models: camelCase on disk, snake_case in code."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# ---------------------------------------------------------------------------
# Reference lists
# ---------------------------------------------------------------------------


class Staff(StoredModel):
    """A staff member who can be rostered.

    is_assignable=False marks administrative placeholders ("Everyone",
    "Drive/Outing", "Audit") that never receive automatic assignments.
    """

    id: str
    name: str
    color: str = "#CCCCCC"
    is_team_leader: bool = False
    is_assignable: bool = True
    is_chore_exempt: bool = False

    @model_validator(mode="before")
    @classmethod
    def migrate_placeholder_flag(cls, data: Any) -> Any:
        if (
            isinstance(data, dict)
            and "isAssignable" not in data
            and "is_assignable" not in data
            and data.get("name") in LEGACY_PLACEHOLDER_NAMES
        ):
            data = {**data, "isAssignable": False}
        return data

    @property
    def can_do_chores(self) -> bool:
        return self.is_assignable and not self.is_chore_exempt


class Participant(StoredModel):
    """A care participant attending on some days."""

    id: str
    name: str
    has_drop_off: bool = False
    drop_off_location: str | None = None
    is_twin: bool = False


class Chore(StoredModel):
    id: str
    name: str


class ChecklistItem(StoredModel):
    id: str
    name: str


class TimeSlot(StoredModel):
    """One fixed slot of the day; list order is temporal order."""

    id: str
    start_time: str    # HH:MM
    end_time: str      # HH:MM
    display_time: str  # e.g. "1:30pm - 2:00pm"

    @property
    def start_minutes(self) -> int:
        hour, minute = self.start_time.split(":")
        return int(hour) * 60 + int(minute)


# ---------------------------------------------------------------------------
# Schedule aggregate
# ---------------------------------------------------------------------------


class Assignment(StoredModel):
    """One staff member's full-day group of participants."""

    staff_id: str
    participant_ids: list[str] = Field(default_factory=list)


class TimeSlotAssignment(StoredModel):
    time_slot_id: str
    staff_id: str


class ChoreAssignment(StoredModel):
    chore_id: str
    staff_id: str


class DropOffAssignment(StoredModel):
    participant_id: str
    staff_id: str = ""
    location: str | None = None


class PickupAssignment(StoredModel):
    participant_id: str
    staff_id: str = ""
    location: str | None = None


def schedule_id_for(date: str) -> str:
    """Schedule ids are derived from the date so one date maps to one id."""
    return f"schedule-{date}"


class Schedule(StoredModel):
    """Everything rostered for one calendar date (YYYY-MM-DD)."""

    id: str
    date: str
    working_staff: list[str] = Field(default_factory=list)
    attending_participants: list[str] = Field(default_factory=list)
    assignments: list[Assignment] = Field(default_factory=list)
    front_room_slots: list[TimeSlotAssignment] = Field(default_factory=list)
    scotty_slots: list[TimeSlotAssignment] = Field(default_factory=list)
    twins_slots: list[TimeSlotAssignment] = Field(default_factory=list)
    chore_assignments: list[ChoreAssignment] = Field(default_factory=list)
    final_checklist_staff: str = ""
    drop_offs: list[DropOffAssignment] = Field(default_factory=list)
    pickups: list[PickupAssignment] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Update tracking
# ---------------------------------------------------------------------------


class CategoryUpdate(StoredModel):
    category: str
    timestamp: str  # ISO datetime
    action: Literal["created", "updated"]


class CriticalUpdate(StoredModel):
    type: str
    timestamp: str  # ISO datetime
    version: str


# ---------------------------------------------------------------------------
# Sharing codes
# ---------------------------------------------------------------------------


def _as_aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


class SharedSchedule(StoredModel):
    """An immutable snapshot of one schedule, addressed by a 6-digit code."""

    code: str
    schedule: Schedule
    created_at: datetime
    expires_at: datetime

    @field_validator("created_at", "expires_at")
    @classmethod
    def ensure_aware(cls, v: datetime) -> datetime:
        return _as_aware(v)


class ActiveCode(StoredModel):
    code: str
    expires_at: datetime

    @field_validator("expires_at")
    @classmethod
    def ensure_aware(cls, v: datetime) -> datetime:
        return _as_aware(v)
