"""Tests for src.core.categories — typed category edits."""

import pytest

from src.core.categories import (
    AssignmentsEdit,
    ChoresEdit,
    DropOffsEdit,
    FinalChecklistEdit,
    FrontRoomEdit,
    ParticipantsEdit,
    PickupsEdit,
    ScheduleCategory,
    ScottyEdit,
    TransportEdit,
    TwinsEdit,
    WorkingStaffEdit,
    apply_edit,
    category_of,
)
from src.data.models import (
    Assignment,
    ChoreAssignment,
    DropOffAssignment,
    PickupAssignment,
    Schedule,
    TimeSlotAssignment,
)

BASE = Schedule(
    id="schedule-2026-02-11",
    date="2026-02-11",
    working_staff=["1", "2"],
    front_room_slots=[TimeSlotAssignment(time_slot_id="1", staff_id="1")],
    final_checklist_staff="1",
)
SLOTS = [TimeSlotAssignment(time_slot_id="2", staff_id="3")]


@pytest.mark.parametrize("edit, category", [
    (WorkingStaffEdit(["1"]), ScheduleCategory.STAFF),
    (ParticipantsEdit(["5"]), ScheduleCategory.PARTICIPANTS),
    (AssignmentsEdit([]), ScheduleCategory.ASSIGNMENTS),
    (FrontRoomEdit(SLOTS), ScheduleCategory.FRONT_ROOM),
    (ScottyEdit(SLOTS), ScheduleCategory.SCOTTY),
    (TwinsEdit(SLOTS), ScheduleCategory.TWINS),
    (ChoresEdit([]), ScheduleCategory.CHORES),
    (DropOffsEdit([]), ScheduleCategory.DROP_OFFS),
    (PickupsEdit([]), ScheduleCategory.PICKUPS),
    (TransportEdit(), ScheduleCategory.DROP_OFFS_PICKUPS),
    (FinalChecklistEdit("4"), ScheduleCategory.FINAL_CHECKLIST),
])
def test_category_of(edit, category):
    assert category_of(edit) is category


def test_category_values_match_stored_names():
    assert ScheduleCategory.FRONT_ROOM.value == "frontRoom"
    assert ScheduleCategory.DROP_OFFS_PICKUPS.value == "dropoffs_pickups"
    assert ScheduleCategory.FINAL_CHECKLIST.value == "finalChecklist"


class TestApplyEdit:
    def test_replaces_only_edited_part(self):
        updated = apply_edit(BASE, ScottyEdit(SLOTS))
        assert updated.scotty_slots == SLOTS
        assert updated.front_room_slots == BASE.front_room_slots
        assert updated.working_staff == BASE.working_staff

    def test_original_untouched(self):
        apply_edit(BASE, WorkingStaffEdit(["9"]))
        assert BASE.working_staff == ["1", "2"]

    def test_empty_list_clears_category(self):
        assert apply_edit(BASE, FrontRoomEdit([])).front_room_slots == []

    def test_assignments(self):
        groups = [Assignment(staff_id="1", participant_ids=["4", "5"])]
        assert apply_edit(BASE, AssignmentsEdit(groups)).assignments == groups

    def test_chores(self):
        chores = [ChoreAssignment(chore_id="3", staff_id="2")]
        assert apply_edit(BASE, ChoresEdit(chores)).chore_assignments == chores

    def test_transport_sets_both(self):
        drops = [DropOffAssignment(participant_id="3", staff_id="1", location="Melina's")]
        picks = [PickupAssignment(participant_id="4")]
        updated = apply_edit(BASE, TransportEdit(drop_offs=drops, pickups=picks))
        assert updated.drop_offs == drops
        assert updated.pickups == picks
        assert updated.pickups[0].staff_id == ""

    def test_final_checklist(self):
        assert apply_edit(BASE, FinalChecklistEdit("2")).final_checklist_staff == "2"

    def test_id_and_date_preserved(self):
        updated = apply_edit(BASE, ParticipantsEdit(["1"]))
        assert (updated.id, updated.date) == (BASE.id, BASE.date)


def test_unknown_edit_rejected():
    with pytest.raises(TypeError):
        apply_edit(BASE, object())
    with pytest.raises(TypeError):
        category_of("twins")
