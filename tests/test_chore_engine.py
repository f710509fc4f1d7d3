"""Tests for src.core.chore_engine — weekly chore distribution."""

import random
from collections import Counter
from datetime import date, timedelta

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.core.chore_engine import (
    ChoreEngine,
    chore_eligible_staff_ids,
    day_index,
    distribute_chores,
    fallback_chores,
    week_key,
    week_start,
)
from src.data.models import Chore, Staff
from src.ports.storage_port import StorageError

MONDAY = date(2026, 2, 9)


def _staff(n):
    return [Staff(id=f"s{i}", name=f"Staff {i}") for i in range(1, n + 1)]


def _chores(n):
    return [Chore(id=f"c{i}", name=f"Chore {i}") for i in range(1, n + 1)]


# ---------------------------------------------------------------------------
# Week arithmetic
# ---------------------------------------------------------------------------


class TestWeekArithmetic:
    def test_monday_is_its_own_week_start(self):
        assert week_start(MONDAY) == MONDAY
        assert day_index(MONDAY) == 0

    def test_midweek(self):
        wednesday = date(2026, 2, 11)
        assert week_start(wednesday) == MONDAY
        assert day_index(wednesday) == 2

    def test_sunday_belongs_to_previous_monday(self):
        sunday = date(2026, 2, 15)
        assert week_start(sunday) == MONDAY
        assert day_index(sunday) == 6

    def test_week_key(self):
        assert week_key(date(2026, 2, 13)) == "weeklyChoreAssignments_2026-02-09"

    def test_week_crossing_month(self):
        assert week_start(date(2026, 3, 1)) == date(2026, 2, 23)


# ---------------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------------


def test_eligibility_excludes_placeholders_and_exempt():
    staff = [
        Staff(id="1", name="Anita"),
        Staff(id="2", name="Antoinette", is_team_leader=True, is_chore_exempt=True),
        Staff(id="25", name="Everyone", is_assignable=False),
        Staff(id="3", name="Antonia"),
    ]
    assert chore_eligible_staff_ids(staff, ["3", "2", "25", "1", "404"]) == ["3", "1"]


# ---------------------------------------------------------------------------
# distribute_chores (pure)
# ---------------------------------------------------------------------------


class TestDistributeChores:
    def test_every_chore_assigned_once(self):
        assignments, _ = distribute_chores(["a", "b", "c"], ["s1", "s2", "s3", "s4"], {}, 0, rng=random.Random(1))
        assert [a.chore_id for a in assignments] == ["a", "b", "c"]

    def test_one_chore_per_person_when_enough_staff(self):
        for seed in range(20):
            assignments, _ = distribute_chores(
                ["a", "b", "c"], ["s1", "s2", "s3"], {}, 3, rng=random.Random(seed),
            )
            assert len({a.staff_id for a in assignments}) == 3

    def test_more_chores_than_staff(self):
        """X, Y, Z with A and B: all assigned, both used, one doubles up."""
        for seed in range(20):
            assignments, _ = distribute_chores(["X", "Y", "Z"], ["A", "B"], {}, 0, rng=random.Random(seed))
            counts = Counter(a.staff_id for a in assignments)
            assert len(assignments) == 3
            assert set(counts) == {"A", "B"}
            assert sorted(counts.values()) == [1, 2]

    def test_week_map_records_today_only(self):
        week = {"a": ["s1", None, None, None, None, None, None]}
        _, updated = distribute_chores(["a"], ["s1", "s2"], week, 1, rng=random.Random(0))
        assert updated["a"][0] == "s1"
        assert updated["a"][1] is not None
        assert week["a"][1] is None  # input not mutated

    def test_avoids_repeating_chore_in_week(self):
        week = {"a": ["s1", "s2", None, None, None, None, None]}
        for seed in range(20):
            assignments, _ = distribute_chores(["a"], ["s1", "s2", "s3"], week, 2, rng=random.Random(seed))
            assert assignments[0].staff_id == "s3"

    def test_relaxes_variety_when_everyone_has_done_it(self):
        week = {"a": ["s1", "s2", None, None, None, None, None]}
        assignments, _ = distribute_chores(["a"], ["s1", "s2"], week, 2, rng=random.Random(0))
        assert assignments[0].staff_id in ("s1", "s2")

    def test_keeps_existing_assignment(self):
        week = {"a": [None, None, "s2", None, None, None, None]}
        for seed in range(10):
            assignments, _ = distribute_chores(["a", "b"], ["s1", "s2", "s3"], week, 2, rng=random.Random(seed))
            by_chore = {a.chore_id: a.staff_id for a in assignments}
            assert by_chore["a"] == "s2"
            assert by_chore["b"] != "s2"

    def test_force_regenerate_ignores_today_but_keeps_history(self):
        week = {"a": ["s1", None, "s2", None, None, None, None]}
        _, updated = distribute_chores(
            ["a"], ["s1", "s2", "s3"], week, 2, force_regenerate=True, rng=random.Random(0),
        )
        assert updated["a"][0] == "s1"
        # s1 did it Monday; s2's entry is today's and ignored, so s2 or s3
        assert updated["a"][2] in ("s2", "s3")

    def test_existing_assignment_for_absent_staff_is_replaced(self):
        week = {"a": [None, "gone", None, None, None, None, None]}
        assignments, _ = distribute_chores(["a"], ["s1"], week, 1, rng=random.Random(0))
        assert assignments[0].staff_id == "s1"

    def test_no_staff(self):
        assignments, updated = distribute_chores(["a"], [], {}, 0)
        assert assignments == []
        assert updated == {}

    def test_short_history_is_padded(self):
        _, updated = distribute_chores(["a"], ["s1"], {"a": ["s1"]}, 6, rng=random.Random(0))
        assert len(updated["a"]) == 7
        assert updated["a"][6] == "s1"


class TestFallbackChores:
    def test_round_robin_distinct_when_enough_staff(self):
        assignments = fallback_chores(["a", "b", "c"], ["s1", "s2", "s3", "s4"], random.Random(2))
        assert len({a.staff_id for a in assignments}) == 3

    def test_wraps_when_chores_outnumber_staff(self):
        assignments = fallback_chores(["a", "b", "c", "d", "e"], ["s1", "s2"], random.Random(2))
        counts = Counter(a.staff_id for a in assignments)
        assert sorted(counts.values()) == [2, 3]

    def test_no_staff(self):
        assert fallback_chores(["a"], []) == []


# ---------------------------------------------------------------------------
# ChoreEngine (persisted weekly memory)
# ---------------------------------------------------------------------------


class TestChoreEngine:
    @pytest.mark.asyncio
    async def test_week_of_fairness(self, storage):
        """10 staff, 3 chores, 7 days: nobody repeats a chore in the week."""
        engine = ChoreEngine(storage, rng=random.Random(42), history_weeks=4)
        staff = _staff(10)
        chores = _chores(3)
        seen: dict[str, set[str]] = {c.id: set() for c in chores}
        for offset in range(7):
            day = MONDAY + timedelta(days=offset)
            assignments = await engine.assign_chores([s.id for s in staff], staff, chores, day)
            assert len(assignments) == 3
            assert len({a.staff_id for a in assignments}) == 3
            for a in assignments:
                assert a.staff_id not in seen[a.chore_id]
                seen[a.chore_id].add(a.staff_id)

    @pytest.mark.asyncio
    async def test_rerun_same_day_keeps_assignments(self, storage):
        engine = ChoreEngine(storage, rng=random.Random(7), history_weeks=4)
        staff, chores = _staff(5), _chores(3)
        ids = [s.id for s in staff]
        first = await engine.assign_chores(ids, staff, chores, MONDAY)
        second = await engine.assign_chores(ids, staff, chores, MONDAY)
        assert first == second

    @pytest.mark.asyncio
    async def test_week_map_persisted(self, storage):
        engine = ChoreEngine(storage, rng=random.Random(7), history_weeks=4)
        staff, chores = _staff(4), _chores(2)
        wednesday = MONDAY + timedelta(days=2)
        assignments = await engine.assign_chores([s.id for s in staff], staff, chores, wednesday)
        week = await engine.get_week(wednesday)
        for a in assignments:
            assert week[a.chore_id][2] == a.staff_id
            assert week[a.chore_id][0] is None

    @pytest.mark.asyncio
    async def test_corrupt_history_falls_back(self, storage):
        await storage.set(week_key(MONDAY), "undefined")
        engine = ChoreEngine(storage, rng=random.Random(1), history_weeks=4)
        staff, chores = _staff(3), _chores(3)
        assignments = await engine.assign_chores([s.id for s in staff], staff, chores, MONDAY)
        assert len(assignments) == 3
        assert len({a.staff_id for a in assignments}) == 3

    @pytest.mark.asyncio
    async def test_storage_read_failure_falls_back(self):
        broken = MagicMock()
        broken.get = AsyncMock(side_effect=StorageError("locked"))
        engine = ChoreEngine(broken, rng=random.Random(1), history_weeks=4)
        staff, chores = _staff(2), _chores(2)
        assignments = await engine.assign_chores([s.id for s in staff], staff, chores, MONDAY)
        assert len(assignments) == 2

    @pytest.mark.asyncio
    async def test_storage_write_failure_still_returns_assignments(self):
        broken = MagicMock()
        broken.get = AsyncMock(return_value=None)
        broken.set = AsyncMock(side_effect=StorageError("read-only"))
        engine = ChoreEngine(broken, rng=random.Random(1), history_weeks=4)
        staff, chores = _staff(3), _chores(2)
        assignments = await engine.assign_chores([s.id for s in staff], staff, chores, MONDAY)
        assert len(assignments) == 2

    @pytest.mark.asyncio
    async def test_no_eligible_staff(self, storage):
        engine = ChoreEngine(storage, history_weeks=4)
        staff = [Staff(id="25", name="Everyone", is_assignable=False)]
        assert await engine.assign_chores(["25"], staff, _chores(2), MONDAY) == []
        assert await storage.get(week_key(MONDAY)) is None

    @pytest.mark.asyncio
    async def test_old_weeks_pruned(self, storage):
        old = MONDAY - timedelta(weeks=10)
        recent = MONDAY - timedelta(weeks=1)
        await storage.set(week_key(old), "{}")
        await storage.set(week_key(recent), "{}")
        engine = ChoreEngine(storage, rng=random.Random(1), history_weeks=4)
        staff = _staff(2)
        await engine.assign_chores([s.id for s in staff], staff, _chores(1), MONDAY)
        keys = await storage.get_all_keys()
        assert week_key(old) not in keys
        assert week_key(recent) in keys
        assert week_key(MONDAY) in keys
