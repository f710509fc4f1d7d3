"""Shared test fixtures and configuration.

Sets fake environment variables before any src imports, and provides
common fixtures like a temp key-value store and a controllable clock.
"""

import os

# Patch env vars BEFORE any src imports
os.environ.setdefault("DATABASE_PATH", "data/test_schedule.db")
os.environ.setdefault("TIMEZONE", "Australia/Sydney")
os.environ.setdefault("APP_VERSION", "1.2.0")

import random
from datetime import datetime, timedelta, timezone

import pytest


class FakeClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    """A clock fixed at Wednesday 2026-02-11 09:00 (+11:00)."""
    return FakeClock(datetime(2026, 2, 11, 9, 0, tzinfo=timezone(timedelta(hours=11))))


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def storage(tmp_path):
    """Return a SQLiteStorage backed by a temp file."""
    from src.adapters.sqlite_storage import SQLiteStorage
    return SQLiteStorage(db_path=str(tmp_path / "test_schedule.db"))


@pytest.fixture
def service(storage, clock, rng):
    """Return a ScheduleService on the temp store with a fixed clock."""
    from src.core.schedule_service import ScheduleService
    return ScheduleService(storage, clock=clock, rng=rng)
