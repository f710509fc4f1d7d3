"""
Daily Roster — Centralized configuration.

Loads all settings from .env and validates them.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from src/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # SQLite key-value store
    DATABASE_PATH: str = "data/schedule.db"

    # "Today" is resolved in this timezone
    TIMEZONE: str = "Australia/Sydney"

    # Compared against the persisted lastViewedVersion for update banners
    APP_VERSION: str = "1.2.0"

    # Sharing codes
    SHARE_CODE_TTL_HOURS: int = 24

    # Retention
    CHORE_HISTORY_WEEKS: int = 8
    CRITICAL_UPDATE_LOG_LIMIT: int = 500

    # Team leaders are only rostered from this slot start onwards (HH:MM)
    TEAM_LEADER_EARLIEST_SLOT: str = "13:30"

    LOG_LEVEL: str = "INFO"

    @field_validator(
        "SHARE_CODE_TTL_HOURS", "CHORE_HISTORY_WEEKS", "CRITICAL_UPDATE_LOG_LIMIT",
        mode="before",
    )
    @classmethod
    def parse_positive_int(cls, v: str | int) -> int:
        value = int(v)
        if value < 1:
            raise ValueError(f"must be a positive integer, got {value}")
        return value

    @field_validator("TEAM_LEADER_EARLIEST_SLOT")
    @classmethod
    def check_hhmm(cls, v: str) -> str:
        hour, _, minute = v.partition(":")
        if not (hour.isdigit() and minute.isdigit() and len(minute) == 2):
            raise ValueError(f"expected HH:MM, got {v!r}")
        return f"{int(hour):02d}:{minute}"


def _load_settings() -> Settings:
    """Load settings from environment, falling back to defaults."""
    return Settings(
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/schedule.db"),
        TIMEZONE=os.getenv("TIMEZONE", "Australia/Sydney"),
        APP_VERSION=os.getenv("APP_VERSION", "1.2.0"),
        SHARE_CODE_TTL_HOURS=os.getenv("SHARE_CODE_TTL_HOURS", "24"),
        CHORE_HISTORY_WEEKS=os.getenv("CHORE_HISTORY_WEEKS", "8"),
        CRITICAL_UPDATE_LOG_LIMIT=os.getenv("CRITICAL_UPDATE_LOG_LIMIT", "500"),
        TEAM_LEADER_EARLIEST_SLOT=os.getenv("TEAM_LEADER_EARLIEST_SLOT", "13:30"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
    )


# Singleton — imported by all other modules as:
#   from src.config import settings
settings = _load_settings()
