"""
Daily Roster — Update/Versioning Tracker.

Drives the "what's new" badges consumed by UI layers:

- a global version banner (APP_VERSION vs the persisted lastViewedVersion);
- a per-date log of the last change to each schedule category;
- an append-only log of critical changes (reference lists, schedule saves),
  each of which also raises the version banner.

Loads recover silently: a corrupt log is removed and treated as empty.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Callable

from pydantic import TypeAdapter

from src.data.codec import CorruptBlobError, decode_blob, encode_blob
from src.data.models import CategoryUpdate, CriticalUpdate
from src.ports.storage_port import StorageError

if TYPE_CHECKING:
    from src.ports.storage_port import StoragePort

logger = logging.getLogger(__name__)

LAST_VIEWED_VERSION_KEY = "lastViewedVersion"
CRITICAL_UPDATES_KEY = "criticalUpdates"
CATEGORY_UPDATES_PREFIX = "categoryUpdates_"

_CATEGORY_LOG = TypeAdapter(list[CategoryUpdate])
_CRITICAL_LOG = TypeAdapter(list[CriticalUpdate])

# Display names for the "last update" banner
CATEGORY_NAMES = {
    "staff": "Staff",
    "participants": "Participants",
    "assignments": "Daily Assignment",
    "frontRoom": "Front Room",
    "scotty": "Scotty",
    "twins": "Twins",
    "chores": "Chores",
    "dropOffs": "Drop-offs",
    "pickups": "Pickups",
    "dropoffs_pickups": "Drop-offs & Pickups",
    "finalChecklist": "Final Checklist",
}


def category_updates_key(date: str) -> str:
    return f"{CATEGORY_UPDATES_PREFIX}{date}"


class UpdateTracker:
    """Per-date category log, critical-update log, and version banner state."""

    def __init__(
        self,
        storage: StoragePort,
        clock: Callable[[], datetime],
        app_version: str | None = None,
        critical_log_limit: int | None = None,
    ) -> None:
        if app_version is None or critical_log_limit is None:
            from src.config import settings
            app_version = app_version or settings.APP_VERSION
            critical_log_limit = critical_log_limit or settings.CRITICAL_UPDATE_LOG_LIMIT

        self._storage = storage
        self._clock = clock
        self.app_version = app_version
        self._critical_log_limit = critical_log_limit
        self.last_viewed_version = ""
        self.has_new_updates = False

    # ------------------------------------------------------------------
    # Version banner
    # ------------------------------------------------------------------

    async def check_app_version(self) -> bool:
        """Load lastViewedVersion and raise the banner on mismatch."""
        try:
            stored = await self._storage.get(LAST_VIEWED_VERSION_KEY)
        except StorageError as exc:
            logger.warning("Could not read last viewed version: %s", exc)
            stored = None
        self.last_viewed_version = stored or ""
        if self.last_viewed_version != self.app_version:
            self.has_new_updates = True
        return self.has_new_updates

    async def mark_updates_as_viewed(self) -> None:
        await self._storage.set(LAST_VIEWED_VERSION_KEY, self.app_version)
        self.last_viewed_version = self.app_version
        self.has_new_updates = False
        logger.info("Updates acknowledged for version %s", self.app_version)

    def reset(self) -> None:
        """Forget in-memory state (after a factory reset)."""
        self.last_viewed_version = ""
        self.has_new_updates = False

    # ------------------------------------------------------------------
    # Per-date category log
    # ------------------------------------------------------------------

    async def get_category_updates(self, date: str) -> list[CategoryUpdate]:
        key = category_updates_key(date)
        try:
            updates = decode_blob(await self._storage.get(key), _CATEGORY_LOG)
        except CorruptBlobError as exc:
            logger.warning("Discarding corrupt category updates for %s: %s", date, exc)
            await self._discard(key)
            return []
        except StorageError as exc:
            logger.warning("Could not read category updates for %s: %s", date, exc)
            return []
        return updates or []

    async def record_category_update(
        self, date: str, category: str, action: str = "updated",
    ) -> list[CategoryUpdate]:
        """Record a change. "created" starts a fresh log for the date;
        "updated" replaces the category's previous entry."""
        update = CategoryUpdate(
            category=category,
            timestamp=self._clock().isoformat(),
            action=action,
        )
        if action == "created":
            updates = [update]
        else:
            existing = await self.get_category_updates(date)
            updates = [u for u in existing if u.category != category]
            updates.append(update)

        await self._storage.set(category_updates_key(date), encode_blob(updates, _CATEGORY_LOG))
        logger.info("Category '%s' %s for %s", category, action, date)
        return updates

    async def latest_update_message(self, date: str) -> str | None:
        """Banner text for the most recent change on a date, e.g. "Twins updated"."""
        updates = await self.get_category_updates(date)
        if not updates:
            return None
        # The log is kept in recency order, newest last
        latest = updates[-1]
        if latest.category == "schedule" and latest.action == "created":
            return "Schedule created"
        name = CATEGORY_NAMES.get(latest.category, latest.category)
        return f"{name} updated"

    # ------------------------------------------------------------------
    # Critical updates
    # ------------------------------------------------------------------

    async def get_critical_updates(self) -> list[CriticalUpdate]:
        try:
            return await self._load_critical_log()
        except StorageError as exc:
            logger.warning("Could not read critical update log: %s", exc)
            return []

    async def track_critical_update(self, update_type: str) -> None:
        """Append to the critical log (newest entries kept) and raise the banner.

        The banner is raised even when the log cannot be written.
        """
        self.has_new_updates = True
        try:
            updates = await self._load_critical_log()
            updates.append(
                CriticalUpdate(
                    type=update_type,
                    timestamp=self._clock().isoformat(),
                    version=self.app_version,
                )
            )
            if len(updates) > self._critical_log_limit:
                updates = updates[-self._critical_log_limit:]
            await self._storage.set(CRITICAL_UPDATES_KEY, encode_blob(updates, _CRITICAL_LOG))
        except StorageError as exc:
            logger.warning("Could not record critical update '%s': %s", update_type, exc)
            return
        logger.debug("Critical update tracked: %s", update_type)

    async def _load_critical_log(self) -> list[CriticalUpdate]:
        """Raises StorageError; a corrupt log is removed and read as empty."""
        try:
            updates = decode_blob(await self._storage.get(CRITICAL_UPDATES_KEY), _CRITICAL_LOG)
        except CorruptBlobError as exc:
            logger.warning("Discarding corrupt critical update log: %s", exc)
            await self._discard(CRITICAL_UPDATES_KEY)
            return []
        return updates or []

    async def _discard(self, key: str) -> None:
        try:
            await self._storage.remove(key)
        except StorageError as exc:
            logger.warning("Could not remove corrupt key '%s': %s", key, exc)
