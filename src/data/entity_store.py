"""
Daily Roster — Entity Store.

Canonical reference lists (staff, participants, chores, checklist) kept in
the key-value store, one JSON array per kind. Loading never fails: a missing
or corrupt blob yields the built-in defaults, and the corrupt key is removed
so the next save starts clean.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Callable

from pydantic import BaseModel, TypeAdapter

from src.data import defaults
from src.data.codec import CorruptBlobError, decode_blob, encode_blob
from src.data.models import ChecklistItem, Chore, Participant, Staff
from src.ports.storage_port import StorageError

if TYPE_CHECKING:
    from src.core.update_tracker import UpdateTracker
    from src.ports.storage_port import StoragePort

logger = logging.getLogger(__name__)


class EntityKind(Enum):
    """Reference list kinds; the value is the storage key."""

    STAFF = "staff"
    PARTICIPANTS = "participants"
    CHORES = "chores"
    CHECKLIST = "checklist"


_ADAPTERS: dict[EntityKind, TypeAdapter] = {
    EntityKind.STAFF: TypeAdapter(list[Staff]),
    EntityKind.PARTICIPANTS: TypeAdapter(list[Participant]),
    EntityKind.CHORES: TypeAdapter(list[Chore]),
    EntityKind.CHECKLIST: TypeAdapter(list[ChecklistItem]),
}

_DEFAULTS: dict[EntityKind, Callable[[], list]] = {
    EntityKind.STAFF: defaults.default_staff,
    EntityKind.PARTICIPANTS: defaults.default_participants,
    EntityKind.CHORES: defaults.default_chores,
    EntityKind.CHECKLIST: defaults.default_checklist,
}


def adapter_for(kind: EntityKind) -> TypeAdapter:
    return _ADAPTERS[kind]


def _copies(items: list) -> list:
    return [item.model_copy(deep=True) for item in items]


class EntityStore:
    """Reference lists with default fallback.

    Every load re-reads and re-validates storage. The last good list per kind
    is kept only to answer loads while storage cannot be read.
    """

    def __init__(self, storage: StoragePort, tracker: UpdateTracker | None = None) -> None:
        self._storage = storage
        self._tracker = tracker
        self._last_good: dict[EntityKind, list] = {}

    async def load(self, kind: EntityKind) -> list:
        """Return the list for *kind*; never raises."""
        try:
            items = decode_blob(await self._storage.get(kind.value), _ADAPTERS[kind])
        except CorruptBlobError as exc:
            logger.warning("Discarding corrupt '%s' data, using defaults: %s", kind.value, exc)
            try:
                await self._storage.remove(kind.value)
            except StorageError as rm_exc:
                logger.warning("Could not remove corrupt '%s': %s", kind.value, rm_exc)
            items = None
        except StorageError as exc:
            if kind in self._last_good:
                logger.warning("Could not read '%s', using last loaded list: %s", kind.value, exc)
                return _copies(self._last_good[kind])
            logger.warning("Could not read '%s', using defaults: %s", kind.value, exc)
            return _DEFAULTS[kind]()

        if items is None:
            items = _DEFAULTS[kind]()
        self._last_good[kind] = items
        return _copies(items)

    async def save(self, kind: EntityKind, items: list[BaseModel]) -> list[str]:
        """Overwrite the list for *kind*. Returns ids that are new since the last load."""
        previous_ids = {item.id for item in await self.load(kind)}
        items = _copies(items)
        await self._storage.set(kind.value, encode_blob(items, _ADAPTERS[kind]))
        self._last_good[kind] = items

        new_ids = [item.id for item in items if item.id not in previous_ids]
        logger.info("Saved %d %s (%d new)", len(items), kind.value, len(new_ids))

        if self._tracker is not None:
            if kind is EntityKind.STAFF:
                update_type = "staff_added" if new_ids else "staff_updated"
            else:
                update_type = f"{kind.value}_updated"
            await self._tracker.track_critical_update(update_type)
        return new_ids

    def invalidate(self) -> None:
        """Forget the last good lists (after a reset)."""
        self._last_good.clear()

    # Convenience accessors

    async def staff(self) -> list[Staff]:
        return await self.load(EntityKind.STAFF)

    async def participants(self) -> list[Participant]:
        return await self.load(EntityKind.PARTICIPANTS)

    async def chores(self) -> list[Chore]:
        return await self.load(EntityKind.CHORES)

    async def checklist(self) -> list[ChecklistItem]:
        return await self.load(EntityKind.CHECKLIST)
