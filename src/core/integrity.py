"""
Daily Roster — Data integrity check and factory reset.

check_data_integrity() is read-only and reports one line per bad blob.
clear_corrupted_data() is the blunt fix offered when issues are found: it
wipes every key this app owns so everything falls back to defaults.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import TypeAdapter

from src.core.chore_engine import WEEKLY_KEY_PREFIX
from src.core.sharing import ACTIVE_CODES_KEY, SHARED_PREFIX
from src.core.update_tracker import CATEGORY_UPDATES_PREFIX, CRITICAL_UPDATES_KEY
from src.data.codec import CorruptBlobError, decode_blob
from src.data.entity_store import EntityKind, adapter_for
from src.data.models import Schedule
from src.data.schedule_repo import SCHEDULES_KEY
from src.ports.storage_port import StorageError

if TYPE_CHECKING:
    from src.ports.storage_port import StoragePort

logger = logging.getLogger(__name__)

# Primary collections, checked in this order
PRIMARY_KEYS: dict[str, tuple[str, TypeAdapter]] = {
    EntityKind.STAFF.value: ("Staff", adapter_for(EntityKind.STAFF)),
    EntityKind.PARTICIPANTS.value: ("Participants", adapter_for(EntityKind.PARTICIPANTS)),
    EntityKind.CHORES.value: ("Chores", adapter_for(EntityKind.CHORES)),
    EntityKind.CHECKLIST.value: ("Checklist", adapter_for(EntityKind.CHECKLIST)),
    SCHEDULES_KEY: ("Schedules", TypeAdapter(list[Schedule])),
}

_RESET_PREFIXES = (CATEGORY_UPDATES_PREFIX, SHARED_PREFIX, WEEKLY_KEY_PREFIX)
_RESET_KEYS = (ACTIVE_CODES_KEY, CRITICAL_UPDATES_KEY)


@dataclass
class IntegrityReport:
    success: bool
    issues: list[str] = field(default_factory=list)


async def check_data_integrity(storage: StoragePort) -> IntegrityReport:
    """Try to decode every primary collection; absent collections are fine."""
    issues: list[str] = []
    for key, (label, adapter) in PRIMARY_KEYS.items():
        try:
            decode_blob(await storage.get(key), adapter)
        except CorruptBlobError as exc:
            issues.append(f"{label} data is corrupted ({exc})")
        except StorageError as exc:
            issues.append(f"{label} data could not be read ({exc})")

    if issues:
        logger.warning("Integrity check found %d issue(s): %s", len(issues), "; ".join(issues))
    else:
        logger.info("Integrity check passed")
    return IntegrityReport(success=not issues, issues=issues)


async def clear_corrupted_data(storage: StoragePort) -> bool:
    """Remove all app-owned keys. Returns False if storage refused."""
    try:
        keys = [
            key for key in await storage.get_all_keys()
            if key in PRIMARY_KEYS or key in _RESET_KEYS or key.startswith(_RESET_PREFIXES)
        ]
        await storage.multi_remove(keys)
    except StorageError as exc:
        logger.error("Failed to clear data: %s", exc)
        return False
    logger.warning("Cleared %d stored key(s); all data reset to defaults", len(keys))
    return True
