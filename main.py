"""
Daily Roster — Entry Point.

`python main.py` runs startup maintenance against the configured store:
sweeps expired sharing codes, checks data integrity and reports the
schedule for today. UI layers import src.core.schedule_service directly.
"""

import asyncio
import logging

from src.config import settings

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from src.adapters.sqlite_storage import SQLiteStorage
from src.core.schedule_service import ScheduleService

logger = logging.getLogger("main")


async def run() -> None:
    service = ScheduleService(SQLiteStorage())
    await service.start()

    report = await service.check_data_integrity()
    for issue in report.issues:
        logger.warning("Data issue: %s", issue)

    schedule = await service.get_schedule_for_date(service.selected_date)
    if schedule is None:
        logger.info("No schedule yet for %s", service.selected_date)
    else:
        logger.info(
            "Schedule for %s: %d staff, %d participants, %d chores",
            schedule.date, len(schedule.working_staff),
            len(schedule.attending_participants), len(schedule.chore_assignments),
        )


if __name__ == "__main__":
    asyncio.run(run())
