"""SchedulerEngine — APScheduler lifecycle for reminders and memory pruning."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from src.config import settings

if TYPE_CHECKING:
    from src.memory.store import MemoryStore
    from src.scheduler.executor import ReminderExecutor
    from src.scheduler.models import ScheduledAction

logger = logging.getLogger(__name__)

PRUNE_JOB_ID = "memory:prune"


class SchedulerEngine:
    """Maps ScheduledActions to daily cron jobs and runs the memory prune.

    Args:
        executor: ReminderExecutor that fires each reminder.
        reminders: The reminders to schedule.
        memory: MemoryStore to prune daily (None disables pruning).
        timezone: IANA timezone string (default from settings).
    """

    def __init__(
        self,
        executor: ReminderExecutor,
        reminders: list[ScheduledAction],
        memory: MemoryStore | None = None,
        timezone: str | None = None,
    ) -> None:
        self._executor = executor
        self._reminders = list(reminders)
        self._memory = memory
        self._timezone = timezone or settings.timezone
        self._scheduler = AsyncIOScheduler(timezone=self._timezone)
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    # -- Lifecycle -------------------------------------------------------------

    async def start(self) -> None:
        """Create all jobs and start the scheduler."""
        for index, reminder in enumerate(self._reminders):
            self._add_reminder_job(reminder, index)
        if self._memory is not None:
            self._scheduler.add_job(
                self._prune_memories,
                trigger=CronTrigger(
                    hour=settings.memory_prune_hour, minute=0, timezone=self._timezone
                ),
                id=PRUNE_JOB_ID,
                name="Prune old memories",
                replace_existing=True,
            )
        self._scheduler.start()
        self._running = True
        logger.info(
            "Scheduler started with %d reminder(s) (tz=%s)",
            len(self._reminders),
            self._timezone,
        )

    async def stop(self) -> None:
        """Shut down the scheduler."""
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    # -- Internal --------------------------------------------------------------

    def _add_reminder_job(self, reminder: ScheduledAction, index: int):
        hour, minute = reminder.hour_minute
        return self._scheduler.add_job(
            self._run_reminder,
            trigger=CronTrigger(hour=hour, minute=minute, timezone=self._timezone),
            id=f"{reminder.job_id}:{index}",
            name=reminder.message[:40],
            args=[reminder],
            misfire_grace_time=60,
            replace_existing=True,
        )

    async def _run_reminder(self, reminder: ScheduledAction) -> None:
        """Callback invoked by APScheduler."""
        await self._executor.execute(reminder)

    async def _prune_memories(self) -> None:
        if self._memory is None:
            return
        try:
            await self._memory.prune(settings.memory_retention_days)
        except Exception:
            logger.exception("Scheduled memory prune failed")
