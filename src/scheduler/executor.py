"""ReminderExecutor — sends reminders and runs guarded clock automations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from src.scheduler.models import ReminderAction

if TYPE_CHECKING:
    from src.notifications.router import NotificationRouter
    from src.scheduler.models import ScheduledAction
    from src.timetracking.clockify import TimeTracker

logger = logging.getLogger(__name__)

CLOCK_IN_BUTTON = [[{"text": "Clock In", "callback_data": "clock:in"}]]
CLOCK_OUT_BUTTON = [[{"text": "Clock Out", "callback_data": "clock:out"}]]


class ReminderExecutor:
    """Fires one ScheduledAction.

    Args:
        router: NotificationRouter for sending messages.
        tracker: TimeTracker consulted by guarded actions.
        owner_user_id: Chat that receives owner reminders.
    """

    def __init__(
        self,
        router: NotificationRouter,
        tracker: TimeTracker,
        owner_user_id: str,
    ) -> None:
        self._router = router
        self._tracker = tracker
        self._owner_user_id = owner_user_id

    async def execute(self, reminder: ScheduledAction) -> bool:
        """Run a reminder. Returns True when something was sent."""
        target = reminder.channel_id or self._owner_user_id
        if not target:
            logger.warning("OWNER_USER_ID not set; skipping reminder at %s", reminder.time)
            return False

        try:
            guard = reminder.guard
            if guard is not None:
                tracking = await self._tracker.is_tracking()
                if tracking is None:
                    logger.warning(
                        "Skipping %s at %s: tracking state unknown",
                        reminder.action,
                        reminder.time,
                    )
                    return False
                if not guard.allows(tracking):
                    logger.info(
                        "Skipping %s at %s (tracking=%s)",
                        reminder.action,
                        reminder.time,
                        tracking,
                    )
                    return False
            return await self._dispatch(reminder, target)
        except Exception:
            logger.exception("Reminder failed: %s", reminder.job_id)
            return False

    async def _dispatch(self, reminder: ScheduledAction, target: str) -> bool:
        action = reminder.action
        if action is None:
            sent = await self._router.send(target, reminder.message)
        elif action is ReminderAction.CLOCK_IN_REMINDER:
            sent = await self._router.send_rich(
                target, reminder.message, buttons=CLOCK_IN_BUTTON
            )
        elif action is ReminderAction.CLOCK_OUT_REMINDER:
            sent = await self._router.send_rich(
                target, reminder.message, buttons=CLOCK_OUT_BUTTON
            )
        elif action is ReminderAction.AUTO_CLOCK_IN:
            if not await self._tracker.clock_in():
                logger.warning("Auto clock-in failed at %s", reminder.time)
                return False
            sent = await self._router.send(target, reminder.message)
        elif action is ReminderAction.AUTO_CLOCK_OUT:
            if not await self._tracker.clock_out():
                logger.warning("Auto clock-out failed at %s", reminder.time)
                return False
            sent = await self._router.send(target, reminder.message)
        else:
            msg = f"Unknown reminder action: {action}"
            raise ValueError(msg)

        if sent:
            logger.info("Reminder sent (%s): %s", reminder.job_id, reminder.message[:60])
        return sent
