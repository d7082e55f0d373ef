"""Reminder data model and the declarative reminder file loader."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import yaml

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


class ReminderAction(StrEnum):
    """Time-tracking automations a reminder can trigger."""

    CLOCK_IN_REMINDER = "clock_in_reminder"
    CLOCK_OUT_REMINDER = "clock_out_reminder"
    AUTO_CLOCK_IN = "auto_clock_in"
    AUTO_CLOCK_OUT = "auto_clock_out"


@dataclass(frozen=True)
class TrackingGuard:
    """Run the action only when the tracking state matches."""

    requires_tracking: bool

    def allows(self, is_tracking: bool) -> bool:
        return is_tracking == self.requires_tracking


# Clock-in actions only make sense when nothing is running, clock-out ones
# only when something is.
GUARDS: dict[ReminderAction, TrackingGuard] = {
    ReminderAction.CLOCK_IN_REMINDER: TrackingGuard(requires_tracking=False),
    ReminderAction.AUTO_CLOCK_IN: TrackingGuard(requires_tracking=False),
    ReminderAction.CLOCK_OUT_REMINDER: TrackingGuard(requires_tracking=True),
    ReminderAction.AUTO_CLOCK_OUT: TrackingGuard(requires_tracking=True),
}


@dataclass(frozen=True)
class ScheduledAction:
    """A daily reminder fired at a wall-clock time.

    Attributes:
        time: ``"HH:MM"`` in the scheduler timezone.
        message: Text to send.
        action: Optional time-tracking automation (None → plain message).
        channel_id: Send to this chat instead of the owner.
    """

    time: str
    message: str
    action: ReminderAction | None = None
    channel_id: str | None = None

    def __post_init__(self) -> None:
        self.hour_minute  # noqa: B018 - validates the time format

    @property
    def hour_minute(self) -> tuple[int, int]:
        hour, sep, minute = self.time.partition(":")
        if not sep or not hour.isdigit() or not minute.isdigit():
            msg = f"Invalid reminder time '{self.time}', expected HH:MM"
            raise ValueError(msg)
        h, m = int(hour), int(minute)
        if not (0 <= h < 24 and 0 <= m < 60):
            msg = f"Reminder time out of range: '{self.time}'"
            raise ValueError(msg)
        return h, m

    @property
    def guard(self) -> TrackingGuard | None:
        return GUARDS.get(self.action) if self.action else None

    @property
    def job_id(self) -> str:
        target = self.channel_id or "owner"
        kind = self.action.value if self.action else "message"
        return f"reminder:{self.time}:{kind}:{target}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScheduledAction:
        action = data.get("action")
        channel = data.get("channel_id")
        return cls(
            time=str(data["time"]),
            message=str(data.get("message", "")),
            action=ReminderAction(action) if action else None,
            channel_id=str(channel) if channel else None,
        )


def load_reminders(path: Path) -> list[ScheduledAction]:
    """Load reminders from a YAML file.

    The file holds a ``reminders`` list; each entry needs ``time`` and
    ``message`` and may set ``action`` and ``channel_id``. A missing file
    yields no reminders. Invalid entries are skipped with a warning.
    """
    if not path.exists():
        logger.warning("Reminder file not found at %s", path)
        return []

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError:
        logger.exception("Failed to parse %s", path)
        return []

    reminders: list[ScheduledAction] = []
    for entry in data.get("reminders", []) or []:
        try:
            reminders.append(ScheduledAction.from_dict(entry))
        except (KeyError, ValueError, TypeError):
            logger.warning("Skipping invalid reminder entry: %s", entry)
    logger.info("Loaded %d reminder(s) from %s", len(reminders), path)
    return reminders
