"""Daily reminders, clock automations, and memory pruning."""

from src.scheduler.engine import SchedulerEngine
from src.scheduler.executor import ReminderExecutor
from src.scheduler.models import ReminderAction, ScheduledAction, load_reminders

__all__ = [
    "ReminderAction",
    "ReminderExecutor",
    "ScheduledAction",
    "SchedulerEngine",
    "load_reminders",
]
