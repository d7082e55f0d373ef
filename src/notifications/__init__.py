"""Outbound notification delivery."""

from src.notifications.channels import NotificationChannel
from src.notifications.router import NotificationRouter
from src.notifications.telegram_channel import TelegramChannel

__all__ = [
    "NotificationChannel",
    "NotificationRouter",
    "TelegramChannel",
]
