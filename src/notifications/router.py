"""NotificationRouter — dispatches outbound messages to registered channels."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.notifications.channels import Buttons, NotificationChannel

logger = logging.getLogger(__name__)


class NotificationRouter:
    """Routes reminders and greetings to the right delivery channel.

    Singleton accessed via ``NotificationRouter.get()``.
    """

    _instance: NotificationRouter | None = None

    def __init__(self) -> None:
        self._channels: dict[str, NotificationChannel] = {}
        self._default: str = ""

    @classmethod
    def get(cls) -> NotificationRouter:
        """Return the singleton instance, creating it if needed."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def _reset(cls) -> None:
        """Reset the singleton (for testing)."""
        cls._instance = None

    def register_channel(self, channel: NotificationChannel, *, default: bool = False) -> None:
        """Register a channel. Raises ValueError on duplicate name."""
        if channel.name in self._channels:
            msg = f"Channel '{channel.name}' is already registered"
            raise ValueError(msg)
        self._channels[channel.name] = channel
        if default or not self._default:
            self._default = channel.name

    def list_channels(self) -> list[str]:
        """Return names of all registered channels."""
        return list(self._channels.keys())

    @property
    def default_channel_name(self) -> str:
        return self._default

    def _resolve_channel(self, name: str | None) -> NotificationChannel | None:
        """Resolve a channel: explicit name, else the default."""
        return self._channels.get(name or self._default)

    async def send(self, chat_id: str, message: str, *, channel: str | None = None) -> bool:
        """Send a plain text message via the resolved channel."""
        ch = self._resolve_channel(channel)
        if ch is None:
            logger.warning("No channel resolved for send (requested=%s)", channel)
            return False
        return await ch.send(chat_id, message)

    async def send_rich(
        self,
        chat_id: str,
        message: str,
        *,
        channel: str | None = None,
        buttons: Buttons | None = None,
    ) -> bool:
        """Send a message with inline buttons via the resolved channel."""
        ch = self._resolve_channel(channel)
        if ch is None:
            logger.warning("No channel resolved for send_rich (requested=%s)", channel)
            return False
        return await ch.send_rich(chat_id, message, buttons=buttons)
