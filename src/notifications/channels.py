"""Outbound delivery contract for reminders and start-up greetings."""

from typing import Protocol, runtime_checkable

Buttons = list[list[dict[str, str]]]


@runtime_checkable
class NotificationChannel(Protocol):
    """Something Levi can push an unprompted message through."""

    @property
    def name(self) -> str:
        """Registry key, e.g. ``"telegram"``."""
        ...

    async def send(self, chat_id: str, message: str) -> bool:
        """Deliver plain text. False when delivery failed."""
        ...

    async def send_rich(
        self, chat_id: str, message: str, *, buttons: Buttons | None = None
    ) -> bool:
        """Deliver text with rows of inline buttons (``text`` plus ``callback_data`` or ``url``)."""
        ...
