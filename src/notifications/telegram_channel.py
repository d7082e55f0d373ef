"""Telegram implementation of the NotificationChannel protocol."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import telegram
from telegram import InlineKeyboardButton, InlineKeyboardMarkup

if TYPE_CHECKING:
    from src.notifications.channels import Buttons

logger = logging.getLogger(__name__)


class TelegramChannel:
    """Sends reminders and greetings via the Telegram Bot API."""

    def __init__(self, bot: telegram.Bot) -> None:
        self._bot = bot

    @property
    def name(self) -> str:
        return "telegram"

    async def send(self, chat_id: str, message: str) -> bool:
        """Send a plain text message to a Telegram chat."""
        try:
            await self._bot.send_message(chat_id=int(chat_id), text=message)
            return True
        except Exception:
            logger.exception("TelegramChannel.send failed for chat_id=%s", chat_id)
            return False

    async def send_rich(
        self,
        chat_id: str,
        message: str,
        *,
        buttons: Buttons | None = None,
    ) -> bool:
        """Send a message with optional inline keyboard buttons."""
        try:
            markup = None
            if buttons:
                markup = InlineKeyboardMarkup([
                    [
                        InlineKeyboardButton(
                            text=btn["text"],
                            callback_data=btn.get("callback_data"),
                            url=btn.get("url"),
                        )
                        for btn in row
                    ]
                    for row in buttons
                ])

            await self._bot.send_message(
                chat_id=int(chat_id), text=message, reply_markup=markup
            )
            return True
        except Exception:
            logger.exception("TelegramChannel.send_rich failed for chat_id=%s", chat_id)
            return False
