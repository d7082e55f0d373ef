"""Telegram update handlers."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from telegram import Message, Update
from telegram.constants import ChatAction, ChatType
from telegram.ext import ContextTypes

from src.assistant import Assistant
from src.bot.peer import is_trigger, peer_conversation
from src.config import settings
from src.llm.client import extract_text_from_image
from src.llm.persona import select_persona
from src.timetracking.clockify import ClockifyTracker, TimeTracker

logger = logging.getLogger(__name__)

# Pause after the typing indicator so replies don't feel instant.
TYPING_DELAY = 1.5

MAX_UPLOAD_SIZE = 20 * 1024 * 1024  # 20 MB

_tracker: TimeTracker | None = None


def get_tracker() -> TimeTracker:
    """Lazily create the shared time tracker."""
    global _tracker  # noqa: PLW0603
    if _tracker is None:
        _tracker = ClockifyTracker()
    return _tracker


def _is_owner(update: Update) -> bool:
    user = update.effective_user
    if user is None:
        return False
    if not settings.owner_user_id:
        logger.warning("OWNER_USER_ID is empty; owner-only commands are disabled")
        return False
    return str(user.id) == settings.owner_user_id


def _display_name(update: Update) -> str:
    user = update.effective_user
    if user is None:
        return ""
    return user.username or user.full_name or ""


def _is_addressed(message: Message, bot_id: int, bot_username: str) -> bool:
    """Private chats always count; in groups Levi needs a mention or a reply."""
    if message.chat.type == ChatType.PRIVATE:
        return True
    reply_to = message.reply_to_message
    if reply_to and reply_to.from_user and reply_to.from_user.id == bot_id:
        return True
    text = message.text or message.caption or ""
    return bool(bot_username) and f"@{bot_username}".lower() in text.lower()


# -- Commands ------------------------------------------------------------------


async def handle_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start — greet the user."""
    persona = select_persona(_display_name(update), update.effective_user.id)
    if persona.name == "stranger":
        return
    await update.message.reply_text("Hiii! I'm Levi. Talk to me anytime. 💕")


async def handle_clear(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /clear — reset this chat's short-term history."""
    if not _is_owner(update):
        return
    count = await Assistant.get().history.clear(str(update.effective_chat.id))
    await update.message.reply_text(f"Cleared {count} messages. Starting fresh. 🧹")


async def handle_status(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /status — show history and persona info."""
    if not _is_owner(update):
        return

    history = Assistant.get().history
    chat_id = str(update.effective_chat.id)
    persona = select_persona(_display_name(update), update.effective_user.id)
    lines = [
        "Levi Status",
        f"Model: {settings.chat_model}",
        f"Messages in context: {len(history.get(chat_id))}/{history.max_length}",
        f"Long-term memory: {'on' if settings.memory_enabled else 'off'}",
        f"Persona: {persona.name}",
        "Status: online",
    ]
    await update.message.reply_text("\n".join(lines))


async def handle_clockin(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /clockin [description] — start tracking on the default project."""
    if not _is_owner(update):
        return
    description = " ".join(context.args or []) or "Working"
    tracker = get_tracker()
    if await tracker.is_tracking():
        await update.message.reply_text("You're already clocked in. ⏱️")
        return
    if await tracker.clock_in(description):
        await update.message.reply_text(f"You have successfully clocked in! ✅\n{description}")
    else:
        await update.message.reply_text("Failed to clock in. ❌")


async def handle_clockout(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /clockout — stop the running entry."""
    if not _is_owner(update):
        return
    if await get_tracker().clock_out():
        await update.message.reply_text("You have successfully clocked out! ✅")
    else:
        await update.message.reply_text("Failed to clock out. ❌")


async def handle_callback_query(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle the Clock In / Clock Out buttons attached to reminders."""
    query = update.callback_query
    data = query.data or ""
    if not data.startswith("clock:"):
        await query.answer()
        return

    if not _is_owner(update):
        await query.answer("Only my owner can do that.")
        return

    tracker = get_tracker()
    if data == "clock:out":
        ok = await tracker.clock_out()
        text = (
            "You have been clocked out successfully! ✅"
            if ok
            else "Failed to clock out. Please try again or use /clockout. ❌"
        )
    elif data == "clock:in":
        ok = await tracker.clock_in()
        text = (
            "You have been clocked in! ✅"
            if ok
            else "Failed to clock in. Please try again or use /clockin. ❌"
        )
    else:
        await query.answer("Unknown action.")
        return

    await query.answer()
    with contextlib.suppress(Exception):
        await query.edit_message_text(text=f"{query.message.text}\n\n→ {text}")


# -- Messages ------------------------------------------------------------------


async def _reply(
    update: Update, context: ContextTypes.DEFAULT_TYPE, text: str
) -> None:
    """Run the assistant pipeline for *text* and reply in the chat."""
    chat_id = update.effective_chat.id
    user = update.effective_user

    with contextlib.suppress(Exception):
        await context.bot.send_chat_action(chat_id=chat_id, action=ChatAction.TYPING)
    await asyncio.sleep(TYPING_DELAY)

    try:
        reply = await Assistant.get().handle_incoming_message(
            channel_id=str(chat_id),
            sender_id=str(user.id),
            sender_name=_display_name(update),
            text=text,
        )
    except Exception:
        logger.exception("Error generating response")
        reply = settings.fallback_reply

    try:
        await update.message.reply_text(reply)
    except Exception:
        logger.exception("Error replying in chat %s", chat_id)


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle incoming text from people and from the peer bot."""
    message = update.message
    user = update.effective_user
    if message is None or user is None or not message.text:
        return

    addressed = _is_addressed(message, context.bot.id, context.bot.username)

    # Telegram never delivers one bot's messages to another bot, so this
    # branch only sees the peer when a relay forwards its messages as a bot user.
    if user.is_bot:
        if str(user.id) != settings.peer_bot_id or not addressed:
            return
        if not peer_conversation.try_reply():
            return
        await _reply(update, context, message.text)
        return

    logger.info("Message from %s: %s", _display_name(update), message.text[:80])

    if is_trigger(message.text) and settings.peer_bot_id:
        logger.info("Trigger detected: starting bot conversation")
        peer_conversation.reset()
        await asyncio.sleep(TYPING_DELAY)
        await message.reply_text(
            f"Hey @{settings.peer_bot_username}, let's have a chat! 🤖"
        )
        return

    if not addressed:
        return

    await _reply(update, context, message.text)


async def handle_photo(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Read the text in a photo and answer it like a message."""
    message = update.message
    if message is None or not message.photo or update.effective_user.is_bot:
        return
    if not _is_addressed(message, context.bot.id, context.bot.username):
        return

    photo = message.photo[-1]
    if photo.file_size and photo.file_size > MAX_UPLOAD_SIZE:
        await message.reply_text("That image is too large for me to read.")
        return

    try:
        tg_file = await photo.get_file()
        data = await tg_file.download_as_bytearray()
    except Exception:
        logger.exception("Failed to download photo")
        await message.reply_text("Sorry, I couldn't read the image.")
        return

    extracted = await extract_text_from_image(bytes(data))
    logger.info("Extracted text from image: %s", extracted[:80])

    text = extracted
    if message.caption:
        text = f"{message.caption}\n{extracted}"
    await _reply(update, context, text)
