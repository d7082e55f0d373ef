"""Telegram application factory."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    MessageHandler,
    filters,
)

from src.bot.handlers import (
    get_tracker,
    handle_callback_query,
    handle_clear,
    handle_clockin,
    handle_clockout,
    handle_message,
    handle_photo,
    handle_start,
    handle_status,
)
from src.config import settings
from src.notifications.router import NotificationRouter
from src.notifications.telegram_channel import TelegramChannel

if TYPE_CHECKING:
    from src.scheduler.engine import SchedulerEngine

logger = logging.getLogger(__name__)

# Module-level reference so post_shutdown can access the engine.
_scheduler_engine: SchedulerEngine | None = None


def _init_notifications(app: Application) -> None:
    """Register the Telegram channel as the default notification channel."""
    router = NotificationRouter.get()
    router.register_channel(TelegramChannel(app.bot), default=True)
    logger.info(
        "Notifications initialized: channels=%s, default=%s",
        router.list_channels(),
        router.default_channel_name,
    )


def _init_scheduler() -> SchedulerEngine:
    """Create the scheduler engine with reminders and the daily prune."""
    from src.memory.store import MemoryStore
    from src.scheduler.engine import SchedulerEngine
    from src.scheduler.executor import ReminderExecutor
    from src.scheduler.models import load_reminders

    executor = ReminderExecutor(
        router=NotificationRouter.get(),
        tracker=get_tracker(),
        owner_user_id=settings.owner_user_id,
    )
    memory = MemoryStore.get() if settings.memory_enabled else None
    return SchedulerEngine(
        executor=executor,
        reminders=load_reminders(settings.reminders_path),
        memory=memory,
    )


async def _greet_owner() -> None:
    """Seed the owner's chat from stored exchanges and say hello."""
    from src.assistant import Assistant

    owner = settings.owner_user_id
    if not owner:
        logger.warning("OWNER_USER_ID is empty; skipping start-up greeting")
        return

    assistant = Assistant.get()
    # Private chat ids equal the user id on Telegram.
    if settings.memory_enabled:
        await assistant.seed_from_memory(owner, owner)
    greeting = await assistant.contextual_greeting(owner)
    if await NotificationRouter.get().send(owner, greeting):
        logger.info("Sent contextual greeting: %s", greeting[:80])


async def _post_init(app: Application) -> None:
    """Called after the Application is fully initialized (event loop running)."""
    global _scheduler_engine  # noqa: PLW0603
    _scheduler_engine = _init_scheduler()
    await _scheduler_engine.start()
    try:
        await _greet_owner()
    except Exception:
        logger.exception("Start-up greeting failed")


async def _post_shutdown(app: Application) -> None:
    """Called during graceful shutdown."""
    if _scheduler_engine is not None:
        await _scheduler_engine.stop()


def create_app() -> Application:
    """Build and configure the Telegram application."""
    app = Application.builder().token(settings.telegram_bot_token).build()

    _init_notifications(app)

    app.add_handler(CommandHandler("start", handle_start))
    app.add_handler(CommandHandler("clear", handle_clear))
    app.add_handler(CommandHandler("status", handle_status))
    app.add_handler(CommandHandler("clockin", handle_clockin))
    app.add_handler(CommandHandler("clockout", handle_clockout))
    app.add_handler(CallbackQueryHandler(handle_callback_query))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_message))
    app.add_handler(MessageHandler(filters.PHOTO, handle_photo))

    app.post_init = _post_init
    app.post_shutdown = _post_shutdown

    return app
