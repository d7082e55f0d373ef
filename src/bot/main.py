"""Levi bot entry point."""

import logging

from src.config import settings

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.log_level),
)
# httpx logs every request at INFO, including the bot token in the URL.
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def main() -> None:
    """Start the bot."""
    from src.bot.app import create_app

    if not settings.telegram_bot_token:
        logger.error("TELEGRAM_BOT_TOKEN is empty; cannot start")
        return
    if not settings.owner_user_id:
        logger.warning("OWNER_USER_ID is empty; reminders and greetings are disabled")
    if not settings.anthropic_api_key:
        logger.warning("ANTHROPIC_API_KEY is empty; every reply will be the fallback")

    logger.info("Starting Levi on Telegram with model %s...", settings.chat_model)
    app = create_app()
    app.run_polling()


if __name__ == "__main__":
    main()
