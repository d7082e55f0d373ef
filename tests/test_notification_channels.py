"""Tests for TelegramChannel and protocol conformance."""

from unittest.mock import AsyncMock, patch

from src.notifications.channels import NotificationChannel
from src.notifications.telegram_channel import TelegramChannel


def _make_mock_bot() -> AsyncMock:
    """Create a mock telegram.Bot."""
    bot = AsyncMock()
    bot.send_message = AsyncMock()
    return bot


def test_telegram_channel_satisfies_protocol() -> None:
    assert isinstance(TelegramChannel(_make_mock_bot()), NotificationChannel)
    assert TelegramChannel(_make_mock_bot()).name == "telegram"


# -- send() -----------------------------------------------------------------


async def test_send_calls_bot_send_message() -> None:
    bot = _make_mock_bot()
    ch = TelegramChannel(bot)

    assert await ch.send("12345", "🌅 Good morning") is True
    bot.send_message.assert_awaited_once_with(chat_id=12345, text="🌅 Good morning")


async def test_send_returns_false_on_error() -> None:
    bot = _make_mock_bot()
    bot.send_message.side_effect = RuntimeError("network down")

    assert await TelegramChannel(bot).send("1", "hi") is False


# -- send_rich() -------------------------------------------------------------


async def test_send_rich_without_buttons() -> None:
    bot = _make_mock_bot()

    assert await TelegramChannel(bot).send_rich("1", "Hello") is True
    assert bot.send_message.call_args.kwargs["reply_markup"] is None


async def test_send_rich_builds_keyboard() -> None:
    bot = _make_mock_bot()
    buttons = [
        [{"text": "Clock In", "callback_data": "clock:in"}],
        [{"text": "Clockify", "url": "https://app.clockify.me"}],
    ]

    with (
        patch("src.notifications.telegram_channel.InlineKeyboardMarkup") as mock_markup,
        patch("src.notifications.telegram_channel.InlineKeyboardButton") as mock_button,
    ):
        mock_button.side_effect = lambda **kw: kw
        mock_markup.return_value = "MARKUP"

        ok = await TelegramChannel(bot).send_rich("1", "Time to clock in?", buttons=buttons)

    assert ok is True
    assert mock_button.call_count == 2
    rows = mock_markup.call_args.args[0]
    assert rows[0][0]["callback_data"] == "clock:in"
    assert rows[1][0]["url"] == "https://app.clockify.me"
    assert bot.send_message.call_args.kwargs["reply_markup"] == "MARKUP"


async def test_send_rich_returns_false_on_error() -> None:
    bot = _make_mock_bot()
    bot.send_message.side_effect = RuntimeError("boom")

    assert await TelegramChannel(bot).send_rich("1", "hi") is False
