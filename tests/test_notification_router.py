"""Tests for NotificationRouter."""

import pytest

from src.notifications.channels import NotificationChannel
from src.notifications.router import NotificationRouter

# -- Helpers -----------------------------------------------------------------


class FakeChannel:
    """Minimal channel implementation for testing."""

    def __init__(self, channel_name: str = "fake", ok: bool = True) -> None:
        self._name = channel_name
        self._ok = ok
        self.sent: list[tuple[str, str]] = []
        self.sent_rich: list[tuple[str, str, list | None]] = []

    @property
    def name(self) -> str:
        return self._name

    async def send(self, chat_id: str, message: str) -> bool:
        self.sent.append((chat_id, message))
        return self._ok

    async def send_rich(self, chat_id: str, message: str, *, buttons=None) -> bool:
        self.sent_rich.append((chat_id, message, buttons))
        return self._ok


@pytest.fixture
def router() -> NotificationRouter:
    return NotificationRouter()


# -- Registration ------------------------------------------------------------


def test_fake_channel_satisfies_protocol() -> None:
    assert isinstance(FakeChannel(), NotificationChannel)


def test_first_channel_becomes_default(router: NotificationRouter) -> None:
    router.register_channel(FakeChannel("a"))
    router.register_channel(FakeChannel("b"))
    assert router.default_channel_name == "a"
    assert router.list_channels() == ["a", "b"]


def test_explicit_default(router: NotificationRouter) -> None:
    router.register_channel(FakeChannel("a"))
    router.register_channel(FakeChannel("b"), default=True)
    assert router.default_channel_name == "b"


def test_duplicate_registration_raises(router: NotificationRouter) -> None:
    router.register_channel(FakeChannel("a"))
    with pytest.raises(ValueError, match="already registered"):
        router.register_channel(FakeChannel("a"))


def test_singleton() -> None:
    assert NotificationRouter.get() is NotificationRouter.get()


# -- Sending -----------------------------------------------------------------


async def test_send_uses_default(router: NotificationRouter) -> None:
    ch = FakeChannel("tg")
    router.register_channel(ch)

    assert await router.send("123", "hello") is True
    assert ch.sent == [("123", "hello")]


async def test_send_to_named_channel(router: NotificationRouter) -> None:
    a, b = FakeChannel("a"), FakeChannel("b")
    router.register_channel(a)
    router.register_channel(b)

    await router.send("1", "hi", channel="b")
    assert a.sent == []
    assert b.sent == [("1", "hi")]


async def test_send_rich_passes_buttons(router: NotificationRouter) -> None:
    ch = FakeChannel()
    router.register_channel(ch)
    buttons = [[{"text": "Clock In", "callback_data": "clock:in"}]]

    assert await router.send_rich("1", "Clock in?", buttons=buttons) is True
    assert ch.sent_rich == [("1", "Clock in?", buttons)]


async def test_send_without_channels(router: NotificationRouter) -> None:
    assert await router.send("1", "hi") is False
    assert await router.send_rich("1", "hi") is False


async def test_unknown_channel(router: NotificationRouter) -> None:
    router.register_channel(FakeChannel("a"))
    assert await router.send("1", "hi", channel="missing") is False


async def test_channel_failure_propagates_false(router: NotificationRouter) -> None:
    router.register_channel(FakeChannel("a", ok=False))
    assert await router.send("1", "hi") is False
