"""Shared test fixtures."""

from collections.abc import Callable

import pytest

from src.memory.backend import InMemoryBackend
from src.memory.history import ConversationHistory
from src.memory.store import MemoryStore


class FakeEmbedder:
    """Returns preset vectors keyed by text; unknown text fails (None)."""

    def __init__(self, vectors: dict[str, list[float]] | None = None) -> None:
        self.vectors = dict(vectors or {})
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float] | None:
        self.calls.append(text)
        return self.vectors.get(text)


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture
def memory(backend: InMemoryBackend, embedder: FakeEmbedder) -> MemoryStore:
    """A MemoryStore over a dict backend and a controllable embedder."""
    return MemoryStore(backend=backend, embedder=embedder, max_per_user=100)


@pytest.fixture
def history() -> ConversationHistory:
    return ConversationHistory(max_length=100)


@pytest.fixture
def make_history() -> Callable[[int], ConversationHistory]:
    return lambda max_length: ConversationHistory(max_length=max_length)


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Keep shared instances from leaking between tests."""
    from src.assistant import Assistant
    from src.notifications.router import NotificationRouter

    yield
    Assistant._reset()
    MemoryStore._reset()
    ConversationHistory._reset()
    NotificationRouter._reset()
