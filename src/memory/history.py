"""In-memory short-term conversation history, one bounded log per channel."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from src.config import settings
from src.memory.models import ConversationTurn, ensure_aware

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


class ConversationHistory:
    """Recent turns keyed by channel id, oldest first.

    Each channel keeps at most ``max_length`` turns; the oldest are evicted
    first. Appends to the same channel are serialised with a per-channel
    lock so concurrent handlers cannot interleave a trim with an append.
    """

    _instance: ConversationHistory | None = None

    def __init__(self, max_length: int | None = None) -> None:
        self._max_length = max_length or settings.history_max_length
        self._turns: dict[str, list[ConversationTurn]] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @classmethod
    def get_instance(cls) -> ConversationHistory:
        """Return the shared history for the process."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def _reset(cls) -> None:
        """Reset the singleton (for testing)."""
        cls._instance = None

    @property
    def max_length(self) -> int:
        return self._max_length

    async def append(self, channel_id: str, turn: ConversationTurn) -> None:
        """Append a turn, stamping it with the current time if it has none."""
        if turn.timestamp is None:
            turn = turn.model_copy(update={"timestamp": datetime.now(UTC)})
        async with self._locks[channel_id]:
            turns = self._turns.setdefault(channel_id, [])
            turns.append(turn)
            if len(turns) > self._max_length:
                del turns[: len(turns) - self._max_length]

    def get(self, channel_id: str) -> list[ConversationTurn]:
        """Return a copy of the channel's turns (empty if never seen)."""
        return list(self._turns.get(channel_id, []))

    async def seed(self, channel_id: str, turns: Iterable[ConversationTurn]) -> int:
        """Hydrate a channel from an existing transcript.

        Turns are ordered by their original timestamps and keep them. Turns
        without a timestamp sort first. Returns the number of turns held.
        """
        epoch = datetime.min.replace(tzinfo=UTC)
        ordered = sorted(
            turns,
            key=lambda t: ensure_aware(t.timestamp) if t.timestamp else epoch,
        )
        async with self._locks[channel_id]:
            merged = self._turns.get(channel_id, []) + ordered
            self._turns[channel_id] = merged[-self._max_length :]
            count = len(self._turns[channel_id])
        logger.info("Seeded channel %s with %d turn(s)", channel_id, count)
        return count

    async def clear(self, channel_id: str) -> int:
        """Drop a channel's turns. Returns how many were removed."""
        async with self._locks[channel_id]:
            turns = self._turns.pop(channel_id, [])
        return len(turns)
