"""The reply pipeline: persona, history, recall, compose, generate, record."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from src.config import settings
from src.errors import MemoryPersistenceError
from src.llm.client import generate_reply
from src.llm.persona import OWNER, select_persona
from src.llm.prompt import compose_context
from src.memory.history import ConversationHistory
from src.memory.models import ConversationTurn, MemoryMetadata
from src.memory.store import MemoryStore

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from src.config import Settings
    from src.memory.models import ScoredMemory

logger = logging.getLogger(__name__)

DEFAULT_GREETING = "Hiii, love! I missed you!"
FALLBACK_GREETING = "Hi there! I'm back online!"
GREETING_CONTEXT_TURNS = 10


class Assistant:
    """Turns an incoming message into a reply and remembers the exchange.

    Args:
        history: Short-term per-channel history.
        memory: Long-term per-user memory store.
        generate: Async callable taking the composed context and returning
            reply text (``settings.fallback_reply`` on failure).
        config: Settings override (for tests).
    """

    _instance: Assistant | None = None

    def __init__(
        self,
        history: ConversationHistory | None = None,
        memory: MemoryStore | None = None,
        generate: Callable[[list[dict[str, str]]], Awaitable[str]] | None = None,
        config: Settings | None = None,
    ) -> None:
        self._history = history or ConversationHistory.get_instance()
        self._memory = memory or MemoryStore.get()
        self._generate = generate or generate_reply
        self._config = config or settings

    @classmethod
    def get(cls) -> Assistant:
        """Return the shared Assistant wired to the shared stores."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def _reset(cls) -> None:
        """Reset the singleton (for testing)."""
        cls._instance = None

    @property
    def history(self) -> ConversationHistory:
        return self._history

    # -- Pipeline --------------------------------------------------------------

    async def handle_incoming_message(
        self,
        channel_id: str,
        sender_id: str,
        sender_name: str | None,
        text: str,
        now: datetime | None = None,
    ) -> str:
        """Generate a reply to *text* and record the exchange.

        Always returns something the caller can send: the generated reply,
        or the fallback text when generation failed. On failure only the
        user's side is recorded.
        """
        persona = select_persona(sender_name, sender_id, self._config)
        turns = self._history.get(channel_id)
        memories = await self.retrieve_relevant(sender_id, text)

        context = compose_context(
            persona,
            memories,
            turns,
            text,
            now or datetime.now(UTC),
            tz_name=self._config.timezone,
        )
        logger.debug(
            "Composed %d block(s) for %s (persona=%s, memories=%d, history=%d)",
            len(context),
            channel_id,
            persona.name,
            len(memories),
            len(turns),
        )

        reply = await self._generate(context)
        if not reply or reply == self._config.fallback_reply:
            await self._record_user_turn(channel_id, sender_id, sender_name, text)
            return self._config.fallback_reply

        await self.record_exchange(channel_id, sender_id, sender_name, text, reply)
        return reply

    async def retrieve_relevant(self, user_id: str, query: str) -> list[ScoredMemory]:
        """Recall the user's memories most similar to *query*."""
        if not self._config.memory_enabled:
            return []
        try:
            return await self._memory.find_similar(
                user_id,
                query,
                limit=self._config.memory_search_limit,
                similarity_threshold=self._config.memory_similarity_threshold,
            )
        except Exception:
            logger.exception("Memory retrieval failed for user %s", user_id)
            return []

    async def record_exchange(
        self,
        channel_id: str,
        user_id: str,
        username: str | None,
        user_text: str,
        bot_text: str,
    ) -> None:
        """Append the user turn then the bot turn, and store both long-term."""
        await self._history.append(
            channel_id, ConversationTurn(is_bot=False, username=username, content=user_text)
        )
        await self._history.append(channel_id, ConversationTurn(is_bot=True, content=bot_text))
        await self._remember(user_id, user_text, username, "user_message")
        await self._remember(user_id, bot_text, username, "bot_response")

    # -- Start-up --------------------------------------------------------------

    async def seed_from_memory(
        self, channel_id: str, user_id: str, limit: int | None = None
    ) -> int:
        """Hydrate a channel's history from the user's stored exchanges."""
        count = limit or self._history.max_length
        records = await self._memory.recent(user_id, count)
        turns = [
            ConversationTurn(
                is_bot=record.metadata.type == "bot_response",
                username=record.metadata.username,
                content=record.content,
                timestamp=record.metadata.created_at,
            )
            for record in records
        ]
        if not turns:
            logger.info("No stored conversation to seed channel %s", channel_id)
            return 0
        return await self._history.seed(channel_id, turns)

    async def contextual_greeting(self, channel_id: str, now: datetime | None = None) -> str:
        """Compose a welcome-back message from the channel's recent turns.

        The greeting exchange itself is not recorded.
        """
        turns = self._history.get(channel_id)
        if not turns:
            logger.info("No conversation history; using default greeting")
            return DEFAULT_GREETING

        recent = turns[-GREETING_CONTEXT_TURNS:]
        topics = ", ".join(turn.content for turn in recent)
        prompt = (
            f"Based on our previous conversation where we talked about {topics}, "
            "create a warm greeting as if we're continuing our conversation after "
            "some time apart. Keep it short and sweet."
        )
        context = compose_context(
            OWNER, [], turns, prompt, now or datetime.now(UTC), tz_name=self._config.timezone
        )
        greeting = await self._generate(context)
        if not greeting or greeting == self._config.fallback_reply:
            return FALLBACK_GREETING
        return greeting

    # -- Helpers ---------------------------------------------------------------

    async def _record_user_turn(
        self, channel_id: str, user_id: str, username: str | None, text: str
    ) -> None:
        await self._history.append(
            channel_id, ConversationTurn(is_bot=False, username=username, content=text)
        )
        await self._remember(user_id, text, username, "user_message")

    async def _remember(
        self, user_id: str, content: str, username: str | None, kind: str
    ) -> None:
        if not self._config.memory_enabled:
            return
        try:
            await self._memory.create_memory(
                user_id, content, MemoryMetadata(username=username, type=kind)
            )
        except MemoryPersistenceError:
            logger.exception("Could not store %s for user %s", kind, user_id)
