"""Long-term memory store with embedding similarity search.

Memories are kept per user as an ordered list (oldest first) and persisted
through a MemoryBackend. Embedding failures never block a write: the record
is stored with ``embedding=None`` and simply never matches a search.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections import defaultdict
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError

from src.config import settings
from src.errors import MemoryPersistenceError
from src.memory.backend import SqliteMemoryBackend
from src.memory.embeddings import create_embedding_service
from src.memory.models import MemoryMetadata, MemoryRecord, ScoredMemory, ensure_aware
from src.memory.similarity import cosine_similarity

if TYPE_CHECKING:
    from src.memory.backend import MemoryBackend
    from src.memory.embeddings import EmbeddingService

logger = logging.getLogger(__name__)

_records_adapter = TypeAdapter(list[MemoryRecord])


class MemoryStore:
    """Per-user long-term memory.

    Get the shared instance via ``MemoryStore.get()``, or construct one with
    an explicit backend and embedder for tests.
    """

    _instance: MemoryStore | None = None

    def __init__(
        self,
        backend: MemoryBackend | None = None,
        embedder: EmbeddingService | None = None,
        max_per_user: int | None = None,
    ) -> None:
        self._backend = backend or SqliteMemoryBackend()
        self._embedder = embedder or create_embedding_service()
        self._max_per_user = max_per_user or settings.memory_max_per_user
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @classmethod
    def get(cls) -> MemoryStore:
        """Return the shared MemoryStore instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def _reset(cls) -> None:
        """Reset the singleton (for testing)."""
        cls._instance = None

    @property
    def max_per_user(self) -> int:
        return self._max_per_user

    # -- Read ----------------------------------------------------------------

    async def load(self, user_id: str) -> list[MemoryRecord]:
        """Return a user's memories, oldest first.

        Unreadable storage and corrupt documents both read as "no memories".
        """
        try:
            document = await self._backend.read(user_id)
        except Exception:
            logger.exception("Failed to read memories for user %s", user_id)
            return []
        return self._parse(user_id, document)

    async def recent(self, user_id: str, limit: int) -> list[MemoryRecord]:
        """Return the *limit* most recently stored memories, oldest first."""
        if limit <= 0:
            return []
        records = await self.load(user_id)
        return records[-limit:]

    async def find_similar(
        self,
        user_id: str,
        query: str,
        *,
        limit: int | None = None,
        similarity_threshold: float | None = None,
    ) -> list[ScoredMemory]:
        """Rank a user's memories by cosine similarity to *query*.

        Returns at most *limit* memories scoring at least *similarity_threshold*,
        highest first; equal scores keep storage order. An embedding failure
        yields an empty result.
        """
        limit = settings.memory_search_limit if limit is None else limit
        threshold = (
            settings.memory_similarity_threshold
            if similarity_threshold is None
            else similarity_threshold
        )
        if limit <= 0:
            return []

        query_embedding = await self._embedder.embed(query)
        if not query_embedding:
            logger.info("No query embedding for user %s; skipping recall", user_id)
            return []

        records = await self.load(user_id)
        scored = [
            ScoredMemory(
                record=record,
                similarity=cosine_similarity(query_embedding, record.embedding),
            )
            for record in records
        ]
        matches = [s for s in scored if s.similarity >= threshold]
        matches.sort(key=lambda s: s.similarity, reverse=True)
        return matches[:limit]

    # -- Write ---------------------------------------------------------------

    async def create_memory(
        self,
        user_id: str,
        content: str,
        metadata: dict[str, Any] | MemoryMetadata | None = None,
    ) -> MemoryRecord:
        """Embed *content*, append it to the user's memories, and persist.

        Raises:
            MemoryPersistenceError: The store could not be read for update
                or the write failed.
        """
        embedding = await self._embedder.embed(content)
        if embedding is None:
            logger.warning("Storing memory for user %s without embedding", user_id)

        if isinstance(metadata, MemoryMetadata):
            meta = metadata
        else:
            meta = MemoryMetadata(**(metadata or {}))

        now = datetime.now(UTC)
        record = MemoryRecord(
            id=str(uuid.uuid4()),
            content=content,
            embedding=embedding,
            timestamp=now,
            metadata=meta.model_copy(update={"created_at": now}),
        )

        async with self._locks[user_id]:
            try:
                document = await self._backend.read(user_id)
            except Exception as exc:
                logger.exception("Failed to read memories for user %s", user_id)
                raise MemoryPersistenceError(user_id, str(exc)) from exc

            records = self._parse(user_id, document)
            records.append(record)
            if len(records) > self._max_per_user:
                records = records[-self._max_per_user :]
            await self._save(user_id, records)

        logger.debug(
            "Stored memory [%s] for user %s: %s", meta.type, user_id, content[:80]
        )
        return record

    async def prune(
        self, retention_days: int | None = None, *, now: datetime | None = None
    ) -> int:
        """Drop memories created more than *retention_days* ago for every user.

        Safe to call repeatedly. Returns the number of records removed.
        """
        days = settings.memory_retention_days if retention_days is None else retention_days
        cutoff = ensure_aware(now or datetime.now(UTC)) - timedelta(days=days)

        try:
            user_ids = await self._backend.list_users()
        except Exception:
            logger.exception("Failed to list users for pruning")
            return 0

        removed = 0
        for user_id in user_ids:
            async with self._locks[user_id]:
                try:
                    document = await self._backend.read(user_id)
                except Exception:
                    logger.exception("Failed to read memories for user %s; not pruning", user_id)
                    continue
                records = self._parse(user_id, document)
                kept = [r for r in records if ensure_aware(r.metadata.created_at) >= cutoff]
                if len(kept) == len(records):
                    continue
                try:
                    await self._save(user_id, kept)
                except MemoryPersistenceError:
                    logger.exception("Pruning failed for user %s", user_id)
                    continue
                removed += len(records) - len(kept)

        if removed:
            logger.info("Pruned %d memories older than %d days", removed, days)
        return removed

    # -- Helpers -------------------------------------------------------------

    async def _save(self, user_id: str, records: list[MemoryRecord]) -> None:
        document = _records_adapter.dump_json(records, indent=2).decode()
        try:
            await self._backend.write(user_id, document)
        except Exception as exc:
            logger.exception("Failed to write memories for user %s", user_id)
            raise MemoryPersistenceError(user_id, str(exc)) from exc

    @staticmethod
    def _parse(user_id: str, document: str | None) -> list[MemoryRecord]:
        if not document:
            return []
        try:
            return _records_adapter.validate_json(document)
        except (ValidationError, ValueError):
            logger.warning("Corrupt memory document for user %s; treating as empty", user_id)
            return []
