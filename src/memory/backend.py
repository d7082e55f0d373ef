"""Durable key-value storage for per-user memory documents.

Each user id maps to one JSON document (the user's ordered list of
MemoryRecords). The store layer owns parsing; backends only move text.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol

import aiosqlite

from src.config import settings

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS user_memories (
    user_id TEXT PRIMARY KEY,
    document TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""


class MemoryBackend(Protocol):
    """Keyed read/write of a user's serialized memory document."""

    async def read(self, user_id: str) -> str | None: ...

    async def write(self, user_id: str, document: str) -> None: ...

    async def list_users(self) -> list[str]: ...


class SqliteMemoryBackend:
    """Stores memory documents in SQLite, one row per user.

    Pass an explicit *db_path* for test isolation (e.g. ``tmp_path / "test.db"``).
    """

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path or settings.database_path
        self._initialised = False

    async def _connect(self) -> aiosqlite.Connection:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        db = await aiosqlite.connect(str(self._db_path))
        if not self._initialised:
            await db.execute(_CREATE_TABLE)
            await db.commit()
            self._initialised = True
        return db

    async def read(self, user_id: str) -> str | None:
        db = await self._connect()
        try:
            cursor = await db.execute(
                "SELECT document FROM user_memories WHERE user_id = ?", (user_id,)
            )
            row = await cursor.fetchone()
            return row[0] if row else None
        finally:
            await db.close()

    async def write(self, user_id: str, document: str) -> None:
        db = await self._connect()
        try:
            await db.execute(
                """
                INSERT INTO user_memories (user_id, document, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    document = excluded.document,
                    updated_at = excluded.updated_at
                """,
                (user_id, document, datetime.now(UTC).isoformat()),
            )
            await db.commit()
        finally:
            await db.close()

    async def list_users(self) -> list[str]:
        db = await self._connect()
        try:
            cursor = await db.execute("SELECT user_id FROM user_memories ORDER BY user_id")
            rows = await cursor.fetchall()
            return [row[0] for row in rows]
        finally:
            await db.close()


class InMemoryBackend:
    """Dict-backed backend for tests and memory-less runs."""

    def __init__(self) -> None:
        self.documents: dict[str, str] = {}

    async def read(self, user_id: str) -> str | None:
        return self.documents.get(user_id)

    async def write(self, user_id: str, document: str) -> None:
        self.documents[user_id] = document

    async def list_users(self) -> list[str]:
        return sorted(self.documents)
