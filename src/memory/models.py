"""Data models for conversation history and long-term memory."""

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field

MemoryType = Literal["user_message", "bot_response"]


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_aware(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=UTC)


class ConversationTurn(BaseModel):
    """A single turn in a channel's short-term history."""

    is_bot: bool
    username: str | None = None
    content: str
    timestamp: datetime | None = None


class MemoryMetadata(BaseModel):
    """Who said it, what kind of turn it was, and when it was stored."""

    username: str | None = None
    type: MemoryType = "user_message"
    created_at: datetime = Field(default_factory=utc_now)


class MemoryRecord(BaseModel):
    """A durable, searchable memory belonging to one user.

    ``embedding`` is ``None`` when embedding generation failed; such records
    are kept but never match a similarity search.
    """

    id: str
    content: str
    embedding: list[float] | None = None
    timestamp: datetime = Field(default_factory=utc_now)
    metadata: MemoryMetadata = Field(default_factory=MemoryMetadata)


class ScoredMemory(BaseModel):
    """A memory paired with its similarity to a query."""

    record: MemoryRecord
    similarity: float

    @property
    def content(self) -> str:
        return self.record.content
