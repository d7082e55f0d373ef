"""Embedding service adapters.

Two interchangeable backends turn text into a vector:

- ``http`` (default): an OpenAI-compatible ``/embeddings`` endpoint
  (Together AI, OpenAI, a local server, ...).
- ``completion``: asks the chat model to emit a comma-separated list of
  numbers and parses it. Cheap to set up, not a real embedding model.

Both return ``None`` instead of raising, so callers can store a memory
without an embedding or skip retrieval.
"""

from __future__ import annotations

import logging
import math
from typing import Protocol, runtime_checkable

import httpx

from src.config import settings

logger = logging.getLogger(__name__)

EMBEDDING_SYSTEM_PROMPT = (
    "Generate a semantic embedding for the following text. Reply with only a "
    "comma-separated list of numbers between -1 and 1, nothing else."
)


@runtime_checkable
class EmbeddingService(Protocol):
    """Converts text to a numeric vector, or None on failure."""

    async def embed(self, text: str) -> list[float] | None: ...


def parse_embedding_text(text: str) -> list[float] | None:
    """Parse ``"0.1, -0.2, 0.3"`` into floats, dropping anything non-numeric."""
    values: list[float] = []
    for part in text.replace("\n", ",").split(","):
        try:
            value = float(part.strip().strip("[]"))
        except ValueError:
            continue
        if math.isfinite(value):
            values.append(value)
    return values or None


class HttpEmbeddingService:
    """Calls an OpenAI-compatible embeddings endpoint with httpx."""

    def __init__(
        self,
        api_url: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_url = (api_url or settings.embedding_api_url).rstrip("/")
        self._api_key = api_key if api_key is not None else settings.embedding_api_key
        self._model = model or settings.embedding_model
        self._timeout = timeout or settings.embedding_timeout_seconds
        self._transport = transport

    async def embed(self, text: str) -> list[float] | None:
        if not self._api_key:
            logger.warning("EMBEDDING_API_KEY not set; skipping embedding")
            return None

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.post(
                    f"{self._api_url}/embeddings",
                    json={"model": self._model, "input": text},
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
                resp.raise_for_status()
                data = resp.json()
            vector = data["data"][0]["embedding"]
            return [float(v) for v in vector] or None
        except Exception:
            logger.exception("Embedding generation failed")
            return None


class CompletionEmbeddingService:
    """Derives a vector from a chat completion's numeric output."""

    def __init__(self, max_tokens: int = 256) -> None:
        self._max_tokens = max_tokens

    async def embed(self, text: str) -> list[float] | None:
        from src.llm.client import complete_text

        try:
            raw = await complete_text(
                [{"role": "user", "content": text}],
                system=EMBEDDING_SYSTEM_PROMPT,
                max_tokens=self._max_tokens,
            )
        except Exception:
            logger.exception("Embedding generation failed")
            return None

        vector = parse_embedding_text(raw)
        if vector is None:
            logger.warning("Completion returned no numbers for embedding")
        return vector


def create_embedding_service(backend: str | None = None) -> EmbeddingService:
    """Build the embedding service named by *backend* (default from settings)."""
    name = (backend or settings.embedding_backend).lower()
    if name == "completion":
        return CompletionEmbeddingService()
    if name != "http":
        logger.warning("Unknown embedding backend '%s'; using http", name)
    return HttpEmbeddingService()
