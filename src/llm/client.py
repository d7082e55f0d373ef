"""Async Claude API client: reply generation, one-shot completions, vision."""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any

import anthropic

from src.config import settings

logger = logging.getLogger(__name__)

_client: anthropic.AsyncAnthropic | None = None

IMAGE_PROMPT = (
    "Extract all readable text from this image. Reply with the text only. "
    "If there is no text, briefly describe the image instead."
)
IMAGE_FALLBACK = "Sorry, I couldn't read the image."


def _get_client() -> anthropic.AsyncAnthropic:
    """Lazily initialize the Anthropic client."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key)
    return _client


def to_request(context: list[dict[str, str]]) -> tuple[list[dict[str, str]], list[dict[str, str]]]:
    """Split role-tagged context into Claude ``system`` blocks and messages.

    System blocks keep their order. Consecutive messages with the same role
    are joined, and assistant turns that precede the first user turn are
    carried in the system prompt since a conversation must open with the user.
    """
    system: list[dict[str, str]] = []
    messages: list[dict[str, str]] = []
    for block in context:
        role, content = block["role"], block["content"]
        if role == "system":
            system.append({"type": "text", "text": content})
        elif role == "assistant" and not messages:
            system.append({"type": "text", "text": f"Your earlier message: {content}"})
        elif messages and messages[-1]["role"] == role:
            messages[-1]["content"] += f"\n\n{content}"
        else:
            messages.append({"role": role, "content": content})
    return system, messages


async def complete_text(
    messages: list[dict[str, Any]],
    *,
    system: str | list[dict[str, Any]] | None = None,
    model: str | None = None,
    max_tokens: int | None = None,
) -> str:
    """Single-shot Claude call with no memory or history handling."""
    client = _get_client()
    kwargs: dict[str, Any] = {
        "model": model or settings.chat_model,
        "max_tokens": max_tokens or settings.completion_max_tokens,
        "messages": messages,
    }
    if system:
        kwargs["system"] = system
    async with asyncio.timeout(settings.completion_timeout_seconds):
        response = await client.messages.create(**kwargs)
    return response.content[0].text


async def generate_reply(context: list[dict[str, str]], model: str | None = None) -> str:
    """Send the composed context to Claude and return the reply text.

    Never raises: any failure (API error, timeout, malformed response)
    is logged and ``settings.fallback_reply`` is returned. No
    retries are attempted here.
    """
    if not settings.anthropic_api_key:
        logger.error("ANTHROPIC_API_KEY not set; returning fallback reply")
        return settings.fallback_reply

    system, messages = to_request(context)
    if not messages:
        logger.error("Composed context has no conversational messages")
        return settings.fallback_reply

    try:
        text = await complete_text(messages, system=system, model=model)
    except TimeoutError:
        logger.error(
            "Completion timed out after %.0fs", settings.completion_timeout_seconds
        )
        return settings.fallback_reply
    except Exception:
        logger.exception("AI response error")
        return settings.fallback_reply

    return (text or "").strip()


async def extract_text_from_image(image: bytes, media_type: str = "image/jpeg") -> str:
    """Read the text in an image with Claude vision.

    Returns a fixed apology when the call fails.
    """
    content = [
        {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": media_type,
                "data": base64.b64encode(image).decode(),
            },
        },
        {"type": "text", "text": IMAGE_PROMPT},
    ]
    try:
        text = await complete_text(
            [{"role": "user", "content": content}],
            model=settings.vision_model,
        )
    except Exception:
        logger.exception("Image text extraction failed")
        return IMAGE_FALLBACK
    return text.strip() or "I couldn't extract readable text from this image."
