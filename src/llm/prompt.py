"""Context assembly: persona, time awareness, recalled memories, history."""

from __future__ import annotations

import zoneinfo
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from src.config import settings
from src.memory.models import ensure_aware

if TYPE_CHECKING:
    from collections.abc import Sequence

    from src.llm.persona import Persona
    from src.memory.models import ConversationTurn, ScoredMemory

TIMESTAMP_FORMAT = "%m/%d/%Y, %I:%M:%S %p"

TEMPORAL_INSTRUCTION = (
    "IMPORTANT: You'll receive messages with timestamps in the format "
    "[Current time: MM/DD/YYYY, HH:MM:SS AM/PM] or [Sent at: MM/DD/YYYY, "
    "HH:MM:SS AM/PM]. While you should be aware of this time information and can "
    "naturally reference the time in your responses (like 'Good morning' or "
    "'It's getting late'), NEVER include these timestamp markers in square "
    "brackets in your responses. Your responses should look natural without "
    "these technical timestamp markers. You can mention the time naturally "
    "(e.g., 'It's almost noon') but not in the [timestamp] format."
)


def format_timestamp(dt: datetime, tz_name: str | None = None) -> str:
    """Render *dt* as ``MM/DD/YYYY, HH:MM:SS AM/PM`` in the configured timezone."""
    tz = zoneinfo.ZoneInfo(tz_name or settings.timezone)
    return ensure_aware(dt).astimezone(tz).strftime(TIMESTAMP_FORMAT)


def format_memory(memory: ScoredMemory) -> str:
    return f"Relevant past memory (Similarity: {memory.similarity:.2f}): {memory.content}"


def format_turn(turn: ConversationTurn, tz_name: str | None = None) -> dict[str, str]:
    """Render a history turn as a role-tagged block.

    Bot turns are plain content. User turns carry the sender and send time.
    """
    if turn.is_bot:
        return {"role": "assistant", "content": turn.content}
    text = f"{turn.username or 'unknown'}: {turn.content}"
    if turn.timestamp is not None:
        text += f" [Sent at: {format_timestamp(turn.timestamp, tz_name)}]"
    return {"role": "user", "content": text}


def compose_context(
    persona: Persona,
    memories: Sequence[ScoredMemory],
    history: Sequence[ConversationTurn],
    message: str,
    now: datetime | None = None,
    *,
    temporal_instruction: str = TEMPORAL_INSTRUCTION,
    tz_name: str | None = None,
) -> list[dict[str, str]]:
    """Build the complete completion input, in a fixed order.

    1. persona directives (system)
    2. the temporal-awareness instruction (system)
    3. one block per recalled memory (system)
    4. short-term history, oldest first
    5. the new message stamped with the current time (user)
    """
    current = now or datetime.now(UTC)
    blocks: list[dict[str, str]] = persona.to_blocks()
    blocks.append({"role": "system", "content": temporal_instruction})
    blocks.extend({"role": "system", "content": format_memory(m)} for m in memories)
    blocks.extend(format_turn(turn, tz_name) for turn in history)
    blocks.append({
        "role": "user",
        "content": f"{message} [Current time: {format_timestamp(current, tz_name)}]",
    })
    return blocks
