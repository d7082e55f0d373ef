"""Tests for generate_reply() and image text extraction."""

from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import pytest

from src.llm.client import IMAGE_FALLBACK, extract_text_from_image, generate_reply

FALLBACK = "I'm having trouble processing your message right now. 🤖"

CONTEXT = [
    {"role": "system", "content": "persona"},
    {"role": "user", "content": "hello [Current time: 01/01/2025, 09:00:00 AM]"},
]


@pytest.fixture(autouse=True)
def _api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("src.config.settings.anthropic_api_key", "test-key")


async def test_returns_trimmed_text() -> None:
    with patch("src.llm.client.complete_text", new_callable=AsyncMock, return_value="  hi love \n"):
        assert await generate_reply(CONTEXT) == "hi love"


async def test_passes_system_and_messages() -> None:
    with patch("src.llm.client.complete_text", new_callable=AsyncMock, return_value="ok") as mock:
        await generate_reply(CONTEXT, model="claude-x")

    args, kwargs = mock.call_args
    assert args[0] == [CONTEXT[1]]
    assert kwargs["system"] == [{"type": "text", "text": "persona"}]
    assert kwargs["model"] == "claude-x"


async def test_timeout_returns_fallback() -> None:
    with patch("src.llm.client.complete_text", new_callable=AsyncMock, side_effect=TimeoutError):
        assert await generate_reply(CONTEXT) == FALLBACK


async def test_api_error_returns_fallback() -> None:
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    error = anthropic.APIConnectionError(request=request)
    with patch("src.llm.client.complete_text", new_callable=AsyncMock, side_effect=error):
        assert await generate_reply(CONTEXT) == FALLBACK


async def test_malformed_response_returns_fallback() -> None:
    with patch("src.llm.client.complete_text", new_callable=AsyncMock, side_effect=IndexError):
        assert await generate_reply(CONTEXT) == FALLBACK


async def test_no_retry_on_failure() -> None:
    with patch(
        "src.llm.client.complete_text", new_callable=AsyncMock, side_effect=RuntimeError
    ) as mock:
        await generate_reply(CONTEXT)
    assert mock.await_count == 1


async def test_missing_api_key_skips_call(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("src.config.settings.anthropic_api_key", "")
    with patch("src.llm.client.complete_text", new_callable=AsyncMock) as mock:
        assert await generate_reply(CONTEXT) == FALLBACK
    mock.assert_not_awaited()


async def test_context_without_messages_returns_fallback() -> None:
    with patch("src.llm.client.complete_text", new_callable=AsyncMock) as mock:
        assert await generate_reply([{"role": "system", "content": "only"}]) == FALLBACK
    mock.assert_not_awaited()


async def test_fallback_text_is_configurable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("src.config.settings.fallback_reply", "brb")
    with patch("src.llm.client.complete_text", new_callable=AsyncMock, side_effect=TimeoutError):
        assert await generate_reply(CONTEXT) == "brb"


# -- extract_text_from_image ---------------------------------------------------


async def test_image_extraction_sends_base64_image(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("src.config.settings.vision_model", "vision-test")
    mock_response = MagicMock()
    mock_response.content = [MagicMock(text=" Meeting at 3pm ")]
    mock_client = MagicMock()
    mock_client.messages.create = AsyncMock(return_value=mock_response)

    with patch("src.llm.client._get_client", return_value=mock_client):
        text = await extract_text_from_image(b"\x89PNG", media_type="image/png")

    assert text == "Meeting at 3pm"
    kwargs = mock_client.messages.create.call_args.kwargs
    assert kwargs["model"] == "vision-test"
    image_block = kwargs["messages"][0]["content"][0]
    assert image_block["source"]["media_type"] == "image/png"
    assert image_block["source"]["data"] == "iVBORw=="


async def test_image_extraction_failure() -> None:
    with patch("src.llm.client.complete_text", new_callable=AsyncMock, side_effect=RuntimeError):
        assert await extract_text_from_image(b"data") == IMAGE_FALLBACK


async def test_image_extraction_empty_text() -> None:
    with patch("src.llm.client.complete_text", new_callable=AsyncMock, return_value="   "):
        assert await extract_text_from_image(b"data") == (
            "I couldn't extract readable text from this image."
        )
