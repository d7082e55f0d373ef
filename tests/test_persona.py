"""Tests for persona selection."""

import pytest

from src.config import Settings
from src.llm.persona import COOPER, OWNER, PERSONAS, STRANGER, select_persona


@pytest.fixture
def cfg() -> Settings:
    return Settings(owner_name_marker="orland", peer_bot_id="999")


@pytest.mark.parametrize("name", ["orland", "Orland", "ORLAND_dev", "xXorLANDXx"])
def test_owner_marker_any_case(cfg: Settings, name: str) -> None:
    assert select_persona(name, "1", cfg) is OWNER


def test_peer_bot_id_wins_over_owner_name(cfg: Settings) -> None:
    assert select_persona("orland", "999", cfg) is COOPER
    assert select_persona("cooper", 999, cfg) is COOPER


@pytest.mark.parametrize("name", ["someone", "", None])
def test_everyone_else_is_a_stranger(cfg: Settings, name) -> None:
    assert select_persona(name, "42", cfg) is STRANGER


def test_unset_peer_id_never_matches() -> None:
    cfg = Settings(owner_name_marker="orland", peer_bot_id="")
    assert select_persona("bob", "", cfg) is STRANGER
    assert select_persona("orland", "", cfg) is OWNER


def test_deterministic(cfg: Settings) -> None:
    results = {select_persona("Orland", "5", cfg).name for _ in range(10)}
    assert results == {"owner"}


def test_closed_set() -> None:
    assert set(PERSONAS) == {"owner", "stranger", "cooper"}


def test_persona_renders_system_blocks() -> None:
    blocks = OWNER.to_blocks()
    assert blocks
    assert all(b["role"] == "system" for b in blocks)
    assert "Levi" in blocks[0]["content"]


def test_persona_is_immutable() -> None:
    with pytest.raises(AttributeError):
        OWNER.name = "changed"  # type: ignore[misc]
