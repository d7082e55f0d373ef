"""Application settings loaded from environment variables."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Levi configuration. All values come from environment variables."""

    # Telegram
    telegram_bot_token: str = Field(default="")
    owner_user_id: str = Field(default="")
    owner_name_marker: str = Field(default="orland")
    peer_bot_id: str = Field(default="")
    peer_bot_username: str = Field(default="cooper")
    max_bot_conversation: int = Field(default=5)

    # Anthropic
    anthropic_api_key: str = Field(default="")
    chat_model: str = Field(default="claude-sonnet-4-5-20250929")
    vision_model: str = Field(default="claude-haiku-4-5-20251001")
    completion_timeout_seconds: float = Field(default=60.0)
    completion_max_tokens: int = Field(default=1024)
    fallback_reply: str = Field(
        default="I'm having trouble processing your message right now. 🤖"
    )

    # Embeddings
    embedding_backend: str = Field(default="http")
    embedding_api_url: str = Field(default="https://api.together.xyz/v1")
    embedding_api_key: str = Field(default="")
    embedding_model: str = Field(default="BAAI/bge-base-en-v1.5")
    embedding_timeout_seconds: float = Field(default=30.0)

    # Database
    database_path: Path = Field(default=Path("data/levi.db"))

    # Conversation
    history_max_length: int = Field(default=100)

    # Long-term memory
    memory_enabled: bool = Field(default=True)
    memory_max_per_user: int = Field(default=100)
    memory_retention_days: int = Field(default=365)
    memory_similarity_threshold: float = Field(default=0.7)
    memory_search_limit: int = Field(default=5)
    memory_prune_hour: int = Field(default=3)

    # Clockify
    clockify_api_key: str = Field(default="")
    clockify_workspace_id: str = Field(default="")
    clockify_default_project_id: str = Field(default="")
    clockify_api_url: str = Field(default="https://api.clockify.me/api/v1")

    # Scheduler
    timezone: str = Field(default="Asia/Manila")
    reminders_path: Path = Field(default=Path("config/reminders.yaml"))

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    def is_owner_name(self, display_name: str | None) -> bool:
        """True when *display_name* contains the owner marker, ignoring case."""
        if not display_name or not self.owner_name_marker:
            return False
        return self.owner_name_marker.lower() in display_name.lower()


settings = Settings()
