from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App environment
    env: str = Field(default="development", alias="ENV")
    debug: bool = Field(default=False, alias="DEBUG")
    host: str = Field(default="127.0.0.1", alias="HOST")
    port: int = Field(default=4000, alias="PORT")

    # Database (sqlite+aiosqlite, postgresql+asyncpg or mysql+aiomysql)
    database_url: str = Field(default="sqlite+aiosqlite:///./mood_journal.db", alias="DATABASE_URL")

    # LLM provider settings
    llm_provider: str = Field(default="groq", alias="LLM_PROVIDER")
    groq_api_key: Optional[str] = Field(default=None, alias="GROQ_API_KEY")
    groq_model: str = Field(default="llama-3.3-70b-versatile", alias="GROQ_MODEL")
    chat_temperature: float = Field(default=0.7, alias="CHAT_TEMPERATURE")
    chat_max_tokens: int = Field(default=512, alias="CHAT_MAX_TOKENS")

    # Logging configuration used by mood_journal.logging_config
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    console_log_level: str = Field(default="INFO", alias="CONSOLE_LOG_LEVEL")

    # The web page and the browser extension both call the API cross-origin
    cors_origins: List[str] = Field(default=["*"], alias="CORS_ORIGINS")

    # Client-side settings (web board, extension mirror)
    api_base_url: str = Field(default="http://localhost:4000", alias="API_BASE_URL")
    poll_interval_seconds: float = Field(default=10.0, alias="POLL_INTERVAL_SECONDS")
    extension_cache_path: str = Field(default=".extension_tasks.json", alias="EXTENSION_CACHE_PATH")
    daily_goal: int = Field(default=5, alias="DAILY_GOAL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
