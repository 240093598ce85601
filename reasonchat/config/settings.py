"""Application settings loaded from the environment (and an optional ``.env``)."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful, knowledgeable assistant. Answer clearly and accurately, "
    "use Markdown for structure when it helps, and reply in the language the "
    "user writes in."
)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _default_database_url() -> str:
    return f"sqlite:///{PROJECT_ROOT / 'data' / 'reasonchat.db'}"


class Settings(BaseSettings):
    """
    Runtime configuration.

    Field names map to upper-case environment variables, e.g.
    ``GEMINI_API_KEY`` or ``STORAGE_BACKEND=memory``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server
    environment: Literal["development", "staging", "production"] = "development"
    host: str = "0.0.0.0"
    port: int = 5000
    debug: bool = False
    log_level: str = "INFO"
    log_file: str | None = None
    cors_origins: str = "http://localhost:5000,http://localhost:5173"
    max_request_bytes: int = 1048576

    # Storage: "sql" falls back to "memory" when the database is unreachable
    storage_backend: Literal["sql", "memory"] = "sql"
    database_url: str = Field(default_factory=_default_database_url)
    database_auto_create: bool = True

    # Providers
    provider_timeout_seconds: int = 120

    # Completions family (OpenAI-compatible endpoint exposing reasoning_content)
    completions_base_url: str = "https://integrate.api.nvidia.com/v1"
    completions_api_key: str = ""
    completions_model: str = "deepseek-ai/deepseek-r1-0528"

    # Thinking family (Gemini generative API)
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_api_key: str = ""

    # Router family (OpenRouter)
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_api_key: str = ""
    openrouter_referer: str = "http://localhost:5000"
    openrouter_title: str = "AI Chat App"

    # Chat behaviour
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    default_model_id: str = "deepseek-r1"
    error_reply_text: str = (
        "Przepraszam, wystąpił błąd podczas przetwarzania wiadomości. Spróbuj ponownie."
    )
    empty_reply_text: str = "I apologize, but I couldn't generate a response. Please try again."
    sse_ping_interval_seconds: float = Field(default=15.0, ge=0)

    @field_validator("environment", "storage_backend", mode="before")
    @classmethod
    def _lowercase(cls, value: str) -> str:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, read once."""
    return Settings()
