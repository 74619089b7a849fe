"""
Application settings loaded from environment variables.

Built once at startup and handed to the clients that need it; nothing
else in the package reads the environment. Every value can be
overridden via env vars or a .env file.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration."""

    # ── Gemini ──────────────────────────────────────────────
    gemini_api_key: str = ""
    gemini_api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_temperature: float | None = None
    gemini_max_output_tokens: int | None = None

    # ── GitHub ──────────────────────────────────────────────
    github_token: str | None = None
    github_api_base: str = "https://api.github.com"

    # ── HTTP client ─────────────────────────────────────────
    http_connect_timeout: float = 5.0
    http_read_timeout: float = 10.0
    llm_read_timeout: float = 120.0
    http_max_retries: int = 3
    http_backoff_base: float = 0.5

    # ── Server ──────────────────────────────────────────────
    cors_origins: list[str] = ["*"]
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "info"

    model_config = {"env_prefix": "", "env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, read on first use."""
    return Settings()
