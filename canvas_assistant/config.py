"""Simplified configuration management."""

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field


def _load_env_file() -> None:
    """Load .env from root directory if present."""
    env_path = Path(__file__).parent.parent / ".env"
    if not env_path.is_file():
        return
    try:
        for line in env_path.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if stripped and not stripped.startswith("#") and "=" in stripped:
                key, value = stripped.split("=", 1)
                key, value = key.strip(), value.strip().strip("'\"")
                if key and value and key not in os.environ:
                    os.environ[key] = value
    except OSError:
        pass


_load_env_file()


DEFAULT_APP_NAME = "Canvas Assistant Server"
DEFAULT_APP_VERSION = "0.1.0"


def _env_int(name: str, fallback: int) -> int:
    try:
        return int(os.getenv(name, str(fallback)))
    except (TypeError, ValueError):
        return fallback


def _env_float(name: str, fallback: float) -> float:
    try:
        return float(os.getenv(name, str(fallback)))
    except (TypeError, ValueError):
        return fallback


def _env_flag(name: str, fallback: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return fallback
    return raw.strip().lower() not in {"0", "false", "no", "off", ""}


def _get_port() -> int:
    """Get server port, checking the platform PORT first, then CANVAS_ASSISTANT_PORT."""
    port = os.getenv("PORT") or os.getenv("CANVAS_ASSISTANT_PORT")
    if port:
        try:
            return int(port)
        except ValueError:
            pass
    return 8001


class Settings(BaseModel):
    """Application settings with lightweight env fallbacks."""

    # App metadata
    app_name: str = Field(default=DEFAULT_APP_NAME)
    app_version: str = Field(default=DEFAULT_APP_VERSION)

    # Server runtime
    server_host: str = Field(default=os.getenv("CANVAS_ASSISTANT_HOST", "0.0.0.0"))
    server_port: int = Field(default_factory=_get_port)

    # Provider selection
    chat_provider: str = Field(default=os.getenv("CHAT_PROVIDER", "hosted"))

    # Hosted LLM provider
    openai_api_key: Optional[str] = Field(default=os.getenv("OPENAI_API_KEY"))
    openai_base_url: str = Field(default=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"))
    chat_model: str = Field(default=os.getenv("CHAT_MODEL", "gpt-4.1"))
    analysis_model: str = Field(default=os.getenv("ANALYSIS_MODEL", "gpt-4.1-mini"))
    summarizer_model: str = Field(default=os.getenv("SUMMARIZER_MODEL", "gpt-4.1-mini"))
    chat_temperature: float = Field(default_factory=lambda: _env_float("CHAT_TEMPERATURE", 0.7))
    chat_max_tokens: int = Field(default_factory=lambda: _env_int("CHAT_MAX_TOKENS", 1000))
    chat_streaming: bool = Field(default_factory=lambda: _env_flag("CHAT_STREAMING", True))

    # Self-hosted HTTP workflow provider
    custom_flow_url: Optional[str] = Field(default=os.getenv("CUSTOM_FLOW_URL"))
    custom_flow_api_key: Optional[str] = Field(default=os.getenv("CUSTOM_FLOW_API_KEY"))
    custom_flow_session_id: str = Field(default=os.getenv("CUSTOM_FLOW_SESSION_ID", "user_1"))

    provider_timeout_seconds: float = Field(
        default_factory=lambda: _env_float("PROVIDER_TIMEOUT_SECONDS", 60.0)
    )

    # HTTP behaviour
    cors_allow_origins_raw: str = Field(default=os.getenv("CANVAS_ASSISTANT_CORS_ALLOW_ORIGINS", "*"))
    enable_docs: bool = Field(default=os.getenv("CANVAS_ASSISTANT_ENABLE_DOCS", "1") != "0")
    docs_url: Optional[str] = Field(default=os.getenv("CANVAS_ASSISTANT_DOCS_URL", "/docs"))

    # Context and summarisation controls
    conversation_summary_interval: int = Field(
        default_factory=lambda: _env_int("CONVERSATION_SUMMARY_INTERVAL", 5)
    )
    context_turn_count: int = Field(default_factory=lambda: _env_int("CONTEXT_TURN_COUNT", 3))
    summarize_in_background: bool = Field(
        default_factory=lambda: _env_flag("SUMMARIZE_IN_BACKGROUND", True)
    )

    @property
    def cors_allow_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        if self.cors_allow_origins_raw.strip() in {"", "*"}:
            return ["*"]
        return [origin.strip() for origin in self.cors_allow_origins_raw.split(",") if origin.strip()]

    @property
    def resolved_docs_url(self) -> Optional[str]:
        """Return documentation URL when docs are enabled."""
        return (self.docs_url or "/docs") if self.enable_docs else None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
