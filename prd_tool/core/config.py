"""Configuration management for PRD Tool."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    # Environment variables should be set directly
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")

    # Anthropic configuration (optional: chat calls fail fast without it)
    ANTHROPIC_API_KEY: str | None = Field(default=None, description="Anthropic API key")
    ANTHROPIC_MODEL_CHAT: str = Field(
        default="claude-opus-4-20250514", description="Model for PRD chat turns"
    )
    ANTHROPIC_MODEL_SUMMARIZE: str = Field(
        default="claude-3-5-haiku-20241022", description="Model for conversation summaries"
    )

    # Environment
    PRD_TOOL_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")

    # Chat turn configuration
    CHAT_MAX_TOKENS: int = Field(default=4096, description="Max tokens per assistant response")
    CHAT_TIMEOUT_SECONDS: float = Field(default=120.0, description="Provider request timeout")
    CHAT_HISTORY_LIMIT: int = Field(
        default=20, description="Most recent turns included in the context window"
    )
    MAX_MESSAGE_CHARS: int = Field(default=10_000, description="Max user message characters")

    # Document storage
    DOCUMENT_STORAGE_PATH: str = Field(
        default="storage/prds", description="Root directory for PRD markdown bodies"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
