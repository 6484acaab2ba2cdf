"""Application settings using Pydantic."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-wide defaults loaded from environment variables.

    Every field can be set with a ``NOTESENSE_`` prefixed variable, e.g.
    ``NOTESENSE_MAX_SUGGESTIONS=3`` or
    ``NOTESENSE_THRESHOLDS='{"T_action": 0.6}'``.
    """

    model_config = SettingsConfigDict(
        env_prefix="NOTESENSE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Generation
    max_suggestions: int = 5
    enable_debug: bool = False
    thresholds: dict[str, float] = {}

    # Logging
    log_level: str = "WARNING"
    log_json: bool = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
