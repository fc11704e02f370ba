"""Library configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_MAX_RECORDS = 1000


class Settings(BaseSettings):
    """Settings loaded from environment variables.

    Every field can be overridden with a ``POLYDICE_`` prefixed variable,
    e.g. ``POLYDICE_MAX_RECORDS=250``.
    """

    model_config = SettingsConfigDict(
        env_prefix="POLYDICE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # History Settings
    # ==========================================================================
    max_records: int = Field(default=DEFAULT_MAX_RECORDS, ge=1)  # Per RecordStore
    max_keys: int = Field(default=10, ge=1)  # Distinct keys per HistoryCache
    max_records_per_key: int = Field(default=DEFAULT_MAX_RECORDS // 10, ge=1)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
