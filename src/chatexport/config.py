"""Configuration settings for chatexport."""

import codecs
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CHATEXPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # File name prefix for the output of the repair pass
    repaired_prefix: str = "repaired_"

    # Directory for JSONL event logs (disabled when unset)
    log_dir: Path | None = None

    # Text encoding of export files read and CSV/JSON files written
    encoding: str = "utf-8"

    # Seconds between cancellation checks while waiting for prompt input
    prompt_poll_interval: float = Field(default=0.1, gt=0)

    @field_validator("encoding")
    @classmethod
    def _known_encoding(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError:
            raise ValueError(f"unknown encoding: {value}") from None
        return value


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings cache (useful for testing)."""
    global _settings
    _settings = None
