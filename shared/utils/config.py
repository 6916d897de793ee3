"""
Configuration management using pydantic-settings.
Loads configuration from environment variables and .env file.
"""

from functools import lru_cache
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application Configuration
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_DIR: str | None = None  # File logging is off unless a directory is given

    # Mapping Configuration
    MAPPING_FILES_DIR: str = "config/mappings"
    CAMEL_CASE_FALLBACK: bool = True  # Try `createDate` when `create_date` is missing
    MAPPING_FILE_SUFFIXES: str = "yaml,yml"

    @property
    def mapping_file_suffixes_list(self) -> list[str]:
        """Get accepted mapping file suffixes as a list."""
        return [s.strip().lstrip(".") for s in self.MAPPING_FILE_SUFFIXES.split(",") if s.strip()]


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure settings are loaded only once.
    """
    return Settings()


# Global settings instance
settings = get_settings()
