"""Configuration management using Pydantic Settings."""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_EXCLUDE_DIRS = [
    "__pycache__",
    "node_modules",
    "site-packages",
    "testdata",
    "venv",
]


class Settings(BaseSettings):
    """Settings loaded from ``BANGDOC_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="BANGDOC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Document
    openapi_version: str = "3.0.3"

    # Discovery
    exclude_dirs: list[str] = DEFAULT_EXCLUDE_DIRS
    skip_invalid_files: bool = False

    # Output
    output_format: Literal["json", "yaml"] = "yaml"
    indent: int = 2

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    log_format: Literal["json", "console"] = "console"


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
