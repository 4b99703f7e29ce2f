"""Configuration loading for the Wishkeeper catalog service.

This module provides centralized configuration management:
- Load settings from environment variables and .env files
- Validate configuration using pydantic
- Provide typed access to all settings
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from wishkeeper.core.models import DEFAULT_PER_PAGE


class Settings(BaseSettings):
    """Application configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support via python-dotenv.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Document store configuration
    store_backend: Literal["mongodb", "sqlite"] = Field(
        default="mongodb",
        description="Document store backend type",
    )
    mongodb_url: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URL",
    )
    database_name: str = Field(
        default="wishlist",
        description="Database holding the wishlist, product, source and category collections",
    )
    store_sqlite_path: str = Field(
        default="./data/wishlist.db",
        description="SQLite document store file path",
    )

    # Listing configuration
    default_per_page: int = Field(
        default=DEFAULT_PER_PAGE,
        description="Page size for archived products when the caller gives none",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    # Run mode
    run_mode: Literal["http", "cli"] = Field(
        default="http",
        description="Run mode",
    )

    # HTTP configuration
    http_host: str = Field(
        default="0.0.0.0",
        description="Host to listen on for the HTTP server",
    )
    http_port: int = Field(
        default=8080,
        description="Port to listen on for the HTTP server",
    )

    # Development
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging",
    )

    @field_validator("default_per_page")
    @classmethod
    def validate_default_per_page(cls, v: int) -> int:
        """Ensure default page size is positive."""
        if v <= 0:
            raise ValueError("default_per_page must be positive")
        return v

    @field_validator("database_name")
    @classmethod
    def validate_database_name(cls, v: str) -> str:
        """Ensure the database name is not blank."""
        if not v.strip():
            raise ValueError("database_name must be a non-empty string")
        return v

    @field_validator("http_port")
    @classmethod
    def validate_http_port(cls, v: int) -> int:
        """Ensure HTTP port is in valid range."""
        if v <= 0 or v > 65535:
            raise ValueError("http_port must be between 1 and 65535")
        return v


def load_settings(env_file: str | None = None) -> Settings:
    """Load application settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    if env_file:
        return Settings(_env_file=env_file)  # type: ignore[call-arg]
    return Settings()


__all__ = ["Settings", "load_settings"]
