"""
API configuration settings.
"""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class APIConfig(BaseSettings):
    """API configuration settings."""

    # API Settings
    api_title: str = "Book Catalog API"
    api_version: str = "1.0.0"
    api_description: str = "REST API for managing a book catalog with generated ISBN-13 codes"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # Pagination
    default_page_size: int = 10
    max_page_size: int = 100

    # CORS Settings
    cors_origins: List[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: List[str] = ["*"]
    cors_allow_headers: List[str] = ["*"]

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"  # Ignore extra fields from .env
    )


# Global config instance
config = APIConfig()
