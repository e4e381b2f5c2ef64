"""
Configuration management using environment variables.
Handles storage, logging and ISBN issuance settings with validation and defaults.
"""

from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CatalogConfig(BaseSettings):
    """
    Configuration class for catalog settings.
    Uses pydantic BaseSettings for environment variable management.
    """

    # MongoDB Configuration
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "book_catalog"
    mongodb_collection: str = "books"

    # ISBN Issuance
    isbn_max_attempts: Optional[int] = None  # None keeps issuance unbounded
    create_retry_attempts: int = 3

    # Logging Configuration
    log_level: str = "INFO"
    log_format: str = "json"
    log_file: Optional[str] = None

    # Development/Testing
    debug: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator('isbn_max_attempts')
    @classmethod
    def validate_isbn_max_attempts(cls, v):
        """Ensure a configured ceiling allows at least one draw."""
        if v is not None and v < 1:
            raise ValueError('isbn_max_attempts must be at least 1')
        return v

    @field_validator('create_retry_attempts')
    @classmethod
    def validate_create_retry_attempts(cls, v):
        """Ensure create retry attempts is reasonable."""
        if v < 1 or v > 10:
            raise ValueError('create_retry_attempts must be between 1 and 10')
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of: {valid_levels}')
        return v.upper()

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ['json', 'console']
        if v.lower() not in valid_formats:
            raise ValueError(f'log_format must be one of: {valid_formats}')
        return v.lower()

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path as Path object."""
        if self.log_file:
            return Path(self.log_file)
        return None


# Global configuration instance
config = CatalogConfig()
