"""
Configuration management using environment variables.
Handles database, pagination and logging settings with validation and defaults.
"""

from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class CatalogConfig(BaseSettings):
    """
    Configuration class for the catalog service.
    Uses pydantic BaseSettings for environment variable management.
    """

    # MongoDB Configuration
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "library"
    authors_collection: str = "authors"
    books_collection: str = "books"
    server_selection_timeout_ms: int = 5000

    # Pagination
    default_page: int = 1
    default_page_size: int = 10
    # Upper bound applied to the limit parameter; unbounded when unset
    max_page_size: Optional[int] = None

    # Logging Configuration
    log_level: str = "INFO"
    log_format: str = "json"
    log_file: Optional[str] = None

    debug: bool = False

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @field_validator('default_page_size', 'max_page_size')
    @classmethod
    def validate_page_size(cls, v):
        """Ensure page sizes are positive."""
        if v is not None and v < 1:
            raise ValueError('page sizes must be at least 1')
        return v

    @field_validator('server_selection_timeout_ms')
    @classmethod
    def validate_timeout(cls, v):
        """Ensure timeout is reasonable."""
        if v < 100 or v > 60000:
            raise ValueError('server_selection_timeout_ms must be between 100 and 60000')
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
