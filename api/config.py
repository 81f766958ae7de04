"""
API configuration settings.
"""

from typing import List

from pydantic_settings import BaseSettings


class APIConfig(BaseSettings):
    """API configuration settings."""

    # API Settings
    api_title: str = "Library Catalog API"
    api_version: str = "1.0.0"
    api_description: str = "REST API for managing authors and their books"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # CORS Settings
    cors_origins: List[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: List[str] = ["*"]
    cors_allow_headers: List[str] = ["*"]

    # Logging
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "extra": "ignore"
    }


# Global config instance
config = APIConfig()
