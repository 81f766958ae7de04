"""
API response models for the FastAPI application.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Envelope(BaseModel):
    """Success response wrapper."""
    message: str = Field(..., description="Human-readable outcome")
    result: Any = Field(None, description="Operation payload")


class ErrorResponse(BaseModel):
    """Error response model."""
    model_config = ConfigDict(populate_by_name=True)

    status_code: int = Field(..., alias="statusCode", description="HTTP status code")
    message: str = Field(..., description="Error message")
    error: str = Field(..., description="HTTP reason phrase")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")


def envelope(message: str, result: Any = None) -> dict:
    """
    Build a JSON-ready success body.

    Catalog models are dumped with their camelCase aliases, so records carry
    ``_id`` and ISO 8601 timestamps.
    """
    if isinstance(result, BaseModel):
        result = result.model_dump(by_alias=True, mode="json")
    return Envelope(message=message, result=result).model_dump(mode="json")
