"""
Error taxonomy for the catalog domain.

Every failure the services or the data access layer can detect is raised as
one of these types and travels unchanged up to the HTTP boundary, where
``api.errors`` maps it to a status code.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class FieldError(BaseModel):
    """A single invalid input field."""
    field: str = Field(..., description="Name of the offending field")
    message: str = Field(..., description="Human-readable description of the problem")


class CatalogError(Exception):
    """Base class for all catalog failures."""

    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailure(CatalogError):
    """Malformed or missing input fields."""

    default_message = "Validation failed"

    def __init__(self, errors: List[FieldError]):
        self.errors = list(errors)
        # Only the first offending field is reported
        super().__init__(self.errors[0].message if self.errors else None)


class MalformedIdentifier(CatalogError):
    """An identifier that is not a structurally valid ObjectId."""

    default_message = "Invalid ID format"

    def __init__(self, value: object = None):
        self.value = value
        super().__init__()


class NotFound(CatalogError):
    """No record matches the requested identifier."""

    def __init__(self, entity: str):
        self.entity = entity
        super().__init__(f"{entity} not found")


class UniquenessConflict(CatalogError):
    """A unique field already holds the submitted value."""

    def __init__(self, field: Optional[str] = None):
        self.field = field
        super().__init__(f"{field} already exists" if field else "Duplicate field value")


class BusinessRuleConflict(CatalogError):
    """An operation refused because it would break a referential rule."""
