"""
Request payload validation.

The field rules live on the catalog input models. Each ``validate_*`` function
runs one model over a payload and returns its failures as field errors, in
field declaration order, worded for API clients. Controllers call them before
any service call and raise ``ValidationFailure`` when the list is not empty.
"""

from typing import Any, Dict, List, Type

from pydantic import BaseModel, ValidationError

from catalog.exceptions import FieldError, ValidationFailure
from catalog.models import AuthorCreate, AuthorUpdate, BookCreate, BookUpdate

BODY_NOT_OBJECT = "Request body must be a JSON object"

NOT_EMPTY = "{field} should not be empty"

# pydantic error type -> client message
MESSAGES = {
    "missing": NOT_EMPTY,
    "string_too_short": NOT_EMPTY,
    "string_type": "{field} must be a string",
    "iso_date": "{field} must be a valid ISO 8601 date string",
    "isbn": "{field} must be an ISBN",
    "mongo_id": "{field} must be a mongodb id",
}


def _field_error(error: Dict[str, Any]) -> FieldError:
    field = ".".join(str(part) for part in error.get("loc", ())) or "body"
    template = MESSAGES.get(error["type"])
    if error["type"] == "string_type" and error.get("input") is None:
        template = NOT_EMPTY
    if template is None:
        return FieldError(field=field, message=f"{field}: {error['msg']}")
    return FieldError(field=field, message=template.format(field=field))


def _validate(payload: Any, model: Type[BaseModel]) -> List[FieldError]:
    if not isinstance(payload, dict):
        return [FieldError(field="body", message=BODY_NOT_OBJECT)]
    try:
        model.model_validate(payload)
    except ValidationError as e:
        return [_field_error(error) for error in e.errors()]
    return []


def validate_author_create(payload: Dict[str, Any]) -> List[FieldError]:
    """Validate a create-author payload."""
    return _validate(payload, AuthorCreate)


def validate_author_update(payload: Dict[str, Any]) -> List[FieldError]:
    """Validate an update-author payload; every field is optional."""
    return _validate(payload, AuthorUpdate)


def validate_book_create(payload: Dict[str, Any]) -> List[FieldError]:
    """Validate a create-book payload."""
    return _validate(payload, BookCreate)


def validate_book_update(payload: Dict[str, Any]) -> List[FieldError]:
    """Validate an update-book payload; every field is optional."""
    return _validate(payload, BookUpdate)


def ensure_valid(errors: List[FieldError]) -> None:
    """Raise ``ValidationFailure`` if any field error was found."""
    if errors:
        raise ValidationFailure(errors)
