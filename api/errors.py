"""
Error translator: the single place where failures become HTTP responses.

Every handler answers with ``{statusCode, message, error}``:
- catalog errors map by type to their status code
- request validation errors (unparseable body, bad query parameter) are 400
- driver errors that escape the data access layer are classified here
- framework HTTP errors keep their status and detail
- anything else is a 500 that never exposes internal details
"""

from typing import Dict, Type

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError, WriteError
from starlette.exceptions import HTTPException as StarletteHTTPException

from catalog.database import DOCUMENT_VALIDATION_FAILURE, duplicate_field
from catalog.exceptions import (
    BusinessRuleConflict,
    CatalogError,
    MalformedIdentifier,
    NotFound,
    UniquenessConflict,
    ValidationFailure,
)
from api.models import ErrorResponse

logger = structlog.get_logger(__name__)

STATUS_BY_ERROR: Dict[Type[CatalogError], int] = {
    ValidationFailure: status.HTTP_400_BAD_REQUEST,
    MalformedIdentifier: status.HTTP_400_BAD_REQUEST,
    NotFound: status.HTTP_404_NOT_FOUND,
    UniquenessConflict: status.HTTP_409_CONFLICT,
    BusinessRuleConflict: status.HTTP_409_CONFLICT,
}

ERROR_NAMES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
}

GENERIC_MESSAGE = "Something went wrong"


def error_name(status_code: int) -> str:
    """Standard error name for a status code."""
    return ERROR_NAMES.get(status_code, "Error")


def status_for(exc: CatalogError) -> int:
    """Status code for a catalog error, walking up its class hierarchy."""
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    """Build the uniform error body."""
    body = ErrorResponse(status_code=status_code, message=message, error=error_name(status_code))
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True),
        headers=headers,
    )


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    if location:
        return f"{'.'.join(location)}: {first.get('msg')}"
    return str(first.get("msg"))


async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    """Handle errors raised by validation, services and the data access layer."""
    status_code = status_for(exc)
    logger.info(
        "Request failed",
        path=request.url.path,
        error_type=type(exc).__name__,
        status_code=status_code,
        message=exc.message,
    )
    if status_code == status.HTTP_500_INTERNAL_SERVER_ERROR:
        return error_response(status_code, GENERIC_MESSAGE)
    return error_response(status_code, exc.message)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle FastAPI request parsing errors; only the first one is reported."""
    logger.info("Request validation failed", path=request.url.path, errors=len(exc.errors()))
    return error_response(status.HTTP_400_BAD_REQUEST, _first_validation_message(exc))


async def duplicate_key_handler(request: Request, exc: DuplicateKeyError) -> JSONResponse:
    """Handle a unique index violation that reached the boundary untranslated."""
    return await catalog_error_handler(request, UniquenessConflict(duplicate_field(exc)))


async def write_error_handler(request: Request, exc: WriteError) -> JSONResponse:
    """Handle a server-side write rejection."""
    if exc.code == DOCUMENT_VALIDATION_FAILURE:
        return error_response(status.HTTP_400_BAD_REQUEST, "Document failed validation")
    return await unhandled_exception_handler(request, exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle framework HTTP errors such as unknown routes."""
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all: log the failure, answer with a generic 500."""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_MESSAGE)


def register_error_handlers(app: FastAPI) -> None:
    """Register every error handler on the FastAPI app."""
    app.add_exception_handler(CatalogError, catalog_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(DuplicateKeyError, duplicate_key_handler)
    app.add_exception_handler(WriteError, write_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
