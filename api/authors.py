"""
Author endpoints.
"""

from typing import Any, Optional, Tuple

from fastapi import APIRouter, Body, Depends, Query, Response, status

from api.dependencies import get_author_service, pagination
from api.models import envelope
from api.validation import ensure_valid, validate_author_create, validate_author_update
from catalog.authors import AuthorService
from catalog.models import AuthorCreate, AuthorUpdate

router = APIRouter(prefix="/authors", tags=["Authors"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_author(
    payload: Any = Body(None),
    service: AuthorService = Depends(get_author_service),
):
    """
    Create an author.

    - **firstName**, **lastName**: required, non-empty
    - **bio**: optional text
    - **birthDate**: optional ISO 8601 date
    """
    payload = {} if payload is None else payload
    ensure_valid(validate_author_create(payload))
    author = await service.create(AuthorCreate.model_validate(payload))
    return envelope("Author created successfully", author)


@router.get("")
async def list_authors(
    paging: Tuple[int, int] = Depends(pagination),
    search: Optional[str] = Query(None, description="Case-insensitive match on first or last name"),
    service: AuthorService = Depends(get_author_service),
):
    """Get authors with optional search and pagination."""
    page, limit = paging
    result = await service.find_all(page=page, limit=limit, search=search)
    return envelope("Authors retrieved successfully", result)


@router.get("/{author_id}")
async def get_author(author_id: str, service: AuthorService = Depends(get_author_service)):
    """Get a single author by ID."""
    author = await service.find_one(author_id)
    return envelope("Author retrieved successfully", author)


@router.patch("/{author_id}")
async def update_author(
    author_id: str,
    payload: Any = Body(None),
    service: AuthorService = Depends(get_author_service),
):
    """Update the provided fields of an author."""
    payload = {} if payload is None else payload
    ensure_valid(validate_author_update(payload))
    author = await service.update(author_id, AuthorUpdate.model_validate(payload))
    return envelope("Author updated successfully", author)


@router.delete("/{author_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_author(author_id: str, service: AuthorService = Depends(get_author_service)):
    """Delete an author that has no books."""
    await service.remove(author_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
