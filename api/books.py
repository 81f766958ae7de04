"""
Book endpoints.
"""

from typing import Any, Optional, Tuple

from fastapi import APIRouter, Body, Depends, Query, Response, status

from api.dependencies import get_book_service, pagination
from api.models import envelope
from api.validation import ensure_valid, validate_book_create, validate_book_update
from catalog.books import BookService
from catalog.models import BookCreate, BookUpdate

router = APIRouter(prefix="/books", tags=["Books"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_book(
    payload: Any = Body(None),
    service: BookService = Depends(get_book_service),
):
    """
    Create a book for an existing author.

    - **title**: required, non-empty
    - **isbn**: required, valid ISBN-10 or ISBN-13, unique
    - **authorId**: required identifier of an existing author
    - **publishedDate**, **genre**: optional
    """
    payload = {} if payload is None else payload
    ensure_valid(validate_book_create(payload))
    book = await service.create(BookCreate.model_validate(payload))
    return envelope("Book created successfully", book)


@router.get("")
async def list_books(
    paging: Tuple[int, int] = Depends(pagination),
    search: Optional[str] = Query(None, description="Case-insensitive match on title or ISBN"),
    author_id: Optional[str] = Query(None, alias="authorId", description="Only books by this author"),
    service: BookService = Depends(get_book_service),
):
    """Get books with optional search, author filter and pagination."""
    page, limit = paging
    result = await service.find_all(page=page, limit=limit, search=search, author_id=author_id)
    return envelope("Books retrieved successfully", result)


@router.get("/{book_id}")
async def get_book(book_id: str, service: BookService = Depends(get_book_service)):
    """Get a single book with its author."""
    book = await service.find_one(book_id)
    return envelope("Book retrieved successfully", book)


@router.patch("/{book_id}")
async def update_book(
    book_id: str,
    payload: Any = Body(None),
    service: BookService = Depends(get_book_service),
):
    """Update the provided fields of a book; a new authorId must exist."""
    payload = {} if payload is None else payload
    ensure_valid(validate_book_update(payload))
    book = await service.update(book_id, BookUpdate.model_validate(payload))
    return envelope("Book updated successfully", book)


@router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_book(book_id: str, service: BookService = Depends(get_book_service)):
    """Delete a book."""
    await service.remove(book_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
