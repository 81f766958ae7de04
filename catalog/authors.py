"""
Author service: CRUD orchestration for authors, including the delete guard
against books that still reference the author.
"""

from typing import Any, Dict, Optional

import structlog

from .database import DocumentRepository, contains_pattern
from .exceptions import BusinessRuleConflict, NotFound
from .models import Author, AuthorCreate, AuthorUpdate, Page

logger = structlog.get_logger(__name__)


class AuthorService:
    """Service for author operations."""

    def __init__(self, authors: DocumentRepository, books: DocumentRepository):
        self.authors = authors
        self.books = books

    async def create(self, data: AuthorCreate) -> Author:
        """Persist a new author and return the stored record."""
        document = await self.authors.insert(data.to_document())
        logger.info("Author created", author_id=str(document["_id"]))
        return Author.from_document(document)

    async def find_all(self, page: int = 1, limit: int = 10, search: Optional[str] = None) -> Page:
        """
        Get a page of authors.

        Args:
            page: 1-based page number
            limit: Authors per page
            search: Case-insensitive substring matched against first or last name

        Returns:
            Page of Author records
        """
        query: Dict[str, Any] = {}
        if search:
            pattern = contains_pattern(search)
            query["$or"] = [
                {"firstName": pattern},
                {"lastName": pattern},
            ]

        return await self.authors.find_page(query, page, limit, Author)

    async def find_one(self, author_id: str) -> Author:
        """
        Get a single author by ID.

        Raises:
            MalformedIdentifier: if ``author_id`` is not a valid identifier
            NotFound: if no author has this identifier
        """
        document = await self.authors.find_by_id(author_id)
        if document is None:
            raise NotFound("Author")
        return Author.from_document(document)

    async def update(self, author_id: str, data: AuthorUpdate) -> Author:
        """Apply the provided fields and return the post-update record."""
        document = await self.authors.update_by_id(author_id, data.to_document())
        if document is None:
            raise NotFound("Author")
        return Author.from_document(document)

    async def remove(self, author_id: str) -> None:
        """
        Delete an author that no book references.

        Raises:
            NotFound: if no author has this identifier
            BusinessRuleConflict: if at least one book references the author
        """
        document = await self.authors.find_by_id(author_id)
        if document is None:
            raise NotFound("Author")

        # Count and delete are not atomic; a book created in between is orphaned
        books_count = await self.books.count({"author": document["_id"]})
        if books_count > 0:
            logger.warning(
                "Refusing to delete author with books",
                author_id=str(document["_id"]),
                books_count=books_count,
            )
            raise BusinessRuleConflict("Cannot delete author with existing books")

        await self.authors.delete_by_id(document["_id"])
        logger.info("Author deleted", author_id=str(document["_id"]))
