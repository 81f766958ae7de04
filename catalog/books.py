"""
Book service: CRUD orchestration for books.

Every write that sets the author reference first confirms the author exists.
Single-book reads expand the reference with a second read of the author.
"""

from typing import Any, Dict, Optional

import structlog

from .authors import AuthorService
from .database import DocumentRepository, contains_pattern, parse_object_id
from .exceptions import NotFound
from .models import Author, Book, BookCreate, BookUpdate, Page

logger = structlog.get_logger(__name__)


class BookService:
    """Service for book operations."""

    def __init__(self, books: DocumentRepository, authors: AuthorService):
        self.books = books
        self.authors = authors

    async def create(self, data: BookCreate) -> Book:
        """
        Persist a new book for an existing author.

        Raises:
            NotFound: if the referenced author does not exist; nothing is stored
            UniquenessConflict: if the ISBN is already taken
        """
        author = await self.authors.find_one(data.author_id)

        document = data.to_document()
        document["author"] = parse_object_id(author.id)

        stored = await self.books.insert(document)
        logger.info("Book created", book_id=str(stored["_id"]), author_id=author.id)
        return await self.find_one(stored["_id"])

    async def find_all(
        self,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        author_id: Optional[str] = None,
    ) -> Page:
        """
        Get a page of books.

        Args:
            page: 1-based page number
            limit: Books per page
            search: Case-insensitive substring matched against title or ISBN
            author_id: Only books referencing this author

        Returns:
            Page of Book records with bare author identifiers
        """
        query: Dict[str, Any] = {}
        if search:
            pattern = contains_pattern(search)
            query["$or"] = [
                {"title": pattern},
                {"isbn": pattern},
            ]
        if author_id:
            query["author"] = parse_object_id(author_id)

        return await self.books.find_page(query, page, limit, Book)

    async def find_one(self, book_id: Any) -> Book:
        """
        Get a single book with its author expanded.

        Raises:
            MalformedIdentifier: if ``book_id`` is not a valid identifier
            NotFound: if no book has this identifier
        """
        document = await self.books.find_by_id(book_id)
        if document is None:
            raise NotFound("Book")
        return await self._expand(document)

    async def update(self, book_id: str, data: BookUpdate) -> Book:
        """
        Apply the provided fields and return the updated book, author expanded.

        A new ``author_id`` is checked before anything is written.
        """
        fields = data.to_document()
        if data.author_id is not None:
            author = await self.authors.find_one(data.author_id)
            fields["author"] = parse_object_id(author.id)

        document = await self.books.update_by_id(book_id, fields)
        if document is None:
            raise NotFound("Book")
        return await self._expand(document)

    async def remove(self, book_id: str) -> None:
        """Delete a book by ID."""
        deleted = await self.books.delete_by_id(book_id)
        if deleted is None:
            raise NotFound("Book")
        logger.info("Book deleted", book_id=book_id)

    async def _expand(self, document: Dict[str, Any]) -> Book:
        """Replace the author identifier with the full author record."""
        expanded = dict(document)
        author_ref = document.get("author")
        author_document = None
        if author_ref is not None:
            author_document = await self.authors.authors.find_by_id(author_ref)
        if author_document is None and author_ref is not None:
            logger.warning("Book references a missing author", book_id=str(document["_id"]), author_id=str(author_ref))
        expanded["author"] = Author.from_document(author_document) if author_document else None
        return Book.from_document(expanded)
