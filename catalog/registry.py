"""
Explicit wiring of the catalog services.
"""

from .authors import AuthorService
from .books import BookService
from .database import DocumentRepository, MongoDBManager


class ServiceRegistry:
    """Holds the service instances shared by all requests."""

    def __init__(self, authors: AuthorService, books: BookService):
        self.authors = authors
        self.books = books

    @classmethod
    def from_repositories(cls, authors: DocumentRepository, books: DocumentRepository) -> "ServiceRegistry":
        """Build the services over the given repositories."""
        author_service = AuthorService(authors, books)
        book_service = BookService(books, author_service)
        return cls(author_service, book_service)

    @classmethod
    def from_manager(cls, manager: MongoDBManager) -> "ServiceRegistry":
        """Build the services over a connected database manager."""
        return cls.from_repositories(manager.authors, manager.books)
