"""
Pytest configuration and shared fixtures.

The catalog runs against an in-memory stand-in for the motor collection API
so that services and routes are exercised without a MongoDB server.
"""

import copy
import re
from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from api.main import create_app
from catalog.database import DocumentRepository
from catalog.registry import ServiceRegistry


def _matches(document, query):
    for key, condition in query.items():
        if key == "$or":
            if not any(_matches(document, sub) for sub in condition):
                return False
        elif isinstance(condition, dict) and "$regex" in condition:
            value = document.get(key)
            flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
            if not isinstance(value, str) or not re.search(condition["$regex"], value, flags):
                return False
        elif document.get(key) != condition:
            return False
    return True


class FakeCursor:
    """Chainable cursor over a snapshot of documents."""

    def __init__(self, documents):
        self._documents = documents
        self._skip = 0
        self._limit = 0

    def sort(self, key, direction=1):
        self._documents = sorted(self._documents, key=lambda d: d.get(key), reverse=direction < 0)
        return self

    def skip(self, count):
        self._skip = count
        return self

    def limit(self, count):
        self._limit = count
        return self

    async def to_list(self, length=None):
        documents = self._documents[self._skip:]
        if self._limit:
            documents = documents[:self._limit]
        return [copy.deepcopy(d) for d in documents]


class FakeCollection:
    """In-memory collection with the subset of motor calls the catalog uses."""

    def __init__(self, unique_fields=()):
        self.documents = []
        self.unique_fields = tuple(unique_fields)

    def _check_unique(self, candidate):
        for field in self.unique_fields:
            for existing in self.documents:
                if existing["_id"] != candidate.get("_id") and existing.get(field) == candidate.get(field):
                    raise DuplicateKeyError(
                        f"E11000 duplicate key error dup key: {{ {field}: {candidate.get(field)!r} }}",
                        code=11000,
                        details={"keyValue": {field: candidate.get(field)}, "keyPattern": {field: 1}},
                    )

    async def insert_one(self, document):
        document.setdefault("_id", ObjectId())
        self._check_unique(document)
        self.documents.append(copy.deepcopy(document))
        return SimpleNamespace(inserted_id=document["_id"])

    async def find_one(self, query):
        for document in self.documents:
            if _matches(document, query):
                return copy.deepcopy(document)
        return None

    def find(self, query):
        return FakeCursor([d for d in self.documents if _matches(d, query)])

    async def count_documents(self, query):
        return sum(1 for d in self.documents if _matches(d, query))

    async def find_one_and_update(self, query, update, return_document=ReturnDocument.BEFORE):
        for index, document in enumerate(self.documents):
            if _matches(document, query):
                updated = {**document, **copy.deepcopy(update.get("$set", {}))}
                self._check_unique(updated)
                self.documents[index] = updated
                result = updated if return_document == ReturnDocument.AFTER else document
                return copy.deepcopy(result)
        return None

    async def find_one_and_delete(self, query):
        for index, document in enumerate(self.documents):
            if _matches(document, query):
                return self.documents.pop(index)
        return None


@pytest.fixture
def authors_collection():
    return FakeCollection()


@pytest.fixture
def books_collection():
    return FakeCollection(unique_fields=("isbn",))


@pytest.fixture
def author_repository(authors_collection):
    return DocumentRepository(authors_collection, "Author")


@pytest.fixture
def book_repository(books_collection):
    return DocumentRepository(books_collection, "Book")


@pytest.fixture
def services(author_repository, book_repository):
    """Service registry wired over the in-memory collections."""
    return ServiceRegistry.from_repositories(author_repository, book_repository)


@pytest.fixture
def author_service(services):
    return services.authors


@pytest.fixture
def book_service(services):
    return services.books


@pytest.fixture
def client(services):
    """Create test client."""
    return TestClient(create_app(services))


@pytest.fixture
def author_payload():
    return {"firstName": "John", "lastName": "Doe", "bio": "Writes things", "birthDate": "1970-05-17"}


@pytest.fixture
def book_payload():
    return {
        "title": "The First Book",
        "isbn": "978-3-16-148410-0",
        "publishedDate": "2001-09-01",
        "genre": "Fiction",
    }
