"""
MongoDB database utilities for async operations.
Handles connection, collection validators, indexing and generic CRUD access
for the authors and books collections.
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Type

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import ConnectionFailure, DuplicateKeyError, WriteError

from .exceptions import FieldError, MalformedIdentifier, UniquenessConflict, ValidationFailure
from .models import Page, to_millis

logger = structlog.get_logger(__name__)

# Server error code for a document rejected by a collection validator
DOCUMENT_VALIDATION_FAILURE = 121

AUTHOR_SCHEMA = {
    "$jsonSchema": {
        "bsonType": "object",
        "required": ["firstName", "lastName"],
        "properties": {
            "firstName": {"bsonType": "string", "minLength": 1},
            "lastName": {"bsonType": "string", "minLength": 1},
            "bio": {"bsonType": "string"},
            "birthDate": {"bsonType": "date"},
            "createdAt": {"bsonType": "date"},
            "updatedAt": {"bsonType": "date"},
        },
    }
}

BOOK_SCHEMA = {
    "$jsonSchema": {
        "bsonType": "object",
        "required": ["title", "isbn", "author"],
        "properties": {
            "title": {"bsonType": "string", "minLength": 1},
            "isbn": {"bsonType": "string", "minLength": 1},
            "publishedDate": {"bsonType": "date"},
            "genre": {"bsonType": "string"},
            "author": {"bsonType": "objectId"},
            "createdAt": {"bsonType": "date"},
            "updatedAt": {"bsonType": "date"},
        },
    }
}


def parse_object_id(value: Any) -> ObjectId:
    """
    Convert a client-supplied identifier to an ObjectId.

    Raises:
        MalformedIdentifier: if the value is not a 24-character hex string
    """
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise MalformedIdentifier(value)


def contains_pattern(text: str) -> Dict[str, str]:
    """Case-insensitive literal substring match."""
    return {"$regex": re.escape(text), "$options": "i"}


def _utcnow() -> datetime:
    return to_millis(datetime.now(timezone.utc))


def duplicate_field(error: DuplicateKeyError) -> Optional[str]:
    """Name of the field behind a duplicate key error, if the server reported it."""
    details = error.details or {}
    key_value = details.get("keyValue")
    if key_value:
        return next(iter(key_value))
    key_pattern = details.get("keyPattern")
    if key_pattern:
        return next(iter(key_pattern))
    return None


class DocumentRepository:
    """
    Generic CRUD client over a single collection.

    Stamps ``createdAt``/``updatedAt`` on writes and turns driver write
    errors into catalog errors.
    """

    def __init__(self, collection: AsyncIOMotorCollection, entity: str):
        self.collection = collection
        self.entity = entity

    async def insert(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a new document.

        Args:
            document: Field values to store

        Returns:
            The stored document including ``_id`` and timestamps
        """
        now = _utcnow()
        stored = {**document, "createdAt": now, "updatedAt": now}
        try:
            result = await self.collection.insert_one(stored)
        except DuplicateKeyError as e:
            field = duplicate_field(e)
            logger.warning("Duplicate key on insert", entity=self.entity, field=field)
            raise UniquenessConflict(field)
        except WriteError as e:
            self._raise_for_write_error(e)
            raise

        stored["_id"] = result.inserted_id
        logger.debug("Inserted document", entity=self.entity, id=str(result.inserted_id))
        return stored

    async def find_by_id(self, document_id: Any) -> Optional[Dict[str, Any]]:
        """Get a single document by identifier, or None."""
        object_id = parse_object_id(document_id)
        return await self.collection.find_one({"_id": object_id})

    async def find_page(
        self,
        query: Dict[str, Any],
        page: int,
        limit: int,
        model: Type[Any],
    ) -> Page:
        """
        Get one page of documents matching ``query`` in insertion order.

        Args:
            query: MongoDB filter
            page: 1-based page number
            limit: Documents per page
            model: Record class with a ``from_document`` constructor

        Returns:
            Page of ``model`` records
        """
        skip = (page - 1) * limit

        total = await self.collection.count_documents(query)

        cursor = self.collection.find(query).sort("_id", 1).skip(skip).limit(limit)
        documents = await cursor.to_list(length=limit)

        return Page[model].build(
            docs=[model.from_document(doc) for doc in documents],
            total_docs=total,
            page=page,
            limit=limit,
        )

    async def update_by_id(self, document_id: Any, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Apply ``fields`` to a document.

        Returns:
            The post-update document, or None if no document matched
        """
        object_id = parse_object_id(document_id)
        update = {"$set": {**fields, "updatedAt": _utcnow()}}
        try:
            updated = await self.collection.find_one_and_update(
                {"_id": object_id},
                update,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            field = duplicate_field(e)
            logger.warning("Duplicate key on update", entity=self.entity, field=field, id=str(object_id))
            raise UniquenessConflict(field)
        except WriteError as e:
            self._raise_for_write_error(e)
            raise

        if updated is not None:
            logger.debug("Updated document", entity=self.entity, id=str(object_id), fields=sorted(fields))
        return updated

    async def delete_by_id(self, document_id: Any) -> Optional[Dict[str, Any]]:
        """
        Delete a document.

        Returns:
            The deleted document, or None if no document matched
        """
        object_id = parse_object_id(document_id)
        deleted = await self.collection.find_one_and_delete({"_id": object_id})
        if deleted is not None:
            logger.debug("Deleted document", entity=self.entity, id=str(object_id))
        return deleted

    async def count(self, query: Dict[str, Any]) -> int:
        """Count documents matching ``query``."""
        return await self.collection.count_documents(query)

    def _raise_for_write_error(self, error: WriteError) -> None:
        if error.code == DOCUMENT_VALIDATION_FAILURE:
            logger.warning("Document failed server validation", entity=self.entity)
            raise ValidationFailure([FieldError(field=self.entity, message="Document failed validation")])


class MongoDBManager:
    """
    Async MongoDB manager for the catalog collections.
    Handles connection, validators, indexing and repository access.
    """

    def __init__(
        self,
        connection_url: str,
        database_name: str,
        authors_collection: str = "authors",
        books_collection: str = "books",
        server_selection_timeout_ms: int = 5000,
    ):
        """
        Initialize MongoDB manager.

        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database
            authors_collection: Name of the authors collection
            books_collection: Name of the books collection
            server_selection_timeout_ms: Driver server selection timeout
        """
        self.connection_url = connection_url
        self.database_name = database_name
        self.authors_collection = authors_collection
        self.books_collection = books_collection
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self.authors: Optional[DocumentRepository] = None
        self.books: Optional[DocumentRepository] = None

    async def connect(self) -> None:
        """Establish connection to MongoDB and prepare the collections."""
        try:
            self.client = AsyncIOMotorClient(
                self.connection_url,
                tz_aware=True,
                serverSelectionTimeoutMS=self.server_selection_timeout_ms,
            )
            self.database = self.client[self.database_name]

            await self.client.admin.command('ping')
            logger.info("Successfully connected to MongoDB", database=self.database_name)

        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise

        await self._ensure_collections()
        await self._create_indexes()

        self.authors = DocumentRepository(self.database[self.authors_collection], "Author")
        self.books = DocumentRepository(self.database[self.books_collection], "Book")

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    async def _ensure_collections(self) -> None:
        """Create the catalog collections with their schema validators if missing."""
        existing = await self.database.list_collection_names()
        validators = {
            self.authors_collection: AUTHOR_SCHEMA,
            self.books_collection: BOOK_SCHEMA,
        }
        for name, validator in validators.items():
            if name not in existing:
                await self.database.create_collection(name, validator=validator)
                logger.debug("Created collection", collection=name)

    async def _create_indexes(self) -> None:
        """Create the uniqueness constraint and the indexes used by lookups."""
        try:
            books = self.database[self.books_collection]
            authors = self.database[self.authors_collection]

            await books.create_index("isbn", unique=True)
            # Delete guard and authorId filter
            await books.create_index("author")
            await books.create_index("title")

            await authors.create_index([("lastName", 1), ("firstName", 1)])

            logger.info("Successfully created MongoDB indexes")

        except Exception as e:
            logger.error("Failed to create indexes", error=str(e))
            raise

    async def health_check(self) -> Dict[str, Any]:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self.database.command("ping")
            authors_count = await self.database[self.authors_collection].count_documents({})
            books_count = await self.database[self.books_collection].count_documents({})
            return {
                "status": "healthy",
                "authors_count": authors_count,
                "books_count": books_count,
            }
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e),
            }
