"""
Pydantic models for catalog records, input payloads and paginated results.

Stored documents and the JSON wire format both use camelCase keys; the
models expose snake_case attributes and carry the camelCase names as aliases.
Input models carry the field rules; their custom error types (``iso_date``,
``isbn``, ``mongo_id``) are turned into client messages by ``api.validation``.
"""

import math
import re
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, Generic, List, Optional, TypeVar, Union

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, StrictStr, StringConstraints, field_validator
from pydantic_core import PydanticCustomError


T = TypeVar("T")

NonEmptyStr = Annotated[str, StringConstraints(strict=True, min_length=1)]

ISBN10_PATTERN = re.compile(r"^(?:[0-9]{9}X|[0-9]{10})$")
ISBN13_PATTERN = re.compile(r"^[0-9]{13}$")
ISBN_SEPARATORS = re.compile(r"[\s-]+")


def to_millis(value: datetime) -> datetime:
    """Drop sub-millisecond precision, which BSON dates cannot hold."""
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def parse_iso_date(value: Any) -> datetime:
    """
    Parse an ISO 8601 date or datetime string into an aware UTC datetime
    with millisecond precision.

    Raises:
        ValueError: if the value is not an ISO 8601 string
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        parsed = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
    else:
        raise ValueError(f"not an ISO 8601 date string: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return to_millis(parsed.astimezone(timezone.utc))


def is_isbn(value: str) -> bool:
    """
    Check an ISBN-10 or ISBN-13 checksum.

    Spaces and hyphens are ignored.
    """
    sanitized = ISBN_SEPARATORS.sub("", value)

    if ISBN10_PATTERN.match(sanitized):
        checksum = sum((i + 1) * int(sanitized[i]) for i in range(9))
        check_digit = 10 if sanitized[9] == "X" else int(sanitized[9])
        checksum += 10 * check_digit
        return checksum % 11 == 0

    if ISBN13_PATTERN.match(sanitized):
        checksum = sum((3 if i % 2 else 1) * int(sanitized[i]) for i in range(12))
        return (10 - checksum % 10) % 10 == int(sanitized[12])

    return False


def _coerce_date(value: Any) -> Any:
    if value is None:
        return None
    if not isinstance(value, (str, datetime)):
        raise PydanticCustomError("iso_date", "must be a valid ISO 8601 date string")
    try:
        return parse_iso_date(value)
    except ValueError:
        raise PydanticCustomError("iso_date", "must be a valid ISO 8601 date string") from None


def _check_isbn(value: Optional[str]) -> Optional[str]:
    if value is not None and not is_isbn(value):
        raise PydanticCustomError("isbn", "must be an ISBN")
    return value


def _check_mongo_id(value: Optional[str]) -> Optional[str]:
    if value is not None and not ObjectId.is_valid(value):
        raise PydanticCustomError("mongo_id", "must be a mongodb id")
    return value


def _coerce_object_id(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    return value


class CatalogModel(BaseModel):
    """Base model: camelCase aliases, unknown keys ignored."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_document(self) -> Dict[str, Any]:
        """Mongo document for the fields that carry a value."""
        return self.model_dump(by_alias=True, exclude_none=True)


class AuthorCreate(CatalogModel):
    """Payload for creating an author."""
    first_name: NonEmptyStr = Field(..., alias="firstName", description="Author first name")
    last_name: NonEmptyStr = Field(..., alias="lastName", description="Author last name")
    bio: Optional[StrictStr] = Field(None, description="Short biography")
    birth_date: Optional[datetime] = Field(None, alias="birthDate", description="Date of birth")

    @field_validator("birth_date", mode="before")
    @classmethod
    def parse_birth_date(cls, v):
        return _coerce_date(v)


class AuthorUpdate(CatalogModel):
    """Partial author update; only provided fields are applied."""
    first_name: Optional[NonEmptyStr] = Field(None, alias="firstName")
    last_name: Optional[NonEmptyStr] = Field(None, alias="lastName")
    bio: Optional[StrictStr] = None
    birth_date: Optional[datetime] = Field(None, alias="birthDate")

    @field_validator("birth_date", mode="before")
    @classmethod
    def parse_birth_date(cls, v):
        return _coerce_date(v)


class BookCreate(CatalogModel):
    """Payload for creating a book."""
    title: NonEmptyStr = Field(..., description="Book title")
    isbn: NonEmptyStr = Field(..., description="ISBN-10 or ISBN-13")
    published_date: Optional[datetime] = Field(None, alias="publishedDate")
    genre: Optional[StrictStr] = None
    author_id: NonEmptyStr = Field(..., alias="authorId", description="Identifier of an existing author")

    @field_validator("published_date", mode="before")
    @classmethod
    def parse_published_date(cls, v):
        return _coerce_date(v)

    @field_validator("isbn")
    @classmethod
    def validate_isbn(cls, v):
        return _check_isbn(v)

    @field_validator("author_id")
    @classmethod
    def validate_author_id(cls, v):
        return _check_mongo_id(v)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"author_id"})


class BookUpdate(CatalogModel):
    """Partial book update; ``author_id`` reassigns the author."""
    title: Optional[NonEmptyStr] = None
    isbn: Optional[NonEmptyStr] = None
    published_date: Optional[datetime] = Field(None, alias="publishedDate")
    genre: Optional[StrictStr] = None
    author_id: Optional[NonEmptyStr] = Field(None, alias="authorId")

    @field_validator("published_date", mode="before")
    @classmethod
    def parse_published_date(cls, v):
        return _coerce_date(v)

    @field_validator("isbn")
    @classmethod
    def validate_isbn(cls, v):
        return _check_isbn(v)

    @field_validator("author_id")
    @classmethod
    def validate_author_id(cls, v):
        return _check_mongo_id(v)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"author_id"})


class Author(CatalogModel):
    """Stored author record."""
    id: str = Field(..., alias="_id", description="Unique author identifier")
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    bio: Optional[str] = None
    birth_date: Optional[datetime] = Field(None, alias="birthDate")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v):
        return _coerce_object_id(v)

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Author":
        return cls.model_validate(document)


class Book(CatalogModel):
    """
    Stored book record.

    ``author`` holds the bare author identifier, or the full Author record
    once the reference has been expanded. An expanded reference whose author
    no longer exists is ``None``.
    """
    id: str = Field(..., alias="_id", description="Unique book identifier")
    title: str
    isbn: str
    published_date: Optional[datetime] = Field(None, alias="publishedDate")
    genre: Optional[str] = None
    author: Union[Author, str, None] = None
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @field_validator("id", "author", mode="before")
    @classmethod
    def stringify_object_ids(cls, v):
        return _coerce_object_id(v)

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Book":
        return cls.model_validate(document)


class Page(CatalogModel, Generic[T]):
    """A page of records plus navigation metadata."""
    docs: List[T] = Field(..., description="Records on this page")
    total_docs: int = Field(..., alias="totalDocs", description="Total number of matching records")
    limit: int = Field(..., description="Records per page")
    page: int = Field(..., description="Current page number")
    total_pages: int = Field(..., alias="totalPages", description="Total number of pages")
    paging_counter: int = Field(..., alias="pagingCounter", description="Position of the first record on this page")
    has_prev_page: bool = Field(..., alias="hasPrevPage")
    has_next_page: bool = Field(..., alias="hasNextPage")
    prev_page: Optional[int] = Field(None, alias="prevPage")
    next_page: Optional[int] = Field(None, alias="nextPage")

    @classmethod
    def build(cls, docs: List[Any], total_docs: int, page: int, limit: int) -> "Page":
        """Assemble a page, deriving the navigation fields from the counts."""
        # An empty result still has one (empty) page
        total_pages = max(math.ceil(total_docs / limit), 1)
        has_prev = page > 1
        has_next = page < total_pages
        return cls(
            docs=docs,
            total_docs=total_docs,
            limit=limit,
            page=page,
            total_pages=total_pages,
            paging_counter=(page - 1) * limit + 1,
            has_prev_page=has_prev,
            has_next_page=has_next,
            prev_page=page - 1 if has_prev else None,
            next_page=page + 1 if has_next else None,
        )
