"""
Request dependencies for the API routers.
"""

from typing import Tuple

from fastapi import Query, Request

from catalog.authors import AuthorService
from catalog.books import BookService
from catalog.registry import ServiceRegistry
from utilities.config import config


def get_services(request: Request) -> ServiceRegistry:
    """Service registry attached to the application at start-up."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Catalog services are not initialised")
    return services


def get_author_service(request: Request) -> AuthorService:
    return get_services(request).authors


def get_book_service(request: Request) -> BookService:
    return get_services(request).books


def pagination(
    page: int = Query(config.default_page, ge=1, description="Page number (starts from 1)"),
    limit: int = Query(config.default_page_size, ge=1, description="Items per page"),
) -> Tuple[int, int]:
    """Page and limit query parameters; ``limit`` is clamped when a maximum is configured."""
    if config.max_page_size is not None:
        limit = min(limit, config.max_page_size)
    return page, limit
