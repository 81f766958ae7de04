"""
FastAPI main application for the Library Catalog API.
"""

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api import authors, books
from api.config import config as api_config
from api.errors import register_error_handlers, unhandled_exception_handler
from api.models import HealthResponse
from catalog.database import MongoDBManager
from catalog.registry import ServiceRegistry
from utilities.config import config
from utilities.logger import setup_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug,
    )
    logger.info("Starting Library Catalog API")

    if app.state.services is not None:
        # Services injected by the caller; nothing to connect
        yield
        logger.info("Shutting down Library Catalog API")
        return

    db_manager = MongoDBManager(
        connection_url=config.mongodb_url,
        database_name=config.mongodb_database,
        authors_collection=config.authors_collection,
        books_collection=config.books_collection,
        server_selection_timeout_ms=config.server_selection_timeout_ms,
    )
    try:
        await db_manager.connect()
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        raise

    app.state.db_manager = db_manager
    app.state.services = ServiceRegistry.from_manager(db_manager)
    logger.info("Database connection established")

    try:
        yield
    finally:
        logger.info("Shutting down Library Catalog API")
        await db_manager.disconnect()


async def log_requests(request: Request, call_next):
    """Log every request with its outcome and echo a request id."""
    request_id = request.headers.get("X-Request-Id", str(uuid4()))
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)
    start = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception as e:
        # Unhandled errors get their 500 here, logged and tagged like any other response
        response = await unhandled_exception_handler(request, e)

    duration_ms = int((time.perf_counter() - start) * 1000)
    logger.info(
        "Request handled",
        method=request.method,
        path=request.url.path,
        status=response.status_code,
        duration_ms=duration_ms,
    )
    response.headers["X-Request-Id"] = request_id
    return response


def create_app(services: Optional[ServiceRegistry] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        services: Pre-built service registry. When omitted the lifespan
            connects to MongoDB and wires the services itself.

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=api_config.api_title,
        description=api_config.api_description,
        version=api_config.api_version,
        lifespan=lifespan,
    )
    app.state.services = services
    app.state.db_manager = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=api_config.cors_origins,
        allow_credentials=api_config.cors_allow_credentials,
        allow_methods=api_config.cors_allow_methods,
        allow_headers=api_config.cors_allow_headers,
    )
    app.middleware("http")(log_requests)

    register_error_handlers(app)

    app.include_router(authors.router)
    app.include_router(books.router)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(request: Request):
        """Health check endpoint."""
        db_status = "not_configured"
        db_manager = request.app.state.db_manager
        if db_manager is not None:
            health_info = await db_manager.health_check()
            db_status = health_info.get("status", "unknown")

        return HealthResponse(
            status="healthy" if db_status in ("healthy", "not_configured") else "degraded",
            timestamp=datetime.now(timezone.utc),
            version=api_config.api_version,
            database_status=db_status,
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=api_config.host,
        port=api_config.port,
        reload=api_config.debug,
        log_level=api_config.log_level.lower(),
    )
