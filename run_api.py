#!/usr/bin/env python3
"""
Launcher for the Library Catalog API.

Usage:
    python run_api.py          # serve the API
    python run_api.py check    # ping MongoDB and print collection counts
"""

import asyncio
import sys
from pathlib import Path

import uvicorn

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from api.config import config
from catalog.database import MongoDBManager
from utilities.config import config as catalog_config


async def check_database() -> int:
    """Connect once, report collection health and return an exit code."""
    manager = MongoDBManager(
        connection_url=catalog_config.mongodb_url,
        database_name=catalog_config.mongodb_database,
        authors_collection=catalog_config.authors_collection,
        books_collection=catalog_config.books_collection,
        server_selection_timeout_ms=catalog_config.server_selection_timeout_ms,
    )
    try:
        await manager.connect()
        health = await manager.health_check()
    finally:
        await manager.disconnect()

    for key, value in health.items():
        print(f"{key}: {value}")
    return 0 if health.get("status") == "healthy" else 1


def serve():
    """Run the API server."""
    print(f"Serving {config.api_title} {config.api_version} on {config.host}:{config.port}")
    print(f"Database: {catalog_config.mongodb_database}")

    uvicorn.run(
        "api.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.log_level.lower(),
        access_log=False,
    )


def main():
    if len(sys.argv) > 1 and sys.argv[1].lower() == "check":
        sys.exit(asyncio.run(check_database()))
    if len(sys.argv) > 1:
        print(__doc__)
        sys.exit(1)
    serve()


if __name__ == "__main__":
    main()
