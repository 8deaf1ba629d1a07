#!/usr/bin/env python3
"""Workshop Registry - registration forms, admission and waitlists for workshops"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from workshop_registry.config import config
from workshop_registry.logging_config import setup_logging
from workshop_registry.models.database import init_db
from workshop_registry.routers.health import health
from workshop_registry.routers.registration import router as registration_router
from workshop_registry.routers.speakers import router as speakers_router
from workshop_registry.routers.workshops import router as workshops_router

# Configure logging (INFO -> stdout, WARNING/ERROR -> stderr)
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Local SQLite databases are created on startup; deployed databases use Alembic
    if config["database_url"].startswith("sqlite"):
        init_db()
        logger.info("Initialized local SQLite schema")
    yield


# Create FastAPI app
app = FastAPI(
    title="Workshop Registry",
    description="Workshop registration API - author registration forms, admit registrants against capacity and manage waitlists",
    version="1.0.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(health)
app.include_router(registration_router)
app.include_router(workshops_router)
app.include_router(speakers_router)


if __name__ == "__main__":
    port = config["port"]
    logger.info(f"Starting Workshop Registry on 0.0.0.0:{port}")
    logger.info("Health check available at /health")

    try:
        uvicorn.run(
            app, host="0.0.0.0", port=port, log_level=config["log_level"].lower()
        )
    except Exception as e:
        logger.error(f"Failed to start server: {e}")
        raise
