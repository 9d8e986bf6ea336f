"""
FastAPI application entry point for the Analytics API.

Configures logging and CORS, manages the hot-store connection pool over the
application lifespan, and registers the API routers.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from analytics_backend import __version__
from analytics_backend.core.database import init_db, close_db
from analytics_backend.api.reports import router as reports_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application startup and shutdown events.

    On startup:
        - Initialize the hot-store connection pool

    On shutdown:
        - Close the hot-store connection pool
    """
    # Startup
    logger.info("Analytics API starting")
    try:
        await init_db()
        logger.info("Database connection pool initialized")
    except Exception as e:
        # Archive-tier reports still work; fast-tier gathers will degrade
        logger.error(f"Failed to initialize database: {e}")

    yield

    # Shutdown
    logger.info("Analytics API shutting down")
    try:
        await close_db()
        logger.info("Database connection pool closed")
    except Exception as e:
        logger.error(f"Error closing database pool: {e}")


# Create FastAPI application
app = FastAPI(
    title="Analytics API",
    version=__version__,
    description=(
        "Tiered analytics query engine for the content automation platform. "
        "Routes report queries to the hot or archive store, aggregates topics, "
        "prompts and media items, and returns reports with insights and cost estimates."
    ),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(reports_router, prefix="/reports", tags=["reports"])


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer probes.

    Returns:
        Dict with status 'healthy'
    """
    return {"status": "healthy"}


@app.get("/")
async def root():
    """
    Root endpoint providing API information.

    Returns:
        Dict with API name and version
    """
    return {
        "name": "Analytics API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "analytics_backend.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
