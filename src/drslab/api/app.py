"""
Dr's Lab FastAPI Application.

REST API for the therapy/dev chat and the Studio code workspace.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from drslab import __version__
from drslab.api.routes import ai, conversations, messages, studio
from drslab.config import settings
from drslab.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Configures logging and makes sure the store is reachable before serving.
    """
    setup_logging(context="api")

    from drslab.db.connection import check_connection

    if check_connection():
        logger.info("✓ Database connection OK")
    else:
        logger.error("Database connection failed; requests will error")

    logger.info(f"Application startup complete ({settings.environment})")

    yield

    logger.info("Application shutdown complete")


app = FastAPI(
    lifespan=lifespan,
    title="Dr's Lab API",
    description="AI therapy and development chat with a Studio code workspace",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint - API health check."""
    return {
        "status": "ok",
        "message": "Dr's Lab API is running",
        "version": __version__,
    }


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    from drslab.db.connection import check_connection

    db_status = "healthy" if check_connection() else "unhealthy"

    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "database": db_status,
    }


app.include_router(
    conversations.router, prefix="/api/conversations", tags=["conversations"]
)
app.include_router(messages.router, prefix="/api/messages", tags=["messages"])
app.include_router(studio.router, prefix="/api/studio", tags=["studio"])
app.include_router(ai.router, prefix="/api/ai", tags=["ai"])
