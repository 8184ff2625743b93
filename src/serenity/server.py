"""
Serenity API server.

Thin HTTP surface over the personalization and intervention services.
Authentication lives in front of this service; routes take the user id
as a path parameter.
"""

import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from .api import interventions_router, personalization_router
from .config import settings
from .database import init_db
from .schemas import HealthResponse


def configure_logging(level: str = settings.LOG_LEVEL) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    await init_db()
    logger.info("Serenity API started")
    yield
    logger.info("Serenity API shutting down")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging()

    app = FastAPI(
        title="Serenity",
        description="Personalization and intervention engine for the Serenity companion",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(personalization_router, prefix="/api")
    app.include_router(interventions_router, prefix="/api")

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health_check():
        """Health check endpoint."""
        return HealthResponse()

    return app


app = create_app()
