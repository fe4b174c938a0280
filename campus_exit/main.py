from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from campus_exit import __version__
from campus_exit.api.errors import register_exception_handlers
from campus_exit.api.v1 import router as api_v1_router
from campus_exit.config.settings import settings
from campus_exit.core.logging import get_logger, setup_logging
from campus_exit.core.middleware import register_middlewares
from campus_exit.db.init_db import init_db

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # For production, manage the schema with migrations
    if not settings.is_production():
        init_db()
    logger.info(
        "Application started",
        extra={"environment": settings.ENVIRONMENT, "version": __version__},
    )
    yield


def create_app(initialize_database: bool = True) -> FastAPI:
    """
    Application factory for the FastAPI app.

    - Configures title, version, debug mode from Settings.
    - Registers CORS, core middleware, and exception handlers.
    - Includes the versioned API router under /api/v1.
    """
    setup_logging()

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan if initialize_database else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        # Browsers reject credentials with a wildcard origin
        allow_credentials=settings.CORS_ORIGINS != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middlewares(app)
    register_exception_handlers(app)

    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    @app.get("/health", tags=["Health"])
    def health() -> dict:
        return {"status": "ok", "service": settings.APP_NAME, "version": __version__}

    return app


app = create_app()
