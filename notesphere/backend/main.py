"""
FastAPI application.

Lifespan order: logging, database initialization (bounded retry, schema,
full-text index), then the in-process retention sweeper when enabled.
Shutdown stops the sweeper before the engine is disposed.

    uvicorn notesphere.backend.main:app
"""

from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from notesphere.backend.api import health
from notesphere.backend.api.v1 import router as api_v1_router
from notesphere.backend.core.config import get_app_config
from notesphere.backend.core.database import dispose_engine, get_session_factory, init_database
from notesphere.backend.core.exception_handlers import register_exception_handlers
from notesphere.backend.core.logging import get_logger, setup_logging
from notesphere.backend.core.middleware import RequestContextMiddleware
from notesphere.backend.tasks.retention import RetentionSweeper

logger = get_logger(__name__)


def _start_sweeper() -> RetentionSweeper | None:
    app_config = get_app_config()
    if not app_config.features.retention_inprocess_sweeper_enabled:
        logger.info("In-process retention sweeper disabled")
        return None
    sweeper = RetentionSweeper.from_config(get_session_factory(), app_config.retention)
    sweeper.start()
    return sweeper


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    app_config = get_app_config()
    setup_logging(level=app_config.logging.level)
    logger.info(
        "Application starting",
        extra={"app_name": app_config.application.name, "env": app_config.application.environment},
    )

    await init_database()
    app.state.retention_sweeper = sweeper = _start_sweeper()

    try:
        yield
    finally:
        logger.info("Application shutting down")
        if sweeper is not None:
            await sweeper.stop()
        await dispose_engine()


def create_app() -> FastAPI:
    settings = get_app_config().application

    app = FastAPI(
        title=settings.name,
        description=settings.description,
        version=settings.version,
        docs_url="/docs" if settings.docs_enabled else None,
        redoc_url="/redoc" if settings.docs_enabled else None,
        lifespan=lifespan,
    )

    app.add_middleware(RequestContextMiddleware)
    if settings.cors.origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors.origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)
    app.include_router(health.router, tags=["health"])
    app.include_router(api_v1_router, prefix=settings.api_prefix)
    return app


@lru_cache(maxsize=1)
def get_app() -> FastAPI:
    """Built on first use so importing this module never reads configuration."""
    return create_app()


def __getattr__(name: str) -> FastAPI:
    if name == "app":
        return get_app()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
