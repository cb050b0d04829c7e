"""
FastAPI application factory for the tufhub API server.

Uses lifespan handler for startup/shutdown with async resource management.
"""

import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tufhub.config import settings
from tufhub.db.session import close_db, init_db
from tufhub.keystore import close_keystore, init_keystore
from tufhub.logging_config import configure_logging, get_logger
from tufhub.redis.client import close_redis, init_redis
from tufhub.services.encryption_service import init_encryption
from tufhub.storage import close_storage, init_storage

from .health import router as health_router
from .routers.namespaces import router as namespaces_router
from .routers.objects import router as objects_router

logger = get_logger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan handler for startup and shutdown."""
    # Startup
    configure_logging(json_logs=settings.json_logs, log_level=settings.log_level)
    logger.info("Starting tufhub API server", version=VERSION)

    await init_db()
    logger.info("Database initialized")

    # Before the key store: the redis key store borrows this client
    await init_redis()

    await init_storage()
    logger.info("Storage initialized")

    await init_keystore()
    logger.info("Key store initialized")

    init_encryption()

    yield

    # Shutdown
    logger.info("Shutting down tufhub API server")
    await close_keystore()
    await close_storage()
    await close_redis()
    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="tufhub API",
        description="Multi-tenant TUF trust bootstrap and ostree object sync",
        version=VERSION,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    # Request ID middleware
    @app.middleware("http")
    async def add_request_id(request: Request, call_next):  # type: ignore[no-untyped-def]
        """Ensure every request has a request ID for logging correlation."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        structlog.contextvars.bind_contextvars(request_id=request_id)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        structlog.contextvars.unbind_contextvars("request_id", "namespace_id")

        return response

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled errors."""
        logger.error("Unhandled exception", exc_info=exc, path=str(request.url.path))
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    # Health endpoints (no prefix)
    app.include_router(health_router)

    # Object sync (ostree treehub protocol)
    app.include_router(objects_router)

    # Namespace administration and device provisioning
    app.include_router(namespaces_router)

    return app


# Application instance
app = create_app()
