"""FastAPI application factory: entry point for UniLib."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from unilib.api.middleware.cors import cors_middleware
from unilib.api.routes.admin import router as admin_router
from unilib.api.routes.auth import router as auth_router
from unilib.api.routes.books import router as books_router
from unilib.api.routes.categories import router as categories_router
from unilib.api.routes.discover import router as discover_router
from unilib.api.routes.library import router as library_router
from unilib.api.routes.realtime import router as realtime_router
from unilib.api.routes.recommendations import router as recommendations_router
from unilib.config import StoreBackend, settings
from unilib.errors import BookSearchError, RecordValidationError, StoreError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown events."""
    logger.info("UniLib starting up...")
    logger.info("Store backend: %s", settings.store_backend.value)
    logger.info("LLM provider: %s (model %s)", settings.llm_provider.value, settings.ai_model)
    if settings.store_backend is StoreBackend.SQL:
        from unilib.database import create_tables

        await create_tables()
    yield
    logger.info("UniLib shutting down...")


async def _downstream_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Downstream failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse({"detail": str(exc)}, status_code=502)


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="UniLib",
        description="University digital library: catalog, circulation and AI recommendations",
        version="1.0.0",
        lifespan=lifespan,
    )

    # ── Middleware ──────────────────────────────────
    application.middleware("http")(cors_middleware)

    # ── Error handlers ─────────────────────────────
    for exc_type in (StoreError, BookSearchError, RecordValidationError):
        application.add_exception_handler(exc_type, _downstream_error)

    # ── Routes ─────────────────────────────────────
    application.include_router(auth_router)
    application.include_router(books_router)
    application.include_router(categories_router)
    application.include_router(library_router)
    application.include_router(admin_router)
    application.include_router(recommendations_router)
    application.include_router(discover_router)
    application.include_router(realtime_router)

    # ── Health Check ───────────────────────────────
    @application.get("/health", tags=["System"])
    async def health() -> dict[str, str]:
        return {"status": "healthy", "service": "unilib"}

    return application


app = create_app()
