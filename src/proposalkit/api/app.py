"""
FastAPI application factory.

This module builds the proposalkit HTTP application:

1.  **Middleware Setup**: CORS for browser-based editors.
2.  **Exception Handling**: every error comes back as structured JSON;
    validation problems (``ValueError``, which includes
    :class:`~proposalkit.core.errors.ValidationError`) are a 400, storage
    failures a 503.
3.  **Routing**: stateless evaluation endpoints and edit sessions.
4.  **Lifecycle**: the session registry is created on startup; on shutdown
    every session's autosave is stopped.

`create_app` is a factory so tests can spin up a fresh app per test.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from proposalkit import __version__
from proposalkit.api.routers import documents, sessions
from proposalkit.api.session_store import SessionStore
from proposalkit.core.errors import PersistenceError
from proposalkit.core.settings import get_logger, load_settings

logger = get_logger("proposalkit.api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    ASGI Lifespan context manager.

    - **Startup**: initialize the session registry singleton.
    - **Shutdown**: cancel pending autosaves of all open sessions.
    """
    logger.info("Starting up (env=%s)", load_settings().environment)
    store = SessionStore.get_instance()

    yield

    logger.info("Shutting down")
    await store.close_all()


def create_app() -> FastAPI:
    """
    Construct and configure the proposalkit FastAPI application.

    Returns
    -------
    FastAPI
        The configured ASGI application ready to be served by Uvicorn.
    """
    app = FastAPI(
        title="proposalkit API",
        description="Proposal document engine: pricing, visibility, editing, submission gate",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # -----------------------------------------------------------------------
    # Middleware
    # -----------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------------------------------------------------
    # Global Exception Handlers
    # -----------------------------------------------------------------------
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all handler so unhandled exceptions still return JSON."""
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "detail": str(exc),
                "path": request.url.path,
            },
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        """Map ValueErrors (including core ValidationError) to HTTP 400."""
        return JSONResponse(
            status_code=400,
            content={
                "error": "Bad Request",
                "detail": str(exc),
            },
        )

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
        """Map document store failures to HTTP 503."""
        return JSONResponse(
            status_code=503,
            content={
                "error": "Storage Unavailable",
                "detail": str(exc),
            },
        )

    # -----------------------------------------------------------------------
    # Routes
    # -----------------------------------------------------------------------
    app.include_router(documents.router)
    app.include_router(sessions.router)

    @app.get("/health", tags=["System"])
    async def health_check() -> dict[str, str]:
        """Simple liveness probe."""
        return {
            "status": "ok",
            "environment": load_settings().environment,
            "version": __version__,
        }

    return app


__all__ = ["create_app"]
