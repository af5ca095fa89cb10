"""FastAPI application factory.

Main entry point for the content portal Web API.
"""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from portal import __version__
from portal.config.app_config import AppConfig, load_app_config
from portal.core.pages import PageRenderer, get_page_renderer
from portal.db.database import init_db
from portal.db.users_repository import purge_expired_sessions
from portal.web.routes import (
    admin_router,
    auth_router,
    categories_router,
    contents_router,
    files_router,
    health_router,
    navigation_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    # Startup
    config: AppConfig = app.state.config
    init_db(config.db_path)
    config.upload_dir.mkdir(parents=True, exist_ok=True)
    purged = purge_expired_sessions()
    logger.info(
        "api_startup",
        db_path=str(config.db_path.absolute()),
        upload_dir=str(config.upload_dir.absolute()),
        page_renderer=app.state.page_renderer.name,
        expired_sessions_purged=purged,
    )
    yield
    # Shutdown (nothing to do for now)


async def _request_context_middleware(request: Request, call_next):
    """Bind request_id/method/path to every log event of the request."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
    request.state.request_id = request_id
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the failure server-side; never leak details to the client."""
    logger.exception("api.unhandled_error", error_type=type(exc).__name__)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def create_app(
    config: AppConfig | None = None,
    page_renderer: PageRenderer | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Application config (defaults to load_app_config())
        page_renderer: Override the renderer named in the config

    Returns:
        Configured FastAPI app instance
    """
    config = config or load_app_config()

    app = FastAPI(
        title="Content Portal API",
        description="University community portal: category browsing and PDF lessons",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.page_renderer = page_renderer or get_page_renderer(
        config.uploads.page_renderer, config.uploads.render_dpi
    )

    # CORS middleware for web clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_allow_origins,
        allow_credentials=config.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(_request_context_middleware)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    # Include routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(categories_router)
    app.include_router(navigation_router)
    app.include_router(contents_router)
    app.include_router(admin_router)
    app.include_router(files_router)

    return app


# Default app instance for uvicorn
app = create_app()
