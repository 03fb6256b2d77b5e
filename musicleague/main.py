"""
Music League Engine - FastAPI Application

Read-only HTTP surface over the league fan-out. On startup the category
table is loaded, every archive is fetched and aggregated once, and the
snapshot is held in memory until the next refresh.

Run with: uvicorn musicleague.main:app --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional, Sequence

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .api.response import error_response
from .api.routers.health import router as health_router
from .api.routers.leagues import router as leagues_router
from .config import Settings, configure_logging, get_settings, load_categories
from .core.trace_middleware import TraceMiddleware, get_trace_id
from .models import LeagueCategory
from .services.league_store import LeagueStore

logger = logging.getLogger(__name__)


def _resolve_categories(settings: Settings) -> list[LeagueCategory]:
    if not settings.LEAGUE_CATEGORIES_FILE:
        logger.warning("LEAGUE_CATEGORIES_FILE is not set; no archives will be loaded")
        return []
    return load_categories(settings.LEAGUE_CATEGORIES_FILE)


def create_app(
    *,
    settings: Optional[Settings] = None,
    categories: Optional[Sequence[LeagueCategory]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Application factory.

    Args:
        settings: Defaults to get_settings()
        categories: Category table; read from LEAGUE_CATEGORIES_FILE if omitted
        transport: httpx transport for archive fetches (tests inject a MockTransport)
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Starting Music League Engine v%s", __version__)
        table = list(categories) if categories is not None else _resolve_categories(settings)

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(30.0, connect=settings.HTTP_CONNECT_TIMEOUT_S),
            transport=transport,
        ) as client:
            store = LeagueStore(
                table,
                settings.LEAGUE_DATA_URL,
                client=client,
                timeout_ms=settings.LOAD_TIMEOUT_MS,
                limits=settings.archive_limits,
            )
            app.state.league_store = store
            await store.refresh()

            yield

        logger.info("Shutdown complete")

    app = FastAPI(
        title="Music League Engine",
        description="Read-only standings for music league archives.",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.add_middleware(TraceMiddleware)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return error_response(str(exc.detail), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Log the full traceback, return a clean envelope."""
        logger.error(
            "[trace:%s] Unhandled exception on %s %s",
            get_trace_id(),
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return error_response("Internal System Error", status_code=500)

    app.include_router(health_router)
    app.include_router(leagues_router)

    @app.get("/", tags=["root"])
    async def root() -> dict[str, Any]:
        return {
            "service": "Music League Engine",
            "version": __version__,
            "docs": "/docs",
        }

    return app


configure_logging()
app = create_app()
