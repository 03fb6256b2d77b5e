"""
Music League Engine - League Router

Read-only views over the in-memory LeaguesSnapshot.

Endpoints:
- GET  /v1/leagues                         - Category summaries + failures
- GET  /v1/leagues/top-standings           - Combined top standings
- GET  /v1/leagues/{category_id}/{slug}    - One full league
- POST /v1/leagues/refresh                 - Re-run the whole fan-out
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request

from ...config import Settings
from ...models import League, Standing
from ...services.league_data import (
    TOP_STANDINGS_LIMIT,
    LeaguesSnapshot,
    category_summaries,
    find_league_by_slug,
    get_top_standings,
)
from ...services.league_store import LeagueStore
from ...utils.slugs import league_route, title_to_slug
from ..response import api_response, degraded_response, error_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/leagues", tags=["Leagues"])

NOT_LOADED_ERROR = "League data has not been loaded yet"


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> Optional[LeagueStore]:
    return getattr(request.app.state, "league_store", None)


# =============================================================================
# Serialization
# =============================================================================


def standing_to_dict(standing: Standing) -> dict[str, Any]:
    return dataclasses.asdict(standing)


def league_to_dict(league: League) -> dict[str, Any]:
    payload = dataclasses.asdict(league)
    payload["slug"] = title_to_slug(league.title)
    if league.category_id:
        payload["route"] = league_route(league.category_id, league.title)
    return payload


def _overview(store: LeagueStore, snapshot: LeaguesSnapshot, settings: Settings) -> dict[str, Any]:
    return {
        "categories": [s.to_dict() for s in category_summaries(snapshot, store.categories)],
        "failures": [f.to_dict() for f in snapshot.failures],
        "loaded_at": snapshot.loaded_at.isoformat(),
        "privacy_mode": settings.DEFAULT_PRIVACY_MODE,
    }


def _overview_response(store: LeagueStore, snapshot: LeaguesSnapshot, settings: Settings):
    data = _overview(store, snapshot, settings)
    if snapshot.error:
        return degraded_response(error=snapshot.error, data=data)
    if snapshot.failures:
        count = len(snapshot.failures)
        noun = "archive" if count == 1 else "archives"
        return degraded_response(error=f"{count} {noun} failed to load", data=data)
    return api_response(data=data)


# =============================================================================
# Routes
# =============================================================================


@router.get("")
async def list_leagues(
    store: Optional[LeagueStore] = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    """Summaries for every category that loaded at least one league."""
    snapshot = store.snapshot if store is not None else None
    if snapshot is None:
        return error_response(NOT_LOADED_ERROR, status_code=503)
    return _overview_response(store, snapshot, settings)


@router.get("/top-standings")
async def top_standings(
    limit: int = Query(TOP_STANDINGS_LIMIT, ge=1, le=100),
    store: Optional[LeagueStore] = Depends(get_store),
):
    snapshot = store.snapshot if store is not None else None
    if snapshot is None:
        return error_response(NOT_LOADED_ERROR, status_code=503)
    return api_response(data=[standing_to_dict(s) for s in get_top_standings(snapshot, limit)])


@router.get("/{category_id}/{slug}")
async def get_league(
    category_id: str,
    slug: str,
    store: Optional[LeagueStore] = Depends(get_store),
):
    snapshot = store.snapshot if store is not None else None
    if snapshot is None:
        return error_response(NOT_LOADED_ERROR, status_code=503)
    league = find_league_by_slug(snapshot, category_id, slug)
    if league is None:
        return error_response(f"League not found: {category_id}/{slug}", status_code=404)
    return api_response(data=league_to_dict(league))


@router.post("/refresh")
async def refresh_leagues(
    store: Optional[LeagueStore] = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    """Reload every archive from scratch."""
    if store is None:
        return error_response(NOT_LOADED_ERROR, status_code=503)
    logger.info("[leagues] Refresh requested")
    snapshot = await store.refresh()
    return _overview_response(store, snapshot, settings)
