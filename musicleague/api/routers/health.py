"""
Music League Engine - Health Check Router

- GET /health - Liveness: 200 while the process is up, with load status
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from pydantic import BaseModel

from ... import __version__
from ..response import ApiResponse, api_response

router = APIRouter(tags=["Health"])


class HealthData(BaseModel):
    status: str
    timestamp: str
    environment: str
    version: str
    leagues_loaded: bool
    failed_archives: int


@router.get("/health")
async def health(request: Request) -> ApiResponse:
    settings = request.app.state.settings
    store = getattr(request.app.state, "league_store", None)
    snapshot = store.snapshot if store is not None else None
    return api_response(
        data=HealthData(
            status="ok",
            timestamp=datetime.now(timezone.utc).isoformat(),
            environment=settings.ENVIRONMENT,
            version=__version__,
            leagues_loaded=bool(snapshot and snapshot.has_data),
            failed_archives=len(snapshot.failures) if snapshot else 0,
        )
    )
