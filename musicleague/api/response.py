"""
Music League Engine - API Response Envelope

Every route returns the same envelope, so a client can tell a clean load,
a partial load and an error apart without inspecting the payload:

    {"ok": true,  "data": {...}, "degraded": false, "error": null, "meta": {...}}
    {"ok": false, "data": {...}, "degraded": true,  "error": "2 archives failed", ...}
    {"ok": false, "data": null,  "degraded": false, "error": "League not found", ...}

Usage:
    from musicleague.api import api_response, degraded_response, error_response

    return api_response(data=payload)
    return degraded_response(error="1 archive failed to load", data=payload)
    return error_response("League not found", status_code=404)
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..core.trace_middleware import get_trace_id

T = TypeVar("T")

MAX_ERROR_LENGTH = 500


class ResponseMeta(BaseModel):
    """Metadata included in every API response."""

    trace_id: str = Field(..., description="Request trace ID for debugging")
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="ISO 8601 response timestamp",
    )


class ApiResponse(BaseModel, Generic[T]):
    """
    Response envelope.

    Attributes:
        ok: True only when every archive behind the data loaded
        data: Payload (shape varies by route)
        degraded: True when data is served but some archives failed
        error: Human-readable failure summary
        meta: trace_id and timestamp
    """

    ok: bool
    data: T | None = None
    degraded: bool = False
    error: str | None = None
    meta: ResponseMeta


def _meta() -> ResponseMeta:
    return ResponseMeta(trace_id=get_trace_id())


def api_response(data: Any = None) -> ApiResponse[Any]:
    """Successful response."""
    return ApiResponse(ok=True, data=data, meta=_meta())


def degraded_response(error: str, data: Any = None) -> ApiResponse[Any]:
    """Partial data, still 200 OK: some archives loaded and others did not."""
    return ApiResponse(
        ok=False,
        data=data,
        degraded=True,
        error=error[:MAX_ERROR_LENGTH] if error else None,
        meta=_meta(),
    )


def error_response(error: str, status_code: int = 500) -> JSONResponse:
    """Failed request, enveloped, with a non-2xx status."""
    body = ApiResponse[Any](ok=False, error=error[:MAX_ERROR_LENGTH], meta=_meta())
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))
