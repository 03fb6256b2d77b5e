"""
Music League Engine - Trace ID Middleware

Every request gets a trace_id that flows into logs (via LogContext) and
back to the caller in the X-Trace-ID header and the response envelope.

Usage:
    from musicleague.core.trace_middleware import get_trace_id

    trace_id = get_trace_id()  # "no-trace" outside a request
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging import LogContext

TRACE_HEADER = "X-Trace-ID"

_trace_id_var: ContextVar[str] = ContextVar("trace_id", default="no-trace")


def get_trace_id() -> str:
    """Current request's trace ID, or "no-trace" outside a request."""
    return _trace_id_var.get()


def set_trace_id(trace_id: str) -> None:
    """Set the trace ID for the current context (middleware and tests)."""
    _trace_id_var.set(trace_id)


class TraceMiddleware(BaseHTTPMiddleware):
    """
    Assigns a trace ID per request.

    - Reuses an incoming X-Trace-ID header, otherwise generates a UUID
    - Binds it into the logging context for the duration of the request
    - Echoes it in the X-Trace-ID response header
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        trace_id = request.headers.get(TRACE_HEADER) or str(uuid.uuid4())
        token = _trace_id_var.set(trace_id)
        try:
            with LogContext(trace_id=trace_id):
                response = await call_next(request)
            response.headers[TRACE_HEADER] = trace_id
            return response
        finally:
            _trace_id_var.reset(token)
