# src/logenrich/core/logging/middleware.py
"""
Request context middleware for FastAPI / Starlette.

Publishes the correlation sources read by EnrichmentFilter for the duration of
each request:

1. The trace id: the incoming `X-Request-ID` header when present, otherwise a
   new UUID4 string. It is echoed back in the response `X-Request-ID` header.
2. The ASGI scope, from which client_ip (scope["client"]) and user_id
   (scope["user"], written by AuthenticationMiddleware) are read lazily.
   While a scope is published, is_console is False.

Both context variables are reset in a `finally` block, so logs emitted after
the request (or from a background thread) do not inherit them.

Register it early so every router log carries the correlation fields:
    app.add_middleware(RequestContextMiddleware)
"""

import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .correlation import (
    reset_request_scope,
    reset_trace_id,
    set_request_scope,
    set_trace_id,
)

TRACE_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Starlette / FastAPI middleware that sets the log correlation context.
    """

    async def dispatch(self, request: Request, call_next):
        trace_id = request.headers.get(TRACE_ID_HEADER) or str(uuid.uuid4())

        trace_token = set_trace_id(trace_id)
        scope_token = set_request_scope(request.scope)
        try:
            response = await call_next(request)
            response.headers[TRACE_ID_HEADER] = trace_id
            return response
        finally:
            reset_request_scope(scope_token)
            reset_trace_id(trace_token)


__all__ = ["TRACE_ID_HEADER", "RequestContextMiddleware"]
