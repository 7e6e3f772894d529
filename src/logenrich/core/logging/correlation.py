# src/logenrich/core/logging/correlation.py
"""
Correlation sources for log enrichment.

This module owns the request-scoped values that get attached to every log
record by the EnrichmentFilter:

  - trace_id:   opaque identifier of the current request (X-Request-ID or UUID4)
  - client_ip:  network address of the HTTP client
  - user_id:    id of the authenticated user, if any
  - is_console: True when the code is not serving an HTTP request (CLI, workers)

How values get here
-------------------
- RequestContextMiddleware (middleware.py) calls `set_trace_id()` and
  `set_request_scope()` at the start of each request and resets both at the end.
- client_ip and user_id are resolved lazily from the stored ASGI scope, so an
  authentication middleware running *inside* ours (which writes scope["user"])
  is still picked up by logs emitted later in the same request.
- Code that authenticates users some other way can call `set_user_id()`.

Storage uses `contextvars.ContextVar` so values follow asyncio tasks and
awaits. Threads do not inherit them.

Capturing
---------
`capture_correlation()` queries each source exactly once and returns an
immutable CorrelationSnapshot. Sources are queried independently: one failing
getter leaves its field as None (is_console falls back to False) and the
others are still captured. Snapshots are taken per record and never cached.
"""

import contextvars
from dataclasses import dataclass
from typing import Any, Callable

_trace_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "trace_id", default=None
)
_request_scope_ctx: contextvars.ContextVar[dict | None] = contextvars.ContextVar(
    "request_scope", default=None
)
_user_id_ctx: contextvars.ContextVar[Any | None] = contextvars.ContextVar(
    "user_id", default=None
)


def set_trace_id(trace_id: str | None):
    """
    Set the trace id in the current context and return the token to allow reset.
    """
    return _trace_id_ctx.set(trace_id)


def reset_trace_id(token) -> None:
    _trace_id_ctx.reset(token)


def get_trace_id() -> str | None:
    return _trace_id_ctx.get()


def set_request_scope(scope: dict | None):
    """
    Publish the ASGI scope of the request being served. Returns a reset token.
    """
    return _request_scope_ctx.set(scope)


def reset_request_scope(token) -> None:
    _request_scope_ctx.reset(token)


def get_request_scope() -> dict | None:
    return _request_scope_ctx.get()


def set_user_id(user_id: Any | None):
    """
    Explicitly set the user id for the current context. Returns a reset token.

    Takes precedence over the user found in the request scope.
    """
    return _user_id_ctx.set(user_id)


def reset_user_id(token) -> None:
    _user_id_ctx.reset(token)


def get_user_id() -> Any | None:
    """
    Return the explicit user id, else the id of the authenticated scope user.

    Starlette's AuthenticationMiddleware stores the user under scope["user"];
    anonymous users (is_authenticated False) yield None.
    """
    user_id = _user_id_ctx.get()
    if user_id is not None:
        return user_id

    scope = get_request_scope()
    if not scope:
        return None

    user = scope.get("user")
    if user is None or not getattr(user, "is_authenticated", False):
        return None

    user_id = getattr(user, "id", None)
    if user_id is None:
        user_id = getattr(user, "identity", None)
    return user_id


def get_client_ip() -> str | None:
    scope = get_request_scope()
    if not scope:
        return None
    client = scope.get("client")
    if not client:
        return None
    return client[0]


def is_console() -> bool:
    # outside of a request we are running from a CLI, a worker or a script
    return get_request_scope() is None


@dataclass(frozen=True)
class CorrelationSources:
    """
    Zero-argument callables queried for each record.

    Defaults read the context variables above; tests and non-HTTP hosts can
    pass their own accessors.
    """

    trace_id: Callable[[], Any] = get_trace_id
    client_ip: Callable[[], Any] = get_client_ip
    user_id: Callable[[], Any] = get_user_id
    is_console: Callable[[], Any] = is_console


@dataclass(frozen=True)
class CorrelationSnapshot:
    trace_id: str | None = None
    client_ip: str | None = None
    user_id: Any | None = None
    is_console: bool | None = None

    def as_metadata(self) -> dict[str, Any]:
        # absent values stay in the mapping as None
        return {
            "trace_id": self.trace_id,
            "client_ip": self.client_ip,
            "user_id": self.user_id,
            "is_console": self.is_console,
        }


def _query(source: Callable[[], Any], fallback: Any = None) -> Any:
    try:
        return source()
    except Exception:
        return fallback


def capture_correlation(sources: CorrelationSources | None = None) -> CorrelationSnapshot:
    """
    Take a best-effort snapshot of the current correlation values. Never raises.
    """
    sources = sources or CorrelationSources()
    return CorrelationSnapshot(
        trace_id=_query(sources.trace_id),
        client_ip=_query(sources.client_ip),
        user_id=_query(sources.user_id),
        is_console=_query(sources.is_console, fallback=False),
    )


__all__ = [
    "set_trace_id",
    "reset_trace_id",
    "get_trace_id",
    "set_request_scope",
    "reset_request_scope",
    "get_request_scope",
    "set_user_id",
    "reset_user_id",
    "get_user_id",
    "get_client_ip",
    "is_console",
    "CorrelationSources",
    "CorrelationSnapshot",
    "capture_correlation",
]
