"""
Core pytest configuration for the test suite.

Provides record factories and correlation helpers shared by all logging tests.
Domain-model fixtures (SQLAlchemy / pydantic objects placed in log context) live in:
- tests/test_fixtures/model_fixtures.py
"""

from __future__ import annotations

# -------------------------------
# Standard library imports
# -------------------------------
import sys
import logging
from pathlib import Path

# -------------------------------
# Early logging tuning
# -------------------------------
# Silence noisy third-party loggers before they are imported.
NOISY_LOGGERS = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "asyncio",
    "httpx",
    "urllib3",
)
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

# -------------------------------
# PATH PATCHING
# -------------------------------
# Ensure 'src' on sys.path so `import logenrich...` works without an install
SRC = Path(__file__).resolve().parents[2]
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# -------------------------------
# Third-party / project imports
# -------------------------------
import pytest

from logenrich.core.logging.correlation import (
    CorrelationSnapshot,
    reset_request_scope,
    reset_trace_id,
    reset_user_id,
    set_request_scope,
    set_trace_id,
    set_user_id,
)

FIXED_CREATED = 1_700_000_000.0


@pytest.fixture()
def make_record():
    """
    Factory for LogRecords with a fixed creation time (size measurements stay stable).

    Usage:
        rec = make_record("hello %s", ("world",), context={"order_id": 7})
    """

    def _make(msg="hello %s", args=("tester",), *, level=logging.INFO, name="app",
              context=None, metadata=None, exc_info=None):
        # name, level, pathname, lineno, msg, args, exc_info
        rec = logging.LogRecord(name, level, __file__, 10, msg, args, exc_info)
        rec.created = FIXED_CREATED
        if context is not None:
            rec.context = context
        if metadata is not None:
            rec.metadata = metadata
        return rec

    return _make


@pytest.fixture()
def snapshot() -> CorrelationSnapshot:
    return CorrelationSnapshot(
        trace_id="trace-1",
        client_ip="10.0.0.1",
        user_id=42,
        is_console=False,
    )


@pytest.fixture()
def request_context():
    """
    Publish a fake request context for the duration of a test.

    Call it with the trace id and ASGI scope to publish; everything is reset
    at teardown.
    """
    tokens = []

    def _enter(trace_id=None, scope=None, user_id=None):
        tokens.append((reset_trace_id, set_trace_id(trace_id)))
        tokens.append((reset_request_scope, set_request_scope(scope)))
        tokens.append((reset_user_id, set_user_id(user_id)))

    yield _enter

    for reset, token in reversed(tokens):
        reset(token)


# Domain-model fixtures
from .test_fixtures.model_fixtures import (  # noqa: E402
    customer,
    customer_with_orders,
    address_model,
)
