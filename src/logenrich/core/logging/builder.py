# src/logenrich/core/logging/builder.py
"""
Logging builder: configure the logging facility with dictConfig and install
the enrichment pipeline onto its handlers.

This module:
 - builds a dictConfig-compatible mapping from Settings (the plain facility:
   console handler, "standard"/"json" formatters, root and uvicorn loggers)
 - builds the configured enrichment formatter (line or JSON, backtrace depth,
   stacktraces)
 - installs the pipeline onto every handler of a logger: one EnrichmentFilter
   per handler plus a fresh formatter per handler

Configuration knobs (on your Settings object):
 - LOG_ENRICHMENT_ENABLED: bool - install the pipeline at all
 - GIANT_LOGS_THRESHOLD: int - serialized size (bytes) above which records are
   flagged with giant_log_detected
 - LOG_BACKTRACE_DEPTH: int - calls between the formatter and the logging call
   site (0 disables the location prefix)
 - LOG_INCLUDE_STACKTRACES: bool - append "[stacktrace]" blocks to exceptions
 - LOG_FORMAT, LOG_LEVEL, ENV, SERVICE_NAME - standard settings.

Settings objects are duck-typed: tests pass a SimpleNamespace.
"""

from __future__ import annotations

import logging
import logging.config

from .filters import DEFAULT_SIZE_THRESHOLD, EnrichmentFilter
from .formatters import EnrichedJsonFormatter, EnrichedLineFormatter
from .handlers import get_console_handler, get_error_console_handler

# Settings type (avoid calling get_settings() here to prevent import-time side effects)
from logenrich.config.settings import Settings  # type: ignore

logger = logging.getLogger(__name__)

STANDARD_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def make_dict_config(settings: Settings) -> dict:
    """
    Build the dictConfig mapping using the provided settings.

    The returned mapping includes:
      - formatters: "standard" (plain text) and "json"
      - handlers: console, plus error_console in production
      - loggers: root, uvicorn.error, uvicorn.access
    """
    formatters = {
        "standard": {"format": STANDARD_FORMAT},
        "json": {
            "()": EnrichedJsonFormatter,
            "env": settings.ENV,
            "service": getattr(settings, "SERVICE_NAME", "logenrich"),
        },
    }

    handlers: dict[str, dict] = {"console": get_console_handler(settings)}
    if settings.ENV == "production":
        handlers["error_console"] = get_error_console_handler(settings)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "handlers": handlers,
        "loggers": {
            "": {
                "handlers": list(handlers.keys()),
                "level": settings.LOG_LEVEL,
                "propagate": True,
            },
            "uvicorn.error": {
                "level": settings.LOG_LEVEL,
                "handlers": list(handlers.keys()),
                "propagate": False,
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def build_formatter(settings: Settings, kind: str | None = None,
                    fmt: str | None = None) -> EnrichedLineFormatter:
    """
    Return a new enrichment formatter configured from settings.

    `kind` ("json" or "text") defaults to settings.LOG_FORMAT; `fmt` is the
    layout string of text formatters (DEFAULT_FORMAT when omitted).
    """
    if (kind or settings.LOG_FORMAT) == "json":
        formatter: EnrichedLineFormatter = EnrichedJsonFormatter(
            env=settings.ENV,
            service=getattr(settings, "SERVICE_NAME", "logenrich"),
        )
    else:
        formatter = EnrichedLineFormatter(fmt=fmt)

    return (
        formatter
        .with_backtrace_depth(getattr(settings, "LOG_BACKTRACE_DEPTH", 0))
        .with_stacktraces(getattr(settings, "LOG_INCLUDE_STACKTRACES", True))
    )


def install_pipeline(target: logging.Logger, settings: Settings, fmt: str | None = None) -> int:
    """
    Install the enrichment pipeline onto every handler of `target`.

    Each handler gets one EnrichmentFilter (not added twice when called again)
    and its own formatter instance. Handlers that already emit JSON (such as
    error_console) keep a JSON formatter; the others get settings.LOG_FORMAT.
    Returns the number of handlers touched.
    """
    threshold = getattr(settings, "GIANT_LOGS_THRESHOLD", DEFAULT_SIZE_THRESHOLD)

    installed = 0
    for handler in target.handlers:
        if not any(isinstance(f, EnrichmentFilter) for f in handler.filters):
            handler.addFilter(EnrichmentFilter(size_threshold=threshold))
        kind = "json" if isinstance(handler.formatter, EnrichedJsonFormatter) else None
        handler.setFormatter(build_formatter(settings, kind, fmt))
        installed += 1

    return installed


def setup_logging(settings: Settings) -> None:
    """
    Initialize logging using settings.

    Steps:
      1. Apply dictConfig(make_dict_config(settings)) so the facility exists.
      2. If settings.LOG_ENRICHMENT_ENABLED, install the pipeline onto the root
         logger's handlers. The uvicorn loggers share the same handler
         instances, so they are covered too.
    """
    logging.config.dictConfig(make_dict_config(settings))

    if not getattr(settings, "LOG_ENRICHMENT_ENABLED", False):
        return

    installed = install_pipeline(logging.getLogger(), settings)
    logger.debug("Log enrichment installed on %d handler(s)", installed)


__all__ = ["STANDARD_FORMAT", "make_dict_config", "build_formatter", "install_pipeline", "setup_logging"]
