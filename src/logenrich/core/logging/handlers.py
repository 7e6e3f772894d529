# src/logenrich/core/logging/handlers.py
"""
Handler factories for logging.dictConfig.

Returns a handler configuration dict (not a handler instance) so the builder
can assemble one dictConfig mapping from Settings. The formatter names
("standard", "json") must exist in the builder's "formatters" section.

The enrichment filter is not referenced here: the pipeline is installed onto
the handlers afterwards by `install_pipeline()`, and only when enabled.
"""

from logenrich.config.settings import Settings


def get_console_handler(settings: Settings) -> dict:
    """
    Return a StreamHandler config for all records at or above LOG_LEVEL.

    The handler writes to stderr; the "json" or "standard" formatter is
    chosen from settings.LOG_FORMAT.
    """
    return {
        "class": "logging.StreamHandler",
        "formatter": "json" if settings.LOG_FORMAT == "json" else "standard",
        "level": settings.LOG_LEVEL,
        # Optional: to force stdout instead of stderr, add:
        # "stream": "ext://sys.stdout"
    }


def get_error_console_handler(settings: Settings) -> dict:
    """
    Return a StreamHandler config that repeats ERROR records as JSON.

    Only wired in production, where collectors read the structured stream.
    """
    return {
        "class": "logging.StreamHandler",
        "formatter": "json",
        "level": "ERROR",
    }


__all__ = ["get_console_handler", "get_error_console_handler"]
