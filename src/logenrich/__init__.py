"""
logenrich: correlation enrichment and line formatting for stdlib logging.
"""

from .core.logging import (
    EnrichedJsonFormatter,
    EnrichedLineFormatter,
    EnrichmentFilter,
    RequestContextMiddleware,
    install_pipeline,
    setup_logging,
)

__all__ = [
    "EnrichedJsonFormatter",
    "EnrichedLineFormatter",
    "EnrichmentFilter",
    "RequestContextMiddleware",
    "install_pipeline",
    "setup_logging",
]
