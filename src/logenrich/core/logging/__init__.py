# src/logenrich/core/logging/
# ├─ __init__.py            # public API: setup_logging, install_pipeline, formatters, filter
# ├─ builder.py             # make_dict_config(settings), install_pipeline(), setup_logging(settings)
# ├─ correlation.py         # contextvar correlation sources + CorrelationSnapshot
# ├─ filters.py             # EnrichmentFilter, enrich_record(), measure_record_size()
# ├─ formatters.py          # EnrichedLineFormatter, EnrichedJsonFormatter
# ├─ backtrace.py           # StackFrame, capture_stack()
# ├─ errors.py              # exception description + "[object] (...)" rendering
# ├─ sanitize.py            # ORM / pydantic objects -> plain mappings
# ├─ handlers.py            # dictConfig handler factories
# └─ middleware.py          # FastAPI/Starlette middleware publishing the request context


from .builder import setup_logging, make_dict_config, install_pipeline, build_formatter
from .correlation import (
    CorrelationSnapshot,
    CorrelationSources,
    capture_correlation,
    set_trace_id,
    get_trace_id,
    set_user_id,
    get_user_id,
)
from .filters import EnrichmentFilter, enrich_record, measure_record_size
from .formatters import EnrichedLineFormatter, EnrichedJsonFormatter, FormatterConfig
from .middleware import RequestContextMiddleware

__all__ = [
    "setup_logging",
    "make_dict_config",
    "install_pipeline",
    "build_formatter",
    "CorrelationSnapshot",
    "CorrelationSources",
    "capture_correlation",
    "set_trace_id",
    "get_trace_id",
    "set_user_id",
    "get_user_id",
    "EnrichmentFilter",
    "enrich_record",
    "measure_record_size",
    "EnrichedLineFormatter",
    "EnrichedJsonFormatter",
    "FormatterConfig",
    "RequestContextMiddleware",
]
