# src/logenrich/core/logging/filters.py
"""
Logging filters

EnrichmentFilter and helpers: attach correlation metadata to log records and
flag records that are too large to ship.

Record model
------------
Two dict attributes live on every record that passes through the filter:

  - record.context:  application data. Passed as `extra={"context": {...}}`;
                     other ad-hoc extras (`extra={"order_id": 7}`) are folded
                     into it so the formatter sees one mapping.
  - record.metadata: pipeline data. The filter writes trace_id, client_ip,
                     user_id, is_console (and giant_log_detected) here.

Usage (dictConfig):
    "filters": {"enrich": {"()": EnrichmentFilter, "size_threshold": 10000}},
    "handlers": {"console": {"class": "logging.StreamHandler", "filters": ["enrich"], ...}}

or let `install_pipeline()` (builder.py) attach it to existing handlers.

The filter always returns True; it annotates records, never drops them, and it
never raises into the caller's logging statement.
"""

import json
import logging
from logging import LogRecord
from typing import Any

from .correlation import CorrelationSnapshot, CorrelationSources, capture_correlation
from .sanitize import json_default, sanitize_context

DEFAULT_SIZE_THRESHOLD = 10_000
GIANT_LOG_FLAG = "giant_log_detected"

# Attributes every LogRecord has; anything else on the record came in via `extra`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "context", "metadata", "taskName"}


def _record_message(record: LogRecord) -> str:
    try:
        return record.getMessage()
    except Exception:
        # bad %-args must not take the log line down
        return str(record.msg)


def _ensure_mappings(record: LogRecord) -> None:
    context = getattr(record, "context", None)
    if context is None:
        context = {}
    elif not isinstance(context, dict):
        context = {"context": context}

    for key, value in record.__dict__.items():
        if key not in _RESERVED_ATTRS and not key.startswith("_"):
            context.setdefault(key, value)

    metadata = getattr(record, "metadata", None)
    if not isinstance(metadata, dict):
        metadata = {}

    record.context = context
    record.metadata = metadata


def measure_record_size(record: LogRecord) -> int:
    """
    Return the UTF-8 byte length of the record's canonical JSON form.

    The payload is what a structured sink would ship: message, level, channel,
    timestamp, context and metadata. Byte length (not character count) keeps
    multi-byte text honest.
    """
    payload = {
        "message": _record_message(record),
        "level": record.levelname,
        "channel": record.name,
        "timestamp": record.created,
        "context": getattr(record, "context", {}),
        "metadata": getattr(record, "metadata", {}),
    }
    try:
        serialized = json.dumps(payload, ensure_ascii=False, default=json_default)
    except (TypeError, ValueError, RecursionError):
        # circular structures survive sanitizing; fall back to their repr
        serialized = repr(payload)
    return len(serialized.encode("utf-8", errors="replace"))


def enrich_record(
    record: LogRecord,
    correlation: CorrelationSnapshot,
    size_threshold: int = DEFAULT_SIZE_THRESHOLD,
) -> LogRecord:
    """
    Merge correlation values into record.metadata and flag oversized records.

    Steps:
      1. Make sure record.context / record.metadata are dicts.
      2. Merge the four correlation fields, overwriting same-named keys.
         Absent values are written as None.
      3. Replace domain objects in context by plain mappings.
      4. Measure the serialized record; above `size_threshold` bytes set
         metadata["giant_log_detected"] = True.
    """
    _ensure_mappings(record)
    record.metadata.update(correlation.as_metadata())
    sanitize_context(record.context)

    if measure_record_size(record) > size_threshold:
        record.metadata[GIANT_LOG_FLAG] = True

    return record


class EnrichmentFilter(logging.Filter):
    """
    Handler filter that enriches every record passing through it.

    A fresh correlation snapshot is taken for each record. The filter keeps no
    per-record state, so one instance can serve several threads.
    """

    def __init__(self, size_threshold: int = DEFAULT_SIZE_THRESHOLD,
                 sources: CorrelationSources | None = None, name: str = ""):
        super().__init__(name)
        self.size_threshold = size_threshold
        self.sources = sources or CorrelationSources()

    def filter(self, record: LogRecord) -> bool:
        try:
            enrich_record(record, capture_correlation(self.sources), self.size_threshold)
        except Exception:
            # enrichment is best effort; the record is emitted regardless
            pass
        return True


__all__ = [
    "DEFAULT_SIZE_THRESHOLD",
    "GIANT_LOG_FLAG",
    "measure_record_size",
    "enrich_record",
    "EnrichmentFilter",
]
