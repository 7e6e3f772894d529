# src/logenrich/core/logging/formatters.py

"""
Formatters that turn enriched records into log lines.

This module provides two formatters:

  - EnrichedLineFormatter: one human-readable line per record. It
      1. prefixes the message with the calling location
         ("pkg.OrderService::place(L42): "), found by walking the call stack
         `backtrace_depth` calls up from the formatter;
      2. inlines the correlation fields from record.metadata into the message
         ("... (trace_id=abc client_ip=10.0.0.1 is_console=true)"), skipping
         empty values;
      3. removes those fields from the metadata so they are not logged twice;
      4. renders exceptions as
         "[object] (pkg.FooError(code: 7): boom at /app/foo.py:42)", followed by
         a "[stacktrace]" block when stacktraces are enabled.
     Final layout (time, level, logger, key=value context) is left to
     logging.Formatter with DEFAULT_FORMAT.

  - EnrichedJsonFormatter: the same message pipeline, emitted as one JSON
    object per record for log collectors.

Configuration is an immutable FormatterConfig. `with_backtrace_depth()` and
`with_stacktraces()` return new formatters instead of mutating a shared one,
and format() keeps no per-call state on the instance, so a formatter can be
shared by threads.

format() never mutates the incoming record: handlers that share a record
each see the original metadata.

How to use:
    formatter = (
        EnrichedLineFormatter()
        .with_backtrace_depth(8)
        .with_stacktraces(True, lambda line: None if "site-packages" in line else line)
    )
    handler.setFormatter(formatter)

or from dictConfig:
    "formatters": {
        "enriched": {"()": EnrichedLineFormatter, "backtrace_depth": 8, "include_stacktraces": True},
    }
"""

import copy
import json
import logging
from dataclasses import dataclass, replace
from logging import LogRecord
from typing import Any, Callable

from .backtrace import StackFrame, capture_stack
from .errors import LineFilter, describe_exception, render_error
from .sanitize import json_default, sanitize_context

# Metadata fields inlined into the message, in output order.
INLINE_FIELDS = (
    "trace_id",
    "client_ip",
    "user_id",
    "is_console",
    "giant_log_detected",
)

DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s%(context_text)s%(metadata_text)s"

_NAMESPACE_SEPARATORS = ("\\", "::", "/")

StackProvider = Callable[[int, int], list[StackFrame]]


@dataclass(frozen=True)
class FormatterConfig:
    """
    - backtrace_depth: number of calls between the formatter and the code that
      logged. 0 disables the location prefix. A direct `logger.info()` handled
      by a stdlib StreamHandler needs 8; add one per wrapping helper. Extra
      frames inside the logging package (logger.exception(), logging.info())
      are walked past by capture_stack.
    - include_stacktraces: append the "[stacktrace]" block to rendered exceptions.
    - stacktrace_filter: optional callable applied to every stacktrace line;
      lines it maps to a falsy value are dropped.
    - stack_provider: callable(depth, skip) returning StackFrames, innermost first.
    """

    backtrace_depth: int = 0
    include_stacktraces: bool = False
    stacktrace_filter: LineFilter | None = None
    stack_provider: StackProvider = capture_stack


def _dotted(type_name: str) -> str:
    for separator in _NAMESPACE_SEPARATORS:
        type_name = type_name.replace(separator, ".")
    return type_name


def backtrace_prefix(frames: list[StackFrame], depth: int) -> str | None:
    """
    Build "<class>::<function>(L<line>): " from captured frames.

    The outermost captured call (the grandparent) gives class and function;
    the one below it (the parent) gives the line inside that function.
    Returns None when fewer than `depth` calls were captured.
    """
    if len(frames) < max(depth, 2):
        return None

    grandparent = frames[-1]
    parent = frames[-2]

    type_name = _dotted(grandparent.type_name or "Unknown")
    function = grandparent.function or "unknown"
    line = parent.line if parent.line is not None else -1
    return f"{type_name}::{function}(L{line}): "


def _inline_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def inline_fields(message: str, metadata: dict[str, Any]) -> str:
    """
    Append the non-empty INLINE_FIELDS as " (key=value key=value)".
    """
    pairs = [
        f"{field}={_inline_value(metadata[field])}"
        for field in INLINE_FIELDS
        if metadata.get(field)
    ]
    if not pairs:
        return message
    return f"{message} ({' '.join(pairs)})"


def extract_fields(metadata: dict[str, Any]) -> dict[str, Any]:
    """
    Return a copy of `metadata` without any of the INLINE_FIELDS.
    """
    return {key: value for key, value in metadata.items() if key not in INLINE_FIELDS}


class EnrichedLineFormatter(logging.Formatter):
    """
    Line formatter for records enriched by EnrichmentFilter.

    Construction:
      - fmt / datefmt: as for logging.Formatter (fmt defaults to DEFAULT_FORMAT,
        which needs the %(context_text)s and %(metadata_text)s fields this class sets).
      - config: a FormatterConfig; the individual keyword arguments
        (backtrace_depth, include_stacktraces, stacktrace_filter, stack_provider)
        override its fields, which is what dictConfig passes.
    """

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        *,
        config: FormatterConfig | None = None,
        backtrace_depth: int | None = None,
        include_stacktraces: bool | None = None,
        stacktrace_filter: LineFilter | None = None,
        stack_provider: StackProvider | None = None,
    ) -> None:
        super().__init__(fmt=fmt or DEFAULT_FORMAT, datefmt=datefmt)
        overrides = {
            "backtrace_depth": backtrace_depth,
            "include_stacktraces": include_stacktraces,
            "stacktrace_filter": stacktrace_filter,
            "stack_provider": stack_provider,
        }
        self.config = replace(
            config or FormatterConfig(),
            **{key: value for key, value in overrides.items() if value is not None},
        )

    # --- configuration (returns new formatters) ---

    def with_config(self, config: FormatterConfig) -> "EnrichedLineFormatter":
        clone = copy.copy(self)
        clone.config = config
        return clone

    def with_backtrace_depth(self, depth: int) -> "EnrichedLineFormatter":
        return self.with_config(replace(self.config, backtrace_depth=depth))

    def with_stacktraces(self, include: bool = True,
                         line_filter: LineFilter | None = None) -> "EnrichedLineFormatter":
        # turning stacktraces off keeps a previously configured filter
        line_filter = line_filter if include else self.config.stacktrace_filter
        return self.with_config(
            replace(self.config, include_stacktraces=include, stacktrace_filter=line_filter)
        )

    # --- message pipeline ---

    def _capture_frames(self) -> list[StackFrame]:
        # must be called directly from format() / render_message(): skip=1
        # drops this helper so the first frame is the formatter's caller
        depth = self.config.backtrace_depth
        if not depth:
            return []
        try:
            return self.config.stack_provider(depth, 1)
        except Exception:
            return []

    def _render_message(self, record: LogRecord, frames: list[StackFrame],
                        metadata: dict[str, Any]) -> str:
        try:
            message = record.getMessage()
        except Exception:
            message = str(record.msg)

        prefix = backtrace_prefix(frames, self.config.backtrace_depth) if frames else None
        if prefix:
            message = prefix + message

        return inline_fields(message, metadata)

    def render_message(self, record: LogRecord) -> str:
        """
        Return the decorated message: location prefix plus inlined fields.
        """
        frames = self._capture_frames()
        metadata = getattr(record, "metadata", None) or {}
        return self._render_message(record, frames, metadata)

    def render_exception(self, exc: BaseException) -> str:
        try:
            return render_error(
                describe_exception(exc),
                self.config.include_stacktraces,
                self.config.stacktrace_filter,
            )
        except Exception:
            return f"[object] ({type(exc).__qualname__})"

    def _render_value(self, value: Any) -> str:
        if isinstance(value, BaseException):
            return self.render_exception(value)
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        if value is None:
            return "null"
        if isinstance(value, (int, float)):
            return str(value)
        try:
            return json.dumps(value, ensure_ascii=False, default=json_default)
        except (TypeError, ValueError, RecursionError):
            return json_default(value)

    def _render_pairs(self, data: dict[str, Any]) -> str:
        if not data:
            return ""
        return " " + " ".join(f"{key}={self._render_value(value)}" for key, value in data.items())

    def _prepare(self, record: LogRecord, frames: list[StackFrame]) -> LogRecord:
        """
        Build the decorated copy of `record` that the layout step formats.
        """
        metadata = getattr(record, "metadata", None)
        metadata = dict(metadata) if isinstance(metadata, dict) else {}
        context = getattr(record, "context", None)
        context = sanitize_context(dict(context)) if isinstance(context, dict) else {}

        prepared = logging.makeLogRecord(record.__dict__)
        prepared.msg = self._render_message(record, frames, metadata)
        prepared.args = ()
        prepared.context = context
        prepared.metadata = extract_fields(metadata)
        prepared.context_text = self._render_pairs(prepared.context)
        prepared.metadata_text = self._render_pairs(prepared.metadata)
        # exc_text may have been cached by another handler's formatter
        prepared.exc_text = None
        return prepared

    def _plain_copy(self, record: LogRecord) -> LogRecord:
        plain = logging.makeLogRecord(record.__dict__)
        plain.context = {}
        plain.metadata = {}
        plain.context_text = ""
        plain.metadata_text = ""
        plain.exc_text = None
        return plain

    def format(self, record: LogRecord) -> str:
        frames = self._capture_frames()
        try:
            prepared = self._prepare(record, frames)
            return super().format(prepared)
        except Exception:
            pass

        # decoration failed: emit the undecorated line rather than nothing
        try:
            return super().format(self._plain_copy(record))
        except Exception:
            return str(record.msg)

    def formatException(self, ei) -> str:
        exc = ei[1] if ei else None
        if exc is None:
            return ""
        return self.render_exception(exc)


class EnrichedJsonFormatter(EnrichedLineFormatter):
    """
    Structured JSON variant of EnrichedLineFormatter.

    Emits {"timestamp", "level", "logger", "message", "context", "metadata",
    "service", "env"} plus "exception" / "stack_info" when present. The message
    carries the same prefix and inlined fields as the line format.
    """

    def __init__(self, *, env: str | None = None, service: str = "logenrich",
                 datefmt: str | None = None, **options: Any) -> None:
        super().__init__(datefmt=datefmt, **options)
        self.env = env
        self.service = service

    def format(self, record: LogRecord) -> str:
        frames = self._capture_frames()
        try:
            prepared = self._prepare(record, frames)
        except Exception:
            prepared = self._plain_copy(record)

        log_record: dict[str, Any] = {
            "timestamp": self.formatTime(prepared, self.datefmt),
            "level": prepared.levelname,
            "logger": prepared.name,
            "message": prepared.getMessage(),
            "context": prepared.context,
            "metadata": prepared.metadata,
            "service": self.service,
            "env": self.env,
        }

        if prepared.exc_info:
            exception = self.formatException(prepared.exc_info)
            if exception:
                log_record["exception"] = exception
        if prepared.stack_info:
            log_record["stack_info"] = self.formatStack(prepared.stack_info)

        try:
            return json.dumps(log_record, ensure_ascii=False, default=json_default)
        except (TypeError, ValueError, RecursionError):
            log_record["context"] = json_default(log_record["context"])
            log_record["metadata"] = json_default(log_record["metadata"])
            return json.dumps(log_record, ensure_ascii=False, default=json_default)


__all__ = [
    "INLINE_FIELDS",
    "DEFAULT_FORMAT",
    "FormatterConfig",
    "backtrace_prefix",
    "inline_fields",
    "extract_fields",
    "EnrichedLineFormatter",
    "EnrichedJsonFormatter",
]
