# src/logenrich/core/logging/errors.py
"""
Exception rendering for log lines.

Exceptions are first described as one of two plain variants, then rendered:

    StandardError -> [object] (pkg.FooError(code: 7): boom at /app/foo.py:42)
    FaultError    -> [object] (logenrich.exceptions.base.SoapFault(code: 0 faultcode: soap:Server): ...)

With stacktraces enabled the traceback follows in a "[stacktrace]" block.
"""

import json
import traceback
from dataclasses import dataclass
from typing import Any, Callable, Union

from logenrich.exceptions import SoapFault
from .sanitize import json_default

LineFilter = Callable[[str], Any]


@dataclass(frozen=True)
class StandardError:
    type_name: str = "Unknown"
    code: Any = 0
    message: str = ""
    file: str = "unknown"
    line: int = -1
    trace: str = ""


@dataclass(frozen=True)
class FaultError(StandardError):
    faultcode: str | None = None
    faultactor: str | None = None
    detail: Any = None


ErrorDescription = Union[StandardError, FaultError]


def _qualified_name(exc: BaseException) -> str:
    cls = type(exc)
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def _error_code(exc: BaseException) -> Any:
    code = getattr(exc, "code", None)
    if code is None:
        code = getattr(exc, "errno", None)
    return 0 if code is None else code


def describe_exception(exc: BaseException) -> ErrorDescription:
    """
    Build the plain description of `exc`. Missing parts fall back to the
    dataclass defaults ("unknown" file, line -1, empty trace).
    """
    fields: dict[str, Any] = {
        "type_name": _qualified_name(exc),
        "code": _error_code(exc),
        "message": str(exc),
    }

    tb = exc.__traceback__
    if tb is not None:
        # the innermost frame is where the exception was raised
        last = tb
        while last.tb_next is not None:
            last = last.tb_next
        fields["file"] = last.tb_frame.f_code.co_filename
        fields["line"] = last.tb_lineno
        fields["trace"] = "".join(traceback.format_tb(tb)).rstrip("\n")

    if isinstance(exc, SoapFault):
        return FaultError(
            faultcode=exc.faultcode,
            faultactor=exc.faultactor,
            detail=exc.detail,
            **fields,
        )
    return StandardError(**fields)


def _fault_details(error: FaultError) -> str:
    text = ""
    if error.faultcode is not None:
        text += f" faultcode: {error.faultcode}"
    if error.faultactor is not None:
        text += f" faultactor: {error.faultactor}"
    # scalar details other than strings are not rendered
    if isinstance(error.detail, str):
        text += f" detail: {error.detail}"
    elif isinstance(error.detail, (dict, list, tuple)):
        detail = json.dumps(error.detail, indent=4, ensure_ascii=False, default=json_default)
        text += f" detail: {detail}"
    return text


def filter_trace(trace: str, line_filter: LineFilter) -> str:
    """
    Map every trace line through `line_filter`, dropping lines it blanks out.
    """
    lines = (line_filter(line) for line in trace.split("\n"))
    return "\n".join(str(line) for line in lines if line)


def render_error(
    error: ErrorDescription,
    include_stacktraces: bool = False,
    line_filter: LineFilter | None = None,
) -> str:
    text = f"[object] ({error.type_name}(code: {error.code}"
    if isinstance(error, FaultError):
        text += _fault_details(error)
    text += f"): {error.message} at {error.file}:{error.line})"

    if include_stacktraces:
        trace = error.trace
        if line_filter is not None:
            trace = filter_trace(trace, line_filter)
        text += f"\n[stacktrace]\n{trace}\n"

    return text


__all__ = [
    "StandardError",
    "FaultError",
    "ErrorDescription",
    "describe_exception",
    "filter_trace",
    "render_error",
]
