# src/logenrich/core/logging/backtrace.py
"""
Bounded call-stack capture for the backtrace-aware message prefix.

Each StackFrame describes one *call*: the function that was called (and the
class of its bound `self`/`cls`) together with the place it was called from.
That pairing lets the formatter take the class and function from one entry and
the exact source line inside that function from the entry just below it:

    entries (innermost first)     function       call site
    [0] logging.Handler.format    format         logging/__init__.py:<emit line>
    ...
    [n-2] logging.Logger.info     info           orders.py:42   <- line
    [n-1] OrderService.place      place          api.py:17      <- class::function

When the window ends inside the logging package itself (logger.exception()
goes through Logger.error, the module-level logging.info() through
root.info), the walk continues until it leaves that package, the way
Logger.findCaller skips its own frames.

Only code objects and line numbers are read; argument values are never copied.
"""

import sys
from dataclasses import dataclass
from types import FrameType

# Modules whose frames never end a capture.
LOGGING_MODULES = ("logging",)


@dataclass(frozen=True)
class StackFrame:
    function: str | None = None
    type_name: str | None = None
    file: str | None = None
    line: int | None = None
    module: str | None = None


def _type_name(frame: FrameType) -> str | None:
    code = frame.f_code
    if not code.co_varnames or code.co_argcount == 0:
        return None

    first_arg = code.co_varnames[0]
    if first_arg not in ("self", "cls"):
        return None

    bound = frame.f_locals.get(first_arg)
    if bound is None:
        return None

    owner = bound if first_arg == "cls" and isinstance(bound, type) else type(bound)
    return f"{owner.__module__}.{owner.__qualname__}"


def capture_stack(depth: int, skip: int = 0,
                  extend_past: tuple[str, ...] = LOGGING_MODULES) -> list[StackFrame]:
    """
    Capture `depth` calls, innermost first.

    The first entry is the caller of the function that invoked capture_stack()
    (the invoking function itself is left out), shifted by `skip` more frames.
    A shallow stack simply yields fewer entries. While the outermost captured
    call belongs to a module in `extend_past`, one more call is captured.
    """
    if depth <= 0:
        return []

    try:
        frame = sys._getframe(2 + skip)
    except ValueError:
        return []

    frames: list[StackFrame] = []
    while frame is not None:
        if len(frames) >= depth and frames[-1].module not in extend_past:
            break
        caller = frame.f_back
        frames.append(
            StackFrame(
                function=frame.f_code.co_name,
                type_name=_type_name(frame),
                file=caller.f_code.co_filename if caller is not None else None,
                line=caller.f_lineno if caller is not None else None,
                module=frame.f_globals.get("__name__"),
            )
        )
        frame = caller

    return frames


__all__ = ["LOGGING_MODULES", "StackFrame", "capture_stack"]
