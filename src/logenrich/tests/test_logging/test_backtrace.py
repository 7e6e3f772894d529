# src/logenrich/tests/test_logging/test_backtrace.py
import inspect

from logenrich.core.logging.backtrace import StackFrame, capture_stack


def _capture(depth):
    return capture_stack(depth)


class Service:
    def run(self, depth):
        return _capture(depth)

    @classmethod
    def run_cls(cls, depth):
        return _capture(depth)


def test_first_frame_is_callers_caller():
    frames, call_line = Service().run(2), inspect.currentframe().f_lineno
    # _capture itself is left out; the first entry is the call into Service.run
    first, second = frames
    assert first.function == "run"
    assert first.type_name == f"{Service.__module__}.Service"
    assert first.file == __file__
    assert first.line == call_line
    assert second.function == "test_first_frame_is_callers_caller"
    assert second.type_name is None


def test_classmethod_reports_the_class():
    frames = Service.run_cls(1)
    assert frames[0].type_name == f"{Service.__module__}.Service"


def test_depth_bounds_the_capture():
    assert len(Service().run(3)) == 3
    assert capture_stack(0) == []


def test_shallow_stack_returns_what_exists():
    frames = Service().run(10_000)
    assert 2 < len(frames) < 10_000
    assert all(isinstance(frame, StackFrame) for frame in frames)


def test_skip_moves_the_window_outwards():
    direct = Service().run(3)
    assert direct[0].function == "run"

    def outer():
        return capture_stack(2, skip=1)

    def wrapper():
        return outer()

    frames = wrapper()
    # outer and wrapper are both skipped; wrapper's caller is described first
    assert frames[0].function == "test_skip_moves_the_window_outwards"


def test_capture_continues_past_listed_modules():
    def capture_here(depth):
        return capture_stack(depth, extend_past=(__name__,))

    frames = capture_here(1)
    # every frame of this module is walked past until a foreign caller is reached
    assert len(frames) > 1
    assert all(frame.module == __name__ for frame in frames[:-1])
    assert frames[-1].module != __name__


def test_entries_record_their_module():
    frames = Service().run(2)
    assert {frame.module for frame in frames} == {__name__}
