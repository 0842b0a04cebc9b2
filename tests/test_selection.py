from pathlib import Path

import pytest

from regionsnip.errors import CaptureFailure, EncodeFailure
from regionsnip.geometry import EMPTY_RECT, Point, Rect
from regionsnip.outcome import Cancelled, Error, Success
from regionsnip.selection import (
    DragState,
    Phase,
    SelectionController,
    cancel,
    move,
    press,
    release,
)

LEFT = 1
MIDDLE = 2
RIGHT = 3


class Recorder:
    """Stands in for the overlay: records captures, redraws and closes."""

    def __init__(self, error=None):
        self.captured = []
        self.redraws = 0
        self.closes = 0
        self.error = error

    def capture(self, rect):
        self.captured.append(rect)
        if self.error:
            raise self.error

    def redraw(self):
        self.redraws += 1

    def close(self):
        self.closes += 1


def make_controller(origin=Point(0, 0), error=None):
    recorder = Recorder(error)
    controller = SelectionController(
        origin,
        Path("/tmp/shot.png"),
        recorder.capture,
        on_redraw=recorder.redraw,
        on_close=recorder.close,
    )
    return controller, recorder


def drag(controller, start, end, steps=3):
    controller.on_press(start[0], start[1], LEFT)
    for i in range(1, steps + 1):
        x = start[0] + (end[0] - start[0]) * i // steps
        y = start[1] + (end[1] - start[1]) * i // steps
        controller.on_motion(x, y)
    controller.on_release(end[0], end[1], LEFT)


def test_initial_state_is_idle_with_empty_selection():
    state = DragState()

    assert state.phase is Phase.IDLE
    assert state.selection == EMPTY_RECT
    assert not state.is_dragging


def test_press_starts_drag_with_empty_selection():
    state = press(DragState(), Point(10, 20), LEFT)

    assert state.is_dragging
    assert state.anchor == state.current == Point(10, 20)
    assert state.selection == EMPTY_RECT


def test_move_keeps_selection_normalized():
    state = press(DragState(), Point(100, 100), LEFT)
    state = move(state, Point(40, 160))

    assert state.current == Point(40, 160)
    assert state.selection == Rect(40, 100, 60, 60)


def test_non_primary_press_and_idle_move_are_ignored():
    state = DragState()

    assert press(state, Point(1, 1), RIGHT) is state
    assert press(state, Point(1, 1), MIDDLE) is state
    assert move(state, Point(50, 50)) is state


def test_release_closes_with_final_selection():
    state = press(DragState(), Point(300, 250), LEFT)
    state = release(state, Point(100, 100), LEFT)

    assert state.phase is Phase.CLOSING
    assert state.selection == Rect(100, 100, 200, 150)


def test_cancel_discards_drag():
    state = move(press(DragState(), Point(0, 0), LEFT), Point(50, 50))
    state = cancel(state)

    assert state.phase is Phase.CLOSING
    assert state.selection == EMPTY_RECT


def test_drag_on_offset_desktop_captures_absolute_rect():
    controller, recorder = make_controller(origin=Point(-200, 0))

    drag(controller, (100, 100), (300, 250))

    assert recorder.captured == [Rect(-100, 100, 200, 150)]
    assert controller.outcome == Success(Path("/tmp/shot.png"), "region", Rect(-100, 100, 200, 150))
    assert controller.outcome.to_dict()["width"] == 200
    assert controller.outcome.to_dict()["height"] == 150
    assert recorder.closes == 1
    assert controller.closed


@pytest.mark.parametrize("end", [(104, 200), (200, 104)])
def test_small_selection_is_rejected_without_capture(end):
    controller, recorder = make_controller()

    drag(controller, (100, 100), end)

    assert recorder.captured == []
    assert controller.outcome == Error("Selection too small.", "region")
    assert recorder.closes == 1


def test_five_pixel_selection_is_accepted():
    controller, recorder = make_controller()

    drag(controller, (0, 0), (5, 5))

    assert recorder.captured == [Rect(0, 0, 5, 5)]
    assert isinstance(controller.outcome, Success)


def test_escape_before_press_cancels():
    controller, recorder = make_controller()

    controller.on_escape()

    assert controller.outcome == Cancelled("region")
    assert recorder.captured == []
    assert recorder.closes == 1


def test_escape_mid_drag_cancels_and_discards_rect():
    controller, recorder = make_controller()
    controller.on_press(10, 10, LEFT)
    controller.on_motion(200, 200)

    controller.on_escape()
    controller.on_release(200, 200, LEFT)

    assert controller.outcome == Cancelled("region")
    assert controller.state.selection == EMPTY_RECT
    assert recorder.captured == []
    assert recorder.closes == 1


def test_capture_failure_becomes_error_outcome():
    controller, recorder = make_controller(error=CaptureFailure("Could not read screen region"))

    drag(controller, (0, 0), (50, 50))

    assert controller.outcome == Error("Could not read screen region", "region")
    assert recorder.closes == 1


def test_unexpected_capture_exception_still_closes_session():
    controller, recorder = make_controller(error=TypeError("embedded null byte"))

    drag(controller, (0, 0), (50, 50))

    assert controller.outcome == Error("embedded null byte", "region")
    assert recorder.closes == 1
    assert controller.closed


def test_unexpected_capture_exception_without_message_uses_type_name():
    controller, _ = make_controller(error=RuntimeError())

    drag(controller, (0, 0), (50, 50))

    assert controller.outcome == Error("RuntimeError", "region")


def test_encode_failure_becomes_error_outcome():
    controller, _ = make_controller(error=EncodeFailure("Could not write /nope/x.png"))

    drag(controller, (0, 0), (50, 50))

    assert controller.outcome == Error("Could not write /nope/x.png", "region")


def test_redraw_follows_every_selection_change():
    controller, recorder = make_controller()

    controller.on_motion(5, 5)
    assert recorder.redraws == 0

    controller.on_press(0, 0, LEFT)
    controller.on_motion(10, 10)
    controller.on_motion(20, 30)

    assert recorder.redraws == 3
    assert controller.state.selection == Rect(0, 0, 20, 30)


def test_right_click_and_stray_release_are_ignored():
    controller, recorder = make_controller()

    controller.on_press(0, 0, RIGHT)
    controller.on_release(50, 50, LEFT)

    assert controller.state.phase is Phase.IDLE
    assert controller.outcome is None
    assert recorder.closes == 0


def test_events_after_close_are_ignored():
    controller, recorder = make_controller()
    controller.on_escape()

    controller.on_press(0, 0, LEFT)
    controller.on_motion(100, 100)
    controller.on_release(100, 100, LEFT)
    controller.on_escape()

    assert controller.outcome == Cancelled("region")
    assert recorder.captured == []
    assert recorder.closes == 1


def test_destroyed_without_outcome_counts_as_cancel():
    controller, _ = make_controller()
    controller.on_press(0, 0, LEFT)

    controller.on_destroyed()

    assert controller.outcome == Cancelled("region")


def test_destroyed_keeps_existing_outcome():
    controller, _ = make_controller()
    drag(controller, (0, 0), (2, 2))

    controller.on_destroyed()

    assert controller.outcome == Error("Selection too small.", "region")
