"""Selection state machine for the interactive overlay.

DragState is a plain value; press/move/release/cancel are pure transitions
returning a new state. SelectionController feeds toolkit events through
those transitions and turns the end of a drag into exactly one outcome.

    IDLE --press(primary)--> DRAGGING --release(primary)--> CLOSING
    IDLE|DRAGGING --Escape--> CLOSING

Nothing here imports GTK; the overlay window in regionsnip.ui supplies the
events, a redraw callback and a close callback.
"""

import enum
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Optional

from .emit import emit
from .errors import CaptureFailure, EncodeFailure, SelectionTooSmall
from .geometry import EMPTY_RECT, Point, Rect, normalize_rect, to_absolute
from .outcome import MODE_REGION, CaptureOutcome, Cancelled, Error, Success

log = logging.getLogger(__name__)

PRIMARY_BUTTON = 1
MIN_SELECTION_SIZE = 5
SELECTION_TOO_SMALL = "Selection too small."


class Phase(enum.Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    CLOSING = "closing"


@dataclass(frozen=True)
class DragState:
    phase: Phase = Phase.IDLE
    anchor: Point = Point(0, 0)
    current: Point = Point(0, 0)
    selection: Rect = EMPTY_RECT

    @property
    def is_dragging(self) -> bool:
        return self.phase is Phase.DRAGGING


def press(state: DragState, point: Point, button: int) -> DragState:
    """Start a drag at point. A second primary press restarts the drag."""
    if state.phase is Phase.CLOSING or button != PRIMARY_BUTTON:
        return state
    return DragState(Phase.DRAGGING, anchor=point, current=point, selection=EMPTY_RECT)


def move(state: DragState, point: Point) -> DragState:
    if not state.is_dragging:
        return state
    return replace(state, current=point, selection=normalize_rect(state.anchor, point))


def release(state: DragState, point: Point, button: int) -> DragState:
    if not state.is_dragging or button != PRIMARY_BUTTON:
        return state
    return replace(
        state,
        phase=Phase.CLOSING,
        current=point,
        selection=normalize_rect(state.anchor, point),
    )


def cancel(state: DragState) -> DragState:
    """Close the session, discarding any drag in progress."""
    if state.phase is Phase.CLOSING:
        return state
    return DragState(Phase.CLOSING)


def check_selection(rect: Rect) -> None:
    """Raise SelectionTooSmall if either side is below the minimum."""
    if rect.width < MIN_SELECTION_SIZE or rect.height < MIN_SELECTION_SIZE:
        raise SelectionTooSmall(SELECTION_TOO_SMALL)


class SelectionController:
    """Runs one interactive session and produces its outcome.

    Args:
        origin: Virtual-desktop origin the overlay surface is placed at
        output_path: Destination reported in the success outcome
        capture: Called with the absolute rectangle; captures and encodes it,
            raising CaptureFailure or EncodeFailure on failure
        on_redraw: Called whenever the visible selection changes
        on_close: Called once, after the outcome is set
    """

    def __init__(
        self,
        origin: Point,
        output_path,
        capture: Callable[[Rect], object],
        on_redraw: Optional[Callable[[], None]] = None,
        on_close: Optional[Callable[[], None]] = None,
    ):
        self.origin = origin
        self.output_path = Path(output_path)
        self.state = DragState()
        self.outcome: Optional[CaptureOutcome] = None
        self._capture = capture
        self._on_redraw = on_redraw
        self._on_close = on_close

    @property
    def closed(self) -> bool:
        return self.state.phase is Phase.CLOSING

    def _update(self, state: DragState) -> bool:
        changed = state != self.state
        self.state = state
        if changed and self._on_redraw:
            self._on_redraw()
        return changed

    def on_press(self, x: int, y: int, button: int) -> None:
        self._update(press(self.state, Point(x, y), button))

    def on_motion(self, x: int, y: int) -> None:
        self._update(move(self.state, Point(x, y)))

    def on_release(self, x: int, y: int, button: int) -> None:
        if not self.state.is_dragging or button != PRIMARY_BUTTON:
            return
        self._update(release(self.state, Point(x, y), button))
        self._finish(self._complete(self.state.selection))

    def on_escape(self) -> None:
        if self.closed:
            return
        log.debug("Selection cancelled")
        self._update(cancel(self.state))
        self._finish(Cancelled(MODE_REGION))

    def on_destroyed(self) -> None:
        """Overlay went away without an outcome (e.g. closed by the WM)."""
        if self.outcome is None:
            self.state = cancel(self.state)
            self.outcome = Cancelled(MODE_REGION)

    def _complete(self, selection: Rect) -> CaptureOutcome:
        try:
            check_selection(selection)
        except SelectionTooSmall as e:
            log.info("Selection %dx%d below minimum", selection.width, selection.height)
            return Error(str(e), MODE_REGION)

        rect = to_absolute(selection, self.origin)
        try:
            self._capture(rect)
        except (CaptureFailure, EncodeFailure) as e:
            emit("error.handled", {"error_type": type(e).__name__, "message": str(e), "mode": MODE_REGION})
            log.error("Capture failed: %s", e)
            return Error(str(e), MODE_REGION)
        except Exception as e:
            # The overlay is already hidden; the session must still close
            emit("error.handled", {"error_type": type(e).__name__, "message": str(e), "mode": MODE_REGION})
            log.exception("Unexpected capture failure")
            return Error(str(e) or type(e).__name__, MODE_REGION)

        return Success(path=self.output_path, mode=MODE_REGION, rect=rect)

    def _finish(self, outcome: CaptureOutcome) -> None:
        self.outcome = outcome
        if self._on_close:
            self._on_close()
