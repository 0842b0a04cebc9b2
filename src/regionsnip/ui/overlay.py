"""Full virtual-desktop selection overlay."""

import logging
import os
import time
from typing import Callable, Optional

import cairo
import gi
gi.require_version("Gtk", "3.0")
gi.require_version("Gdk", "3.0")
from gi.repository import Gtk, Gdk

from ..capture import monitor_bounds, virtual_desktop_bounds
from ..config import Config, get_config
from ..errors import CaptureFailure
from ..geometry import Rect
from ..outcome import MODE_REGION, CaptureOutcome, Cancelled, Error
from ..pipeline import CaptureRequest, execute
from ..selection import SelectionController
from .drawing import draw_dimension_text, draw_prompt, draw_selection, draw_tint

log = logging.getLogger(__name__)


class SelectionOverlay(Gtk.Window):
    """Translucent always-on-top window covering the whole virtual desktop.

    Pointer coordinates arrive relative to the window, which is placed at the
    virtual-desktop origin, so the controller only has to add that origin.

    Wayland compositors ignore move() and move_resize() on toplevels, so there
    the window lands wherever the compositor puts it. On a single output that
    is the output origin; with several outputs the mapping may be off.
    """

    def __init__(
        self,
        bounds: Rect,
        prompt: str,
        output_path,
        capture: Callable[[Rect], object],
        config: Optional[Config] = None,
    ):
        super().__init__(title="RegionSnip")
        self.config = config or get_config()
        self.bounds = bounds
        self.prompt = prompt
        self._capture = capture
        self._seat: Optional[Gdk.Seat] = None

        self.controller = SelectionController(
            bounds.origin,
            output_path,
            self._capture_hidden,
            on_redraw=self.queue_draw,
            on_close=self._close,
        )

        # Window setup
        self.set_decorated(False)
        self.set_skip_taskbar_hint(True)
        self.set_skip_pager_hint(True)
        self.set_keep_above(True)
        self.set_app_paintable(True)

        visual = self.get_screen().get_rgba_visual()
        self._translucent = visual is not None
        if self._translucent:
            self.set_visual(visual)
        else:
            # No compositor: fall back to whole-window opacity
            log.debug("No RGBA visual, overlay will use window opacity")
            self.set_opacity(self.config.overlay_opacity)

        self.move(bounds.x, bounds.y)
        self.set_default_size(bounds.width, bounds.height)
        self.resize(bounds.width, bounds.height)

        self.add_events(
            Gdk.EventMask.BUTTON_PRESS_MASK
            | Gdk.EventMask.BUTTON_RELEASE_MASK
            | Gdk.EventMask.POINTER_MOTION_MASK
            | Gdk.EventMask.KEY_PRESS_MASK
        )
        self.connect("draw", self._on_draw)
        self.connect("map-event", self._on_map)
        self.connect("button-press-event", self._on_button_press)
        self.connect("button-release-event", self._on_button_release)
        self.connect("motion-notify-event", self._on_motion)
        self.connect("key-press-event", self._on_key_press)
        self.connect("destroy", self._on_destroy)

        self.show_all()

    def _on_map(self, widget, event):
        window = self.get_window()
        display = window.get_display()
        cursor = Gdk.Cursor.new_for_display(display, Gdk.CursorType.CROSSHAIR)
        window.set_cursor(cursor)
        window.move_resize(self.bounds.x, self.bounds.y, self.bounds.width, self.bounds.height)

        # Modal for the session: all pointer and keyboard input comes here
        seat = display.get_default_seat()
        status = seat.grab(window, Gdk.SeatCapabilities.ALL, True, cursor, None, None)
        if status == Gdk.GrabStatus.SUCCESS:
            self._seat = seat
        else:
            log.debug("Input grab failed: %s", status)
        self.present()
        return False

    def _on_draw(self, widget, cr):
        draw_tint(cr, self.config.overlay_opacity if self._translucent else 1.0)
        cr.set_operator(cairo.OPERATOR_OVER)

        draw_prompt(cr, self.prompt)

        selection = self.controller.state.selection
        if not selection.is_empty():
            draw_selection(cr, selection.x, selection.y, selection.width, selection.height)
            draw_dimension_text(cr, selection.x, selection.y, selection.width, selection.height)
        return False

    def _on_button_press(self, widget, event):
        # Ignore the synthesized double/triple-click events
        if event.type == Gdk.EventType.BUTTON_PRESS:
            self.controller.on_press(int(event.x), int(event.y), event.button)
        return True

    def _on_motion(self, widget, event):
        self.controller.on_motion(int(event.x), int(event.y))
        return True

    def _on_button_release(self, widget, event):
        self.controller.on_release(int(event.x), int(event.y), event.button)
        return True

    def _on_key_press(self, widget, event):
        if event.keyval == Gdk.KEY_Escape:
            self.controller.on_escape()
        return True

    def _release_grab(self):
        if self._seat is not None:
            self._seat.ungrab()
            self._seat = None

    def _capture_hidden(self, rect: Rect):
        """Hide the overlay, wait for it to leave the screen, then capture."""
        self._release_grab()
        self.hide()
        while Gtk.events_pending():
            Gtk.main_iteration_do(False)
        self.get_display().sync()
        if self.config.overlay_hide_delay_ms > 0:
            time.sleep(self.config.overlay_hide_delay_ms / 1000.0)
        return self._capture(rect)

    def _close(self):
        self._release_grab()
        self.destroy()

    def _on_destroy(self, widget):
        self.controller.on_destroyed()
        Gtk.main_quit()


def run_region_session(
    prompt: str,
    output_path,
    quality: int,
    scale: float,
    config: Optional[Config] = None,
) -> CaptureOutcome:
    """Run one interactive selection and capture the selected rectangle.

    Blocks in the GTK main loop until the user finishes a drag or presses
    Escape.

    Returns:
        The session outcome; Cancelled if the overlay closes without one
    """
    config = config or get_config()
    try:
        bounds = virtual_desktop_bounds(config)
    except CaptureFailure as e:
        log.error("Could not determine screen bounds: %s", e)
        return Error(str(e), MODE_REGION)
    log.debug("Virtual desktop: %s", bounds)
    if os.environ.get("WAYLAND_DISPLAY") and len(monitor_bounds(config)) > 1:
        log.warning("Overlay placement is not guaranteed on Wayland with several outputs")

    def capture(rect: Rect):
        return execute(CaptureRequest.build(rect, output_path, quality, scale), config)

    overlay = SelectionOverlay(bounds, prompt, output_path, capture, config)
    Gtk.main()
    return overlay.controller.outcome or Cancelled(MODE_REGION)
