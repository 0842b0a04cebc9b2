"""Screen buffer reader.

Reads pixels from the virtual desktop (the union of all monitors) into a
GdkPixbuf. Two backends are available:

- gdk: reads the X11 root window directly
- wayland-capture: shells out to the wayland-capture binary, one call per
  output that the requested rectangle touches

All rectangles passed in and returned are in absolute virtual-desktop
coordinates.
"""

import json
import logging
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Optional

import gi
gi.require_version("Gdk", "3.0")
gi.require_version("GdkPixbuf", "2.0")
from gi.repository import Gdk, GdkPixbuf, GLib

from .config import Config, get_config
from .errors import CaptureFailure
from .geometry import Rect, intersect_rect, union_rect

log = logging.getLogger(__name__)

BACKEND_GDK = "gdk"
BACKEND_WAYLAND = "wayland-capture"


def resolve_backend(config: Optional[Config] = None) -> str:
    """Pick the screen reading backend for this session."""
    config = config or get_config()
    backend = config.capture_backend
    if backend != "auto":
        return backend
    if os.environ.get("WAYLAND_DISPLAY") and shutil.which(config.wayland_capture):
        return BACKEND_WAYLAND
    return BACKEND_GDK


# --- gdk backend ---------------------------------------------------------


def _gdk_display() -> Gdk.Display:
    display = Gdk.Display.get_default()
    if display is None:
        raise CaptureFailure("No display available")
    return display


def _gdk_monitors() -> list[Rect]:
    display = _gdk_display()
    monitors = []
    for i in range(display.get_n_monitors()):
        geometry = display.get_monitor(i).get_geometry()
        monitors.append(Rect(geometry.x, geometry.y, geometry.width, geometry.height))
    return monitors


def _gdk_root_bounds() -> Rect:
    root = Gdk.get_default_root_window()
    if root is None:
        raise CaptureFailure("No root window available")
    x, y, width, height = root.get_geometry()
    return Rect(x, y, width, height)


def _gdk_capture(rect: Rect) -> GdkPixbuf.Pixbuf:
    root = Gdk.get_default_root_window()
    if root is None:
        raise CaptureFailure("No root window available")
    pixbuf = Gdk.pixbuf_get_from_window(root, rect.x, rect.y, rect.width, rect.height)
    if pixbuf is None:
        raise CaptureFailure(
            f"Could not read screen region {rect.width}x{rect.height} at {rect.x},{rect.y}"
        )
    return pixbuf


# --- wayland-capture backend ---------------------------------------------


def _wl_outputs(config: Config) -> list[dict]:
    """List outputs as dicts with keys: name, x, y, width, height."""
    try:
        result = subprocess.run(
            [config.wayland_capture, "--list", "--json"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0:
            data = json.loads(result.stdout)
            return data.get("outputs", [])
        log.warning("Could not list outputs: %s", result.stderr.strip())
    except (OSError, subprocess.TimeoutExpired, ValueError) as e:
        log.warning("Could not list outputs: %s", e)
    return []


def _output_rect(output: dict) -> Rect:
    return Rect(
        int(output.get("x", 0)),
        int(output.get("y", 0)),
        int(output.get("width", 0)),
        int(output.get("height", 0)),
    )


def _wl_capture_output(name: str, local: Rect, config: Config) -> GdkPixbuf.Pixbuf:
    """Capture an output-relative rectangle of one output."""
    tmp = tempfile.NamedTemporaryFile(suffix=".png", delete=False)
    temp_path = Path(tmp.name)
    tmp.close()

    try:
        result = subprocess.run(
            [
                config.wayland_capture,
                "--output", name,
                "--region", f"{local.x},{local.y},{local.width},{local.height}",
                "--output-file", str(temp_path),
            ],
            capture_output=True,
            text=True,
            timeout=10,
        )
        if result.returncode != 0:
            raise CaptureFailure(f"Region capture failed: {result.stderr.strip()}")
        return GdkPixbuf.Pixbuf.new_from_file(str(temp_path))
    except subprocess.TimeoutExpired:
        raise CaptureFailure("Region capture timed out")
    except FileNotFoundError:
        raise CaptureFailure(f"wayland-capture not found: {config.wayland_capture}")
    except GLib.Error as e:
        raise CaptureFailure(f"Could not load captured region: {e.message}")
    finally:
        temp_path.unlink(missing_ok=True)


def _wl_capture(rect: Rect, config: Config) -> GdkPixbuf.Pixbuf:
    dest = GdkPixbuf.Pixbuf.new(GdkPixbuf.Colorspace.RGB, False, 8, rect.width, rect.height)
    if dest is None:
        raise CaptureFailure(f"Could not allocate a {rect.width}x{rect.height} buffer")
    dest.fill(0x000000FF)

    covered = False
    for output in _wl_outputs(config):
        bounds = _output_rect(output)
        part = intersect_rect(rect, bounds)
        if part is None:
            continue
        local = Rect(part.x - bounds.x, part.y - bounds.y, part.width, part.height)
        piece = _wl_capture_output(output.get("name", ""), local, config)
        piece.copy_area(
            0, 0,
            min(piece.get_width(), part.width),
            min(piece.get_height(), part.height),
            dest,
            part.x - rect.x,
            part.y - rect.y,
        )
        covered = True

    if not covered:
        raise CaptureFailure(
            f"Region {rect.width}x{rect.height} at {rect.x},{rect.y} is outside every output"
        )
    return dest


# --- public API ----------------------------------------------------------


def monitor_bounds(config: Optional[Config] = None) -> list[Rect]:
    """Bounds of each physical monitor, in enumeration order.

    Returns:
        List of monitor rectangles (may be empty)
    """
    config = config or get_config()
    if resolve_backend(config) == BACKEND_WAYLAND:
        return [_output_rect(o) for o in _wl_outputs(config)]
    return _gdk_monitors()


def virtual_desktop_bounds(config: Optional[Config] = None) -> Rect:
    """Bounding rectangle of all monitors, queried fresh on every call.

    Raises:
        CaptureFailure: If no screen geometry is available
    """
    config = config or get_config()
    bounds = union_rect(monitor_bounds(config))
    if bounds is not None:
        return bounds
    if resolve_backend(config) == BACKEND_WAYLAND:
        raise CaptureFailure("No outputs available")
    return _gdk_root_bounds()


def capture_region(rect: Rect, config: Optional[Config] = None) -> GdkPixbuf.Pixbuf:
    """Read exactly rect.width x rect.height pixels starting at (rect.x, rect.y).

    Args:
        rect: Absolute virtual-desktop rectangle
        config: Configuration object. If None, uses global config.

    Returns:
        Pixbuf of the requested size

    Raises:
        CaptureFailure: If the size is not positive or the region cannot be read
    """
    if rect.width < 1 or rect.height < 1:
        raise CaptureFailure(f"Invalid capture size: {rect.width}x{rect.height}")

    config = config or get_config()
    backend = resolve_backend(config)
    log.debug("Capturing %s via %s", rect, backend)

    if backend == BACKEND_WAYLAND:
        return _wl_capture(rect, config)
    if backend == BACKEND_GDK:
        return _gdk_capture(rect)
    raise CaptureFailure(f"Unknown capture backend: {backend}")
