"""Capture + encode pipeline and the non-interactive full capture."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .capture import capture_region, monitor_bounds, virtual_desktop_bounds
from .config import Config, get_config
from .emit import emit
from .errors import CaptureFailure, EncodeFailure
from .geometry import Rect, clamp_monitor_index
from .outcome import MODE_FULL, CaptureOutcome, Error, Success
from .output import encode, format_for_path

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CaptureRequest:
    """A single capture, built once the target rectangle is known."""

    rect: Rect
    output_path: Path
    output_format: str
    quality: int
    scale: float

    @classmethod
    def build(cls, rect: Rect, output_path, quality: int, scale: float) -> "CaptureRequest":
        output_path = Path(output_path)
        return cls(
            rect=rect,
            output_path=output_path,
            output_format=format_for_path(output_path),
            quality=quality,
            scale=scale,
        )


def execute(request: CaptureRequest, config: Optional[Config] = None) -> tuple[int, int]:
    """Capture the request's rectangle and encode it to its output path.

    Returns:
        (width, height) of the written image

    Raises:
        CaptureFailure: If the screen cannot be read
        EncodeFailure: If the image cannot be written
    """
    pixbuf = capture_region(request.rect, config)
    try:
        return encode(pixbuf, request.output_path, request.quality, request.scale)
    finally:
        del pixbuf


def resolve_full_bounds(
    capture_all: bool,
    monitor_index: int,
    config: Optional[Config] = None,
) -> tuple[Rect, int]:
    """Target bounds for a full capture and the monitor index actually used."""
    config = config or get_config()
    if capture_all:
        return virtual_desktop_bounds(config), monitor_index

    monitors = monitor_bounds(config)
    if not monitors:
        log.debug("No monitors enumerated, using virtual desktop")
        return virtual_desktop_bounds(config), monitor_index

    index = clamp_monitor_index(monitor_index, len(monitors))
    if index != monitor_index:
        log.debug("Monitor index %d out of range, using %d", monitor_index, index)
    return monitors[index], index


def run_full_capture(
    capture_all: bool,
    monitor_index: int,
    output_path,
    quality: int,
    scale: float,
    config: Optional[Config] = None,
) -> CaptureOutcome:
    """Capture the whole virtual desktop or one monitor without any UI."""
    config = config or get_config()
    try:
        bounds, index = resolve_full_bounds(capture_all, monitor_index, config)
        request = CaptureRequest.build(bounds, output_path, quality, scale)
        execute(request, config)
    except (CaptureFailure, EncodeFailure) as e:
        emit("error.handled", {"error_type": type(e).__name__, "message": str(e), "mode": MODE_FULL})
        log.error("Capture failed: %s", e)
        return Error(str(e), MODE_FULL)

    return Success(
        path=request.output_path,
        mode=MODE_FULL,
        rect=bounds,
        monitor_index=None if capture_all else index,
        capture_all=capture_all,
    )
