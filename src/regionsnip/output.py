"""Image encoding.

Handles:
- Optional downscale before encoding (never after)
- Format selection from the destination extension (.jpg/.jpeg or PNG)
- JPEG quality, with a default-quality fallback
"""

import logging
import math
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

import gi
gi.require_version("GdkPixbuf", "2.0")
from gi.repository import GdkPixbuf, GLib

from .emit import emit
from .errors import EncodeFailure

log = logging.getLogger(__name__)

FORMAT_PNG = "png"
FORMAT_JPEG = "jpeg"
JPEG_EXTENSIONS = {".jpg", ".jpeg"}


def format_for_path(path: Union[str, Path]) -> str:
    """JPEG for .jpg/.jpeg (any case), PNG for everything else."""
    if Path(path).suffix.lower() in JPEG_EXTENSIONS:
        return FORMAT_JPEG
    return FORMAT_PNG


def scaled_size(width: int, height: int, scale: float) -> tuple[int, int]:
    """Target size for a downscale, or the original size if scale is not in (0, 1)."""
    if not 0 < scale < 1.0:
        return width, height
    # Round half up; never collapse to zero
    new_width = max(1, int(math.floor(width * scale + 0.5)))
    new_height = max(1, int(math.floor(height * scale + 0.5)))
    return new_width, new_height


@contextmanager
def _scaled(pixbuf: GdkPixbuf.Pixbuf, scale: float) -> Iterator[GdkPixbuf.Pixbuf]:
    """Yield the pixbuf to encode, resampling into a temporary copy if needed."""
    width, height = pixbuf.get_width(), pixbuf.get_height()
    new_width, new_height = scaled_size(width, height, scale)
    if (new_width, new_height) == (width, height):
        yield pixbuf
        return

    resized = pixbuf.scale_simple(new_width, new_height, GdkPixbuf.InterpType.HYPER)
    if resized is None:
        raise EncodeFailure(f"Could not resize image to {new_width}x{new_height}")
    log.debug("Resized %dx%d -> %dx%d", width, height, new_width, new_height)
    try:
        yield resized
    finally:
        del resized


def _jpeg_quality_supported() -> bool:
    for fmt in GdkPixbuf.Pixbuf.get_formats():
        if fmt.get_name() == FORMAT_JPEG:
            return fmt.is_writable() and fmt.is_save_option_supported("quality")
    return False


def _save(image: GdkPixbuf.Pixbuf, path: Path, output_format: str, quality: int) -> None:
    if output_format == FORMAT_JPEG:
        if _jpeg_quality_supported():
            image.savev(str(path), "jpeg", ["quality"], [str(quality)])
        else:
            log.debug("JPEG quality option unavailable, using encoder default")
            image.savev(str(path), "jpeg", [], [])
    else:
        image.savev(str(path), "png", [], [])


def encode(
    pixbuf: GdkPixbuf.Pixbuf,
    path: Union[str, Path],
    quality: int = 80,
    scale: float = 1.0,
) -> tuple[int, int]:
    """Encode a captured image and write it to path.

    The parent directory must already exist; an existing file is overwritten.

    Args:
        pixbuf: Captured pixels
        path: Destination; the extension selects JPEG or PNG
        quality: JPEG quality 1-100, ignored for PNG
        scale: Uniform downscale factor, applied when 0 < scale < 1

    Returns:
        (width, height) of the written image

    Raises:
        EncodeFailure: If resizing fails or the file cannot be written
    """
    path = Path(path)
    output_format = format_for_path(path)
    quality = max(1, min(100, int(quality)))

    with _scaled(pixbuf, scale) as image:
        width, height = image.get_width(), image.get_height()
        try:
            _save(image, path, output_format, quality)
        except GLib.Error as e:
            raise EncodeFailure(f"Could not write {path}: {e.message}")

    emit("artifact.created", {
        "file_path": str(path),
        "width": width,
        "height": height,
        "format": output_format,
    })
    log.debug("Wrote %s (%dx%d, %s)", path, width, height, output_format)
    return width, height
