"""Rectangle and point helpers shared by the overlay and capture code.

All rectangles are integer pixel rectangles with a top-left origin and
non-negative size. Two coordinate spaces are in use:

- overlay-local: relative to the overlay surface's top-left corner
- absolute: the virtual-desktop coordinate space used by the screen reader
"""

from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class Point:
    x: int
    y: int


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    width: int
    height: int

    @property
    def left(self) -> int:
        return self.x

    @property
    def top(self) -> int:
        return self.y

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def origin(self) -> Point:
        return Point(self.x, self.y)

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def to_dict(self) -> dict:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }


EMPTY_RECT = Rect(0, 0, 0, 0)


def normalize_rect(a: Point, b: Point) -> Rect:
    """Build the axis-aligned rectangle spanned by two arbitrary points."""
    x1, x2 = min(a.x, b.x), max(a.x, b.x)
    y1, y2 = min(a.y, b.y), max(a.y, b.y)
    return Rect(x1, y1, x2 - x1, y2 - y1)


def to_absolute(rect: Rect, origin: Point) -> Rect:
    """Translate an overlay-local rectangle into virtual-desktop coordinates."""
    return Rect(rect.x + origin.x, rect.y + origin.y, rect.width, rect.height)


def to_local(rect: Rect, origin: Point) -> Rect:
    """Inverse of to_absolute."""
    return Rect(rect.x - origin.x, rect.y - origin.y, rect.width, rect.height)


def clamp_monitor_index(index: int, count: int) -> int:
    """Clamp a monitor index into [0, count - 1].

    Out-of-range values (negative or >= count) fall back to 0 rather than
    the nearest bound, so a stale index always lands on the first monitor.
    """
    if count <= 0 or index < 0 or index >= count:
        return 0
    return index


def union_rect(rects: Iterable[Rect]) -> Optional[Rect]:
    """Bounding rectangle of all given rectangles, or None if there are none."""
    rects = list(rects)
    if not rects:
        return None
    left = min(r.left for r in rects)
    top = min(r.top for r in rects)
    right = max(r.right for r in rects)
    bottom = max(r.bottom for r in rects)
    return Rect(left, top, right - left, bottom - top)


def intersect_rect(a: Rect, b: Rect) -> Optional[Rect]:
    """Overlap of two rectangles, or None if they do not overlap."""
    left = max(a.left, b.left)
    top = max(a.top, b.top)
    right = min(a.right, b.right)
    bottom = min(a.bottom, b.bottom)
    if right <= left or bottom <= top:
        return None
    return Rect(left, top, right - left, bottom - top)
