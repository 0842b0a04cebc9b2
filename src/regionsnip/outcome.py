"""Terminal result of a capture run.

Every run produces exactly one outcome, which the CLI prints as a single
JSON line on stdout:

    {"ok": true, "path": ..., "mode": ..., "rect": {...}, "width": ..., "height": ...}
    {"ok": false, "cancelled": true, "mode": "region"}
    {"ok": false, "error": "...", "mode": "full"}
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .geometry import Rect

MODE_REGION = "region"
MODE_FULL = "full"


@dataclass(frozen=True)
class Success:
    """Image written to disk."""

    path: Path
    mode: str
    rect: Rect
    monitor_index: Optional[int] = None
    capture_all: Optional[bool] = None

    ok = True

    @property
    def width(self) -> int:
        return self.rect.width

    @property
    def height(self) -> int:
        return self.rect.height

    def to_dict(self) -> dict:
        data = {
            "ok": True,
            "path": str(self.path),
            "mode": self.mode,
            "rect": self.rect.to_dict(),
            "width": self.width,
            "height": self.height,
        }
        # Full captures always report which monitor (or all) was used
        if self.capture_all is not None:
            data["monitorIndex"] = None if self.capture_all else self.monitor_index
            data["all"] = self.capture_all
        return data


@dataclass(frozen=True)
class Cancelled:
    """User dismissed the interactive session."""

    mode: str = MODE_REGION

    ok = False

    def to_dict(self) -> dict:
        return {"ok": False, "cancelled": True, "mode": self.mode}


@dataclass(frozen=True)
class Error:
    """Run finished without an image."""

    message: str
    mode: Optional[str] = None

    ok = False

    def to_dict(self) -> dict:
        data = {"ok": False, "error": self.message}
        if self.mode is not None:
            data["mode"] = self.mode
        return data


CaptureOutcome = Union[Success, Cancelled, Error]


def to_json(outcome: CaptureOutcome) -> str:
    """Serialize an outcome as one line of JSON."""
    return json.dumps(outcome.to_dict())
