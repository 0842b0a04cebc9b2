"""Interactive region selection UI."""

from .overlay import SelectionOverlay, run_region_session

__all__ = ["SelectionOverlay", "run_region_session"]
