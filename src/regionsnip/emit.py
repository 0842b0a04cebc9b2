"""Structured lifecycle events.

Events are single-line JSON objects written to stderr, so they never mix
with the outcome line on stdout:

    {"event_type": "...", "timestamp": "...", "source": {"tool": "..."}, "data": {...}}

Extra transports can be attached with add_handler().
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

EventHandler = Callable[[dict], None]

EVENT_CATALOG = [
    {
        "event_type": "config.resolved",
        "data_fields": ["config_path", "source"],
    },
    {
        "event_type": "operation.started",
        "data_fields": ["operation_id", "mode"],
    },
    {
        "event_type": "operation.completed",
        "data_fields": ["operation_id", "mode", "outcome"],
    },
    {
        "event_type": "artifact.created",
        "data_fields": ["file_path", "width", "height", "format"],
    },
    {
        "event_type": "error.handled",
        "data_fields": ["error_type", "message", "mode"],
    },
    {
        "event_type": "shutdown",
        "data_fields": [],
    },
]

_handlers: List[EventHandler] = []
_source: str = "regionsnip"
_stderr_enabled: bool = True


def configure(source: str, stderr: bool = True) -> None:
    """Set the source name for emitted events. Call once at startup.

    Args:
        source: Source identifier for events
        stderr: Whether to write events to stderr
    """
    global _source, _stderr_enabled
    _source = source
    _stderr_enabled = stderr


def add_handler(handler: EventHandler) -> None:
    _handlers.append(handler)


def remove_handler(handler: EventHandler) -> None:
    if handler in _handlers:
        _handlers.remove(handler)


def emit(
    event_type: str,
    data: Dict[str, Any],
    source: Optional[str] = None,
) -> None:
    """Emit a structured event to stderr and every registered handler."""
    event = {
        "event_type": event_type,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "source": {"tool": source or _source},
        "data": data,
    }

    if _stderr_enabled:
        try:
            print(json.dumps(event, default=str), file=sys.stderr, flush=True)
        except (OSError, ValueError) as exc:
            logger.debug("Could not write event: %s", exc)

    for handler in list(_handlers):
        try:
            handler(event)
        except Exception as exc:
            logger.debug("Event handler error: %s", exc)
