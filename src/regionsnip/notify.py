"""Best-effort desktop notifications.

Nothing in here may change the outcome or exit status of a run: every
failure is logged at debug level and dropped.
"""

import logging
from typing import Optional

from .config import Config, get_config
from .errors import NotificationFailure
from .outcome import CaptureOutcome, Error, Success

log = logging.getLogger(__name__)

APP_NAME = "RegionSnip"
SUCCESS_TITLE = "RegionSnip"
SUCCESS_BODY = "Screenshot saved successfully."
ERROR_TITLE = "RegionSnip Error"


def _show(title: str, body: str, error: bool, timeout_ms: int) -> None:
    try:
        import gi
        gi.require_version("Notify", "0.7")
        from gi.repository import GLib, Notify
    except (ImportError, ValueError) as e:
        raise NotificationFailure(f"libnotify unavailable: {e}")

    if not Notify.is_initted() and not Notify.init(APP_NAME):
        raise NotificationFailure("Could not initialise libnotify")

    notification = Notify.Notification.new(
        title,
        body,
        "dialog-error" if error else "camera-photo",
    )
    notification.set_timeout(timeout_ms)
    notification.set_urgency(Notify.Urgency.NORMAL if error else Notify.Urgency.LOW)
    try:
        notification.show()
    except GLib.Error as e:
        raise NotificationFailure(e.message)


def notify(title: str, body: str, error: bool = False, config: Optional[Config] = None) -> None:
    """Show a short-lived notification; never raises."""
    config = config or get_config()
    if not config.enable_notification:
        return
    try:
        _show(title, body, error, config.notification_timeout_ms)
    except Exception as e:
        log.debug("Could not show notification: %s", e)


def notify_outcome(outcome: CaptureOutcome, config: Optional[Config] = None) -> None:
    """Mirror an outcome as a notification. Cancelled runs stay silent."""
    if isinstance(outcome, Success):
        notify(SUCCESS_TITLE, SUCCESS_BODY, config=config)
    elif isinstance(outcome, Error):
        notify(ERROR_TITLE, outcome.message, error=True, config=config)
