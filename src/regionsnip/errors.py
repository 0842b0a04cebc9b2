"""Exception types shared across RegionSnip.

Kept free of toolkit imports so the selection state machine and the CLI can
handle pipeline failures without loading GTK.
"""


class RegionSnipError(Exception):
    """Base class for all RegionSnip errors."""
    pass


class ConfigurationError(RegionSnipError, ValueError):
    """Required settings are missing or a config file is invalid."""
    pass


class SelectionTooSmall(RegionSnipError):
    """Drag ended below the minimum selection size."""
    pass


class CaptureFailure(RegionSnipError):
    """The requested screen region cannot be read."""
    pass


class EncodeFailure(RegionSnipError):
    """The image cannot be encoded or written."""
    pass


class NotificationFailure(RegionSnipError):
    """A desktop notification could not be shown."""
    pass


class SessionBusy(RegionSnipError):
    """Another interactive selection session holds the lock."""
    pass
