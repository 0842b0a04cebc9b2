"""Single interactive session enforcement.

Only one selection overlay may be on screen at a time. The lock is an
flock()ed file holding the owner's PID, released on exit or when the
process dies.
"""

import fcntl
import logging
import os
from pathlib import Path
from typing import Optional, TextIO

from .errors import SessionBusy

log = logging.getLogger(__name__)

SESSION_BUSY = "Another selection session is already running."


class SessionLock:
    """Exclusive lock for the lifetime of one interactive session."""

    def __init__(self, lock_file: Path):
        self.lock_file = Path(lock_file)
        self._lock_fd: Optional[TextIO] = None

    def acquire(self) -> bool:
        """Try to acquire the lock file.

        Returns:
            True if the lock was acquired, False if another session holds it
        """
        try:
            self.lock_file.parent.mkdir(parents=True, exist_ok=True)
            # Use 'a+' mode to avoid truncating a held lock's PID
            self._lock_fd = open(self.lock_file, "a+")
            fcntl.flock(self._lock_fd.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
            self._lock_fd.seek(0)
            self._lock_fd.truncate()
            pid = os.getpid()
            self._lock_fd.write(str(pid))
            self._lock_fd.flush()
            log.debug("Lock acquired, PID=%d", pid)
            return True
        except OSError as e:
            log.debug("Lock acquisition failed: %s", e)
            if self._lock_fd:
                self._lock_fd.close()
                self._lock_fd = None
            return False

    def release(self) -> None:
        if self._lock_fd is None:
            return
        try:
            fcntl.flock(self._lock_fd.fileno(), fcntl.LOCK_UN)
            self._lock_fd.close()
        except OSError as e:
            log.debug("Lock release failed: %s", e)
        self._lock_fd = None

        try:
            self.lock_file.unlink(missing_ok=True)
        except OSError as e:
            log.debug("Lock file removal failed: %s", e)

    def __enter__(self) -> "SessionLock":
        if not self.acquire():
            raise SessionBusy(SESSION_BUSY)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
