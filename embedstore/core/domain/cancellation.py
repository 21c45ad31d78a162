"""Cooperative cancellation for long-running searches."""

import threading
import time

from .exceptions import SearchCancelledError


class CancellationToken:
    """Thread-safe cancel flag with an optional deadline.

    Searches poll the token between scan chunks. A cancelled search raises
    ``SearchCancelledError`` and never touches index state, since searches
    only read immutable snapshots.
    """

    def __init__(self, timeout_s: float | None = None) -> None:
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout_s if timeout_s is not None else None

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """True once cancelled or past the deadline."""
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def raise_if_cancelled(self) -> None:
        """Raise ``SearchCancelledError`` if the token has fired."""
        if self.cancelled:
            reason = "cancelled" if self._event.is_set() else "deadline exceeded"
            raise SearchCancelledError(f"Search aborted: {reason}", context={"reason": reason})
