from __future__ import annotations

import threading

from pageorient.exceptions import BatchCancelled


class CancellationToken:
    """Shared cancellation signal that also aborts the in-flight detection call."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise BatchCancelled("Orientation batch was cancelled")
