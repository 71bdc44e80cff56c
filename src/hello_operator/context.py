"""Cancellation and deadline carrier for a single reconcile pass."""

import threading
import time
from typing import Optional

from hello_operator.exceptions import ReconcileCancelled


class ReconcileContext:
    """Carries cancellation and a deadline through every core operation.

    Store calls check the context before going to the network and pass the
    remaining time on as the request timeout, so a cancelled or expired pass
    stops at the next call boundary.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        self._cancel_event = cancel_event or threading.Event()
        self._deadline = time.monotonic() + timeout if timeout else None

    @classmethod
    def background(cls):
        """Context that is never cancelled and has no deadline."""
        return cls()

    def cancel(self):
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        if self._cancel_event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> Optional[float]:
        if self._deadline is None:
            return None
        return max(self._deadline - time.monotonic(), 0.0)

    def check(self):
        """Raise ReconcileCancelled if the pass should stop."""
        if self._cancel_event.is_set():
            raise ReconcileCancelled("reconcile cancelled")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise ReconcileCancelled("reconcile deadline exceeded")

    def request_timeout(self) -> Optional[float]:
        """Timeout to hand to the Kubernetes client for the next call."""
        self.check()
        return self.remaining()
