"""
Per-call cancellation and deadline handling.

A CallContext is the cancellation signal every API call accepts. It is
observed while waiting on the network and while sleeping between
retries; ``cancel()`` from any thread wakes both waits immediately.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future

from ramaris.api.errors import DeadlineExceededError, RequestCancelledError, TransportError


class CallContext:
    def __init__(self, timeout_s: float | None = None) -> None:
        if timeout_s is not None and timeout_s < 0:
            raise ValueError("timeout_s must be >= 0")
        self._deadline_ts = time.monotonic() + timeout_s if timeout_s is not None else None
        self._cancelled = False
        self._cond = threading.Condition()

    @property
    def deadline_ts(self) -> float | None:
        """Monotonic deadline, or None when the call has no deadline."""
        return self._deadline_ts

    @property
    def cancelled(self) -> bool:
        with self._cond:
            return self._cancelled

    def cancel(self) -> None:
        with self._cond:
            self._cancelled = True
            self._cond.notify_all()

    def remaining(self) -> float | None:
        if self._deadline_ts is None:
            return None
        return max(0.0, self._deadline_ts - time.monotonic())

    def error(self) -> TransportError | None:
        """Return the context error, or None while the call may proceed."""
        if self.cancelled:
            return RequestCancelledError("request cancelled")
        if self._deadline_ts is not None and time.monotonic() >= self._deadline_ts:
            return DeadlineExceededError("deadline exceeded")
        return None

    def sleep(self, seconds: float) -> bool:
        """
        Wait for ``seconds`` unless cancelled or past the deadline first.

        Returns:
            True if the full delay elapsed, False if the context ended it.
        """
        timeout = seconds
        remaining = self.remaining()
        if remaining is not None:
            timeout = min(timeout, remaining)
        with self._cond:
            self._cond.wait_for(lambda: self._cancelled, timeout=timeout)
        return self.error() is None

    def wait(self, future: Future) -> bool:
        """
        Block until ``future`` completes or the context ends.

        Returns:
            True if the future completed while the context was still live.
        """
        future.add_done_callback(self._wake)
        with self._cond:
            self._cond.wait_for(lambda: future.done() or self._cancelled, timeout=self.remaining())
        return future.done() and self.error() is None

    def _wake(self, _: Future) -> None:
        with self._cond:
            self._cond.notify_all()


def background() -> CallContext:
    """Context with no deadline that is never cancelled unless asked."""
    return CallContext()
