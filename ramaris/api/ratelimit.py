from __future__ import annotations

import re
import threading
from collections.abc import Mapping
from dataclasses import dataclass

LIMIT_HEADER = "X-RateLimit-Limit"
REMAINING_HEADER = "X-RateLimit-Remaining"
RESET_HEADER = "X-RateLimit-Reset"

_INT_PATTERN = re.compile(r"-?[0-9]+")


@dataclass(frozen=True)
class RateLimitSnapshot:
    """
    Rate-limit window reported by the server on the last response.

    Attributes:
        limit: Requests allowed per window.
        remaining: Requests left in the current window.
        reset: Unix timestamp (seconds) when the window resets.
    """
    limit: int
    remaining: int
    reset: int


def _parse_int(value: str | None) -> int | None:
    if not isinstance(value, str):
        return None
    # int() alone would accept "1_000", "+5" and non-ASCII digits
    value = value.strip()
    if not _INT_PATTERN.fullmatch(value):
        return None
    return int(value)


class RateLimitTracker:
    """Thread-safe cell holding the most recent RateLimitSnapshot."""

    def __init__(self) -> None:
        self._snapshot: RateLimitSnapshot | None = None
        self._lock = threading.Lock()

    def update(self, headers: Mapping[str, str]) -> bool:
        """
        Replace the snapshot from response headers.

        Only applied when all three X-RateLimit headers are present and
        parse as integers; otherwise the previous snapshot is kept.

        Returns:
            True if the snapshot was replaced.
        """
        limit = _parse_int(headers.get(LIMIT_HEADER))
        remaining = _parse_int(headers.get(REMAINING_HEADER))
        reset = _parse_int(headers.get(RESET_HEADER))
        if limit is None or remaining is None or reset is None:
            return False

        snapshot = RateLimitSnapshot(limit=limit, remaining=remaining, reset=reset)
        with self._lock:
            self._snapshot = snapshot
        return True

    def current(self) -> RateLimitSnapshot | None:
        """Return the last snapshot, or None if none has been observed."""
        with self._lock:
            return self._snapshot
