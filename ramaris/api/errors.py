"""
Ramaris API error taxonomy.

Every failed call surfaces exactly one of these exceptions:

- **ApiError**: non-2xx response other than 429, never retried
  (5xx only after the retry budget is spent)
- **RateLimitedError (429)**: never retried, carries the server's
  retry-after hint; the caller decides when to try again
- **TransportError**: connection failure, no response received
    - **RequestCancelledError**: the call's context was cancelled
    - **DeadlineExceededError**: the call's context deadline passed
- **DecodingError**: 2xx response whose body does not match the
  expected shape
- **RetriesExhaustedError**: terminal fallback after the retry loop

Error Classification Strategy:
    HTTP 2xx  → success (decoding failures → DecodingError)
    HTTP 429  → RateLimitedError → return immediately
    HTTP 5xx  → retry with backoff → ApiError once attempts run out
    HTTP 4xx  → ApiError → return immediately
    Network   → TransportError → return immediately
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RamarisError(Exception):
    """
    Base exception for all Ramaris client errors.

    Attributes:
        message: Human-readable error description.
    """
    message: str

    def __str__(self) -> str:
        return f"ramaris: {self.message}"


@dataclass(frozen=True)
class ApiError(RamarisError):
    """
    Non-success HTTP response described by the API error envelope.

    Attributes:
        code: Machine-readable error code (e.g. "NOT_FOUND").
        status_code: HTTP status code of the response.
    """
    code: str = "UNKNOWN_ERROR"
    status_code: int | None = None

    def __str__(self) -> str:
        return f"ramaris: {self.code}: {self.message}"


@dataclass(frozen=True)
class RateLimitedError(RamarisError):
    """
    HTTP 429 - Rate limit exceeded.

    Never retried by the client. ``retry_after_s`` is the server's hint
    (0 when the envelope did not carry one).
    """
    code: str = "RATE_LIMITED"
    status_code: int = 429
    retry_after_s: int = 0

    def __str__(self) -> str:
        return f"ramaris: {self.code}: {self.message} (retry after {self.retry_after_s}s)"


@dataclass(frozen=True)
class TransportError(RamarisError):
    """
    No HTTP response was received.

    Attributes:
        cause: Underlying transport exception, if any.
    """
    cause: BaseException | None = None

    def __str__(self) -> str:
        if self.cause is None:
            return f"ramaris: {self.message}"
        return f"ramaris: {self.message}: {self.cause}"


class RequestCancelledError(TransportError):
    """The call's context was cancelled before it completed."""


class DeadlineExceededError(TransportError):
    """The call's context deadline passed before it completed."""


@dataclass(frozen=True)
class DecodingError(RamarisError):
    """
    A 2xx response was received but its body is malformed.

    Attributes:
        status_code: HTTP status code of the response.
        response_text: Raw response body text.
    """
    status_code: int | None = None
    response_text: str | None = None


class RetriesExhaustedError(RamarisError):
    """Request failed after the retry budget was spent."""
