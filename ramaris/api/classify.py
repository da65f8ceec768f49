from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from ramaris.api.errors import ApiError, RamarisError, RateLimitedError


@dataclass(frozen=True)
class ErrorEnvelope:
    """
    Parsed ``{"error": {...}}`` body of a non-success response.

    Fields the body did not carry are left empty (or 0).
    """
    code: str = ""
    message: str = ""
    retry_after_s: int = 0


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _as_int(value: Any) -> int:
    # bool is an int subclass; a JSON true/false is not a delay
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return value


def parse_error_envelope(body: bytes | str | None) -> ErrorEnvelope:
    if not body:
        return ErrorEnvelope()
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return ErrorEnvelope()

    if not isinstance(payload, dict):
        return ErrorEnvelope()
    error = payload.get("error")
    if not isinstance(error, dict):
        return ErrorEnvelope()

    return ErrorEnvelope(
        code=_as_str(error.get("code")),
        message=_as_str(error.get("message")),
        retry_after_s=_as_int(error.get("retryAfter")),
    )


def classify_error(status_code: int, body: bytes | str | None) -> RamarisError:
    """
    Map a non-2xx response to its error kind.

    Missing envelope fields are filled with defaults:
    429 → RATE_LIMITED / "rate limit exceeded"; 5xx → SERVER_ERROR;
    anything else → UNKNOWN_ERROR; message "HTTP <status>".
    """
    envelope = parse_error_envelope(body)

    if status_code == 429:
        return RateLimitedError(
            envelope.message or "rate limit exceeded",
            code=envelope.code or "RATE_LIMITED",
            status_code=status_code,
            retry_after_s=envelope.retry_after_s,
        )

    default_code = "SERVER_ERROR" if status_code >= 500 else "UNKNOWN_ERROR"
    return ApiError(
        envelope.message or f"HTTP {status_code}",
        code=envelope.code or default_code,
        status_code=status_code,
    )
