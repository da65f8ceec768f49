from ramaris.api.classify import ErrorEnvelope, classify_error, parse_error_envelope
from ramaris.api.context import CallContext
from ramaris.api.errors import (
    ApiError,
    DeadlineExceededError,
    DecodingError,
    RamarisError,
    RateLimitedError,
    RequestCancelledError,
    RetriesExhaustedError,
    TransportError,
)
from ramaris.api.executor import ListOptions, RequestExecutor, build_url
from ramaris.api.ratelimit import RateLimitSnapshot, RateLimitTracker

__all__ = [
    "ApiError",
    "CallContext",
    "DeadlineExceededError",
    "DecodingError",
    "ErrorEnvelope",
    "ListOptions",
    "RamarisError",
    "RateLimitSnapshot",
    "RateLimitTracker",
    "RateLimitedError",
    "RequestCancelledError",
    "RequestExecutor",
    "RetriesExhaustedError",
    "TransportError",
    "build_url",
    "classify_error",
    "parse_error_envelope",
]
