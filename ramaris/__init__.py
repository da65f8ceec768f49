__version__ = "0.1.0"

from ramaris.api import (
    ApiError,
    CallContext,
    DeadlineExceededError,
    DecodingError,
    ListOptions,
    RamarisError,
    RateLimitedError,
    RateLimitSnapshot,
    RateLimitTracker,
    RequestCancelledError,
    RetriesExhaustedError,
    TransportError,
)
from ramaris.client import RamarisClient, paginate
from ramaris.config import ClientConfig, ConfigError, config_from_env, load_config

__all__ = [
    "ApiError",
    "CallContext",
    "ClientConfig",
    "ConfigError",
    "DeadlineExceededError",
    "DecodingError",
    "ListOptions",
    "RamarisClient",
    "RamarisError",
    "RateLimitSnapshot",
    "RateLimitTracker",
    "RateLimitedError",
    "RequestCancelledError",
    "RetriesExhaustedError",
    "TransportError",
    "__version__",
    "config_from_env",
    "load_config",
    "paginate",
]
