"""
Structured logging for the Ramaris client.

Every record the client emits carries an ``event`` name and a dict of
``extra`` fields (client_id, path, status, attempt, latency). Without
configuration the records flow to the ``ramaris`` logger hierarchy and
whatever handlers the application installed. Setting ``log_level`` on
ClientConfig makes the client install its own handlers on the package
logger through ``build_logger``, writing one JSON object per line.

Example log line:
    {"ts": "2025-01-15T10:30:00Z", "level": "INFO", "logger": "ramaris.client",
     "event": "http_request", "msg": "GET /strategies", "client_id": "a1b2c3",
     "status": 200, "attempt": 1, "latency_ms": 84.1}
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

PACKAGE_LOGGER = "ramaris"

# LogRecord keys owned by the formatter; extra fields may not shadow them
_RESERVED = frozenset({"ts", "level", "logger", "event", "msg", "exc"})


@dataclass(frozen=True)
class LogSettings:
    level: str
    log_file: Path | None = None
    jsonl: bool = True


class JsonLineFormatter(logging.Formatter):
    """Flattens the event extras into a single JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "event": getattr(record, "event", "log"),
            "msg": record.getMessage(),
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            for key, value in extra.items():
                payload[f"extra_{key}" if key in _RESERVED else key] = value
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def build_logger(settings: LogSettings, name: str = PACKAGE_LOGGER) -> logging.Logger:
    """
    Install the client's own handlers on ``name`` (the package logger).

    Replaces handlers from an earlier call, so building several clients
    with the same settings does not duplicate output.
    """
    logger = logging.getLogger(name)
    logger.setLevel(settings.level.upper())
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file, encoding="utf-8"))
    for handler in handlers:
        if settings.jsonl:
            handler.setFormatter(JsonLineFormatter())
        logger.addHandler(handler)

    return logger


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    message: str,
    *,
    exc_info: logging._ExcInfoType | None = None,
    **extra: Any,
) -> None:
    """
    Log a structured event with typed metadata.

    Example:
        >>> log_event(logger, logging.WARNING, "api_server_error",
        ...           "Server error response received; backing off", status=503)
    """
    logger.log(level, message, extra={"event": event, "extra": extra}, exc_info=exc_info)
