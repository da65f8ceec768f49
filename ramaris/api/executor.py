from __future__ import annotations

import logging
import threading
import time
from collections import defaultdict
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import NoReturn
from urllib.parse import urlencode

import httpx

from ramaris.api.classify import classify_error
from ramaris.api.context import CallContext, background
from ramaris.api.errors import (
    RamarisError,
    RateLimitedError,
    RetriesExhaustedError,
    TransportError,
)
from ramaris.api.ratelimit import RateLimitTracker
from ramaris.obs.logging import log_event

MAX_ATTEMPTS = 3
BACKOFF_BASE_S = 0.5


@dataclass(frozen=True)
class ListOptions:
    """
    Pagination query for list endpoints.

    Zero or None means "omit from the query string", not "send zero".
    """
    page: int | None = None
    page_size: int | None = None


def build_url(base_url: str, path: str, options: ListOptions | None = None) -> str:
    url = base_url + path
    if options is None:
        return url

    params: list[tuple[str, int]] = []
    if options.page is not None and options.page > 0:
        params.append(("page", options.page))
    if options.page_size is not None and options.page_size > 0:
        params.append(("pageSize", options.page_size))
    if not params:
        return url
    return f"{url}?{urlencode(params)}"


@dataclass
class LatencySummary:
    count: int = 0
    total_ms: float = 0.0
    max_ms: float = 0.0

    @property
    def mean_ms(self) -> float:
        return self.total_ms / self.count if self.count else 0.0

    def add(self, latency_ms: float) -> None:
        self.count += 1
        self.total_ms += latency_ms
        self.max_ms = max(self.max_ms, latency_ms)


@dataclass
class ClientMetrics:
    """
    Request counters for the lifetime of a client.

    Keyed by route template (``/wallets/{id}``), never by the concrete
    path, so the maps stay bounded by the number of endpoints.
    """
    http_requests_total: dict[tuple[str, str], int] = field(default_factory=lambda: defaultdict(int))
    http_retries_total: dict[tuple[str, str], int] = field(default_factory=lambda: defaultdict(int))
    http_latency_ms: dict[str, LatencySummary] = field(default_factory=lambda: defaultdict(LatencySummary))
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record_request(self, route: str, status: str, latency_ms: float) -> None:
        with self._lock:
            self.http_requests_total[(route, status)] += 1
            self.http_latency_ms[route].add(latency_ms)

    def record_retry(self, route: str, reason: str) -> None:
        with self._lock:
            self.http_retries_total[(route, reason)] += 1


class RequestExecutor:
    """
    Runs one logical GET call: auth, dispatch, rate-limit capture, retry.

    Only 5xx responses are retried, up to MAX_ATTEMPTS total attempts with
    exponential backoff starting at BACKOFF_BASE_S. Everything else either
    succeeds or raises exactly one RamarisError.
    """

    def __init__(
        self,
        http_client: httpx.Client,
        api_key: str,
        *,
        base_url: str,
        tracker: RateLimitTracker | None = None,
        logger: logging.Logger | None = None,
        user_agent: str | None = None,
        client_id: str | None = None,
        backoff_base_s: float = BACKOFF_BASE_S,
        max_workers: int = 8,
    ) -> None:
        self._http = http_client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._tracker = tracker or RateLimitTracker()
        self._logger = logger or logging.getLogger(__name__)
        self._user_agent = user_agent
        self._client_id = client_id
        self._backoff_base_s = backoff_base_s
        self._metrics = ClientMetrics()
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="ramaris-http")

    @property
    def tracker(self) -> RateLimitTracker:
        return self._tracker

    @property
    def metrics(self) -> ClientMetrics:
        return self._metrics

    def close(self) -> None:
        self._pool.shutdown(wait=False)

    def execute(
        self,
        path: str,
        options: ListOptions | None = None,
        *,
        ctx: CallContext | None = None,
        route: str | None = None,
    ) -> httpx.Response:
        """
        Perform the call and return the successful (2xx) response.

        The body is left for the caller to decode. ``route`` is the path
        template used as the metrics key; it defaults to ``path``.

        Raises:
            RateLimitedError: on 429, without retrying.
            ApiError: on any other non-2xx (5xx after retries run out).
            TransportError: on connection failure, cancellation or deadline.
        """
        ctx = ctx or background()
        url = build_url(self._base_url, path, options)
        route = route or path
        backoff_s = self._backoff_base_s

        for attempt in range(1, MAX_ATTEMPTS + 1):
            response = self._send(path, route, url, attempt, ctx)
            self._tracker.update(response.headers)
            status = response.status_code

            if 200 <= status < 300:
                return response

            if status >= 500 and attempt < MAX_ATTEMPTS:
                self._log(
                    logging.WARNING,
                    "api_server_error",
                    "Server error response received; backing off",
                    path=path,
                    status=status,
                    attempt=attempt,
                    backoff_s=backoff_s,
                )
                self._metrics.record_retry(route, "server_error")
                if not ctx.sleep(backoff_s):
                    self._fail(path, ctx.error())
                backoff_s *= 2
                continue

            error = classify_error(status, response.content)
            if isinstance(error, RateLimitedError):
                self._log(
                    logging.WARNING,
                    "api_rate_limited",
                    "Rate limit response received; not retrying",
                    path=path,
                    status=status,
                    retry_after_s=error.retry_after_s,
                )
            self._fail(path, error)

        self._fail(path, RetriesExhaustedError("max retries exceeded"))

    def _send(self, path: str, route: str, url: str, attempt: int, ctx: CallContext) -> httpx.Response:
        context_error = ctx.error()
        if context_error is not None:
            self._fail(path, context_error)

        request = self._http.build_request(
            "GET",
            url,
            headers=self._headers(),
            timeout=self._timeout(ctx),
        )
        start = time.monotonic()
        future = self._pool.submit(self._http.send, request)

        if not ctx.wait(future):
            future.add_done_callback(_discard_response)
            self._metrics.record_request(route, "cancelled", (time.monotonic() - start) * 1000)
            self._fail(path, ctx.error() or TransportError("request abandoned"))

        try:
            response = future.result()
        except httpx.RequestError as exc:
            latency_ms = (time.monotonic() - start) * 1000
            self._metrics.record_request(route, "transport_error", latency_ms)
            self._log(
                logging.WARNING,
                "http_request",
                f"GET {path}",
                path=path,
                status=None,
                attempt=attempt,
                latency_ms=round(latency_ms, 2),
            )
            context_error = ctx.error()
            if context_error is not None:
                self._fail(path, context_error, cause=exc)
            self._fail(path, TransportError("request failed", cause=exc), cause=exc)

        latency_ms = (time.monotonic() - start) * 1000
        self._metrics.record_request(route, str(response.status_code), latency_ms)
        self._log(
            logging.INFO,
            "http_request",
            f"GET {path}",
            path=path,
            status=response.status_code,
            attempt=attempt,
            latency_ms=round(latency_ms, 2),
        )
        return response

    def _headers(self) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Accept": "application/json",
        }
        if self._user_agent:
            headers["User-Agent"] = self._user_agent
        return headers

    def _timeout(self, ctx: CallContext) -> httpx.Timeout:
        remaining = ctx.remaining()
        if remaining is None:
            return self._http.timeout
        default = self._http.timeout.read
        return httpx.Timeout(remaining if default is None else min(default, remaining))

    def _log(self, level: int, event: str, message: str, **extra: object) -> None:
        if self._client_id is not None:
            extra["client_id"] = self._client_id
        log_event(self._logger, level, event, message, **extra)

    def _fail(self, path: str, error: RamarisError, *, cause: BaseException | None = None) -> NoReturn:
        self._log(
            logging.ERROR,
            "http_fail",
            f"Request failed for {path}",
            path=path,
            error_type=type(error).__name__,
        )
        if cause is not None:
            raise error from cause
        raise error


def _discard_response(future: Future) -> None:
    if future.cancelled() or future.exception() is not None:
        return
    future.result().close()
