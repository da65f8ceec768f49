import threading
import time

import httpx
import pytest

from ramaris.api.context import CallContext
from ramaris.api.errors import (
    ApiError,
    DeadlineExceededError,
    RateLimitedError,
    RequestCancelledError,
    TransportError,
)
from ramaris.api.executor import ListOptions, RequestExecutor, build_url
from ramaris.api.ratelimit import RateLimitSnapshot, RateLimitTracker

BASE_URL = "https://api.test/api/v1"
RATE_HEADERS = {"X-RateLimit-Limit": "100", "X-RateLimit-Remaining": "99", "X-RateLimit-Reset": "1700000000"}


class RecordingContext(CallContext):
    """Context whose backoff sleeps return immediately and are recorded."""

    def __init__(self) -> None:
        super().__init__()
        self.sleeps: list[float] = []

    def sleep(self, seconds: float) -> bool:
        self.sleeps.append(seconds)
        return True


def build_executor(
    transport: httpx.BaseTransport,
    *,
    tracker: RateLimitTracker | None = None,
    backoff_base_s: float = 0.5,
) -> RequestExecutor:
    http_client = httpx.Client(transport=transport, timeout=5)
    return RequestExecutor(
        http_client,
        "rms_test_key",
        base_url=BASE_URL,
        tracker=tracker,
        backoff_base_s=backoff_base_s,
    )


def test_build_url_query_rules() -> None:
    assert build_url(BASE_URL, "/strategies") == f"{BASE_URL}/strategies"
    assert build_url(BASE_URL, "/strategies", ListOptions()) == f"{BASE_URL}/strategies"
    assert build_url(BASE_URL, "/strategies", ListOptions(page=0, page_size=0)) == f"{BASE_URL}/strategies"
    assert build_url(BASE_URL, "/strategies", ListOptions(page=2)) == f"{BASE_URL}/strategies?page=2"
    assert build_url(BASE_URL, "/strategies", ListOptions(page_size=25)) == f"{BASE_URL}/strategies?pageSize=25"
    assert (
        build_url(BASE_URL, "/strategies", ListOptions(page=1, page_size=10))
        == f"{BASE_URL}/strategies?page=1&pageSize=10"
    )
    assert build_url(BASE_URL, "/strategies", ListOptions(page=-3, page_size=10)) == f"{BASE_URL}/strategies?pageSize=10"


def test_auth_and_accept_headers_sent() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"status": "ok"})

    executor = build_executor(httpx.MockTransport(handler))

    response = executor.execute("/health")

    assert response.status_code == 200
    assert seen[0].method == "GET"
    assert seen[0].headers["Authorization"] == "Bearer rms_test_key"
    assert seen[0].headers["Accept"] == "application/json"
    assert str(seen[0].url) == f"{BASE_URL}/health"


def test_pagination_query_reaches_transport() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={})

    executor = build_executor(httpx.MockTransport(handler))

    executor.execute("/strategies", ListOptions(page=1, page_size=10))

    assert seen[0].url.params["page"] == "1"
    assert seen[0].url.params["pageSize"] == "10"


def test_rate_limit_headers_tracked_on_success_and_error() -> None:
    responses = [
        httpx.Response(200, json={}, headers=RATE_HEADERS),
        httpx.Response(
            404,
            json={"error": {"code": "NOT_FOUND", "message": "missing"}},
            headers={"X-RateLimit-Limit": "100", "X-RateLimit-Remaining": "98", "X-RateLimit-Reset": "1700000001"},
        ),
    ]
    tracker = RateLimitTracker()
    executor = build_executor(httpx.MockTransport(lambda request: responses.pop(0)), tracker=tracker)

    executor.execute("/health")
    assert tracker.current() == RateLimitSnapshot(limit=100, remaining=99, reset=1700000000)

    with pytest.raises(ApiError):
        executor.execute("/wallets/1")
    assert tracker.current() == RateLimitSnapshot(limit=100, remaining=98, reset=1700000001)


def test_rate_limited_never_retried() -> None:
    call_count = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal call_count
        call_count += 1
        return httpx.Response(
            429,
            json={"error": {"code": "RATE_LIMITED", "message": "too many requests", "retryAfter": 30}},
            headers=RATE_HEADERS,
        )

    tracker = RateLimitTracker()
    executor = build_executor(httpx.MockTransport(handler), tracker=tracker)

    with pytest.raises(RateLimitedError) as exc_info:
        executor.execute("/strategies")

    assert call_count == 1
    assert exc_info.value.retry_after_s == 30
    assert exc_info.value.status_code == 429
    assert tracker.current() == RateLimitSnapshot(limit=100, remaining=99, reset=1700000000)


def test_rate_limited_without_retry_after() -> None:
    executor = build_executor(httpx.MockTransport(lambda request: httpx.Response(429)))

    with pytest.raises(RateLimitedError) as exc_info:
        executor.execute("/strategies")

    assert exc_info.value.retry_after_s == 0
    assert exc_info.value.code == "RATE_LIMITED"
    assert exc_info.value.message == "rate limit exceeded"


@pytest.mark.parametrize("attempts", [1, 2, 3])
def test_server_errors_then_success(attempts: int) -> None:
    responses = [httpx.Response(503) for _ in range(attempts - 1)]
    responses.append(httpx.Response(200, json={"status": "ok"}))
    call_count = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal call_count
        call_count += 1
        return responses.pop(0)

    executor = build_executor(httpx.MockTransport(handler))
    ctx = RecordingContext()

    response = executor.execute("/health", ctx=ctx)

    assert response.json() == {"status": "ok"}
    assert call_count == attempts
    assert ctx.sleeps == [0.5, 1.0][: attempts - 1]
    assert executor.metrics.http_retries_total[("/health", "server_error")] == attempts - 1


def test_server_errors_exhaust_retries() -> None:
    call_count = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal call_count
        call_count += 1
        return httpx.Response(500, json={"error": {"code": "INTERNAL", "message": "boom"}})

    executor = build_executor(httpx.MockTransport(handler))
    ctx = RecordingContext()

    with pytest.raises(ApiError) as exc_info:
        executor.execute("/health", ctx=ctx)

    assert call_count == 3
    assert ctx.sleeps == [0.5, 1.0]
    assert exc_info.value.code == "INTERNAL"
    assert exc_info.value.status_code == 500


def test_not_found_no_retry() -> None:
    call_count = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal call_count
        call_count += 1
        return httpx.Response(404, json={"error": {"code": "NOT_FOUND", "message": "strategy not found"}})

    executor = build_executor(httpx.MockTransport(handler))

    with pytest.raises(ApiError) as exc_info:
        executor.execute("/strategies/missing")

    assert call_count == 1
    assert exc_info.value.code == "NOT_FOUND"
    assert exc_info.value.status_code == 404


def test_real_backoff_timing() -> None:
    responses = [httpx.Response(502), httpx.Response(502), httpx.Response(200, json={})]
    stamps: list[float] = []

    def handler(request: httpx.Request) -> httpx.Response:
        stamps.append(time.monotonic())
        return responses.pop(0)

    executor = build_executor(httpx.MockTransport(handler), backoff_base_s=0.05)

    executor.execute("/health")

    assert len(stamps) == 3
    assert stamps[1] - stamps[0] >= 0.045
    assert stamps[2] - stamps[1] >= 0.095


def test_transport_error_not_retried() -> None:
    call_count = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal call_count
        call_count += 1
        raise httpx.ConnectError("connection refused", request=request)

    executor = build_executor(httpx.MockTransport(handler))

    with pytest.raises(TransportError) as exc_info:
        executor.execute("/health")

    assert call_count == 1
    assert isinstance(exc_info.value.cause, httpx.ConnectError)
    assert not isinstance(exc_info.value, (RequestCancelledError, DeadlineExceededError))


def test_cancel_during_backoff_returns_promptly() -> None:
    call_count = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal call_count
        call_count += 1
        return httpx.Response(503)

    executor = build_executor(httpx.MockTransport(handler), backoff_base_s=10)
    ctx = CallContext()
    timer = threading.Timer(0.1, ctx.cancel)
    timer.start()
    start = time.monotonic()

    with pytest.raises(RequestCancelledError):
        executor.execute("/health", ctx=ctx)

    assert time.monotonic() - start < 2
    assert call_count == 1
    timer.join()


def test_deadline_during_backoff_returns_promptly() -> None:
    executor = build_executor(httpx.MockTransport(lambda request: httpx.Response(503)), backoff_base_s=10)
    start = time.monotonic()

    with pytest.raises(DeadlineExceededError):
        executor.execute("/health", ctx=CallContext(timeout_s=0.1))

    assert time.monotonic() - start < 2


def test_cancelled_context_skips_transport() -> None:
    call_count = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal call_count
        call_count += 1
        return httpx.Response(200)

    executor = build_executor(httpx.MockTransport(handler))
    ctx = CallContext()
    ctx.cancel()

    with pytest.raises(RequestCancelledError):
        executor.execute("/health", ctx=ctx)

    assert call_count == 0


def test_cancel_during_network_wait() -> None:
    release = threading.Event()

    def handler(request: httpx.Request) -> httpx.Response:
        release.wait(5)
        return httpx.Response(200, json={})

    executor = build_executor(httpx.MockTransport(handler))
    ctx = CallContext()
    timer = threading.Timer(0.1, ctx.cancel)
    timer.start()
    start = time.monotonic()

    with pytest.raises(RequestCancelledError):
        executor.execute("/health", ctx=ctx)

    assert time.monotonic() - start < 2
    release.set()
    timer.join()
    executor.close()
