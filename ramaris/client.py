from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from secrets import token_hex
from typing import TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from ramaris import __version__
from ramaris.api.context import CallContext
from ramaris.api.errors import DecodingError
from ramaris.api.executor import ClientMetrics, ListOptions, RequestExecutor
from ramaris.api.ratelimit import RateLimitSnapshot, RateLimitTracker
from ramaris.config import ClientConfig
from ramaris.models import (
    HealthStatus,
    ListResponse,
    SingleResponse,
    Strategy,
    StrategyListItem,
    Subscription,
    UserProfile,
    Wallet,
    WalletListItem,
    WatchlistStrategy,
)
from ramaris.obs.logging import build_logger

M = TypeVar("M", bound=BaseModel)
T = TypeVar("T")

USER_AGENT = f"ramaris-python/{__version__}"


class RamarisClient:
    def __init__(
        self,
        api_key: str | None = None,
        *,
        config: ClientConfig | None = None,
        base_url: str | None = None,
        transport: httpx.BaseTransport | None = None,
        tracker: RateLimitTracker | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if config is None:
            if api_key is None:
                raise ValueError("api_key or config is required")
            config = ClientConfig(api_key=api_key)
        overrides: dict[str, str] = {}
        if api_key is not None:
            overrides["api_key"] = api_key
        if base_url is not None:
            overrides["base_url"] = base_url
        if overrides:
            config = ClientConfig.model_validate({**config.model_dump(), **overrides})

        self._config = config
        self._client_id = token_hex(3)
        if logger is None:
            settings = config.log_settings()
            if settings is not None:
                build_logger(settings)
            logger = logging.getLogger(__name__)
        self._logger = logger
        self._tracker = tracker or RateLimitTracker()
        self._client = httpx.Client(timeout=httpx.Timeout(config.timeout_s), transport=transport)
        self._executor = RequestExecutor(
            self._client,
            config.api_key,
            base_url=config.base_url,
            tracker=self._tracker,
            logger=self._logger,
            user_agent=USER_AGENT,
            client_id=self._client_id,
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def client_id(self) -> str:
        """Short random id tagged on every log event of this client."""
        return self._client_id

    @property
    def metrics(self) -> ClientMetrics:
        return self._executor.metrics

    def rate_limit(self) -> RateLimitSnapshot | None:
        """Most recent rate-limit window, or None before any complete headers."""
        return self._tracker.current()

    def close(self) -> None:
        self._executor.close()
        self._client.close()

    def __enter__(self) -> RamarisClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def health(self, *, ctx: CallContext | None = None) -> HealthStatus:
        return self._get("/health", HealthStatus, ctx=ctx)

    def list_strategies(
        self, options: ListOptions | None = None, *, ctx: CallContext | None = None
    ) -> ListResponse[StrategyListItem]:
        return self._get("/strategies", ListResponse[StrategyListItem], options, ctx=ctx)

    def get_strategy(self, share_id: str, *, ctx: CallContext | None = None) -> Strategy:
        envelope = self._get(
            f"/strategies/{quote(share_id, safe='')}",
            SingleResponse[Strategy],
            ctx=ctx,
            route="/strategies/{shareId}",
        )
        return envelope.data

    def list_watchlist(
        self, options: ListOptions | None = None, *, ctx: CallContext | None = None
    ) -> ListResponse[WatchlistStrategy]:
        return self._get("/me/strategies/watchlist", ListResponse[WatchlistStrategy], options, ctx=ctx)

    def list_wallets(
        self, options: ListOptions | None = None, *, ctx: CallContext | None = None
    ) -> ListResponse[WalletListItem]:
        return self._get("/wallets", ListResponse[WalletListItem], options, ctx=ctx)

    def get_wallet(self, wallet_id: int, *, ctx: CallContext | None = None) -> Wallet:
        envelope = self._get(f"/wallets/{int(wallet_id)}", SingleResponse[Wallet], ctx=ctx, route="/wallets/{id}")
        return envelope.data

    def get_profile(self, *, ctx: CallContext | None = None) -> UserProfile:
        return self._get("/me/profile", SingleResponse[UserProfile], ctx=ctx).data

    def get_subscription(self, *, ctx: CallContext | None = None) -> Subscription:
        return self._get("/me/subscription", SingleResponse[Subscription], ctx=ctx).data

    def iter_strategies(self, page_size: int = 50, *, ctx: CallContext | None = None) -> Iterator[StrategyListItem]:
        return paginate(lambda options: self.list_strategies(options, ctx=ctx), page_size)

    def iter_watchlist(self, page_size: int = 50, *, ctx: CallContext | None = None) -> Iterator[WatchlistStrategy]:
        return paginate(lambda options: self.list_watchlist(options, ctx=ctx), page_size)

    def iter_wallets(self, page_size: int = 50, *, ctx: CallContext | None = None) -> Iterator[WalletListItem]:
        return paginate(lambda options: self.list_wallets(options, ctx=ctx), page_size)

    def _get(
        self,
        path: str,
        model: type[M],
        options: ListOptions | None = None,
        *,
        ctx: CallContext | None = None,
        route: str | None = None,
    ) -> M:
        response = self._executor.execute(path, options, ctx=ctx, route=route)
        try:
            return model.model_validate_json(response.content)
        except ValidationError as exc:
            raise DecodingError(
                f"failed to decode {path} response",
                status_code=response.status_code,
                response_text=response.text,
            ) from exc


def paginate(fetch: Callable[[ListOptions], ListResponse[T]], page_size: int = 50) -> Iterator[T]:
    """
    Yield every item of a list endpoint, one page request at a time.

    Stops after the page reported as the last one, or on an empty page.
    """
    page = 1
    while True:
        result = fetch(ListOptions(page=page, page_size=page_size))
        yield from result.data
        if not result.data or page >= result.pagination.total_pages:
            return
        page += 1
