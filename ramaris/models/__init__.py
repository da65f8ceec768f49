from ramaris.models.account import HealthRateLimit, HealthStatus, Subscription, UserProfile, UserProfileStats
from ramaris.models.common import ListResponse, Pagination, SingleResponse
from ramaris.models.strategies import (
    Strategy,
    StrategyCreator,
    StrategyDetailStats,
    StrategyListItem,
    StrategyStats,
    WatchlistStrategy,
)
from ramaris.models.wallets import TopToken, Wallet, WalletDetailStats, WalletListItem, WalletStats

__all__ = [
    "HealthRateLimit",
    "HealthStatus",
    "ListResponse",
    "Pagination",
    "SingleResponse",
    "Strategy",
    "StrategyCreator",
    "StrategyDetailStats",
    "StrategyListItem",
    "StrategyStats",
    "Subscription",
    "TopToken",
    "UserProfile",
    "UserProfileStats",
    "Wallet",
    "WalletDetailStats",
    "WalletListItem",
    "WalletStats",
    "WatchlistStrategy",
]
