from __future__ import annotations

from datetime import datetime

from pydantic import Field

from ramaris.models.common import WireModel


class StrategyCreator(WireModel):
    nickname: str | None = None


class StrategyStats(WireModel):
    wallets_tracked: int = 0
    total_swaps: int = 0


class StrategyDetailStats(WireModel):
    wallets_tracked: int = 0
    total_swaps: int = 0
    total_notifications: int = 0


class StrategyListItem(WireModel):
    """
    Strategy as returned by ``GET /strategies``.

    Attributes:
        id: Numeric strategy id.
        share_id: Public identifier used in strategy URLs.
        roi_percent: Return on investment, None when not computed yet.
        last_activity_at: Time of the last tracked swap, if any.
    """
    id: int
    share_id: str
    name: str
    description: str | None = None
    roi_percent: float | None = None
    last_activity_at: datetime | None = None
    created_at: datetime
    creator: StrategyCreator
    stats: StrategyStats


class Strategy(WireModel):
    """Full detail of one strategy (``GET /strategies/{shareId}``)."""
    id: int
    share_id: str
    name: str
    description: str | None = None
    roi_percent: float | None = None
    last_activity_at: datetime | None = None
    created_at: datetime
    creator: StrategyCreator
    stats: StrategyDetailStats
    status: str
    tags: list[str] = Field(default_factory=list)


class WatchlistStrategy(WireModel):
    id: int
    share_id: str
    name: str
    description: str | None = None
    roi_percent: float | None = None
    last_activity_at: datetime | None = None
    creator: StrategyCreator
    copied_at: datetime
