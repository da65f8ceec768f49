"""
Models for the authenticated user and the API health check.
"""

from __future__ import annotations

from datetime import datetime

from ramaris.models.common import WireModel


class UserProfileStats(WireModel):
    strategies_created: int = 0
    wallets_followed: int = 0
    strategies_followed: int = 0


class UserProfile(WireModel):
    """
    Profile of the user owning the API key.

    Attributes:
        id: User identifier.
        nickname: Public nickname, None if never set.
        name: Display name, None if never set.
        is_founder: True for founding members.
    """
    id: str
    nickname: str | None = None
    name: str | None = None
    email: str
    created_at: datetime
    is_founder: bool = False
    stats: UserProfileStats


class Subscription(WireModel):
    """
    Subscription status of the user owning the API key.

    Attributes:
        tier: Plan tier (e.g. "PRO").
        status: Billing status (e.g. "active").
        current_period_end: End of the paid period, None on free plans.
        cancel_at_period_end: True when the plan will not renew.
    """
    tier: str
    status: str
    current_period_end: datetime | None = None
    cancel_at_period_end: bool = False
    is_founder: bool = False
    created_at: datetime | None = None


class HealthRateLimit(WireModel):
    limit: int
    key_prefix: str


class HealthStatus(WireModel):
    status: str
    version: str
    timestamp: str
    user: str
    rate_limit: HealthRateLimit
