from __future__ import annotations

from datetime import datetime

from pydantic import Field

from ramaris.models.common import WireModel


class WalletStats(WireModel):
    total_swaps: int = 0
    open_positions: int = 0


class WalletDetailStats(WireModel):
    total_swaps: int = 0
    open_positions: int = 0
    followers: int = 0


class TopToken(WireModel):
    """
    Best performing token traded by a wallet.

    Attributes:
        symbol: Token ticker symbol.
        realized_profit_usd: Profit realized on the token, in USD.
        trade_count: Number of trades on the token.
    """
    symbol: str
    realized_profit_usd: float
    trade_count: int


class WalletListItem(WireModel):
    id: int
    win_rate: float | None = None
    realized_pnl: float | None = Field(default=None, alias="realizedPnL")
    created_at: datetime
    stats: WalletStats
    tags: list[str] = Field(default_factory=list)


class Wallet(WireModel):
    """Full detail of one wallet (``GET /wallets/{id}``)."""
    id: int
    win_rate: float | None = None
    realized_pnl: float | None = Field(default=None, alias="realizedPnL")
    created_at: datetime
    stats: WalletDetailStats
    tags: list[str] = Field(default_factory=list)
    status: str
    top_tokens: list[TopToken] = Field(default_factory=list)
