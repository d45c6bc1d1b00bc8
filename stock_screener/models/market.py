"""Stock and index quote shapes returned by the quote sources."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StockQuote(BaseModel):
    """Point-in-time quote for an equity or index."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    symbol: str
    price: float
    change: float = 0.0
    change_percent: float = Field(default=0.0, alias="changePercent")
    volume: int = 0
    market_cap: float = Field(default=0.0, alias="marketCap")
    pe: float = 0.0
    dividend: float = 0.0
    dividend_yield: float = Field(default=0.0, alias="dividendYield")
    high52: float = 0.0
    low52: float = 0.0
    avg_volume: int = Field(default=0, alias="avgVolume")
    timestamp: datetime = Field(default_factory=_utcnow)
    source: str = "live"

    @property
    def is_fallback(self) -> bool:
        return self.source == "fallback"


class IndexSnapshot(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    price: float
    change: float
    change_percent: float = Field(default=0.0, alias="changePercent")


class VolatilityIndexSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    price: float
    change: float


class AdvanceDecline(BaseModel):
    model_config = ConfigDict(frozen=True)

    advancing: int = 0
    declining: int = 0
    unchanged: int = 0


class MarketSnapshot(BaseModel):
    """Broad market overview: the index ETF and the volatility index."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    index: IndexSnapshot
    volatility_index: VolatilityIndexSnapshot = Field(alias="volatilityIndex")
    advance_decline: AdvanceDecline = Field(default_factory=AdvanceDecline, alias="advanceDecline")
    timestamp: datetime = Field(default_factory=_utcnow)


class RateLimitStatus(BaseModel):
    """Remaining budget and window reset time (epoch milliseconds)."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    remaining: int
    reset_timestamp: float = Field(alias="resetTimestamp")


__all__ = [
    "AdvanceDecline",
    "IndexSnapshot",
    "MarketSnapshot",
    "RateLimitStatus",
    "StockQuote",
    "VolatilityIndexSnapshot",
]
