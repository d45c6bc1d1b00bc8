"""Market snapshots for individual option contracts and chains."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OptionQuote(BaseModel):
    """Immutable quote for one option contract as returned by a data source."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    symbol: str
    option_type: Literal["call", "put"] = Field(alias="type")
    strike: float
    expiration: date
    bid: float = 0.0
    ask: float = 0.0
    last: float = 0.0
    volume: int = 0
    open_interest: int = Field(default=0, alias="openInterest")
    delta: float = 0.0
    gamma: float = 0.0
    theta: float = 0.0
    vega: float = 0.0
    implied_volatility: float = Field(default=0.0, alias="impliedVolatility")
    timestamp: datetime = Field(default_factory=_utcnow)

    @field_validator("expiration", mode="before")
    @classmethod
    def parse_expiration(cls, value: Any) -> date:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            return datetime.strptime(value[:10], "%Y-%m-%d").date()
        raise ValueError("Unsupported expiration format")

    @field_validator("volume", "open_interest", mode="before")
    @classmethod
    def coerce_int(cls, value: Any) -> int:
        return int(value or 0)

    @field_validator("bid", "ask", "last", "delta", "gamma", "theta", "vega", "implied_volatility", mode="before")
    @classmethod
    def coerce_float(cls, value: Any) -> float:
        return float(value or 0.0)

    @property
    def mid_price(self) -> float:
        return round((self.bid + self.ask) / 2, 4) if self.bid or self.ask else self.last

    @property
    def spread_percent(self) -> Optional[float]:
        """Bid/ask spread as a percentage of the mid price."""

        mid = (self.bid + self.ask) / 2
        if mid <= 0:
            return None
        return (self.ask - self.bid) / mid * 100

    def days_to_expiration(self, today: date | None = None) -> int:
        return (self.expiration - (today or date.today())).days


class OptionsChain(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    expiration: date
    calls: List[OptionQuote] = Field(default_factory=list)
    puts: List[OptionQuote] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=_utcnow)

    def contracts(self) -> List[OptionQuote]:
        return [*self.calls, *self.puts]


__all__ = ["OptionQuote", "OptionsChain"]
