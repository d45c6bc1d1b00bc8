from __future__ import annotations

from typing import Literal, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from stock_screener.math.spreads import SpreadRecommendation

from .option import OptionQuote

Sentiment = Literal["positive", "negative", "neutral"]


class ScreeningCriteria(BaseModel):
    """User supplied filters for a screening run.

    Accepts both the short request keys (``minOI``, ``maxSpread``, ``minIV``)
    and the descriptive ones (``minOpenInterest``, ``maxSpreadPercent``,
    ``minImpliedVolatilityPercent``).
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    min_price: float = Field(default=10.0, alias="minPrice")
    max_price: float = Field(default=200.0, alias="maxPrice")
    target_delta: float = Field(default=0.25, alias="targetDelta")
    min_open_interest: int = Field(
        default=1000,
        alias="minOI",
        validation_alias=AliasChoices("minOI", "minOpenInterest", "min_open_interest"),
    )
    max_spread_percent: float = Field(
        default=20.0,
        alias="maxSpread",
        validation_alias=AliasChoices("maxSpread", "maxSpreadPercent", "max_spread_percent"),
    )
    min_implied_volatility_percent: float = Field(
        default=30.0,
        alias="minIV",
        validation_alias=AliasChoices("minIV", "minImpliedVolatilityPercent", "min_implied_volatility_percent"),
    )
    dte_range: Tuple[int, int] = Field(default=(30, 45), alias="dteRange")


class CandidateSummary(BaseModel):
    """Precomputed per-symbol view handed to the screening engine.

    ``iv`` is expressed in percent. ``open_interest`` and ``spread_percent``
    are optional; the engine only enforces the matching criteria when present.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    symbol: str
    price: float
    change: float = 0.0
    change_percent: float = Field(default=0.0, alias="changePercent")
    volume: int = 0
    market_cap: float = Field(default=0.0, alias="marketCap")
    iv: float
    delta: float = 0.0
    dte: int
    open_interest: Optional[int] = Field(default=None, alias="openInterest")
    spread_percent: Optional[float] = Field(default=None, alias="spreadPercent")
    best_option: Optional[OptionQuote] = Field(default=None, alias="bestOption")


class ScreeningResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    symbol: str
    price: float
    change: float = 0.0
    change_percent: float = Field(default=0.0, alias="changePercent")
    volume: int = 0
    market_cap: float = Field(default=0.0, alias="marketCap")
    iv: float
    target_delta: float = Field(alias="targetDelta")
    dte: int
    score: float
    news_sentiment: Sentiment = Field(default="neutral", alias="newsSentiment")
    news_count: int = Field(default=0, alias="newsCount")
    best_option: Optional[OptionQuote] = Field(default=None, alias="bestOption")
    pcs_recommendation: Optional[SpreadRecommendation] = Field(default=None, alias="pcsRecommendation")


__all__ = ["CandidateSummary", "ScreeningCriteria", "ScreeningResult", "Sentiment"]
