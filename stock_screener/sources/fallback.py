"""Deterministic fallback data and the wrappers that substitute it.

Live sources raise on any failure. :class:`FallbackQuoteSource` and
:class:`FallbackOptionsSource` catch those failures, log them and answer from
a deterministic source instead, so callers always receive a structurally
valid response.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Sequence

import requests

from stock_screener.exceptions import ScreenerError
from stock_screener.models import (
    AdvanceDecline,
    IndexSnapshot,
    MarketSnapshot,
    OptionQuote,
    OptionsChain,
    RateLimitStatus,
    StockQuote,
    VolatilityIndexSnapshot,
)

from .base import OptionsSource, QuoteSource

logger = logging.getLogger(__name__)

FALLBACK_SOURCE_NAME = "fallback"

# Failures a live source may surface; anything else is a programming error.
SOURCE_ERRORS = (ScreenerError, requests.RequestException, ValueError, KeyError, TypeError)

_FALLBACK_QUOTES: Dict[str, Dict[str, float]] = {
    "AAPL": {
        "price": 175.43,
        "change": 2.15,
        "change_percent": 1.24,
        "volume": 45678900,
        "market_cap": 2750000000000,
        "pe": 28.5,
        "dividend": 0.92,
        "dividend_yield": 2.1,
        "high52": 198.23,
        "low52": 124.17,
        "avg_volume": 45678900,
    },
    "MSFT": {
        "price": 378.85,
        "change": -1.23,
        "change_percent": -0.32,
        "volume": 23456700,
        "market_cap": 2810000000000,
        "pe": 35.2,
        "dividend": 3.00,
        "dividend_yield": 0.8,
        "high52": 420.82,
        "low52": 213.43,
        "avg_volume": 23456700,
    },
    "SPY": {
        "price": 456.78,
        "change": 3.45,
        "change_percent": 0.76,
        "volume": 80000000,
        "avg_volume": 80000000,
    },
    "^VIX": {
        "price": 18.45,
        "change": -0.23,
        "change_percent": -1.23,
    },
}

_DEFAULT_QUOTE: Dict[str, float] = {
    "price": 100.00,
    "change": 0.0,
    "change_percent": 0.0,
    "volume": 1000000,
    "market_cap": 1000000000,
    "pe": 20.0,
    "dividend": 0.0,
    "dividend_yield": 0.0,
    "high52": 110.00,
    "low52": 90.00,
    "avg_volume": 1000000,
}

FALLBACK_STRIKES = (160, 165, 170, 175, 180, 185, 190)
FALLBACK_CENTER = 175.0
FALLBACK_DTE = 35


class StaticQuoteSource(QuoteSource):
    """Fixed quotes and market snapshot; never fails."""

    @property
    def name(self) -> str:
        return FALLBACK_SOURCE_NAME

    async def get_quote(self, symbol: str) -> StockQuote:
        return self.quote_for(symbol)

    def quote_for(self, symbol: str) -> StockQuote:
        values = _FALLBACK_QUOTES.get(symbol.upper(), _DEFAULT_QUOTE)
        return StockQuote(symbol=symbol, source=FALLBACK_SOURCE_NAME, **values)

    async def get_market_snapshot(self) -> MarketSnapshot:
        return MarketSnapshot(
            index=IndexSnapshot(price=456.78, change=3.45, change_percent=0.76),
            volatility_index=VolatilityIndexSnapshot(price=18.45, change=-0.23),
            advance_decline=AdvanceDecline(advancing=2456, declining=1890, unchanged=234),
        )


class StaticOptionsSource(OptionsSource):
    """Seven-strike chain around 175 with fixed, plausible values."""

    def __init__(self, today: Callable[[], date] | None = None) -> None:
        self._today = today or date.today

    @property
    def name(self) -> str:
        return FALLBACK_SOURCE_NAME

    async def get_expirations(self, symbol: str) -> Sequence[date]:
        return [self._today() + timedelta(days=FALLBACK_DTE)]

    async def get_chain(self, symbol: str, expiration: date) -> OptionsChain:
        return self.chain_for(symbol, expiration)

    def chain_for(self, symbol: str, expiration: date) -> OptionsChain:
        puts: List[OptionQuote] = []
        calls: List[OptionQuote] = []
        for strike in FALLBACK_STRIKES:
            put_delta = -min(0.9, max(0.05, 0.5 + (strike - FALLBACK_CENTER) * 0.04))
            put_bid = max(0.05, (180 - strike) * 0.1)
            call_bid = max(0.05, (strike - FALLBACK_CENTER) * 0.1)
            shared = {
                "symbol": symbol,
                "expiration": expiration,
                "strike": float(strike),
                "volume": 1500,
                "open_interest": 3500,
                "gamma": 0.02,
                "theta": -0.15,
                "vega": 0.75,
                "implied_volatility": 0.45,
            }
            puts.append(
                OptionQuote(
                    option_type="put",
                    bid=round(put_bid, 2),
                    ask=round(put_bid + 0.05, 2),
                    last=round(put_bid + 0.03, 2),
                    delta=round(put_delta, 2),
                    **shared,
                )
            )
            calls.append(
                OptionQuote(
                    option_type="call",
                    bid=round(call_bid, 2),
                    ask=round(call_bid + 0.05, 2),
                    last=round(call_bid + 0.03, 2),
                    delta=round(1 + put_delta, 2),
                    **shared,
                )
            )
        return OptionsChain(symbol=symbol, expiration=expiration, calls=calls, puts=puts)


class FallbackQuoteSource(QuoteSource):
    """Serve quotes from ``primary`` and substitute ``fallback`` on failure."""

    def __init__(self, primary: QuoteSource, fallback: QuoteSource | None = None) -> None:
        self.primary = primary
        self.fallback = fallback or StaticQuoteSource()

    @property
    def name(self) -> str:
        return self.primary.name

    async def get_quote(self, symbol: str) -> StockQuote:
        try:
            return await self.primary.get_quote(symbol)
        except SOURCE_ERRORS as exc:
            logger.warning("Error fetching quote for %s from %s: %s", symbol, self.primary.name, exc)
            return await self.fallback.get_quote(symbol)

    async def get_market_snapshot(self) -> MarketSnapshot:
        try:
            return await self.primary.get_market_snapshot()
        except SOURCE_ERRORS as exc:
            logger.warning("Error fetching market data from %s: %s", self.primary.name, exc)
            return await self.fallback.get_market_snapshot()

    def rate_limit_status(self) -> Optional[RateLimitStatus]:
        return self.primary.rate_limit_status()


class FallbackOptionsSource(OptionsSource):
    """Serve chains from ``primary`` and substitute ``fallback`` on failure."""

    def __init__(self, primary: OptionsSource, fallback: OptionsSource | None = None) -> None:
        self.primary = primary
        self.fallback = fallback or StaticOptionsSource()

    @property
    def name(self) -> str:
        return self.primary.name

    async def get_expirations(self, symbol: str) -> Sequence[date]:
        try:
            return await self.primary.get_expirations(symbol)
        except SOURCE_ERRORS as exc:
            logger.warning("Error fetching expirations for %s from %s: %s", symbol, self.primary.name, exc)
            return await self.fallback.get_expirations(symbol)

    async def get_chain(self, symbol: str, expiration: date) -> OptionsChain:
        try:
            return await self.primary.get_chain(symbol, expiration)
        except SOURCE_ERRORS as exc:
            logger.warning(
                "Error fetching options chain for %s %s from %s: %s",
                symbol,
                expiration,
                self.primary.name,
                exc,
            )
            return await self.fallback.get_chain(symbol, expiration)

    def rate_limit_status(self) -> Optional[RateLimitStatus]:
        return self.primary.rate_limit_status()


__all__ = [
    "FALLBACK_SOURCE_NAME",
    "FallbackOptionsSource",
    "FallbackQuoteSource",
    "SOURCE_ERRORS",
    "StaticOptionsSource",
    "StaticQuoteSource",
]
