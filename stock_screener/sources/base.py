"""Core abstractions for quote and options data sources."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from datetime import date
from typing import TYPE_CHECKING, List, Optional, Sequence

from stock_screener.models import (
    IndexSnapshot,
    MarketSnapshot,
    NewsItem,
    OptionsChain,
    RateLimitStatus,
    StockQuote,
    VolatilityIndexSnapshot,
)

if TYPE_CHECKING:
    from .news import NewsSource

INDEX_SYMBOL = "SPY"
VOLATILITY_INDEX_SYMBOL = "^VIX"


class QuoteSource(ABC):
    """Abstract base class for fetching stock quotes from a provider."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human readable provider name."""

    @abstractmethod
    async def get_quote(self, symbol: str) -> StockQuote:
        """Return the latest quote for ``symbol``."""

    async def get_market_snapshot(self) -> MarketSnapshot:
        """Quote the index and the volatility index concurrently."""

        index, volatility = await asyncio.gather(
            self.get_quote(INDEX_SYMBOL),
            self.get_quote(VOLATILITY_INDEX_SYMBOL),
        )
        return MarketSnapshot(
            index=IndexSnapshot(price=index.price, change=index.change, change_percent=index.change_percent),
            volatility_index=VolatilityIndexSnapshot(price=volatility.price, change=volatility.change),
        )

    def rate_limit_status(self) -> Optional[RateLimitStatus]:
        return None


class OptionsSource(ABC):
    """Abstract base class for fetching option chains from a provider."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human readable provider name."""

    @abstractmethod
    async def get_chain(self, symbol: str, expiration: date) -> OptionsChain:
        """Return the options chain for a symbol and expiration date."""

    @abstractmethod
    async def get_expirations(self, symbol: str) -> Sequence[date]:
        """Return available expirations for a symbol."""

    def rate_limit_status(self) -> Optional[RateLimitStatus]:
        return None


class NewsFeed(ABC):
    """Fetches and parses the items published by one news endpoint."""

    @abstractmethod
    async def fetch(self, source: NewsSource) -> List[NewsItem]:
        """Return the items currently published by ``source``."""


__all__ = [
    "INDEX_SYMBOL",
    "NewsFeed",
    "OptionsSource",
    "QuoteSource",
    "VOLATILITY_INDEX_SYMBOL",
]
