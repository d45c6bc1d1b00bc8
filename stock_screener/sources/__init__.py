"""Quote, options and news sources for external market data providers."""

from __future__ import annotations

from importlib import import_module
from typing import Any, Dict

from .base import NewsFeed, OptionsSource, QuoteSource
from .fallback import FallbackOptionsSource, FallbackQuoteSource, StaticOptionsSource, StaticQuoteSource
from .news import NewsAggregator, NewsSource, RSSFeedReader
from .rate_limit import FixedWindowRateLimiter, ThreadSafeRateLimiter

_QUOTE_REGISTRY: Dict[str, str] = {
    "alphavantage": "stock_screener.sources.alpha_vantage:AlphaVantageQuoteSource",
    "yfinance": "stock_screener.sources.yfinance:YFinanceQuoteSource",
    "fallback": "stock_screener.sources.fallback:StaticQuoteSource",
}

_OPTIONS_REGISTRY: Dict[str, str] = {
    "polygon": "stock_screener.sources.polygon:PolygonOptionsSource",
    "yfinance": "stock_screener.sources.yfinance:YFinanceOptionsSource",
    "fallback": "stock_screener.sources.fallback:StaticOptionsSource",
}


def _load(registry: Dict[str, str], kind: str, provider: str, kwargs: Dict[str, Any]):
    normalized = provider.lower()
    try:
        dotted_path = registry[normalized]
    except KeyError as exc:
        raise KeyError(f"Unknown {kind} data provider: {provider}") from exc

    module_name, class_name = dotted_path.split(":", 1)
    module = import_module(module_name)
    return getattr(module, class_name)(**kwargs)


def create_quote_source(provider: str, **kwargs: Any) -> QuoteSource:
    """Instantiate a quote source by name.

    Args:
        provider: The lowercase name of the provider to load.
        **kwargs: Passed through to the source constructor.

    Raises:
        KeyError: If the provider name is unknown.
    """

    return _load(_QUOTE_REGISTRY, "quote", provider, kwargs)


def create_options_source(provider: str, **kwargs: Any) -> OptionsSource:
    """Instantiate an options source by name; see :func:`create_quote_source`."""

    return _load(_OPTIONS_REGISTRY, "options", provider, kwargs)


__all__ = [
    "FallbackOptionsSource",
    "FallbackQuoteSource",
    "FixedWindowRateLimiter",
    "NewsAggregator",
    "NewsFeed",
    "NewsSource",
    "OptionsSource",
    "QuoteSource",
    "RSSFeedReader",
    "StaticOptionsSource",
    "StaticQuoteSource",
    "ThreadSafeRateLimiter",
    "create_options_source",
    "create_quote_source",
]
