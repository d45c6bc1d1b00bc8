"""Facade wiring the data sources, pricing and screening together.

Hosts construct one :class:`ScreenerCore` with :func:`build_core` and share
it across requests; the core owns the rate limiters and news source health
records for its lifetime.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from stock_screener.config import AppSettings, get_settings
from stock_screener.exceptions import ScreenerError
from stock_screener.math import (
    OptionParameters,
    OptionPrice,
    OptionType,
    price_option,
    recommend_put_credit_spread,
    solve_implied_volatility,
)
from stock_screener.math.implied_vol import DEFAULT_RISK_FREE_RATE
from stock_screener.models import (
    CandidateSummary,
    MarketSnapshot,
    NewsItem,
    NewsSourceStatus,
    OptionQuote,
    RateLimitStatus,
    ScreeningCriteria,
    ScreeningResult,
    StockQuote,
)
from stock_screener.screening import (
    CompositeScoringEngine,
    candidate_from_contract,
    classify_news_sentiment,
    parse_criteria,
    screen,
    select_best_contract,
)
from stock_screener.screening.criteria import dte_in_range
from stock_screener.sources import (
    FallbackOptionsSource,
    FallbackQuoteSource,
    NewsAggregator,
    NewsSource,
    OptionsSource,
    QuoteSource,
    ThreadSafeRateLimiter,
    create_options_source,
    create_quote_source,
)
from stock_screener.sources.fallback import FALLBACK_SOURCE_NAME

logger = logging.getLogger(__name__)

DEFAULT_QUOTE_DELAY_SECONDS = 0.2


class ScreenerCore:
    """Stateful entry point for pricing, screening and market data."""

    def __init__(
        self,
        quote_source: QuoteSource,
        options_source: OptionsSource,
        news: NewsAggregator,
        engine: CompositeScoringEngine | None = None,
        watchlist: Sequence[str] = (),
        default_criteria: Mapping[str, Any] | None = None,
        risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
        quote_delay_seconds: float = DEFAULT_QUOTE_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.quote_source = quote_source
        self.options_source = options_source
        self.news = news
        self.engine = engine or CompositeScoringEngine()
        self.watchlist = [symbol.upper() for symbol in watchlist]
        self.default_criteria = dict(default_criteria or {})
        self.risk_free_rate = risk_free_rate
        self._quote_delay = max(0.0, quote_delay_seconds)
        self._sleep = sleep
        self._today = today

    def price_option(
        self,
        spot: float,
        strike: float,
        time_to_expiry_years: float,
        volatility: float,
        risk_free_rate: float | None = None,
    ) -> OptionPrice:
        return price_option(
            OptionParameters(
                spot=spot,
                strike=strike,
                time_to_expiry_years=time_to_expiry_years,
                risk_free_rate=self.risk_free_rate if risk_free_rate is None else risk_free_rate,
                volatility=volatility,
            )
        )

    def implied_volatility(
        self,
        observed_price: float,
        spot: float,
        strike: float,
        time_to_expiry_years: float,
        option_type: OptionType,
        risk_free_rate: float | None = None,
    ) -> float:
        return solve_implied_volatility(
            observed_price,
            spot,
            strike,
            time_to_expiry_years,
            self.risk_free_rate if risk_free_rate is None else risk_free_rate,
            option_type,
        )

    async def run_screener(
        self,
        criteria: ScreeningCriteria | Mapping[str, Any] | None = None,
        symbols: Sequence[str] | None = None,
    ) -> List[ScreeningResult]:
        """Screen ``symbols`` (default: the configured watchlist).

        Criteria are validated before any data is fetched. News is fetched
        once per run and attributed to each result by ticker mention.

        Raises:
            InvalidCriteria: When ``criteria`` violates its invariants.
        """

        resolved = parse_criteria(self.default_criteria if criteria is None else criteria)
        universe = [symbol.upper() for symbol in (symbols or self.watchlist)]

        report = await self.news.fetch_all_news_report()
        if report.partial:
            logger.info("Screening with partial news: %s", report.errors)

        candidates: List[CandidateSummary] = []
        for index, symbol in enumerate(universe):
            if index and self._quote_delay:
                await self._sleep(self._quote_delay)
            try:
                candidate = await self._build_candidate(symbol, resolved)
            except ScreenerError as exc:
                logger.warning("Skipping %s: %s", symbol, exc)
                continue
            if candidate is not None:
                candidates.append(candidate)

        results = screen(resolved, candidates, engine=self.engine)
        return [self._enrich(result, report.items) for result in results]

    async def _build_candidate(self, symbol: str, criteria: ScreeningCriteria) -> Optional[CandidateSummary]:
        quote = await self.quote_source.get_quote(symbol)
        if quote.price <= 0:
            logger.debug("%s has no usable price (%.2f)", symbol, quote.price)
            return None
        if not criteria.min_price <= quote.price <= criteria.max_price:
            logger.debug("%s price %.2f outside screening range", symbol, quote.price)
            return None

        today = self._today()
        expirations = [
            expiration
            for expiration in await self.options_source.get_expirations(symbol)
            if dte_in_range(criteria, (expiration - today).days)
        ]
        if not expirations:
            logger.debug("%s has no expirations inside %s", symbol, criteria.dte_range)
            return None

        puts: List[OptionQuote] = []
        for expiration in expirations:
            chain = await self.options_source.get_chain(symbol, expiration)
            puts.extend(chain.puts)

        best = select_best_contract(
            puts,
            criteria,
            quote.price,
            today=today,
            risk_free_rate=self.risk_free_rate,
        )
        if best is None:
            logger.debug("%s has no contract matching the criteria", symbol)
            return None
        return candidate_from_contract(quote, best, today=today)

    def _enrich(self, result: ScreeningResult, news: Sequence[NewsItem]) -> ScreeningResult:
        related = [item for item in news if item.mentions(result.symbol)]
        return result.model_copy(
            update={
                "news_sentiment": classify_news_sentiment(related),
                "news_count": len(related),
                "pcs_recommendation": recommend_put_credit_spread(result.price),
            }
        )

    async def get_quote(self, symbol: str) -> StockQuote:
        return await self.quote_source.get_quote(symbol.upper())

    async def get_multiple_quotes(self, symbols: Sequence[str]) -> List[StockQuote]:
        """Quote ``symbols`` one at a time, pausing between requests."""

        quotes: List[StockQuote] = []
        for index, symbol in enumerate(symbols):
            if index and self._quote_delay:
                await self._sleep(self._quote_delay)
            quotes.append(await self.get_quote(symbol))
        return quotes

    async def get_market_snapshot(self) -> MarketSnapshot:
        return await self.quote_source.get_market_snapshot()

    async def fetch_all_news(self) -> List[NewsItem]:
        return await self.news.fetch_all_news()

    async def fetch_news_by_ticker(self, ticker: str) -> List[NewsItem]:
        return await self.news.fetch_news_by_ticker(ticker)

    def get_source_status(self) -> List[NewsSourceStatus]:
        return self.news.get_source_status()

    def get_rate_limit_status(self) -> Dict[str, Optional[RateLimitStatus]]:
        return {
            "quotes": self.quote_source.rate_limit_status(),
            "options": self.options_source.rate_limit_status(),
        }


def _build_quote_source(settings: AppSettings) -> QuoteSource:
    provider = settings.sources.quote_provider
    if provider == FALLBACK_SOURCE_NAME:
        return create_quote_source(provider)
    limits = settings.sources.rate_limit
    limiter = ThreadSafeRateLimiter(limits.max_requests, limits.window_ms, service=provider)
    return FallbackQuoteSource(create_quote_source(provider, rate_limiter=limiter))


def _build_options_source(settings: AppSettings, today: Callable[[], date]) -> OptionsSource:
    provider = settings.sources.options_provider
    if provider == FALLBACK_SOURCE_NAME:
        return create_options_source(provider, today=today)
    limits = settings.sources.rate_limit
    limiter = ThreadSafeRateLimiter(limits.max_requests, limits.window_ms, service=provider)
    return FallbackOptionsSource(
        create_options_source(provider, rate_limiter=limiter),
        create_options_source(FALLBACK_SOURCE_NAME, today=today),
    )


def build_core(
    settings: AppSettings | None = None,
    *,
    quote_source: QuoteSource | None = None,
    options_source: OptionsSource | None = None,
    news: NewsAggregator | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    today: Callable[[], date] = date.today,
) -> ScreenerCore:
    """Assemble a :class:`ScreenerCore` from settings (default: ``get_settings()``)."""

    settings = settings or get_settings()
    sources = settings.sources

    if news is None:
        news = NewsAggregator(
            sources=[NewsSource(name=item.name, url=item.url, enabled=item.enabled) for item in sources.news],
            request_delay_seconds=sources.news_delay_ms / 1000,
            max_consecutive_errors=sources.max_consecutive_errors,
            sleep=sleep,
        )

    core = ScreenerCore(
        quote_source=quote_source or _build_quote_source(settings),
        options_source=options_source or _build_options_source(settings, today),
        news=news,
        engine=CompositeScoringEngine(settings.scoring_dict()),
        watchlist=settings.get_watchlist(),
        default_criteria=settings.screener.criteria,
        risk_free_rate=settings.screener.risk_free_rate,
        quote_delay_seconds=sources.quote_delay_ms / 1000,
        sleep=sleep,
        today=today,
    )
    logger.info(
        "Screener core ready (env=%s, quotes=%s, options=%s)",
        settings.env,
        core.quote_source.name,
        core.options_source.name,
    )
    return core


__all__ = ["ScreenerCore", "build_core"]
