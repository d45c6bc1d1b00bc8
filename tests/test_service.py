import asyncio
import math
from datetime import date, datetime, timezone
from typing import List

import pytest

from stock_screener import build_core
from stock_screener.config import get_settings, reset_settings_cache
from stock_screener.config.loader import OPTIONS_PROVIDER_VARIABLE, QUOTE_PROVIDER_VARIABLE
from stock_screener.exceptions import InvalidCriteria, InvalidInput
from stock_screener.models import NewsItem, StockQuote, serialize_many
from stock_screener.service import ScreenerCore
from stock_screener.sources import NewsAggregator, NewsSource, StaticOptionsSource, StaticQuoteSource
from stock_screener.sources.alpha_vantage import API_KEY_VARIABLE as ALPHA_VANTAGE_KEY
from stock_screener.sources.base import NewsFeed
from stock_screener.sources.news import extract_tickers
from stock_screener.sources.polygon import API_KEY_VARIABLE as POLYGON_KEY

TODAY = date(2024, 1, 12)


class StubFeed(NewsFeed):
    def __init__(self) -> None:
        self.calls = 0

    async def fetch(self, source: NewsSource) -> List[NewsItem]:
        self.calls += 1
        titles = ["AAPL shares rise after earnings beat", "TSLA recall widens"]
        return [
            NewsItem(
                id=f"{source.name}-{index}",
                title=title,
                source=source.name,
                published_at=datetime(2024, 1, 12, 9, index, tzinfo=timezone.utc),
                ticker_symbols=extract_tickers(title),
            )
            for index, title in enumerate(titles)
        ]


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    for variable in (QUOTE_PROVIDER_VARIABLE, OPTIONS_PROVIDER_VARIABLE, ALPHA_VANTAGE_KEY, POLYGON_KEY):
        monkeypatch.delenv(variable, raising=False)
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def feed() -> StubFeed:
    return StubFeed()


@pytest.fixture
def core(feed) -> ScreenerCore:
    news = NewsAggregator(sources=[NewsSource(name="Wire", url="https://example.com/rss")], feed=feed, sleep=SleepRecorder())
    return build_core(get_settings("test"), news=news, today=lambda: TODAY, sleep=SleepRecorder())


def test_screener_selects_fallback_put_and_enriches(core):
    results = asyncio.run(core.run_screener(symbols=["AAPL", "MSFT"]))

    assert [result.symbol for result in results] == ["AAPL"]
    result = results[0]
    assert result.price == 175.43
    assert result.iv == pytest.approx(45.0)
    assert result.dte == 35
    assert result.target_delta == pytest.approx(0.3)
    assert result.best_option.strike == 170.0
    assert math.isclose(result.score, (2.2 + 9.0 + 3.0) / 3, rel_tol=1e-9)
    assert result.news_sentiment == "positive"
    assert result.news_count == 1
    assert result.pcs_recommendation.short_strike == 167
    assert result.pcs_recommendation.long_strike == 158


def test_screener_defaults_to_watchlist(core):
    results = asyncio.run(core.run_screener())

    assert [result.symbol for result in results] == ["AAPL"]


def test_results_serialize_with_camel_case_keys(core):
    payload = serialize_many(asyncio.run(core.run_screener({"targetDelta": 0.3}, symbols=["AAPL"])))

    assert payload[0]["targetDelta"] == pytest.approx(0.3)
    assert payload[0]["newsSentiment"] == "positive"
    assert payload[0]["bestOption"]["openInterest"] == 3500
    assert payload[0]["pcsRecommendation"]["credit"] == pytest.approx(2.7)


def test_invalid_criteria_rejected_before_fetching(core, feed):
    with pytest.raises(InvalidCriteria):
        asyncio.run(core.run_screener({"dteRange": [45, 30]}))

    assert feed.calls == 0


def test_dte_window_without_expirations_returns_nothing(core):
    assert asyncio.run(core.run_screener({"dteRange": [50, 90]})) == []


def test_pricing_helpers(core):
    priced = core.price_option(100.0, 100.0, 1.0, 0.2)
    assert math.isclose(priced.call_price, 10.4506, abs_tol=1e-4)

    solved = core.implied_volatility(priced.put_price, 100.0, 100.0, 1.0, "put")
    assert math.isclose(solved, 0.2, abs_tol=1e-3)

    with pytest.raises(InvalidInput):
        core.price_option(100.0, 100.0, 0.0, 0.2)


def test_multiple_quotes_are_throttled(feed):
    sleep = SleepRecorder()
    core = ScreenerCore(
        quote_source=StaticQuoteSource(),
        options_source=StaticOptionsSource(today=lambda: TODAY),
        news=NewsAggregator(sources=[], feed=feed),
        quote_delay_seconds=0.2,
        sleep=sleep,
    )

    quotes = asyncio.run(core.get_multiple_quotes(["aapl", "MSFT", "XYZ"]))

    assert [quote.price for quote in quotes] == [175.43, 378.85, 100.0]
    assert sleep.delays == [0.2, 0.2]


def test_market_snapshot_and_news(core):
    snapshot = asyncio.run(core.get_market_snapshot())
    news = asyncio.run(core.fetch_news_by_ticker("TSLA"))

    assert snapshot.index.price == 456.78
    assert [item.title for item in news] == ["TSLA recall widens"]
    assert core.get_source_status()[0].last_fetch is not None
    assert core.get_rate_limit_status() == {"quotes": None, "options": None}


def test_live_providers_without_keys_fall_back(feed):
    news = NewsAggregator(sources=[], feed=feed)
    core = build_core(get_settings("dev"), news=news, today=lambda: TODAY)

    quote = asyncio.run(core.get_quote("AAPL"))
    expirations = asyncio.run(core.options_source.get_expirations("AAPL"))

    assert quote.is_fallback
    assert quote.price == 175.43
    assert expirations
    status = core.get_rate_limit_status()
    assert status["quotes"].remaining == 5
    assert status["options"].remaining == 5
    assert core.quote_source.name == "alphavantage"
    assert core.options_source.name == "polygon"


def test_screener_pauses_between_symbols(feed):
    sleep = SleepRecorder()
    core = ScreenerCore(
        quote_source=StaticQuoteSource(),
        options_source=StaticOptionsSource(today=lambda: TODAY),
        news=NewsAggregator(sources=[], feed=feed),
        quote_delay_seconds=0.2,
        sleep=sleep,
        today=lambda: TODAY,
    )

    asyncio.run(core.run_screener(symbols=["AAPL", "MSFT", "NVDA"]))

    assert sleep.delays == [0.2, 0.2]


def test_screener_skips_quotes_without_a_price(feed):
    class UnpricedQuoteSource(StaticQuoteSource):
        def quote_for(self, symbol):
            if symbol == "ZERO":
                return StockQuote(symbol=symbol, price=0.0, source="alphavantage")
            return super().quote_for(symbol)

    core = ScreenerCore(
        quote_source=UnpricedQuoteSource(),
        options_source=StaticOptionsSource(today=lambda: TODAY),
        news=NewsAggregator(sources=[], feed=feed),
        quote_delay_seconds=0,
        today=lambda: TODAY,
    )

    results = asyncio.run(core.run_screener({"minPrice": 0}, symbols=["ZERO", "AAPL"]))

    assert [result.symbol for result in results] == ["AAPL"]
    assert results[0].pcs_recommendation is not None
