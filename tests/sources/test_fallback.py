import asyncio
import logging
from datetime import date, timedelta

import pytest

from stock_screener.exceptions import RateLimitExceeded, SourceUnavailable
from stock_screener.models import OptionsChain, RateLimitStatus, StockQuote
from stock_screener.sources.base import OptionsSource, QuoteSource
from stock_screener.sources.fallback import (
    FallbackOptionsSource,
    FallbackQuoteSource,
    StaticOptionsSource,
    StaticQuoteSource,
)


class BrokenQuoteSource(QuoteSource):
    def __init__(self, error: Exception) -> None:
        self.error = error

    @property
    def name(self) -> str:
        return "broken"

    async def get_quote(self, symbol: str) -> StockQuote:
        raise self.error

    def rate_limit_status(self):
        return RateLimitStatus(remaining=0, reset_timestamp=123.0)


class BrokenOptionsSource(OptionsSource):
    @property
    def name(self) -> str:
        return "broken"

    async def get_expirations(self, symbol: str):
        raise SourceUnavailable(self.name, "no key")

    async def get_chain(self, symbol: str, expiration: date) -> OptionsChain:
        raise RateLimitExceeded(30_000)


def test_static_quotes_are_deterministic():
    source = StaticQuoteSource()

    aapl = asyncio.run(source.get_quote("AAPL"))
    unknown = asyncio.run(source.get_quote("ZZZZ"))

    assert aapl.price == 175.43
    assert aapl.change == 2.15
    assert aapl.pe == 28.5
    assert aapl.is_fallback
    assert asyncio.run(source.get_quote("MSFT")).price == 378.85
    assert unknown.symbol == "ZZZZ"
    assert unknown.price == 100.0


def test_static_snapshot():
    snapshot = asyncio.run(StaticQuoteSource().get_market_snapshot())

    assert snapshot.index.price == 456.78
    assert snapshot.volatility_index.change == -0.23
    assert snapshot.advance_decline.advancing == 2456


@pytest.mark.parametrize(
    "error",
    [SourceUnavailable("broken", "boom"), RateLimitExceeded(1_000), ValueError("bad json"), KeyError("price")],
)
def test_quote_failures_fall_back(error, caplog):
    source = FallbackQuoteSource(BrokenQuoteSource(error))

    with caplog.at_level(logging.WARNING, logger="stock_screener.sources.fallback"):
        quote = asyncio.run(source.get_quote("AAPL"))

    assert quote.price == 175.43
    assert quote.is_fallback
    assert "Error fetching quote for AAPL from broken" in caplog.text


def test_snapshot_failure_falls_back():
    source = FallbackQuoteSource(BrokenQuoteSource(SourceUnavailable("broken", "boom")))

    snapshot = asyncio.run(source.get_market_snapshot())

    assert snapshot.index.price == 456.78
    assert snapshot.volatility_index.price == 18.45


def test_programming_errors_are_not_masked():
    source = FallbackQuoteSource(BrokenQuoteSource(RuntimeError("bug")))

    with pytest.raises(RuntimeError):
        asyncio.run(source.get_quote("AAPL"))


def test_wrapper_reports_primary_identity():
    source = FallbackQuoteSource(BrokenQuoteSource(ValueError()))

    assert source.name == "broken"
    assert source.rate_limit_status().remaining == 0


def test_options_failures_fall_back():
    today = date(2024, 1, 12)
    source = FallbackOptionsSource(BrokenOptionsSource(), StaticOptionsSource(today=lambda: today))

    expirations = asyncio.run(source.get_expirations("AAPL"))
    chain = asyncio.run(source.get_chain("AAPL", expirations[0]))

    assert expirations == [today + timedelta(days=35)]
    assert [quote.strike for quote in chain.puts] == [160.0, 165.0, 170.0, 175.0, 180.0, 185.0, 190.0]
    assert len(chain.calls) == 7
    assert all(quote.implied_volatility == 0.45 for quote in chain.contracts())


def test_static_chain_deltas_are_bounded():
    chain = StaticOptionsSource().chain_for("AAPL", date(2024, 2, 16))

    for put, call in zip(chain.puts, chain.calls):
        assert -0.9 <= put.delta <= -0.05
        assert call.delta == pytest.approx(1 + put.delta)
        assert put.ask > put.bid > 0
