"""Quote and options sources backed by the public yfinance client."""

from __future__ import annotations

import asyncio
import logging
import math
import random
import time
from datetime import date, datetime
from typing import Any, Callable, List, Optional, Sequence

import pandas as pd
import yfinance as yf
from pydantic import ValidationError

from stock_screener.exceptions import SourceUnavailable
from stock_screener.models import OptionQuote, OptionsChain, RateLimitStatus, StockQuote

from .base import OptionsSource, QuoteSource
from .rate_limit import FixedWindowRateLimiter

logger = logging.getLogger(__name__)


class _YFinanceClient:
    """Shared ticker factory and retry loop for the yfinance sources."""

    source_name = "yfinance"

    def __init__(
        self,
        ticker_factory: Callable[[str], yf.Ticker] | None = None,
        rate_limiter: FixedWindowRateLimiter | None = None,
        max_retries: int = 3,
        base_delay: float = 0.75,
        max_delay: float = 4.0,
        jitter: float = 0.3,
    ) -> None:
        self._ticker_factory = ticker_factory or yf.Ticker
        self._limiter = rate_limiter
        self._max_retries = max(1, max_retries)
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._jitter = jitter

    def _retry(self, operation: Callable[[], Any], context: str):
        last_error: Exception | None = None
        for attempt in range(self._max_retries):
            try:
                return operation()
            except Exception as exc:  # yfinance raises generic errors
                last_error = exc
                if attempt == self._max_retries - 1:
                    break
                self._apply_backoff(attempt)

        raise SourceUnavailable(self.source_name, f"Failed to {context}: {last_error}") from last_error

    def _apply_backoff(self, attempt: int) -> None:
        delay = min(self._max_delay, self._base_delay * (1 + attempt))
        delay += random.uniform(0, self._jitter)
        time.sleep(delay)

    async def _call(self, operation: Callable[[], Any], context: str):
        if self._limiter is not None:
            self._limiter.acquire()
        return await asyncio.to_thread(self._retry, operation, context)

    def _status(self) -> Optional[RateLimitStatus]:
        return self._limiter.status() if self._limiter is not None else None


def _is_valid_price(value: Any) -> bool:
    if value in (None, 0, ""):
        return False
    try:
        price_val = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(price_val) and price_val > 0


def _number(value: Any, default: float = 0.0) -> float:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


class YFinanceQuoteSource(_YFinanceClient, QuoteSource):
    """Fetch stock quotes from Yahoo Finance's ``info`` payload."""

    @property
    def name(self) -> str:
        return "yfinance"

    async def get_quote(self, symbol: str) -> StockQuote:
        ticker = self._ticker_factory(symbol)
        info = await self._call(lambda: ticker.info, context=f"fetch quote for {symbol}")
        if not isinstance(info, dict):
            raise SourceUnavailable(self.name, f"No data returned for {symbol}")

        current_price = info.get("currentPrice", info.get("regularMarketPrice"))
        if not _is_valid_price(current_price):
            raise SourceUnavailable(self.name, f"No price available for {symbol}")
        current_price = float(current_price)
        previous_close = _number(info.get("previousClose"), current_price)
        change = current_price - previous_close

        return StockQuote(
            symbol=symbol,
            price=round(current_price, 2),
            change=round(change, 2),
            change_percent=round(change / previous_close * 100, 2) if previous_close else 0.0,
            volume=int(_number(info.get("volume"))),
            market_cap=_number(info.get("marketCap")),
            pe=_number(info.get("trailingPE")),
            dividend=_number(info.get("dividendRate")),
            dividend_yield=_number(info.get("dividendYield")),
            high52=_number(info.get("fiftyTwoWeekHigh")),
            low52=_number(info.get("fiftyTwoWeekLow")),
            avg_volume=int(_number(info.get("averageVolume"))),
            source=self.name,
        )

    def rate_limit_status(self) -> Optional[RateLimitStatus]:
        return self._status()


class YFinanceOptionsSource(_YFinanceClient, OptionsSource):
    """Fetch options chains from Yahoo Finance via yfinance."""

    @property
    def name(self) -> str:
        return "yfinance"

    async def get_expirations(self, symbol: str) -> Sequence[date]:
        ticker = self._ticker_factory(symbol)
        expirations = await self._call(lambda: ticker.options, context="fetch expirations")
        parsed: List[date] = []
        for raw in expirations:
            try:
                parsed.append(datetime.strptime(raw, "%Y-%m-%d").date())
            except ValueError:
                continue
        return parsed

    async def get_chain(self, symbol: str, expiration: date) -> OptionsChain:
        ticker = self._ticker_factory(symbol)
        expiration_str = expiration.strftime("%Y-%m-%d")
        option_chain = await self._call(
            lambda: ticker.option_chain(expiration_str),
            context=f"fetch options chain for {symbol} {expiration_str}",
        )

        calls_frame = getattr(option_chain, "calls", None)
        puts_frame = getattr(option_chain, "puts", None)
        return OptionsChain(
            symbol=symbol,
            expiration=expiration,
            calls=self._frame_to_quotes(symbol, expiration, "call", calls_frame),
            puts=self._frame_to_quotes(symbol, expiration, "put", puts_frame),
        )

    def rate_limit_status(self) -> Optional[RateLimitStatus]:
        return self._status()

    def _frame_to_quotes(
        self,
        symbol: str,
        expiration: date,
        option_type: str,
        frame: pd.DataFrame | None,
    ) -> List[OptionQuote]:
        if frame is None or frame.empty:
            return []

        quotes: List[OptionQuote] = []
        for row in frame.to_dict("records"):
            try:
                quotes.append(
                    OptionQuote(
                        symbol=symbol,
                        option_type=option_type,
                        strike=_number(row.get("strike")),
                        expiration=expiration,
                        bid=_number(row.get("bid")),
                        ask=_number(row.get("ask")),
                        last=_number(row.get("lastPrice")),
                        volume=int(_number(row.get("volume"))),
                        open_interest=int(_number(row.get("openInterest"))),
                        implied_volatility=_number(row.get("impliedVolatility")),
                    )
                )
            except ValidationError as exc:
                logger.debug("Skipping malformed %s %s row: %s", symbol, option_type, exc)
        return quotes


__all__ = ["YFinanceOptionsSource", "YFinanceQuoteSource"]
