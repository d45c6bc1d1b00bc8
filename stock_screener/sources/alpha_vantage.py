"""Live quote source backed by the Alpha Vantage REST API."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Dict, Mapping, Optional

import requests

from stock_screener.exceptions import SourceUnavailable
from stock_screener.models import RateLimitStatus, StockQuote

from .base import QuoteSource
from .rate_limit import FixedWindowRateLimiter

logger = logging.getLogger(__name__)

API_KEY_VARIABLE = "ALPHA_VANTAGE_KEY"
BASE_URL = "https://www.alphavantage.co/query"
USER_AGENT = "StockScreener/1.0"


def _to_float(value: Any) -> float:
    try:
        return float(str(value).replace("%", ""))
    except (TypeError, ValueError):
        return 0.0


def _to_int(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


class AlphaVantageQuoteSource(QuoteSource):
    """Quotes from Alpha Vantage's ``GLOBAL_QUOTE`` endpoint.

    Expected environment variables:
        * ``ALPHA_VANTAGE_KEY`` - API key; without it every call raises
          :class:`SourceUnavailable` before touching the rate budget.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        rate_limiter: FixedWindowRateLimiter | None = None,
        session: requests.Session | None = None,
        base_url: str = BASE_URL,
        timeout: float = 10.0,
    ) -> None:
        self._api_key = api_key if api_key is not None else os.getenv(API_KEY_VARIABLE, "")
        self._limiter = rate_limiter or FixedWindowRateLimiter(service="alphavantage")
        self._session = session or requests.Session()
        self._base_url = base_url
        self._timeout = timeout
        if not self._api_key:
            logger.warning("%s not set. Quote service will use fallback data.", API_KEY_VARIABLE)

    @property
    def name(self) -> str:
        return "alphavantage"

    async def get_quote(self, symbol: str) -> StockQuote:
        data = await self._request({"function": "GLOBAL_QUOTE", "symbol": symbol})
        quote = data.get("Global Quote")
        if not quote:
            raise SourceUnavailable(self.name, f"No data returned for {symbol}")

        volume = _to_int(quote.get("06. volume"))
        return StockQuote(
            symbol=quote.get("01. symbol") or symbol,
            price=_to_float(quote.get("05. price")),
            change=_to_float(quote.get("09. change")),
            change_percent=_to_float(quote.get("10. change percent")),
            volume=volume,
            avg_volume=volume,
            source=self.name,
        )

    def rate_limit_status(self) -> RateLimitStatus:
        return self._limiter.status()

    async def _request(self, params: Mapping[str, str]) -> Dict[str, Any]:
        if not self._api_key:
            raise SourceUnavailable(self.name, "Alpha Vantage API key not configured")

        self._limiter.acquire()

        query = {**params, "apikey": self._api_key}
        try:
            response = await asyncio.to_thread(
                self._session.get,
                self._base_url,
                params=query,
                headers={"User-Agent": USER_AGENT},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise SourceUnavailable(self.name, str(exc)) from exc

        if not response.ok:
            raise SourceUnavailable(self.name, f"HTTP {response.status_code}: {response.reason}")

        try:
            data = response.json()
        except ValueError as exc:
            raise SourceUnavailable(self.name, "Malformed JSON payload") from exc

        if not isinstance(data, dict):
            raise SourceUnavailable(self.name, "Unexpected payload shape")
        if data.get("Error Message"):
            raise SourceUnavailable(self.name, data["Error Message"])
        if data.get("Note"):
            raise SourceUnavailable(self.name, f"API Limit: {data['Note']}")

        return data


__all__ = ["API_KEY_VARIABLE", "AlphaVantageQuoteSource"]
