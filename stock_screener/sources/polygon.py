"""Live options source backed by Polygon.io's options snapshot API."""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

import requests
from pydantic import ValidationError

from stock_screener.exceptions import SourceUnavailable
from stock_screener.models import OptionQuote, OptionsChain, RateLimitStatus

from .base import OptionsSource
from .rate_limit import FixedWindowRateLimiter

logger = logging.getLogger(__name__)

API_KEY_VARIABLE = "POLYGON_API_KEY"
BASE_URL = "https://api.polygon.io/v3"
USER_AGENT = "StockScreener/1.0"


class PolygonOptionsSource(OptionsSource):
    """Options data adapter for Polygon.io.

    Expected environment variables:
        * ``POLYGON_API_KEY`` - API key used to authenticate requests.
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
        self._limiter = rate_limiter or FixedWindowRateLimiter(service="polygon")
        self._session = session or requests.Session()
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        if not self._api_key:
            logger.warning("%s not set. Options service will use fallback data.", API_KEY_VARIABLE)

    @property
    def name(self) -> str:
        return "polygon"

    async def get_expirations(self, symbol: str) -> Sequence[date]:
        data = await self._request(
            "/reference/options/contracts",
            {"underlying_ticker": symbol, "expired": "false", "limit": "1000"},
        )
        expirations = set()
        for contract in data.get("results") or []:
            raw = contract.get("expiration_date")
            try:
                expirations.add(datetime.strptime(raw, "%Y-%m-%d").date())
            except (TypeError, ValueError):
                continue
        return sorted(expirations)

    async def get_chain(self, symbol: str, expiration: date) -> OptionsChain:
        data = await self._request(
            f"/snapshot/options/{symbol}",
            {"expiration_date": expiration.isoformat(), "limit": "250"},
        )
        calls: List[OptionQuote] = []
        puts: List[OptionQuote] = []
        for result in data.get("results") or []:
            quote = self._parse_snapshot(symbol, result)
            if quote is None:
                continue
            (calls if quote.option_type == "call" else puts).append(quote)

        calls.sort(key=lambda quote: quote.strike)
        puts.sort(key=lambda quote: quote.strike)
        return OptionsChain(symbol=symbol, expiration=expiration, calls=calls, puts=puts)

    def rate_limit_status(self) -> RateLimitStatus:
        return self._limiter.status()

    def _parse_snapshot(self, symbol: str, result: Mapping[str, Any]) -> Optional[OptionQuote]:
        details = result.get("details") or {}
        contract_type = details.get("contract_type")
        if contract_type not in ("call", "put"):
            return None
        greeks = result.get("greeks") or {}
        last_quote = result.get("last_quote") or {}
        day = result.get("day") or {}
        last_trade = result.get("last_trade") or {}
        try:
            return OptionQuote(
                symbol=symbol,
                option_type=contract_type,
                strike=details.get("strike_price") or 0.0,
                expiration=details.get("expiration_date"),
                bid=last_quote.get("bid"),
                ask=last_quote.get("ask"),
                last=last_trade.get("price") or day.get("close"),
                volume=day.get("volume"),
                open_interest=result.get("open_interest"),
                delta=greeks.get("delta"),
                gamma=greeks.get("gamma"),
                theta=greeks.get("theta"),
                vega=greeks.get("vega"),
                implied_volatility=result.get("implied_volatility"),
            )
        except ValidationError as exc:
            logger.debug("Skipping malformed %s snapshot row: %s", symbol, exc)
            return None

    async def _request(self, endpoint: str, params: Mapping[str, str]) -> Dict[str, Any]:
        if not self._api_key:
            raise SourceUnavailable(self.name, "Polygon API key not configured")

        self._limiter.acquire()

        try:
            response = await asyncio.to_thread(
                self._session.get,
                f"{self._base_url}{endpoint}",
                params={**params, "apiKey": self._api_key},
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
        return data


__all__ = ["API_KEY_VARIABLE", "PolygonOptionsSource"]
