import asyncio
from unittest.mock import MagicMock

import pytest
import requests

from stock_screener.exceptions import RateLimitExceeded, SourceUnavailable
from stock_screener.sources.alpha_vantage import API_KEY_VARIABLE, AlphaVantageQuoteSource
from stock_screener.sources.rate_limit import FixedWindowRateLimiter


def make_response(payload, ok=True, status_code=200):
    response = MagicMock()
    response.ok = ok
    response.status_code = status_code
    response.reason = "OK" if ok else "Server Error"
    response.json.return_value = payload
    return response


GLOBAL_QUOTE = {
    "Global Quote": {
        "01. symbol": "AAPL",
        "05. price": "175.4300",
        "06. volume": "45678900",
        "09. change": "2.1500",
        "10. change percent": "1.2400%",
    }
}


def test_parses_global_quote():
    session = MagicMock()
    session.get.return_value = make_response(GLOBAL_QUOTE)
    source = AlphaVantageQuoteSource(api_key="demo", session=session)

    quote = asyncio.run(source.get_quote("AAPL"))

    assert quote.symbol == "AAPL"
    assert quote.price == 175.43
    assert quote.change == 2.15
    assert quote.change_percent == 1.24
    assert quote.volume == 45678900
    assert quote.source == "alphavantage"
    assert not quote.is_fallback

    _, kwargs = session.get.call_args
    assert kwargs["params"] == {"function": "GLOBAL_QUOTE", "symbol": "AAPL", "apikey": "demo"}
    assert source.rate_limit_status().remaining == 4


def test_missing_key_fails_before_consuming_budget(monkeypatch):
    monkeypatch.delenv(API_KEY_VARIABLE, raising=False)
    session = MagicMock()
    source = AlphaVantageQuoteSource(session=session)

    with pytest.raises(SourceUnavailable):
        asyncio.run(source.get_quote("AAPL"))

    session.get.assert_not_called()
    assert source.rate_limit_status().remaining == 5


def test_key_read_from_environment(monkeypatch):
    monkeypatch.setenv(API_KEY_VARIABLE, "from-env")
    session = MagicMock()
    session.get.return_value = make_response(GLOBAL_QUOTE)
    source = AlphaVantageQuoteSource(session=session)

    asyncio.run(source.get_quote("AAPL"))

    _, kwargs = session.get.call_args
    assert kwargs["params"]["apikey"] == "from-env"


@pytest.mark.parametrize(
    "payload,message",
    [
        ({"Error Message": "Invalid API call"}, "Invalid API call"),
        ({"Note": "Thank you for using Alpha Vantage"}, "API Limit"),
        ({"Global Quote": {}}, "No data returned"),
    ],
)
def test_error_payloads_raise(payload, message):
    session = MagicMock()
    session.get.return_value = make_response(payload)
    source = AlphaVantageQuoteSource(api_key="demo", session=session)

    with pytest.raises(SourceUnavailable, match=message):
        asyncio.run(source.get_quote("AAPL"))


def test_http_and_transport_errors_raise():
    session = MagicMock()
    session.get.return_value = make_response({}, ok=False, status_code=503)
    source = AlphaVantageQuoteSource(api_key="demo", session=session)

    with pytest.raises(SourceUnavailable, match="HTTP 503"):
        asyncio.run(source.get_quote("AAPL"))

    session.get.side_effect = requests.ConnectionError("boom")
    with pytest.raises(SourceUnavailable) as excinfo:
        asyncio.run(source.get_quote("AAPL"))
    assert isinstance(excinfo.value.__cause__, requests.ConnectionError)


def test_rate_limit_enforced():
    session = MagicMock()
    session.get.return_value = make_response(GLOBAL_QUOTE)
    limiter = FixedWindowRateLimiter(max_requests=1, window_ms=60_000, clock=lambda: 0.0)
    source = AlphaVantageQuoteSource(api_key="demo", session=session, rate_limiter=limiter)

    asyncio.run(source.get_quote("AAPL"))
    with pytest.raises(RateLimitExceeded):
        asyncio.run(source.get_quote("AAPL"))

    assert session.get.call_count == 1


def test_market_snapshot_quotes_index_and_volatility_index():
    def respond(url, params, **kwargs):
        price = "456.7800" if params["symbol"] == "SPY" else "18.4500"
        return make_response({"Global Quote": {"01. symbol": params["symbol"], "05. price": price}})

    session = MagicMock()
    session.get.side_effect = respond
    source = AlphaVantageQuoteSource(api_key="demo", session=session)

    snapshot = asyncio.run(source.get_market_snapshot())

    assert snapshot.index.price == 456.78
    assert snapshot.volatility_index.price == 18.45
    requested = sorted(call.kwargs["params"]["symbol"] for call in session.get.call_args_list)
    assert requested == ["SPY", "^VIX"]
