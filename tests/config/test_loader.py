import pytest
from pydantic import ValidationError

from stock_screener.config import get_settings, reset_settings_cache
from stock_screener.config.loader import (
    ENVIRONMENT_VARIABLE,
    OPTIONS_PROVIDER_VARIABLE,
    QUOTE_PROVIDER_VARIABLE,
    ScoringSettings,
)
from stock_screener.screening.criteria import parse_criteria


@pytest.fixture(autouse=True)
def clear_settings_cache(monkeypatch):
    monkeypatch.delenv(QUOTE_PROVIDER_VARIABLE, raising=False)
    monkeypatch.delenv(OPTIONS_PROVIDER_VARIABLE, raising=False)
    reset_settings_cache()
    yield
    reset_settings_cache()


def test_dev_settings_load(monkeypatch):
    monkeypatch.setenv(ENVIRONMENT_VARIABLE, "dev")
    settings = get_settings()

    assert settings.env == "dev"
    assert "AAPL" in settings.get_watchlist()
    assert settings.get_watchlist("indexes") == ["SPY", "QQQ"]
    assert settings.sources.quote_provider == "alphavantage"
    assert settings.sources.options_provider == "polygon"
    assert settings.sources.rate_limit.max_requests == 5
    assert settings.sources.rate_limit.window_ms == 60000
    assert settings.sources.max_consecutive_errors == 3
    assert [source.name for source in settings.sources.news] == [
        "CNBC",
        "MarketWatch",
        "Reuters Business",
        "Bloomberg",
    ]
    assert settings.scoring.weights["delta"] == 1.0
    assert parse_criteria(settings.screener.criteria).dte_range == (30, 45)


def test_prod_settings_override(monkeypatch):
    monkeypatch.setenv(ENVIRONMENT_VARIABLE, "prod")
    settings = get_settings()

    assert "META" in settings.get_watchlist()
    assert settings.sources.news_delay_ms == 1000
    assert settings.screener.risk_free_rate == 0.05


def test_test_settings_disable_network_sources():
    settings = get_settings("test")

    assert settings.sources.quote_provider == "fallback"
    assert settings.sources.options_provider == "fallback"
    assert settings.sources.news == []
    assert settings.sources.quote_delay_ms == 0


def test_provider_environment_overrides(monkeypatch):
    monkeypatch.setenv(QUOTE_PROVIDER_VARIABLE, "YFinance")
    monkeypatch.setenv(OPTIONS_PROVIDER_VARIABLE, "yfinance")

    settings = get_settings("dev")

    assert settings.sources.quote_provider == "yfinance"
    assert settings.sources.options_provider == "yfinance"


def test_settings_are_cached_and_frozen():
    first = get_settings("dev")

    assert get_settings("DEV") is first
    with pytest.raises(ValidationError):
        first.env = "prod"


def test_missing_environment_raises(monkeypatch):
    monkeypatch.setenv(ENVIRONMENT_VARIABLE, "unknown")
    with pytest.raises(FileNotFoundError):
        get_settings()


def test_scoring_settings_feed_only_enabled_and_weights_to_engine():
    scoring = ScoringSettings.model_validate(
        {"enabled": ["delta"], "weights": {"delta": "2"}, "iv_rank": {"lookback_days": 252}}
    )

    assert scoring.to_engine_config() == {"enabled": ["delta"], "weights": {"delta": 2.0}}
