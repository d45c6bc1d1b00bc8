"""Environment aware configuration loader for the stock screener."""

from __future__ import annotations

import copy
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, MutableMapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from stock_screener.screening.config import DEFAULT_SCORER_CONFIG
from stock_screener.sources.news import DEFAULT_NEWS_SOURCES

DEFAULT_SETTINGS: Dict[str, Any] = {
    "watchlists": {
        "default": ["AAPL", "MSFT", "NVDA", "AMD", "TSLA"],
    },
    "scoring": copy.deepcopy(DEFAULT_SCORER_CONFIG),
    "sources": {
        "quote_provider": "alphavantage",
        "options_provider": "polygon",
        "rate_limit": {
            "max_requests": 5,
            "window_ms": 60000,
        },
        "quote_delay_ms": 200,
        "news_delay_ms": 1000,
        "max_consecutive_errors": 3,
        "news": [{"name": name, "url": url} for name, url in DEFAULT_NEWS_SOURCES],
    },
    "screener": {
        "risk_free_rate": 0.05,
        "criteria": {},
    },
}

CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"
ENVIRONMENT_VARIABLE = "APP_ENV"
QUOTE_PROVIDER_VARIABLE = "QUOTE_DATA_PROVIDER"
OPTIONS_PROVIDER_VARIABLE = "OPTIONS_DATA_PROVIDER"


class ScoringSettings(BaseModel):
    """Scoring configuration wrapper for the composite engine."""

    model_config = ConfigDict(frozen=True)

    enabled: List[str] = Field(default_factory=lambda: list(DEFAULT_SCORER_CONFIG.get("enabled", [])))
    weights: Dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_SCORER_CONFIG.get("weights", {})))

    @field_validator("weights", mode="before")
    @classmethod
    def _coerce_weights(cls, value: Mapping[str, Any]) -> Dict[str, float]:
        return {key: float(val) for key, val in dict(value or {}).items()}

    def to_engine_config(self) -> Dict[str, Any]:
        return {
            "enabled": list(self.enabled),
            "weights": dict(self.weights),
        }


class RateLimitSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_requests: int = Field(default=5, ge=1)
    window_ms: float = Field(default=60000, gt=0)


class NewsSourceSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    enabled: bool = True


class SourceSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    quote_provider: str = "alphavantage"
    options_provider: str = "polygon"
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    quote_delay_ms: float = Field(default=200, ge=0)
    news_delay_ms: float = Field(default=1000, ge=0)
    max_consecutive_errors: int = Field(default=3, ge=1)
    news: List[NewsSourceSettings] = Field(default_factory=list)

    @field_validator("quote_provider", "options_provider")
    @classmethod
    def _normalize_provider(cls, value: str) -> str:
        return value.strip().lower()


class ScreenerSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    risk_free_rate: float = 0.05
    criteria: Dict[str, Any] = Field(default_factory=dict)


class AppSettings(BaseModel):
    """Fully resolved application settings loaded from YAML."""

    model_config = ConfigDict(frozen=True)

    env: str
    watchlists: Dict[str, List[str]]
    scoring: ScoringSettings
    sources: SourceSettings
    screener: ScreenerSettings

    @field_validator("env")
    @classmethod
    def _normalize_env(cls, value: str) -> str:
        return value.lower()

    @field_validator("watchlists", mode="before")
    @classmethod
    def _coerce_watchlists(cls, value: Mapping[str, Any]) -> Dict[str, List[str]]:
        return {key: [str(symbol).upper() for symbol in items or []] for key, items in dict(value or {}).items()}

    def get_watchlist(self, name: str = "default") -> List[str]:
        return list(self.watchlists.get(name, []))

    def scoring_dict(self) -> Dict[str, Any]:
        return self.scoring.to_engine_config()


def _deep_merge(base: MutableMapping[str, Any], overrides: Mapping[str, Any]) -> MutableMapping[str, Any]:
    for key, value in overrides.items():
        if isinstance(value, Mapping):
            existing = base.get(key)
            if isinstance(existing, MutableMapping):
                base[key] = _deep_merge(copy.deepcopy(existing), value)
            else:
                base[key] = copy.deepcopy(value)
        else:
            base[key] = copy.deepcopy(value)
    return base


def _load_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping at the root.")
    return data


def _environment_overrides() -> Dict[str, Any]:
    sources: Dict[str, Any] = {}
    quote_provider = os.getenv(QUOTE_PROVIDER_VARIABLE)
    if quote_provider:
        sources["quote_provider"] = quote_provider
    options_provider = os.getenv(OPTIONS_PROVIDER_VARIABLE)
    if options_provider:
        sources["options_provider"] = options_provider
    return {"sources": sources} if sources else {}


def _build_settings(env: str) -> AppSettings:
    config_path = CONFIG_DIR / f"{env}.yaml"
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file for environment '{env}' not found at {config_path}")

    merged = copy.deepcopy(DEFAULT_SETTINGS)
    merged = _deep_merge(merged, _load_yaml(config_path))
    merged = _deep_merge(merged, _environment_overrides())
    merged["env"] = env
    return AppSettings.model_validate(merged)


@lru_cache(maxsize=None)
def _cached_settings(env: str) -> AppSettings:
    return _build_settings(env)


def get_settings(env: Optional[str] = None) -> AppSettings:
    """Load settings for the requested environment (default: APP_ENV or 'dev')."""

    resolved_env = (env or os.getenv(ENVIRONMENT_VARIABLE, "dev")).strip().lower()
    return _cached_settings(resolved_env)


def reset_settings_cache() -> None:
    """Clear the cached settings, primarily used during tests."""

    _cached_settings.cache_clear()


__all__ = [
    "AppSettings",
    "CONFIG_DIR",
    "NewsSourceSettings",
    "RateLimitSettings",
    "ScoringSettings",
    "ScreenerSettings",
    "SourceSettings",
    "get_settings",
    "reset_settings_cache",
]
