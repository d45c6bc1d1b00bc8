"""Configuration helpers for the screener services."""

from __future__ import annotations

from .loader import (
    AppSettings,
    NewsSourceSettings,
    RateLimitSettings,
    ScoringSettings,
    ScreenerSettings,
    SourceSettings,
    get_settings,
    reset_settings_cache,
)

__all__ = [
    "AppSettings",
    "NewsSourceSettings",
    "RateLimitSettings",
    "ScoringSettings",
    "ScreenerSettings",
    "SourceSettings",
    "get_settings",
    "reset_settings_cache",
]
