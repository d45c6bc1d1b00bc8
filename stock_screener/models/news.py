from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class NewsItem(BaseModel):
    """A single headline parsed from an RSS feed."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    title: str
    description: str = ""
    link: str = ""
    source: str
    published_at: datetime = Field(alias="publishedAt")
    ticker_symbols: List[str] = Field(default_factory=list, alias="tickerSymbols")
    summary: str = ""

    def mentions(self, ticker: str) -> bool:
        wanted = ticker.upper()
        return any(symbol.upper() == wanted for symbol in self.ticker_symbols)


class NewsSourceStatus(BaseModel):
    """Read-only view of a news source's configuration and health."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    url: str
    enabled: bool
    last_fetch: Optional[datetime] = Field(default=None, alias="lastFetch")
    error_count: int = Field(default=0, alias="errorCount")


class NewsFetchReport(BaseModel):
    """Merged items of one aggregation pass plus per-source diagnostics."""

    model_config = ConfigDict(frozen=True)

    items: List[NewsItem] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.errors)


__all__ = ["NewsFetchReport", "NewsItem", "NewsSourceStatus"]
