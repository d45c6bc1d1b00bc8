"""RSS news aggregation with per-source health tracking."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence
from xml.etree import ElementTree as ET

import requests

from stock_screener.exceptions import SourceUnavailable
from stock_screener.models import NewsFetchReport, NewsItem, NewsSourceStatus

from .base import NewsFeed

logger = logging.getLogger(__name__)

USER_AGENT = "StockScreener/1.0"
ACCEPT = "application/rss+xml, application/xml, text/xml, */*"

DEFAULT_REQUEST_DELAY_SECONDS = 1.0
DEFAULT_MAX_CONSECUTIVE_ERRORS = 3
SUMMARY_LENGTH = 200

TICKER_PATTERN = re.compile(r"\b[A-Z]{1,5}\b")
COMMON_WORDS = frozenset({"THE", "AND", "FOR", "ARE", "YOU", "ALL", "NEW", "TOP", "BIG", "LOW", "HIGH"})
_TAG_PATTERN = re.compile(r"<[^>]*>")
_ENTITY_PATTERN = re.compile(r"&[^;]+;")


@dataclass
class NewsSource:
    """Endpoint configuration plus the health state the aggregator mutates."""

    name: str
    url: str
    enabled: bool = True
    last_fetch: Optional[datetime] = None
    error_count: int = 0

    def status(self) -> NewsSourceStatus:
        return NewsSourceStatus(
            name=self.name,
            url=self.url,
            enabled=self.enabled,
            last_fetch=self.last_fetch,
            error_count=self.error_count,
        )


DEFAULT_NEWS_SOURCES = (
    ("CNBC", "https://www.cnbc.com/id/100003114/device/rss/rss.html"),
    ("MarketWatch", "https://feeds.marketwatch.com/marketwatch/topstories/"),
    ("Reuters Business", "https://feeds.reuters.com/reuters/businessNews"),
    ("Bloomberg", "https://feeds.bloomberg.com/markets/news.rss"),
)


def default_sources() -> List[NewsSource]:
    return [NewsSource(name=name, url=url) for name, url in DEFAULT_NEWS_SOURCES]


def extract_tickers(text: str) -> List[str]:
    """Return upper-case tokens of one to five letters that look like tickers."""

    return [token for token in TICKER_PATTERN.findall(text) if token not in COMMON_WORDS]


def summarize(description: str) -> str:
    """Strip markup from ``description`` and cut it to the summary length."""

    cleaned = _ENTITY_PATTERN.sub(" ", _TAG_PATTERN.sub("", description)).strip()
    if len(cleaned) > SUMMARY_LENGTH:
        return cleaned[:SUMMARY_LENGTH] + "..."
    return cleaned


def _parse_published(raw: Optional[str], fallback: datetime) -> datetime:
    if not raw:
        return fallback
    try:
        published = parsedate_to_datetime(raw.strip())
    except (TypeError, ValueError):
        return fallback
    if published.tzinfo is None:
        published = published.replace(tzinfo=timezone.utc)
    return published


def _text(element: ET.Element, tag: str) -> str:
    child = element.find(tag)
    if child is None or child.text is None:
        return ""
    return child.text.strip()


def parse_rss(payload: bytes | str, source_name: str, fetched_at: datetime | None = None) -> List[NewsItem]:
    """Parse an RSS 2.0 document into news items.

    Raises :class:`SourceUnavailable` when the payload is not XML or lacks an
    ``rss/channel/item`` structure.
    """

    fetched_at = fetched_at or datetime.now(timezone.utc)
    try:
        root = ET.fromstring(payload)
    except ET.ParseError as exc:
        raise SourceUnavailable(source_name, f"Malformed XML: {exc}") from exc

    channel = root.find("channel") if root.tag == "rss" else None
    items = channel.findall("item") if channel is not None else []
    if not items:
        raise SourceUnavailable(source_name, "Invalid RSS format")

    stamp = int(fetched_at.timestamp() * 1000)
    parsed: List[NewsItem] = []
    for index, item in enumerate(items):
        title = _text(item, "title") or "No Title"
        description = _text(item, "description")
        parsed.append(
            NewsItem(
                id=f"{source_name}-{index}-{stamp}",
                title=title,
                description=description,
                link=_text(item, "link"),
                source=source_name,
                published_at=_parse_published(_text(item, "pubDate"), fetched_at),
                ticker_symbols=extract_tickers(title),
                summary=summarize(description),
            )
        )
    return parsed


class RSSFeedReader(NewsFeed):
    """Download a feed with ``requests`` and parse it with ElementTree."""

    def __init__(self, session: requests.Session | None = None, timeout: float = 10.0) -> None:
        self._session = session or requests.Session()
        self._timeout = timeout

    async def fetch(self, source: NewsSource) -> List[NewsItem]:
        try:
            response = await asyncio.to_thread(
                self._session.get,
                source.url,
                headers={"User-Agent": USER_AGENT, "Accept": ACCEPT},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise SourceUnavailable(source.name, str(exc)) from exc

        if not response.ok:
            raise SourceUnavailable(source.name, f"HTTP {response.status_code}: {response.reason}")
        return parse_rss(response.content, source.name)


class NewsAggregator:
    """Visit each enabled source in turn and merge what they publish.

    A source that fails ``max_consecutive_errors`` times in a row is disabled
    for the lifetime of the aggregator. Passes are serialized with a lock so
    concurrent callers never interleave updates to the source records.
    """

    def __init__(
        self,
        sources: Iterable[NewsSource] | None = None,
        feed: NewsFeed | None = None,
        request_delay_seconds: float = DEFAULT_REQUEST_DELAY_SECONDS,
        max_consecutive_errors: int = DEFAULT_MAX_CONSECUTIVE_ERRORS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._sources: List[NewsSource] = list(sources) if sources is not None else default_sources()
        self._feed = feed or RSSFeedReader()
        self._delay = max(0.0, request_delay_seconds)
        self._max_errors = max(1, max_consecutive_errors)
        self._sleep = sleep
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = asyncio.Lock()

    @property
    def sources(self) -> Sequence[NewsSource]:
        return tuple(self._sources)

    async def fetch_all_news_report(self) -> NewsFetchReport:
        """Run one aggregation pass and return items plus diagnostics."""

        async with self._lock:
            started = time.monotonic()
            items: List[NewsItem] = []
            errors: List[str] = []
            visited = 0

            for source in self._sources:
                if not source.enabled:
                    continue
                if visited and self._delay:
                    await self._sleep(self._delay)
                visited += 1

                try:
                    fetched = await self._feed.fetch(source)
                except Exception as exc:
                    errors.append(self._record_failure(source, exc))
                    continue

                items.extend(fetched)
                source.last_fetch = self._clock()
                source.error_count = 0

            if errors:
                logger.warning("Some news sources failed: %s", errors)
            logger.debug(
                "News pass visited %d sources, %d items in %.2fs",
                visited,
                len(items),
                time.monotonic() - started,
            )

        items.sort(key=lambda item: item.published_at, reverse=True)
        return NewsFetchReport(items=items, errors=errors)

    async def fetch_all_news(self) -> List[NewsItem]:
        report = await self.fetch_all_news_report()
        return report.items

    async def fetch_news_by_ticker(self, ticker: str) -> List[NewsItem]:
        items = await self.fetch_all_news()
        return [item for item in items if item.mentions(ticker)]

    def get_source_status(self) -> List[NewsSourceStatus]:
        return [source.status() for source in self._sources]

    def _record_failure(self, source: NewsSource, exc: Exception) -> str:
        source.error_count += 1
        if source.error_count >= self._max_errors:
            source.enabled = False
            logger.warning("Disabled %s due to repeated failures", source.name)
        if isinstance(exc, SourceUnavailable):
            return str(exc)
        return f"{source.name}: {exc}"


__all__ = [
    "DEFAULT_NEWS_SOURCES",
    "NewsAggregator",
    "NewsSource",
    "RSSFeedReader",
    "default_sources",
    "extract_tickers",
    "parse_rss",
    "summarize",
]
