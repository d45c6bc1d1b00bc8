"""Keyword based sentiment tag for a ticker's recent headlines."""

from __future__ import annotations

from typing import Iterable, Sequence

from stock_screener.models import NewsItem, Sentiment

POSITIVE_TERMS: Iterable[str] = (
    "up",
    "rise",
    "gain",
    "positive",
    "bullish",
    "beat",
    "higher",
    "increase",
)

NEGATIVE_TERMS: Iterable[str] = (
    "down",
    "fall",
    "drop",
    "negative",
    "bearish",
    "miss",
    "lower",
    "decrease",
)


def classify_news_sentiment(news: Sequence[NewsItem]) -> Sentiment:
    """Count keyword hits over titles and descriptions; ties are neutral."""

    if not news:
        return "neutral"

    positive = 0
    negative = 0
    for item in news:
        lowered = f"{item.title} {item.description}".lower()
        positive += sum(1 for word in POSITIVE_TERMS if word in lowered)
        negative += sum(1 for word in NEGATIVE_TERMS if word in lowered)

    if positive > negative:
        return "positive"
    if negative > positive:
        return "negative"
    return "neutral"


__all__ = ["NEGATIVE_TERMS", "POSITIVE_TERMS", "classify_news_sentiment"]
