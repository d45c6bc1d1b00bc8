from .market import (
    AdvanceDecline,
    IndexSnapshot,
    MarketSnapshot,
    RateLimitStatus,
    StockQuote,
    VolatilityIndexSnapshot,
)
from .news import NewsFetchReport, NewsItem, NewsSourceStatus
from .option import OptionQuote, OptionsChain
from .screening import CandidateSummary, ScreeningCriteria, ScreeningResult, Sentiment
from .serialization import serialize_many, serialize_model

__all__ = [
    "AdvanceDecline",
    "CandidateSummary",
    "IndexSnapshot",
    "MarketSnapshot",
    "NewsFetchReport",
    "NewsItem",
    "NewsSourceStatus",
    "OptionQuote",
    "OptionsChain",
    "RateLimitStatus",
    "ScreeningCriteria",
    "ScreeningResult",
    "Sentiment",
    "StockQuote",
    "VolatilityIndexSnapshot",
    "serialize_many",
    "serialize_model",
]
