"""Criteria validation, composite scoring and candidate ranking."""

from .criteria import parse_criteria, passes_filters, validate_criteria
from .delta import DeltaScorer
from .engine import CompositeScoringEngine
from .implied_volatility import ImpliedVolatilityScorer
from .liquidity import LiquidityScorer
from .screener import candidate_from_contract, score_option, screen, select_best_contract
from .sentiment import classify_news_sentiment

__all__ = [
    "CompositeScoringEngine",
    "DeltaScorer",
    "ImpliedVolatilityScorer",
    "LiquidityScorer",
    "candidate_from_contract",
    "classify_news_sentiment",
    "parse_criteria",
    "passes_filters",
    "score_option",
    "screen",
    "select_best_contract",
    "validate_criteria",
]
