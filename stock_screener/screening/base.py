from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Protocol

from stock_screener.models import CandidateSummary, OptionQuote


@dataclass(frozen=True)
class ScoreInputs:
    """Contract level figures every scorer reads.

    ``implied_volatility`` is a fraction (0.45 for 45%).
    """

    volume: int
    open_interest: int
    implied_volatility: float
    delta: float

    @classmethod
    def from_option(cls, option: OptionQuote) -> "ScoreInputs":
        return cls(
            volume=option.volume,
            open_interest=option.open_interest,
            implied_volatility=option.implied_volatility,
            delta=option.delta,
        )

    @classmethod
    def from_summary(cls, summary: CandidateSummary) -> "ScoreInputs":
        if summary.best_option is not None:
            return cls(
                volume=summary.best_option.volume,
                open_interest=summary.best_option.open_interest,
                implied_volatility=summary.iv / 100,
                delta=summary.delta,
            )
        return cls(
            volume=summary.volume,
            open_interest=summary.open_interest or 0,
            implied_volatility=summary.iv / 100,
            delta=summary.delta,
        )


@dataclass(frozen=True)
class ScoreContext:
    """Information passed to each scorer."""

    inputs: ScoreInputs
    config: Dict[str, object]

    def get_weight(self, scorer_key: str, default: float) -> float:
        return float(self.config.get("weights", {}).get(scorer_key, default))


class OptionScorer(Protocol):
    """Protocol each scoring component must implement."""

    key: str
    default_weight: float

    def score(self, context: ScoreContext) -> float:
        """Return the raw component score."""
