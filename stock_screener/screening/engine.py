from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Type

from .base import ScoreContext, ScoreInputs
from .config import merge_config
from .delta import DeltaScorer
from .implied_volatility import ImpliedVolatilityScorer
from .liquidity import LiquidityScorer

SCORER_REGISTRY = {
    LiquidityScorer.key: LiquidityScorer,
    ImpliedVolatilityScorer.key: ImpliedVolatilityScorer,
    DeltaScorer.key: DeltaScorer,
}


@dataclass(frozen=True)
class ScoreBreakdown:
    scorer: str
    weight: float
    raw_score: float
    weighted_score: float


@dataclass(frozen=True)
class CompositeScore:
    total_score: float
    breakdowns: List[ScoreBreakdown] = field(default_factory=list)


class CompositeScoringEngine:
    """Weighted mean of the enabled scorers.

    With the default unit weights this is
    ``(liquidity + implied_volatility + delta) / 3``.
    """

    def __init__(self, config: Dict[str, object] | None = None):
        self.config = merge_config(config)
        enabled = self.config.get("enabled", list(SCORER_REGISTRY))
        self._scorers = [self._instantiate(key) for key in enabled if key in SCORER_REGISTRY]
        if not self._scorers:
            raise ValueError("At least one known scorer must be enabled")

    def _instantiate(self, key: str):
        scorer_cls: Type = SCORER_REGISTRY[key]
        return scorer_cls()

    def score(self, inputs: ScoreInputs) -> CompositeScore:
        context = ScoreContext(inputs=inputs, config=self.config)

        breakdowns: List[ScoreBreakdown] = []
        weighted_total = 0.0
        total_weight = 0.0

        for scorer in self._scorers:
            raw_score = scorer.score(context)
            weight = context.get_weight(scorer.key, getattr(scorer, "default_weight", 1.0))
            weighted_score = raw_score * weight
            weighted_total += weighted_score
            total_weight += weight
            breakdowns.append(
                ScoreBreakdown(
                    scorer=scorer.key,
                    weight=weight,
                    raw_score=raw_score,
                    weighted_score=weighted_score,
                )
            )

        total = weighted_total / total_weight if total_weight else 0.0
        return CompositeScore(total_score=total, breakdowns=breakdowns)

    @property
    def enabled_scorers(self) -> List[str]:
        return [scorer.key for scorer in self._scorers]


__all__ = ["CompositeScore", "CompositeScoringEngine", "SCORER_REGISTRY", "ScoreBreakdown"]
