from __future__ import annotations

from .base import ScoreContext


class ImpliedVolatilityScorer:
    """Rewards richer premium: 20 points per 100% of implied volatility."""

    key = "implied_volatility"
    default_weight = 1.0
    multiplier = 20.0

    def score(self, context: ScoreContext) -> float:
        return context.inputs.implied_volatility * self.multiplier


__all__ = ["ImpliedVolatilityScorer"]
