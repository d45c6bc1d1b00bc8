from __future__ import annotations

from .base import ScoreContext


class LiquidityScorer:
    key = "liquidity"
    default_weight = 1.0
    cap = 10.0

    def score(self, context: ScoreContext) -> float:
        inputs = context.inputs
        return min(inputs.volume / 1000 + inputs.open_interest / 5000, self.cap)


__all__ = ["LiquidityScorer"]
