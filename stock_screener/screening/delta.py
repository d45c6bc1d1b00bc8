from __future__ import annotations

from .base import ScoreContext


class DeltaScorer:
    key = "delta"
    default_weight = 1.0
    multiplier = 10.0

    def score(self, context: ScoreContext) -> float:
        return abs(context.inputs.delta) * self.multiplier


__all__ = ["DeltaScorer"]
