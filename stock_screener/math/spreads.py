"""Risk and probability estimates for two-leg vertical credit spreads."""

from __future__ import annotations

import math
from dataclasses import dataclass

from stock_screener.exceptions import InvalidInput, InvalidSpread

from .pricing import d1_d2, normal_cdf

POP_RISK_FREE_RATE = 0.05
SHORT_STRIKE_RATIO = 0.95
LONG_STRIKE_RATIO = 0.90
CREDIT_TO_WIDTH = 0.3
# Rough stand-in for a short strike near 0.25 delta.
PLACEHOLDER_POP = 0.75


@dataclass(frozen=True)
class SpreadRiskReward:
    max_risk: float
    max_reward: float
    risk_reward_ratio: float


@dataclass(frozen=True)
class SpreadRecommendation:
    """Heuristic put credit spread for a given underlying price."""

    short_strike: float
    long_strike: float
    credit: float
    max_risk: float
    probability_of_profit: float


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def probability_of_profit(
    short_strike: float,
    long_strike: float,
    current_price: float,
    volatility: float,
    time_to_expiry_years: float,
) -> float:
    """Probability that the underlying finishes above the short strike.

    Uses ``N(d1)`` against the short strike with a fixed 5% rate, which
    approximates the chance a put credit spread expires worthless. The long
    strike does not enter the estimate.
    """

    if current_price <= 0 or short_strike <= 0:
        raise InvalidInput("Prices must be positive")
    if volatility <= 0 or time_to_expiry_years <= 0:
        raise InvalidInput("Volatility and time to expiry must be positive")

    d1, _ = d1_d2(current_price, short_strike, time_to_expiry_years, POP_RISK_FREE_RATE, volatility)
    return normal_cdf(d1)


def spread_risk_reward(short_strike: float, long_strike: float, credit: float) -> SpreadRiskReward:
    """Max risk, max reward and their ratio for a vertical credit spread.

    Raises:
        InvalidSpread: If ``short_strike <= long_strike`` or ``credit <= 0``.
    """

    if short_strike <= long_strike:
        raise InvalidSpread(
            f"Short strike {short_strike} must be above long strike {long_strike}"
        )
    if credit <= 0:
        raise InvalidSpread(f"Credit must be positive: {credit}")

    width = short_strike - long_strike
    max_risk = width - credit
    return SpreadRiskReward(
        max_risk=max_risk,
        max_reward=credit,
        risk_reward_ratio=max_risk / credit,
    )


def recommend_put_credit_spread(current_price: float) -> SpreadRecommendation:
    """Pick strikes at 95% / 90% of spot and estimate a credit of 30% of width.

    The probability of profit is a fixed placeholder; callers needing a real
    estimate should use :func:`probability_of_profit` with the contract's IV.
    """

    if current_price <= 0:
        raise InvalidInput(f"Current price must be positive: {current_price}")

    short_strike = _round_half_up(current_price * SHORT_STRIKE_RATIO)
    long_strike = _round_half_up(current_price * LONG_STRIKE_RATIO)
    width = short_strike - long_strike
    credit = width * CREDIT_TO_WIDTH

    return SpreadRecommendation(
        short_strike=short_strike,
        long_strike=long_strike,
        credit=_round_half_up(credit, 2),
        max_risk=_round_half_up(width - credit, 2),
        probability_of_profit=PLACEHOLDER_POP,
    )


__all__ = [
    "PLACEHOLDER_POP",
    "POP_RISK_FREE_RATE",
    "SpreadRecommendation",
    "SpreadRiskReward",
    "probability_of_profit",
    "recommend_put_credit_spread",
    "spread_risk_reward",
]
