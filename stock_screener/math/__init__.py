"""Pricing, implied volatility and spread analytics."""

from .implied_vol import (
    call_implied_volatility,
    implied_volatility,
    put_implied_volatility,
    solve_implied_volatility,
)
from .pricing import (
    Greeks,
    OptionParameters,
    OptionPrice,
    OptionType,
    SidedValue,
    days_to_expiry,
    days_to_years,
    normal_cdf,
    price_option,
)
from .spreads import (
    SpreadRecommendation,
    SpreadRiskReward,
    probability_of_profit,
    recommend_put_credit_spread,
    spread_risk_reward,
)

__all__ = [
    "Greeks",
    "OptionParameters",
    "OptionPrice",
    "OptionType",
    "SidedValue",
    "SpreadRecommendation",
    "SpreadRiskReward",
    "call_implied_volatility",
    "days_to_expiry",
    "days_to_years",
    "implied_volatility",
    "normal_cdf",
    "price_option",
    "probability_of_profit",
    "put_implied_volatility",
    "recommend_put_credit_spread",
    "solve_implied_volatility",
    "spread_risk_reward",
]
