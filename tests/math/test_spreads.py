import math

import pytest

from stock_screener.exceptions import InvalidInput, InvalidSpread
from stock_screener.math.pricing import normal_cdf
from stock_screener.math.spreads import (
    PLACEHOLDER_POP,
    probability_of_profit,
    recommend_put_credit_spread,
    spread_risk_reward,
)


def test_risk_reward_for_five_dollar_put_spread():
    result = spread_risk_reward(175.0, 170.0, 1.5)

    assert math.isclose(result.max_risk, 3.5)
    assert math.isclose(result.max_reward, 1.5)
    assert math.isclose(result.risk_reward_ratio, 3.5 / 1.5)


@pytest.mark.parametrize(
    "short_strike,long_strike,credit",
    [
        (170.0, 170.0, 1.0),
        (165.0, 170.0, 1.0),
        (175.0, 170.0, 0.0),
        (175.0, 170.0, -0.5),
    ],
)
def test_degenerate_spreads_rejected(short_strike, long_strike, credit):
    with pytest.raises(InvalidSpread):
        spread_risk_reward(short_strike, long_strike, credit)


def test_probability_of_profit_uses_short_strike_d1():
    short_strike, spot, vol, years = 165.0, 175.43, 0.45, 35 / 365.25
    d1 = (math.log(spot / short_strike) + (0.05 + 0.5 * vol**2) * years) / (vol * math.sqrt(years))

    pop = probability_of_profit(short_strike, 160.0, spot, vol, years)

    assert math.isclose(pop, normal_cdf(d1), rel_tol=1e-12)
    assert 0.5 < pop < 1.0


def test_probability_of_profit_rejects_bad_inputs():
    with pytest.raises(InvalidInput):
        probability_of_profit(165.0, 160.0, 175.0, 0.0, 0.1)
    with pytest.raises(InvalidInput):
        probability_of_profit(165.0, 160.0, 0.0, 0.3, 0.1)


def test_recommendation_rounds_strikes_and_credit():
    recommendation = recommend_put_credit_spread(175.43)

    assert recommendation.short_strike == 167
    assert recommendation.long_strike == 158
    assert math.isclose(recommendation.credit, 2.7)
    assert math.isclose(recommendation.max_risk, 6.3)
    assert recommendation.probability_of_profit == PLACEHOLDER_POP


def test_recommendation_requires_positive_price():
    with pytest.raises(InvalidInput):
        recommend_put_credit_spread(0.0)
