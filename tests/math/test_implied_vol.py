import math

import pytest

from stock_screener.exceptions import ConvergenceFailure, DegenerateVega, InvalidInput
from stock_screener.math.implied_vol import (
    call_implied_volatility,
    implied_volatility,
    put_implied_volatility,
    solve_implied_volatility,
)
from stock_screener.math.pricing import OptionParameters, price_option


@pytest.mark.parametrize("option_type", ["call", "put"])
@pytest.mark.parametrize("volatility", [0.15, 0.3, 0.45, 0.8])
def test_round_trip_recovers_volatility(option_type, volatility):
    params = OptionParameters(
        spot=175.43,
        strike=170.0,
        time_to_expiry_years=35 / 365.25,
        risk_free_rate=0.05,
        volatility=volatility,
    )
    observed = price_option(params).price_for(option_type)

    solved = implied_volatility(observed, params, option_type)

    assert math.isclose(solved, volatility, abs_tol=1e-3)


@pytest.mark.parametrize("strike", [95.0, 100.0, 105.0])
@pytest.mark.parametrize("volatility", [0.05, 0.25, 1.0, 2.0, 3.0])
def test_put_round_trip_across_strikes_and_volatility_range(strike, volatility):
    params = OptionParameters(100.0, strike, 0.5, 0.05, volatility)
    observed = price_option(params).put_price

    solved = implied_volatility(observed, params, "put")

    assert math.isclose(solved, volatility, abs_tol=1e-3)


def test_far_out_of_the_money_put_at_high_volatility_converges():
    params = OptionParameters(100.0, 60.0, 0.5, 0.05, 2.5)
    observed = price_option(params).put_price

    solved = put_implied_volatility(observed, 100.0, 60.0, 0.5)

    assert math.isclose(solved, 2.5, abs_tol=1e-3)


def test_typed_wrappers_agree_with_solver():
    params = OptionParameters(100.0, 95.0, 0.5, 0.05, 0.35)
    priced = price_option(params)

    put_vol = put_implied_volatility(priced.put_price, 100.0, 95.0, 0.5)
    call_vol = call_implied_volatility(priced.call_price, 100.0, 95.0, 0.5)

    assert math.isclose(put_vol, 0.35, abs_tol=1e-3)
    assert math.isclose(call_vol, 0.35, abs_tol=1e-3)


def test_solver_is_deterministic():
    first = solve_implied_volatility(4.2, 100.0, 105.0, 0.25, 0.05, "call")
    second = solve_implied_volatility(4.2, 100.0, 105.0, 0.25, 0.05, "call")

    assert first == second


def test_zero_iterations_fails_immediately():
    with pytest.raises(ConvergenceFailure, match="Failed to converge after 0 iterations"):
        solve_implied_volatility(10.0, 100.0, 100.0, 1.0, 0.05, "call", max_iterations=0)


def test_unreachable_price_exhausts_iterations():
    # A put can never be worth more than the discounted strike.
    with pytest.raises(ConvergenceFailure) as excinfo:
        solve_implied_volatility(150.0, 100.0, 100.0, 1.0, 0.05, "put", max_iterations=25)

    assert excinfo.value.iterations == 25
    assert excinfo.value.last_volatility == pytest.approx(5.0)


def test_vanishing_vega_is_reported():
    with pytest.raises(DegenerateVega):
        solve_implied_volatility(1.0, 100.0, 1000.0, 0.01, 0.05, "call")


def test_unknown_option_type_rejected():
    with pytest.raises(InvalidInput):
        solve_implied_volatility(5.0, 100.0, 100.0, 1.0, 0.05, "straddle")


def test_expired_contract_rejected():
    with pytest.raises(InvalidInput):
        solve_implied_volatility(5.0, 100.0, 100.0, 0.0, 0.05, "put")
