"""Implied volatility via Newton-Raphson on the Black-Scholes price."""

from __future__ import annotations

import logging

from stock_screener.exceptions import ConvergenceFailure, DegenerateVega, InvalidInput

from .pricing import OptionParameters, OptionType, price_option

logger = logging.getLogger(__name__)

INITIAL_VOLATILITY = 0.5
MIN_VOLATILITY = 0.01
MAX_VOLATILITY = 5.0
VEGA_FLOOR = 1e-10
DEFAULT_TOLERANCE = 1e-4
DEFAULT_MAX_ITERATIONS = 100
DEFAULT_RISK_FREE_RATE = 0.05


def solve_implied_volatility(
    observed_price: float,
    spot: float,
    strike: float,
    time_to_expiry_years: float,
    risk_free_rate: float,
    option_type: OptionType,
    tolerance: float = DEFAULT_TOLERANCE,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> float:
    """Recover the volatility that reproduces ``observed_price``.

    Starts from 50% volatility and applies ``vol -= (model - observed) / vega``
    until the price difference drops below ``tolerance``. After every step the
    guess is clamped to ``[MIN_VOLATILITY, MAX_VOLATILITY]``. Each priced guess
    also tightens a bracket around the answer, and a step that leaves the
    bracket is replaced by its midpoint, so deep in- or out-of-the-money
    contracts cannot bounce between the clamps. The iteration is
    deterministic for identical inputs.

    Raises:
        InvalidInput: For an unknown option type or unpriceable parameters.
        DegenerateVega: When ``|vega| < 1e-10`` at the current guess.
        ConvergenceFailure: After ``max_iterations`` steps without meeting
            ``tolerance`` (immediately when ``max_iterations`` is 0).
    """

    if option_type not in ("call", "put"):
        raise InvalidInput(f"Unknown option type: {option_type!r}")

    params = OptionParameters(
        spot=spot,
        strike=strike,
        time_to_expiry_years=time_to_expiry_years,
        risk_free_rate=risk_free_rate,
        volatility=INITIAL_VOLATILITY,
    )
    volatility = INITIAL_VOLATILITY
    lower, upper = MIN_VOLATILITY, MAX_VOLATILITY

    for _ in range(max_iterations):
        result = price_option(params.with_volatility(volatility))
        price_diff = result.price_for(option_type) - observed_price

        if abs(price_diff) < tolerance:
            return volatility

        vega = result.greeks.vega
        if abs(vega) < VEGA_FLOOR:
            raise DegenerateVega("Vega too small, cannot calculate IV")

        # Prices rise with volatility, so every evaluation narrows the bracket.
        if price_diff > 0:
            upper = volatility
        else:
            lower = volatility

        candidate = volatility - price_diff / vega
        if candidate <= MIN_VOLATILITY:
            candidate = MIN_VOLATILITY
        if candidate > MAX_VOLATILITY:
            candidate = MAX_VOLATILITY
        if not lower < candidate < upper:
            candidate = 0.5 * (lower + upper)
        volatility = candidate

    logger.debug(
        "IV solver gave up for %s price=%s spot=%s strike=%s last_vol=%s",
        option_type,
        observed_price,
        spot,
        strike,
        volatility,
    )
    raise ConvergenceFailure(max_iterations, last_volatility=volatility)


def implied_volatility(
    observed_price: float,
    params: OptionParameters,
    option_type: OptionType,
    tolerance: float = DEFAULT_TOLERANCE,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> float:
    """Solve IV using ``params`` (its ``volatility`` field is ignored)."""

    return solve_implied_volatility(
        observed_price,
        params.spot,
        params.strike,
        params.time_to_expiry_years,
        params.risk_free_rate,
        option_type,
        tolerance=tolerance,
        max_iterations=max_iterations,
    )


def put_implied_volatility(
    put_price: float,
    spot: float,
    strike: float,
    time_to_expiry_years: float,
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
) -> float:
    return solve_implied_volatility(put_price, spot, strike, time_to_expiry_years, risk_free_rate, "put")


def call_implied_volatility(
    call_price: float,
    spot: float,
    strike: float,
    time_to_expiry_years: float,
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
) -> float:
    return solve_implied_volatility(call_price, spot, strike, time_to_expiry_years, risk_free_rate, "call")


__all__ = [
    "DEFAULT_MAX_ITERATIONS",
    "DEFAULT_RISK_FREE_RATE",
    "DEFAULT_TOLERANCE",
    "MAX_VOLATILITY",
    "MIN_VOLATILITY",
    "call_implied_volatility",
    "implied_volatility",
    "put_implied_volatility",
    "solve_implied_volatility",
]
