"""Closed-form Black-Scholes pricing for European options.

Prices a call and a put from the same five inputs (spot, strike, time to
expiry in years, risk-free rate, volatility) and returns the Greeks evaluated
at the shared ``d1``/``d2``. No dividends are modelled.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from typing import Literal

from scipy.stats import norm

from stock_screener.exceptions import InvalidInput

OptionType = Literal["call", "put"]

DAYS_PER_YEAR = 365.25

# Abramowitz-Stegun 7.1.26 coefficients (|error| < 1.5e-7)
_AS_P = 0.3275911
_AS_A = (0.254829592, -0.284496736, 1.421413741, -1.453152027, 1.061405429)


@dataclass(frozen=True)
class OptionParameters:
    """Inputs of a single Black-Scholes evaluation."""

    spot: float
    strike: float
    time_to_expiry_years: float
    risk_free_rate: float
    volatility: float

    def with_volatility(self, volatility: float) -> "OptionParameters":
        return replace(self, volatility=volatility)


@dataclass(frozen=True)
class SidedValue:
    """A Greek whose value differs between the call and the put."""

    call: float
    put: float

    def for_type(self, option_type: OptionType) -> float:
        return self.call if option_type == "call" else self.put


@dataclass(frozen=True)
class Greeks:
    delta: SidedValue
    gamma: float    # shared by call and put
    theta: SidedValue  # annualized
    vega: float     # per 1.00 change in volatility, shared
    rho: SidedValue


@dataclass(frozen=True)
class OptionPrice:
    call_price: float
    put_price: float
    greeks: Greeks

    def price_for(self, option_type: OptionType) -> float:
        return self.call_price if option_type == "call" else self.put_price


def erf_approx(x: float) -> float:
    """Odd error-function approximation (Abramowitz-Stegun 7.1.26)."""

    sign = 1.0 if x >= 0 else -1.0
    x = abs(x)
    a1, a2, a3, a4, a5 = _AS_A
    t = 1.0 / (1.0 + _AS_P * x)
    y = 1.0 - (((((a5 * t + a4) * t) + a3) * t + a2) * t + a1) * t * math.exp(-x * x)
    return sign * y


def normal_cdf_approx(x: float) -> float:
    """Standard normal CDF built on :func:`erf_approx`."""

    return 0.5 * (1.0 + erf_approx(x / math.sqrt(2.0)))


def normal_cdf(x: float) -> float:
    """Standard normal CDF used by the pricing engine."""

    return float(norm.cdf(x))


def normal_pdf(x: float) -> float:
    return float(norm.pdf(x))


def validate_parameters(params: OptionParameters) -> None:
    """Raise :class:`InvalidInput` when ``params`` cannot be priced."""

    fields = {
        "spot": params.spot,
        "strike": params.strike,
        "time_to_expiry_years": params.time_to_expiry_years,
        "risk_free_rate": params.risk_free_rate,
        "volatility": params.volatility,
    }
    for name, value in fields.items():
        try:
            finite = math.isfinite(value)
        except TypeError as exc:
            raise InvalidInput(f"{name} must be a number, got {value!r}") from exc
        if not finite:
            raise InvalidInput(f"{name} must be finite, got {value!r}")

    if params.time_to_expiry_years <= 0:
        raise InvalidInput("Time to expiry must be positive")
    if params.spot <= 0:
        raise InvalidInput(f"Spot price must be positive: {params.spot}")
    if params.strike <= 0:
        raise InvalidInput(f"Strike price must be positive: {params.strike}")
    if params.volatility <= 0:
        raise InvalidInput(f"Volatility must be positive: {params.volatility}")


def d1_d2(spot: float, strike: float, time_to_expiry_years: float, risk_free_rate: float, volatility: float) -> tuple[float, float]:
    sqrt_t = math.sqrt(time_to_expiry_years)
    d1 = (math.log(spot / strike) + (risk_free_rate + 0.5 * volatility**2) * time_to_expiry_years) / (volatility * sqrt_t)
    return d1, d1 - volatility * sqrt_t


def price_option(params: OptionParameters) -> OptionPrice:
    """Price a European call and put and compute their Greeks.

    Args:
        params: Spot, strike, time to expiry (years), risk-free rate and volatility.

    Returns:
        Immutable :class:`OptionPrice` with both prices and the Greeks.

    Raises:
        InvalidInput: If any input is non-finite or spot, strike, time or
            volatility is not strictly positive.
    """

    validate_parameters(params)

    S = params.spot
    K = params.strike
    T = params.time_to_expiry_years
    r = params.risk_free_rate
    sigma = params.volatility

    sqrt_T = math.sqrt(T)
    d1, d2 = d1_d2(S, K, T, r, sigma)

    N_d1 = normal_cdf(d1)
    N_d2 = normal_cdf(d2)
    N_neg_d1 = normal_cdf(-d1)
    N_neg_d2 = normal_cdf(-d2)
    n_d1 = normal_pdf(d1)
    discounted_strike = K * math.exp(-r * T)

    call_price = S * N_d1 - discounted_strike * N_d2
    put_price = discounted_strike * N_neg_d2 - S * N_neg_d1

    decay = -(S * N_d1 * sigma) / (2 * sqrt_T)
    greeks = Greeks(
        delta=SidedValue(call=N_d1, put=N_d1 - 1),
        gamma=N_d1 / (S * sigma * sqrt_T),
        theta=SidedValue(
            call=decay - r * discounted_strike * N_d2,
            put=decay + r * discounted_strike * N_neg_d2,
        ),
        vega=S * sqrt_T * n_d1,
        rho=SidedValue(
            call=K * T * math.exp(-r * T) * N_d2,
            put=-K * T * math.exp(-r * T) * N_neg_d2,
        ),
    )

    return OptionPrice(call_price=call_price, put_price=put_price, greeks=greeks)


def days_to_expiry(expiration: date | datetime, now: datetime | None = None) -> int:
    """Whole calendar days until ``expiration`` (rounded up, never negative)."""

    current = now or datetime.now(timezone.utc)
    if isinstance(expiration, datetime):
        target = expiration
    else:
        target = datetime(expiration.year, expiration.month, expiration.day, tzinfo=timezone.utc)
    if target.tzinfo is None:
        target = target.replace(tzinfo=timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)

    diff_days = math.ceil((target - current).total_seconds() / 86400)
    return max(0, diff_days)


def days_to_years(days: float) -> float:
    return days / DAYS_PER_YEAR


__all__ = [
    "DAYS_PER_YEAR",
    "Greeks",
    "OptionParameters",
    "OptionPrice",
    "OptionType",
    "SidedValue",
    "d1_d2",
    "days_to_expiry",
    "days_to_years",
    "erf_approx",
    "normal_cdf",
    "normal_cdf_approx",
    "normal_pdf",
    "price_option",
    "validate_parameters",
]
