"""Exception hierarchy shared by the pricing, screening and data layers."""

from __future__ import annotations

import math


class ScreenerError(Exception):
    """Base exception for stock screener failures."""


class InvalidInput(ScreenerError, ValueError):
    """Raised when numeric pricing inputs are malformed."""


class ImpliedVolatilityError(ScreenerError):
    """Base class for implied volatility solver failures."""


class DegenerateVega(ImpliedVolatilityError):
    """Raised when vega is too small to take a Newton step."""


class ConvergenceFailure(ImpliedVolatilityError):
    """Raised when the solver exhausts its iteration budget."""

    def __init__(self, iterations: int, last_volatility: float | None = None) -> None:
        super().__init__(f"Failed to converge after {iterations} iterations")
        self.iterations = iterations
        self.last_volatility = last_volatility


class InvalidCriteria(ScreenerError, ValueError):
    """Raised when screening criteria violate their invariants."""

    def __init__(self, error: str, message: str) -> None:
        super().__init__(f"{error}: {message}")
        self.error = error
        self.message = message


class InvalidSpread(ScreenerError, ValueError):
    """Raised for vertical spreads with non-positive width or credit."""


class RateLimitExceeded(ScreenerError):
    """Raised when a service has used its request budget for the window."""

    def __init__(self, wait_ms: float, service: str | None = None) -> None:
        seconds = math.ceil(max(wait_ms, 0.0) / 1000)
        super().__init__(f"Rate limit exceeded. Please wait {seconds} seconds.")
        self.wait_ms = wait_ms
        self.service = service


class SourceUnavailable(ScreenerError):
    """Raised when a single external source cannot serve a request."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


__all__ = [
    "ConvergenceFailure",
    "DegenerateVega",
    "ImpliedVolatilityError",
    "InvalidCriteria",
    "InvalidInput",
    "InvalidSpread",
    "RateLimitExceeded",
    "ScreenerError",
    "SourceUnavailable",
]
