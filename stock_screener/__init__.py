"""Options pricing, screening and resilient market data aggregation."""

from .exceptions import (
    ConvergenceFailure,
    DegenerateVega,
    InvalidCriteria,
    InvalidInput,
    InvalidSpread,
    RateLimitExceeded,
    ScreenerError,
    SourceUnavailable,
)
from .service import ScreenerCore, build_core

__version__ = "0.1.0"

__all__ = [
    "ConvergenceFailure",
    "DegenerateVega",
    "InvalidCriteria",
    "InvalidInput",
    "InvalidSpread",
    "RateLimitExceeded",
    "ScreenerCore",
    "ScreenerError",
    "SourceUnavailable",
    "build_core",
]
