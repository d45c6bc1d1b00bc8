"""Validation and filtering rules for screening criteria."""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import ValidationError

from stock_screener.exceptions import InvalidCriteria
from stock_screener.models import CandidateSummary, ScreeningCriteria


def parse_criteria(payload: Mapping[str, Any] | ScreeningCriteria | None) -> ScreeningCriteria:
    """Build validated criteria from a request payload (defaults fill gaps)."""

    if isinstance(payload, ScreeningCriteria):
        criteria = payload
    else:
        try:
            criteria = ScreeningCriteria.model_validate(dict(payload or {}))
        except ValidationError as exc:
            raise InvalidCriteria("Invalid criteria", str(exc)) from exc
    validate_criteria(criteria)
    return criteria


def validate_criteria(criteria: ScreeningCriteria) -> None:
    """Raise :class:`InvalidCriteria` unless the documented invariants hold."""

    if criteria.min_price < 0 or criteria.max_price < criteria.min_price:
        raise InvalidCriteria(
            "Invalid price range",
            "minPrice must be >= 0 and maxPrice must be >= minPrice",
        )
    if criteria.target_delta < 0 or criteria.target_delta > 1:
        raise InvalidCriteria("Invalid target delta", "targetDelta must be between 0 and 1")
    min_dte, max_dte = criteria.dte_range
    if min_dte < 0 or max_dte < min_dte:
        raise InvalidCriteria("Invalid DTE range", "DTE range must be positive and min <= max")


def dte_in_range(criteria: ScreeningCriteria, dte: int) -> bool:
    min_dte, max_dte = criteria.dte_range
    return min_dte <= dte <= max_dte


def passes_filters(criteria: ScreeningCriteria, candidate: CandidateSummary) -> bool:
    """Price, IV and DTE always apply; open interest and spread apply when known."""

    if not criteria.min_price <= candidate.price <= criteria.max_price:
        return False
    if candidate.iv < criteria.min_implied_volatility_percent:
        return False
    if not dte_in_range(criteria, candidate.dte):
        return False
    if candidate.open_interest is not None and candidate.open_interest < criteria.min_open_interest:
        return False
    if candidate.spread_percent is not None and candidate.spread_percent > criteria.max_spread_percent:
        return False
    return True


__all__ = ["dte_in_range", "parse_criteria", "passes_filters", "validate_criteria"]
