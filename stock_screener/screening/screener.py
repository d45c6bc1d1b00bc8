"""Filter candidates against criteria and rank them by composite score."""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Optional, Sequence

from stock_screener.exceptions import ScreenerError
from stock_screener.math.implied_vol import DEFAULT_RISK_FREE_RATE, solve_implied_volatility
from stock_screener.math.pricing import OptionParameters, days_to_years, price_option
from stock_screener.models import (
    CandidateSummary,
    OptionQuote,
    ScreeningCriteria,
    ScreeningResult,
    StockQuote,
)

from .base import ScoreInputs
from .criteria import dte_in_range, passes_filters, validate_criteria
from .engine import CompositeScoringEngine

logger = logging.getLogger(__name__)

_default_engine: CompositeScoringEngine | None = None


def _get_engine(engine: CompositeScoringEngine | None) -> CompositeScoringEngine:
    global _default_engine
    if engine is not None:
        return engine
    if _default_engine is None:
        _default_engine = CompositeScoringEngine()
    return _default_engine


def score_option(option: OptionQuote, engine: CompositeScoringEngine | None = None) -> float:
    """Composite opportunity score of a single contract."""

    return _get_engine(engine).score(ScoreInputs.from_option(option)).total_score


def screen(
    criteria: ScreeningCriteria,
    candidates: Sequence[CandidateSummary],
    engine: CompositeScoringEngine | None = None,
) -> List[ScreeningResult]:
    """Keep the candidates that pass ``criteria`` and rank them.

    Results are sorted by descending score. Python's sort is stable, so equal
    scores keep their input order.

    Raises:
        InvalidCriteria: Before any candidate is evaluated.
    """

    validate_criteria(criteria)
    scoring = _get_engine(engine)

    results: List[ScreeningResult] = []
    for candidate in candidates:
        if not passes_filters(criteria, candidate):
            continue
        composite = scoring.score(ScoreInputs.from_summary(candidate))
        results.append(
            ScreeningResult(
                symbol=candidate.symbol,
                price=candidate.price,
                change=candidate.change,
                change_percent=candidate.change_percent,
                volume=candidate.volume,
                market_cap=candidate.market_cap,
                iv=candidate.iv,
                target_delta=abs(candidate.delta),
                dte=candidate.dte,
                score=composite.total_score,
                best_option=candidate.best_option,
            )
        )

    results.sort(key=lambda result: result.score, reverse=True)
    return results


def with_analytics(
    option: OptionQuote,
    spot: float,
    today: date | None = None,
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
) -> Optional[OptionQuote]:
    """Fill a missing implied volatility and delta from the mid price.

    Returns ``None`` when the contract cannot be priced (expired, no price,
    or the IV solver fails).
    """

    if option.implied_volatility > 0 and option.delta != 0:
        return option

    dte = option.days_to_expiration(today)
    mid = option.mid_price
    if dte <= 0 or mid <= 0 or spot <= 0:
        return None

    years = days_to_years(dte)
    updates = {}
    volatility = option.implied_volatility
    try:
        if volatility <= 0:
            volatility = solve_implied_volatility(
                mid, spot, option.strike, years, risk_free_rate, option.option_type
            )
            updates["implied_volatility"] = volatility
        if option.delta == 0:
            priced = price_option(
                OptionParameters(
                    spot=spot,
                    strike=option.strike,
                    time_to_expiry_years=years,
                    risk_free_rate=risk_free_rate,
                    volatility=volatility,
                )
            )
            updates["delta"] = priced.greeks.delta.for_type(option.option_type)
    except ScreenerError as exc:
        logger.debug("Skipping %s %s strike %s: %s", option.symbol, option.option_type, option.strike, exc)
        return None

    return option.model_copy(update=updates)


def select_best_contract(
    contracts: Iterable[OptionQuote],
    criteria: ScreeningCriteria,
    spot: float,
    today: date | None = None,
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
) -> Optional[OptionQuote]:
    """Pick the put whose |delta| is closest to ``criteria.target_delta``.

    Only puts inside the DTE range with enough open interest and a tight
    enough bid/ask spread are considered. Ties keep chain order.
    """

    best: Optional[OptionQuote] = None
    best_distance = float("inf")

    for option in contracts:
        if option.option_type != "put":
            continue
        if not dte_in_range(criteria, option.days_to_expiration(today)):
            continue
        if option.open_interest < criteria.min_open_interest:
            continue
        spread = option.spread_percent
        if spread is None or spread > criteria.max_spread_percent:
            continue

        enriched = with_analytics(option, spot, today=today, risk_free_rate=risk_free_rate)
        if enriched is None:
            continue

        distance = abs(abs(enriched.delta) - criteria.target_delta)
        if distance < best_distance:
            best = enriched
            best_distance = distance

    return best


def candidate_from_contract(quote: StockQuote, option: OptionQuote, today: date | None = None) -> CandidateSummary:
    """Combine an underlying quote and its chosen contract into a candidate."""

    return CandidateSummary(
        symbol=quote.symbol,
        price=quote.price,
        change=quote.change,
        change_percent=quote.change_percent,
        volume=quote.volume,
        market_cap=quote.market_cap,
        iv=option.implied_volatility * 100,
        delta=option.delta,
        dte=option.days_to_expiration(today),
        open_interest=option.open_interest,
        spread_percent=option.spread_percent,
        best_option=option,
    )


__all__ = [
    "candidate_from_contract",
    "score_option",
    "screen",
    "select_best_contract",
    "with_analytics",
]
