from __future__ import annotations

import math
from typing import Any, Optional, Union

import numpy as np

from smart_allocator.config import BASE_SCORE, FALLBACK_HIGH_RANGES, SCORE_FLOOR
from smart_allocator.constants import DEFAULT_PRESET, STRATEGY_PRESETS
from smart_allocator.enums import RangeToken
from smart_allocator.models import (
    HistorySeries,
    PeakTrend,
    Quote,
    ScoringWeights,
    StockScore,
)
from smart_allocator.range_resolver import RangeResolver


def _as_price(value: Any) -> float:
    """Coerce a possibly-missing price to a float; missing/NaN/negative → 0."""
    if value is None:
        return 0.0
    try:
        price = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(price) or price < 0:
        return 0.0
    return price


class PeakTrendExtractor:
    """
    Derives the reference levels a stock is scored against: the local peak
    (for the dip ratio) and the trailing mean (for the trend score).

    Only static methods are exposed; there is no shared state.
    """

    @staticmethod
    def extract(
        history: Optional[HistorySeries],
        current_price: Any,
        fallback_high: Any = None,
        range_token: Union[RangeToken, str, None] = None,
    ) -> PeakTrend:
        """
        Peak, peak timestamp and average price over *history*.

        Parameters
        ----------
        history : HistorySeries
            Normalised series; may be empty.
        current_price : float
            Latest quote price.  Missing values count as ``0``.
        fallback_high : float, optional
            Reference high from the quote (52-week high).  Used only when
            *history* is empty **and** *range_token* is one of
            ``FALLBACK_HIGH_RANGES``.
        range_token : RangeToken or str, optional
            Active dashboard range.

        Returns
        -------
        PeakTrend
            With an empty history the average equals the current price, so
            the trend score degenerates to 0.  A high that resolves to 0 is
            replaced by the current price.
        """
        price = _as_price(current_price)

        if history is not None and not history.is_empty():
            prices = np.asarray(history.prices, dtype=float)
            idx = int(np.argmax(prices))          # first occurrence on ties
            high = float(prices[idx])
            high_ts = history.points[idx].timestamp
            average = float(prices.mean())
        else:
            high_ts = None
            average = price
            if RangeResolver.parse(range_token) in FALLBACK_HIGH_RANGES:
                high = _as_price(fallback_high) or price
            else:
                high = price

        return PeakTrend(high=high or price, high_timestamp=high_ts, average=average)

    @staticmethod
    def drawdown_series(history: Optional[HistorySeries], peak: Any) -> list:
        """
        Distance of every point from *peak*, in percent.

        Returns
        -------
        list of tuple
            ``(timestamp, price, distance_percent)`` where
            ``distance = (price - peak) / peak * 100`` (≤ 0 below the peak).
            Empty when *peak* is not positive or *history* is empty.
        """
        peak = _as_price(peak)
        if peak <= 0 or history is None:
            return []
        return [
            (p.timestamp, p.price, (p.price - peak) / peak * 100)
            for p in history.points
        ]


# ===========================================================================
# ScoringEngine: dip / trend blend, fully decoupled from data loading
# ===========================================================================

class ScoringEngine:
    """
    Converts a stock's price against its reference levels into a single
    non-negative desirability score.

    Pipeline::

        price, high, average
            → dip ratio   (distance below peak, in [0, 1])
            → trend score (signed deviation from the average)
            → raw score   max(SCORE_FLOOR, dip*alpha + trend*beta + BASE_SCORE)

    The floor guarantees that every stock keeps a strictly positive weight;
    dropping a stock altogether is the caller's job (exclusion toggle).
    """

    # ------------------------------------------------------------------ #
    #  Signals
    # ------------------------------------------------------------------ #

    @staticmethod
    def dip_ratio(current_price: Any, high: Any) -> float:
        """``max(0, (high - price) / high)``; ``0`` when ``high <= 0``."""
        price = _as_price(current_price)
        high = _as_price(high)
        if high <= 0:
            return 0.0
        return min(1.0, max(0.0, (high - price) / high))

    @staticmethod
    def trend_score(current_price: Any, average: Any) -> float:
        """``(price - average) / average``; ``0`` when ``average <= 0``."""
        price = _as_price(current_price)
        average = _as_price(average)
        if average <= 0:
            return 0.0
        return (price - average) / average

    @staticmethod
    def score(
        current_price: Any,
        high: Any,
        average: Any,
        alpha: float,
        beta: float,
    ) -> tuple:
        """
        Score one stock.

        Returns
        -------
        tuple
            ``(dip_ratio, trend_score, raw_score)``.
        """
        dip = ScoringEngine.dip_ratio(current_price, high)
        trend = ScoringEngine.trend_score(current_price, average)
        raw = max(SCORE_FLOOR, dip * alpha + trend * beta + BASE_SCORE)
        return dip, trend, raw

    @staticmethod
    def score_stock(
        quote: Quote,
        history: Optional[HistorySeries],
        weights: ScoringWeights,
        range_token: Union[RangeToken, str, None] = None,
    ) -> StockScore:
        """Extract reference levels for *quote* and score it in one step."""
        price = _as_price(quote.price)
        levels = PeakTrendExtractor.extract(
            history, price, quote.reference_high, range_token
        )
        dip, trend, raw = ScoringEngine.score(
            price, levels.high, levels.average, weights.alpha, weights.beta
        )
        return StockScore(
            symbol=quote.symbol,
            price=price,
            high=levels.high,
            high_timestamp=levels.high_timestamp,
            average=levels.average,
            dip_ratio=dip,
            trend_score=trend,
            raw_score=raw,
        )

    # ------------------------------------------------------------------ #
    #  Weight presets
    # ------------------------------------------------------------------ #

    @staticmethod
    def resolve_weights(
        preset: Optional[str] = None,
        alpha: Optional[float] = None,
        beta: Optional[float] = None,
    ) -> ScoringWeights:
        """
        Build :class:`ScoringWeights` from a preset name and/or explicit
        values.  Explicit *alpha* / *beta* override the preset's.

        Raises
        ------
        ValueError
            If *preset* is unknown or a resulting weight is negative.
        """
        name = preset if preset is not None else DEFAULT_PRESET
        matched = next(
            (k for k in STRATEGY_PRESETS if k.lower() == name.strip().lower()),
            None,
        )
        if matched is None:
            raise ValueError(
                f"Unknown strategy preset: {name!r}. "
                f"Valid options: {list(STRATEGY_PRESETS.keys())}"
            )

        base = STRATEGY_PRESETS[matched]
        a = float(base["alpha"] if alpha is None else alpha)
        b = float(base["beta"] if beta is None else beta)
        if a < 0 or b < 0:
            raise ValueError(f"Weights must be non-negative (alpha={a}, beta={b}).")

        weights = ScoringWeights(alpha=a, beta=b)
        return ScoringWeights(alpha=a, beta=b, name=ScoringEngine.match_preset(weights))

    @staticmethod
    def match_preset(weights: ScoringWeights) -> Optional[str]:
        """Name of the preset whose (alpha, beta) equals *weights*, if any."""
        for name, p in STRATEGY_PRESETS.items():
            if math.isclose(p["alpha"], weights.alpha) and math.isclose(p["beta"], weights.beta):
                return name
        return None
