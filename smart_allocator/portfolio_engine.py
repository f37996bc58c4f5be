"""
smart_allocator/portfolio_engine.py
-----------------------------------
Pure transformation engine: scored stocks → budget allocations.

Design contract:
  - No network or file access
  - No dashboard-state awareness
  - Never raises on malformed numbers; degrades to zero weights instead
  - Fully deterministic and stateless (all methods are @staticmethod)
"""

from __future__ import annotations

import math
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

import pandas as pd

from smart_allocator.enums import RangeToken
from smart_allocator.history import HistoryNormalizer
from smart_allocator.metrics_engine import ScoringEngine
from smart_allocator.models import Allocation, HistorySeries, Quote, ScoringWeights, StockScore


# Keys accepted for the current price / reference high when a stock is
# passed as a plain mapping (provider quote payloads use the camelCase ones).
_PRICE_KEYS = ("price", "currentPrice", "regularMarketPrice")
_HIGH_KEYS = ("reference_high", "referenceHigh", "fiftyTwoWeekHigh")


class PortfolioEngine:
    """
    Convert per-stock scores into a ranked, budget-denominated allocation.

    ``weight_i = raw_score_i / Σ raw_score``; every stock keeps a share
    proportional to its score; the floor in :class:`ScoringEngine`
    guarantees that share is strictly positive.
    """

    # ------------------------------------------------------------------ #
    #  Public entry points
    # ------------------------------------------------------------------ #

    @staticmethod
    def allocate(stock_scores: List[StockScore], budget: Any) -> List[Allocation]:
        """
        Split *budget* across *stock_scores*.

        Parameters
        ----------
        stock_scores:
            Output of :meth:`ScoringEngine.score_stock`, in display order.
        budget:
            Total amount to distribute.  Missing, NaN or negative budgets
            are treated as ``0``.

        Returns
        -------
        List[Allocation]
            Sorted descending by ``allocation_amount``; equal amounts keep
            their input order.  Empty input → ``[]``.
        """
        if not stock_scores:
            return []

        amount_total = PortfolioEngine._clean_budget(budget)
        weights = PortfolioEngine._proportional([s.raw_score for s in stock_scores])

        allocations = [
            Allocation(
                symbol=s.symbol,
                allocation_amount=amount_total * w,
                percent_of_budget=w * 100,
                dip_percent=s.dip_ratio * 100,
                trend_percent=s.trend_score * 100,
                reference_high=s.high,
                reference_high_timestamp=s.high_timestamp,
                price=s.price,
            )
            for s, w in zip(stock_scores, weights)
        ]

        # sorted() is stable, so ties stay in input order
        return sorted(allocations, key=lambda a: a.allocation_amount, reverse=True)

    @staticmethod
    def compute_allocations(
        stocks: Iterable[Union[Quote, Mapping]],
        histories: Optional[Mapping[str, Any]],
        budget: Any,
        weights: Union[ScoringWeights, Tuple[float, float], str, None] = None,
        range_token: Union[RangeToken, str, None] = None,
    ) -> List[Allocation]:
        """
        Score every stock against its history and allocate *budget*.

        Parameters
        ----------
        stocks:
            :class:`Quote` objects or mappings with ``symbol`` and a price
            key (``price`` / ``currentPrice`` / ``regularMarketPrice``) and
            optionally a reference high (``referenceHigh`` /
            ``fiftyTwoWeekHigh``).
        histories:
            ``{symbol: HistorySeries | DataFrame | iterable of samples}``.
            Symbols without an entry are scored on the empty-history
            fallback path.
        budget:
            Amount to distribute.
        weights:
            :class:`ScoringWeights`, an ``(alpha, beta)`` pair, or a preset
            name.  ``None`` selects the default preset.
        range_token:
            Active range; decides whether the quote's reference high may
            stand in for a missing history.

        Returns
        -------
        List[Allocation]
            Same inputs always produce the same output.
        """
        w = PortfolioEngine._coerce_weights(weights)
        histories = histories or {}

        scores = []
        for stock in (() if stocks is None else stocks):
            quote = PortfolioEngine._coerce_quote(stock)
            history = PortfolioEngine._coerce_history(
                histories.get(quote.symbol), quote.symbol
            )
            scores.append(ScoringEngine.score_stock(quote, history, w, range_token))

        return PortfolioEngine.allocate(scores, budget)

    @staticmethod
    def peak_for(allocations: List[Allocation], symbol: str) -> Tuple[float, Any]:
        """``(reference_high, reference_high_timestamp)`` of *symbol*, or ``(0.0, None)``."""
        for a in allocations:
            if a.symbol == symbol:
                return a.reference_high, a.reference_high_timestamp
        return 0.0, None

    # ------------------------------------------------------------------ #
    #  Private helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _proportional(scores: List[float]) -> List[float]:
        """Weights ∝ score; all zeros when the total is not positive."""
        total = sum(scores)
        if not total > 0:
            return [0.0 for _ in scores]
        return [s / total for s in scores]

    @staticmethod
    def _clean_budget(budget: Any) -> float:
        try:
            value = float(budget)
        except (TypeError, ValueError):
            return 0.0
        if math.isnan(value) or value < 0:
            return 0.0
        return value

    @staticmethod
    def _coerce_weights(weights) -> ScoringWeights:
        if isinstance(weights, ScoringWeights):
            return weights
        if weights is None or isinstance(weights, str):
            return ScoringEngine.resolve_weights(preset=weights)
        alpha, beta = weights
        return ScoringEngine.resolve_weights(alpha=alpha, beta=beta)

    @staticmethod
    def _coerce_quote(stock: Union[Quote, Mapping]) -> Quote:
        if isinstance(stock, Quote):
            return stock
        price = next((stock[k] for k in _PRICE_KEYS if stock.get(k) is not None), 0.0)
        high = next((stock[k] for k in _HIGH_KEYS if stock.get(k) is not None), None)
        return Quote(symbol=str(stock.get("symbol", "")).upper(), price=price, reference_high=high)

    @staticmethod
    def _coerce_history(raw: Any, symbol: str) -> HistorySeries:
        if raw is None:
            return HistorySeries(symbol=symbol)
        if isinstance(raw, HistorySeries):
            return raw
        if isinstance(raw, pd.DataFrame):
            return HistoryNormalizer.from_frame(raw, symbol)
        return HistoryNormalizer.normalize(raw, symbol)


def compute_allocations(
    stocks: Iterable[Union[Quote, Mapping]],
    histories: Optional[Mapping[str, Any]],
    budget: Any,
    weights: Union[ScoringWeights, Tuple[float, float], str, None] = None,
    range_token: Union[RangeToken, str, None] = None,
) -> List[Allocation]:
    """Module-level alias for :meth:`PortfolioEngine.compute_allocations`."""
    return PortfolioEngine.compute_allocations(stocks, histories, budget, weights, range_token)
