"""
smart_allocator/history.py
--------------------------
Turns raw provider samples into a clean :class:`HistorySeries`.

A raw sample is ``(timestamp, close, open)``.  Two-element tuples
``(timestamp, close)`` and mappings with ``date`` / ``close`` / ``open``
keys (the shape of a chart quote row) are accepted as well.

Rules
-----
* The first sample's close (or its open when the close is missing) becomes
  the series' ``start_price``.
* Every stored point uses the close price.
* Samples whose close is missing, NaN or not positive are dropped.
* Input order is preserved; the provider already returns ascending time.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, Mapping, Optional, Tuple

import pandas as pd

from smart_allocator.models import HistorySeries, PricePoint


def _clean_price(value: Any) -> Optional[float]:
    """Return *value* as a positive float, or ``None`` when it is unusable."""
    if value is None:
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(price) or price <= 0:
        return None
    return price


def _unpack(sample: Any) -> Tuple[Any, Any, Any]:
    if isinstance(sample, Mapping):
        ts = sample.get("date", sample.get("timestamp"))
        return ts, sample.get("close"), sample.get("open")
    if len(sample) == 2:
        ts, close = sample
        return ts, close, None
    ts, close, open_ = sample[:3]
    return ts, close, open_


class HistoryNormalizer:
    """Stateless conversion of raw samples into a :class:`HistorySeries`."""

    @staticmethod
    def normalize(raw_samples: Iterable, symbol: str = "") -> HistorySeries:
        """
        Normalise *raw_samples* into a :class:`HistorySeries`.

        Empty input yields an empty series, never an error.
        """
        points = []
        start_price: Optional[float] = None

        for i, sample in enumerate(() if raw_samples is None else raw_samples):
            ts, close, open_ = _unpack(sample)
            close = _clean_price(close)

            if i == 0:
                start_price = close if close is not None else _clean_price(open_)

            if close is None:
                continue
            points.append(PricePoint(timestamp=ts, price=close))

        return HistorySeries(
            symbol=symbol.upper(),
            points=tuple(points),
            start_price=start_price,
        )

    @staticmethod
    def from_frame(df: Optional[pd.DataFrame], symbol: str = "") -> HistorySeries:
        """
        Normalise a provider DataFrame (``DatetimeIndex`` plus ``Close`` and
        optionally ``Open`` columns), as returned by ``Ticker.history``.
        """
        if df is None or df.empty or "Close" not in df.columns:
            return HistorySeries(symbol=symbol.upper())

        opens = df["Open"] if "Open" in df.columns else [None] * len(df)
        samples = zip(df.index, df["Close"], opens)
        return HistoryNormalizer.normalize(samples, symbol=symbol)

    @staticmethod
    def from_pairs(pairs: Iterable, symbol: str = "") -> HistorySeries:
        """Build a series from already-resolved ``(timestamp, price)`` pairs."""
        return HistoryNormalizer.normalize(
            ((ts, price, None) for ts, price in (() if pairs is None else pairs)),
            symbol=symbol,
        )
