"""
smart_allocator/models.py
-------------------------
Immutable value objects passed between the loader, the engines and the
formatting layer.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Optional, Tuple


@dataclass(frozen=True)
class PricePoint:
    """A single (timestamp, price) sample with a known, positive price."""
    timestamp: Any
    price: float


@dataclass(frozen=True)
class HistorySeries:
    """
    Ordered price history for one symbol.

    ``start_price`` is the reference used for range performance: the first
    raw sample's close, or its open when the close was missing.  It is kept
    even when the first sample itself was dropped from ``points``.
    """
    symbol: str = ""
    points: Tuple[PricePoint, ...] = ()
    start_price: Optional[float] = None

    def __len__(self) -> int:
        return len(self.points)

    def is_empty(self) -> bool:
        return not self.points

    @property
    def prices(self) -> list:
        return [p.price for p in self.points]

    @property
    def last_price(self) -> Optional[float]:
        return self.points[-1].price if self.points else None

    def change_percent(self) -> float:
        """
        Percentage move from ``start_price`` to the last stored close.

        Returns ``0.0`` when either end is unavailable.
        """
        end = self.last_price
        if not self.start_price or not end:
            return 0.0
        return (end - self.start_price) / self.start_price * 100


@dataclass(frozen=True)
class Quote:
    """Current market snapshot for a symbol."""
    symbol: str
    price: float = 0.0
    reference_high: Optional[float] = None   # e.g. 52-week high
    change_percent: Optional[float] = None   # today's move, in percent
    name: Optional[str] = None


@dataclass(frozen=True)
class ScoringWeights:
    """Reversion (alpha) and momentum (beta) weights."""
    alpha: float
    beta: float
    name: Optional[str] = None

    def as_tuple(self) -> Tuple[float, float]:
        return (self.alpha, self.beta)


@dataclass(frozen=True)
class PeakTrend:
    high: float
    high_timestamp: Any
    average: float


@dataclass(frozen=True)
class StockScore:
    """Per-stock scoring breakdown fed into the allocator."""
    symbol: str
    price: float
    high: float
    high_timestamp: Any
    average: float
    dip_ratio: float
    trend_score: float
    raw_score: float


@dataclass(frozen=True)
class Allocation:
    """A stock's share of the budget, with the signals that produced it."""
    symbol: str
    allocation_amount: float
    percent_of_budget: float
    dip_percent: float
    trend_percent: float
    reference_high: float
    reference_high_timestamp: Any = None
    price: float = 0.0

    def to_dict(self) -> dict:
        """JSON-friendly mapping; timestamps are rendered as ISO strings."""
        data = asdict(self)
        ts = data["reference_high_timestamp"]
        if ts is not None and hasattr(ts, "isoformat"):
            data["reference_high_timestamp"] = ts.isoformat()
        elif ts is not None:
            data["reference_high_timestamp"] = str(ts)
        return data
