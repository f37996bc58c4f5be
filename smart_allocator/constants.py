"""
smart_allocator/constants.py
----------------------------
Lookup tables shared across modules.

Placing these here keeps the range resolver, the scoring engine and the
formatting layer aligned on a single source of truth without creating
circular imports.
"""

from __future__ import annotations

import pandas as pd

from smart_allocator.enums import Interval, RangeToken


# ---------------------------------------------------------------------------
# Range token → (lookback, sampling interval)
# ---------------------------------------------------------------------------
# Intraday windows are sampled every 15 minutes so the short charts have
# enough points; everything from one month upwards uses daily bars.
# ---------------------------------------------------------------------------

RANGE_TABLE: dict = {
    RangeToken.ONE_DAY:      (pd.DateOffset(days=1),   Interval.FIFTEEN_MINUTES),
    RangeToken.FIVE_DAYS:    (pd.DateOffset(days=5),   Interval.FIFTEEN_MINUTES),
    RangeToken.ONE_MONTH:    (pd.DateOffset(months=1), Interval.ONE_DAY),
    RangeToken.THREE_MONTHS: (pd.DateOffset(months=3), Interval.ONE_DAY),
    RangeToken.SIX_MONTHS:   (pd.DateOffset(months=6), Interval.ONE_DAY),
    RangeToken.ONE_YEAR:     (pd.DateOffset(years=1),  Interval.ONE_DAY),
    RangeToken.TWO_YEARS:    (pd.DateOffset(years=2),  Interval.ONE_DAY),
    RangeToken.THREE_YEARS:  (pd.DateOffset(years=3),  Interval.ONE_DAY),
    RangeToken.FIVE_YEARS:   (pd.DateOffset(years=5),  Interval.ONE_DAY),
}

# Row used for any token that is not in RANGE_TABLE.
DEFAULT_RANGE_ROW: tuple = (pd.DateOffset(months=1), Interval.ONE_DAY)


# ---------------------------------------------------------------------------
# Strategy presets
# ---------------------------------------------------------------------------
# alpha: reversion weight (rewards distance below the local peak)
# beta:  momentum weight  (rewards price above its trailing average)
#
# Keys are the display names offered by the preset picker.
# ---------------------------------------------------------------------------

STRATEGY_PRESETS: dict[str, dict] = {
    "Balanced": {
        "alpha": 0.5,
        "beta":  0.3,
        "description": "Blend of dip buying and trend following.",
    },
    "Buy the Dip": {
        "alpha": 1.0,
        "beta":  0.0,
        "description": "Pure mean reversion: overweight the deepest drawdowns.",
    },
    "Dip Tilt": {
        "alpha": 0.8,
        "beta":  0.2,
        "description": "Mostly reversion with a light momentum check.",
    },
    "Trend Tilt": {
        "alpha": 0.2,
        "beta":  0.8,
        "description": "Mostly momentum with a light reversion bonus.",
    },
    "Momentum": {
        "alpha": 0.0,
        "beta":  1.0,
        "description": "Pure trend following: overweight stocks above their average.",
    },
    "Equal Weight": {
        "alpha": 0.0,
        "beta":  0.0,
        "description": "Ignore signals; every stock gets the same share.",
    },
}

DEFAULT_PRESET: str = "Balanced"


# ---------------------------------------------------------------------------
# Allocation table columns (display name, attribute, format spec)
# ---------------------------------------------------------------------------

ALLOCATION_COLUMNS: tuple = (
    ("Symbol", "symbol",            "<8"),
    ("Price",  "price",             ">10.2f"),
    ("Peak",   "reference_high",    ">10.2f"),
    ("Dip",    "dip_percent",       ">8.1f"),
    ("Trend",  "trend_percent",     ">8.1f"),
    ("Share",  "percent_of_budget", ">7.1f"),
    ("Alloc",  "allocation_amount", ">10.2f"),
)
