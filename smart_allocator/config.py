"""
smart_allocator/config.py
-------------------------
Shared tunable parameters.

Keeping these separate from smart_allocator/constants.py (which holds the
fixed lookup tables) gives a clean boundary: this file owns the knobs of the
scoring formula and the I/O layer that may reasonably change between
releases.
"""

import os
from pathlib import Path

from smart_allocator.enums import RangeToken

# ---------------------------------------------------------------------------
# Scoring formula
# ---------------------------------------------------------------------------
# raw_score = max(SCORE_FLOOR, dip * alpha + trend * beta + BASE_SCORE)
#
# BASE_SCORE gives every stock a baseline weight even when it sits exactly at
# its peak and its average. SCORE_FLOOR keeps a strongly negative trend from
# driving the score to zero or below.

BASE_SCORE: float = 0.1
SCORE_FLOOR: float = 0.01

# ---------------------------------------------------------------------------
# Dashboard defaults
# ---------------------------------------------------------------------------

DEFAULT_BUDGET: float = 70.0
DEFAULT_RANGE: str = "1mo"

# Ranges on which the quote's 52-week high stands in for a missing history.
# Only the 1-year window lines up with a 52-week reference.
FALLBACK_HIGH_RANGES: frozenset = frozenset({RangeToken.ONE_YEAR})

# ---------------------------------------------------------------------------
# Market data
# ---------------------------------------------------------------------------

MAX_FETCH_WORKERS: int = 8

# ---------------------------------------------------------------------------
# Portfolio store
# ---------------------------------------------------------------------------

DEFAULT_SYMBOLS: tuple = ("AAPL", "NVDA", "TSLA", "MSFT")

_DEFAULT_PORTFOLIO_FILE = Path(__file__).parent.parent / "data" / "portfolio.json"

PORTFOLIO_FILE: Path = Path(
    os.environ.get("SMART_ALLOCATOR_PORTFOLIO", _DEFAULT_PORTFOLIO_FILE)
)
