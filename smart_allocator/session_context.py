from dataclasses import dataclass, field
from typing import Optional, List, Set

from smart_allocator.config import DEFAULT_BUDGET, DEFAULT_RANGE
from smart_allocator.metrics_engine import ScoringEngine
from smart_allocator.models import ScoringWeights
from smart_allocator.range_resolver import RangeResolver


@dataclass
class DashboardState:
    """
    Everything the user can change on the dashboard.

    The allocation is a pure function of this state plus freshly fetched
    market data; changing any field means calling the engine again.
    """
    budget: float = DEFAULT_BUDGET
    range_token: str = DEFAULT_RANGE
    weights: ScoringWeights = field(default_factory=ScoringEngine.resolve_weights)

    # Symbols left out of the allocation (still shown in the portfolio list)
    excluded: Set[str] = field(default_factory=set)

    selected_symbol: Optional[str] = None

    def active_symbols(self, symbols: List[str]) -> List[str]:
        """*symbols* minus the excluded ones, order preserved."""
        return [s for s in symbols if s not in self.excluded]

    def toggle_exclusion(self, symbol: str) -> bool:
        """Flip *symbol*'s exclusion; return True when it is now excluded."""
        symbol = symbol.upper()
        if symbol in self.excluded:
            self.excluded.discard(symbol)
            return False
        self.excluded.add(symbol)
        return True

    def set_range(self, token: str) -> None:
        """Switch the range; unknown tokens fall back to the default."""
        parsed = RangeResolver.parse(token)
        self.range_token = parsed.value if parsed is not None else DEFAULT_RANGE

    def set_preset(self, name: str) -> None:
        self.weights = ScoringEngine.resolve_weights(preset=name)

    def reset(self):
        """Reset the dashboard to its initial state."""
        self.__init__()
