from __future__ import annotations

import logging
from typing import Dict, List, Optional

import pandas as pd

from smart_allocator.data_loader import MarketDataLoader
from smart_allocator.metrics_engine import PeakTrendExtractor
from smart_allocator.models import Allocation, HistorySeries, Quote
from smart_allocator.portfolio_engine import PortfolioEngine
from smart_allocator.portfolio_store import PortfolioStore
from smart_allocator.session_context import DashboardState

logger = logging.getLogger(__name__)


class Dashboard:
    """
    Thin facade tying the portfolio store, the market-data loader and the
    allocation engine together for the CLI or alternative front-ends.

    ``refresh()`` fetches fresh quotes and histories for the active
    (non-excluded) symbols and recomputes the allocation; the last result is
    kept so ``drawdown()`` can chart the selected symbol without refetching.
    """

    def __init__(
        self,
        store: Optional[PortfolioStore] = None,
        loader: Optional[MarketDataLoader] = None,
        state: Optional[DashboardState] = None,
    ):
        self.store = store or PortfolioStore()
        self.loader = loader or MarketDataLoader()
        self.state = state or DashboardState()

        self.quotes: List[Quote] = []
        self.histories: Dict[str, HistorySeries] = {}
        self.allocations: List[Allocation] = []

    # ------------------------------------------------------------------ #
    #  Portfolio management
    # ------------------------------------------------------------------ #

    def symbols(self) -> List[str]:
        return self.store.load()

    def add_symbol(self, symbol: str) -> List[str]:
        return self.store.add(symbol)

    def remove_symbol(self, symbol: str) -> List[str]:
        self.state.excluded.discard(symbol.strip().upper())
        return self.store.remove(symbol)

    # ------------------------------------------------------------------ #
    #  Market views
    # ------------------------------------------------------------------ #

    def refresh(self, now: Optional[pd.Timestamp] = None) -> List[Allocation]:
        """Fetch fresh data for the active symbols and recompute the allocation."""
        active = self.state.active_symbols(self.symbols())
        if not active:
            logger.info("No active symbols; allocation is empty")
            self.quotes, self.histories, self.allocations = [], {}, []
            return []

        self.quotes = self.loader.fetch_quotes(active)
        self.histories = self.loader.fetch_histories(active, self.state.range_token, now)
        self.allocations = PortfolioEngine.compute_allocations(
            self.quotes,
            self.histories,
            self.state.budget,
            self.state.weights,
            self.state.range_token,
        )
        return self.allocations

    def performance(self, now: Optional[pd.Timestamp] = None) -> Dict[str, float]:
        """Range performance (percent change) for every stored symbol."""
        return self.loader.fetch_performance(self.symbols(), self.state.range_token, now)

    def drawdown(self, symbol: Optional[str] = None, now: Optional[pd.Timestamp] = None) -> list:
        """
        Distance-from-peak series for *symbol* (default: the selected symbol,
        else the top allocation).

        Uses the data of the last ``refresh()``.  A symbol outside that
        allocation is measured against its own peak, with its history
        fetched on demand when the last refresh did not load it.
        """
        symbol = (symbol or self.state.selected_symbol or "").upper()
        if not symbol and self.allocations:
            symbol = self.allocations[0].symbol
        if not symbol:
            return []

        history = self.histories.get(symbol)
        peak = 0.0
        if history is not None:
            peak, _ = PortfolioEngine.peak_for(self.allocations, symbol)
        else:
            history = self.loader.fetch_histories([symbol], self.state.range_token, now)[symbol]
        if peak <= 0:
            # Not allocated (e.g. its quote failed): measure against its own peak
            peak = PeakTrendExtractor.extract(history, history.last_price).high
        return PeakTrendExtractor.drawdown_series(history, peak)
