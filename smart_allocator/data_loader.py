from __future__ import annotations

import concurrent.futures
import logging
from typing import Dict, Iterable, List, Optional, Union

import pandas as pd
import yfinance as yf

from smart_allocator.config import MAX_FETCH_WORKERS
from smart_allocator.enums import RangeToken
from smart_allocator.history import HistoryNormalizer
from smart_allocator.models import HistorySeries, Quote
from smart_allocator.range_resolver import RangeResolver

logger = logging.getLogger(__name__)


def _first(info: dict, *keys):
    for key in keys:
        value = info.get(key)
        if value is not None:
            return value
    return None


class MarketDataLoader:
    """
    Fetches quotes and historical price series from Yahoo Finance.

    Every call goes to the provider; nothing is cached, so each dashboard
    refresh sees fresh data.  The ``fetch_*`` batch methods issue one
    request per symbol on a thread pool and never abort the batch: a
    symbol whose request fails is logged and mapped to its neutral value
    (empty history, missing quote, ``0.0`` change).
    """

    def __init__(self, max_workers: int = MAX_FETCH_WORKERS):
        self._max_workers = max_workers

    # ------------------------------------------------------------------
    # Single-symbol requests (raise on provider failure)
    # ------------------------------------------------------------------

    def load_quote(self, symbol: str) -> Quote:
        """
        Return the current :class:`Quote` for *symbol*.

        Raises
        ------
        ValueError
            If the provider returns no usable price.
        """
        symbol = symbol.upper()
        info = yf.Ticker(symbol).info or {}

        price = _first(info, "regularMarketPrice", "currentPrice")
        if price is None:
            raise ValueError(f"No quote available for {symbol}.")

        return Quote(
            symbol=symbol,
            price=float(price),
            reference_high=_first(info, "fiftyTwoWeekHigh"),
            change_percent=_first(info, "regularMarketChangePercent"),
            name=_first(info, "shortName", "longName"),
        )

    def load_history(
        self,
        symbol: str,
        range_token: Union[RangeToken, str, None],
        now: Optional[pd.Timestamp] = None,
    ) -> HistorySeries:
        """
        Return the normalised price history of *symbol* for *range_token*.
        """
        params = RangeResolver.query_params(range_token, now)
        df = yf.Ticker(symbol.upper()).history(**params)
        return HistoryNormalizer.from_frame(df, symbol)

    # ------------------------------------------------------------------
    # Batch requests (fan-out / fan-in, failures captured per symbol)
    # ------------------------------------------------------------------

    def fetch_quotes(self, symbols: Iterable[str]) -> List[Quote]:
        """
        Quotes for *symbols* in input order; failed symbols are omitted.
        """
        symbols = [s.upper() for s in symbols]
        results = self._fan_out(self.load_quote, symbols, "quote")
        return [results[s] for s in symbols if results.get(s) is not None]

    def fetch_histories(
        self,
        symbols: Iterable[str],
        range_token: Union[RangeToken, str, None],
        now: Optional[pd.Timestamp] = None,
    ) -> Dict[str, HistorySeries]:
        """
        ``{symbol: HistorySeries}`` for every symbol; failures yield an
        empty series so the scorer takes its fallback path.
        """
        symbols = [s.upper() for s in symbols]
        results = self._fan_out(
            lambda s: self.load_history(s, range_token, now), symbols, "history"
        )
        return {
            s: results[s] if results.get(s) is not None else HistorySeries(symbol=s)
            for s in symbols
        }

    def fetch_performance(
        self,
        symbols: Iterable[str],
        range_token: Union[RangeToken, str, None],
        now: Optional[pd.Timestamp] = None,
    ) -> Dict[str, float]:
        """
        Percentage change over the range for every symbol, measured from
        the first sample's close (or open) to the last close.  ``0.0`` when
        the history is unavailable.
        """
        histories = self.fetch_histories(symbols, range_token, now)
        return {s: h.change_percent() for s, h in histories.items()}

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fan_out(self, fn, symbols: List[str], what: str) -> dict:
        if not symbols:
            return {}

        def _fetch_one(sym: str):
            try:
                return sym, fn(sym)
            except Exception:
                logger.warning(f"Failed to fetch {what} for {sym}", exc_info=True)
                return sym, None

        results: dict = {}
        workers = max(1, min(self._max_workers, len(symbols)))
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(_fetch_one, sym) for sym in symbols]
            for future in concurrent.futures.as_completed(futures):
                sym, data = future.result()
                results[sym] = data

        ok = sum(1 for v in results.values() if v is not None)
        logger.info(f"Fetched {what} for {ok}/{len(symbols)} symbols")
        return results
