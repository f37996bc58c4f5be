from __future__ import annotations

from typing import Optional, Tuple, Union

import pandas as pd

from smart_allocator.constants import DEFAULT_RANGE_ROW, RANGE_TABLE
from smart_allocator.enums import Interval, RangeToken


class RangeResolver:
    """
    Translates a dashboard range token into the query window for a
    historical price request.

    Only static methods are exposed; there is no shared state.  Unknown tokens never
    raise; they resolve to the one-month default row.
    """

    @staticmethod
    def parse(token: Union[RangeToken, str, None]) -> Optional[RangeToken]:
        """
        Return the :class:`RangeToken` for *token*, or ``None`` when it is
        not one of the supported windows.  Strings are matched
        case-insensitively (``"1Y"`` → ``RangeToken.ONE_YEAR``).
        """
        if isinstance(token, RangeToken):
            return token
        if not isinstance(token, str):
            return None
        try:
            return RangeToken(token.strip().lower())
        except ValueError:
            return None

    @staticmethod
    def resolve(
        token: Union[RangeToken, str, None],
        now: Optional[pd.Timestamp] = None,
    ) -> Tuple[pd.Timestamp, Interval]:
        """
        Compute ``(start, interval)`` for *token*.

        Parameters
        ----------
        token : RangeToken or str
            One of ``1d, 5d, 1mo, 3mo, 6mo, 1y, 2y, 3y, 5y``.
        now : timestamp-like, optional
            Reference "current" time.  Defaults to the current UTC time.

        Returns
        -------
        tuple
            ``start`` as a ``pd.Timestamp`` (same timezone as *now*) and the
            sampling :class:`Interval`.

        Month and year offsets follow calendar rules, so a month back from
        31 March lands on the last day of February.
        """
        now = pd.Timestamp.now(tz="UTC") if now is None else pd.Timestamp(now)

        parsed = RangeResolver.parse(token)
        lookback, interval = RANGE_TABLE.get(parsed, DEFAULT_RANGE_ROW)
        return now - lookback, interval

    @staticmethod
    def query_params(
        token: Union[RangeToken, str, None],
        now: Optional[pd.Timestamp] = None,
    ) -> dict:
        """Keyword arguments for ``yfinance.Ticker.history``."""
        start, interval = RangeResolver.resolve(token, now)
        return {"start": start.to_pydatetime(), "interval": interval.value}
