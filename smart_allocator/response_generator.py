from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from smart_allocator.constants import ALLOCATION_COLUMNS, STRATEGY_PRESETS
from smart_allocator.models import Allocation, ScoringWeights


# Width of the drawdown bar at a 100% distance from the peak
_BAR_WIDTH = 40


def _fmt_ts(ts) -> str:
    if ts is None:
        return "-"
    if not hasattr(ts, "strftime"):
        return str(ts)
    intraday = getattr(ts, "hour", 0) or getattr(ts, "minute", 0)
    return ts.strftime("%Y-%m-%d %H:%M" if intraday else "%Y-%m-%d")


class ResponseGenerator:
    """
    Builds plain-text views of the dashboard.

    **Formatting-only**: all computation is delegated to
    :class:`PortfolioEngine` and :class:`PeakTrendExtractor`.
    """

    # ------------------------------------------------------------------ #
    #  Allocation
    # ------------------------------------------------------------------ #

    def allocation_table(
        self,
        allocations: List[Allocation],
        budget: float,
        weights: Optional[ScoringWeights] = None,
        range_token: Optional[str] = None,
    ) -> str:
        if not allocations:
            return "No stocks to allocate. Add symbols or clear exclusions."

        header = "  ".join(f"{title:{spec[0]}{_width(spec)}}" for title, _, spec in ALLOCATION_COLUMNS)
        rows = []
        for a in allocations:
            cells = []
            for _, attr, spec in ALLOCATION_COLUMNS:
                value = getattr(a, attr)
                cells.append(f"{value:{spec}}")
            rows.append("  ".join(cells))

        title = f"Smart Allocator: ${budget:,.2f}"
        if weights is not None:
            label = weights.name or "Custom"
            title += f" | {label} (alpha={weights.alpha:g}, beta={weights.beta:g})"
        if range_token:
            title += f" | range {range_token}"

        rule = "-" * len(header)
        return "\n".join([title, rule, header, rule, *rows, rule])

    # ------------------------------------------------------------------ #
    #  Portfolio / performance
    # ------------------------------------------------------------------ #

    def portfolio_list(self, symbols: Iterable[str], excluded: Iterable[str] = ()) -> str:
        symbols = list(symbols)
        if not symbols:
            return "Portfolio is empty."
        excluded = set(excluded)
        return "\n".join(
            f"  [{' ' if s in excluded else 'x'}] {s}" for s in symbols
        )

    def performance_list(self, performance: Dict[str, float], range_token: str) -> str:
        if not performance:
            return "Portfolio is empty."
        lines = [f"Performance over {range_token}:"]
        for symbol, change in performance.items():
            arrow = "▲" if change > 0 else ("▼" if change < 0 else "•")
            lines.append(f"  {symbol:<8} {arrow} {change:+.2f}%")
        return "\n".join(lines)

    def preset_list(self) -> str:
        lines = ["Strategy presets:"]
        for name, p in STRATEGY_PRESETS.items():
            lines.append(
                f"  {name:<14} alpha={p['alpha']:<4g} beta={p['beta']:<4g} {p['description']}"
            )
        return "\n".join(lines)

    # ------------------------------------------------------------------ #
    #  Drawdown chart
    # ------------------------------------------------------------------ #

    def drawdown_chart(self, symbol: str, series: list) -> str:
        """
        Text rendering of the distance-from-peak view: one line per point,
        with a bar proportional to the drawdown.
        """
        if not series:
            return f"No price history for {symbol}."

        lines = [f"{symbol}: distance from peak"]
        for ts, price, distance in series:
            bar = "#" * min(_BAR_WIDTH, round(abs(distance) / 100 * _BAR_WIDTH))
            lines.append(f"  {_fmt_ts(ts):<16} {price:>10.2f} {distance:>7.1f}% {bar}")
        return "\n".join(lines)


def _width(spec: str) -> str:
    """Width portion of a format spec such as ``'>10.2f'`` → ``'10'``."""
    digits = ""
    for ch in spec[1:]:
        if not ch.isdigit():
            break
        digits += ch
    return digits
