import argparse
import json
import logging
import sys

from smart_allocator.config import DEFAULT_BUDGET, DEFAULT_RANGE
from smart_allocator.constants import STRATEGY_PRESETS
from smart_allocator.dashboard import Dashboard
from smart_allocator.enums import RangeToken
from smart_allocator.metrics_engine import ScoringEngine
from smart_allocator.portfolio_store import PortfolioStore
from smart_allocator.response_generator import ResponseGenerator
from smart_allocator.session_context import DashboardState


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smart-allocator",
        description="Track a small stock portfolio and split a budget by dip and trend.",
    )
    parser.add_argument("--portfolio-file", help="Path to the portfolio JSON file.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log fetch progress.")

    market = argparse.ArgumentParser(add_help=False)
    market.add_argument(
        "--range", dest="range_token", default=DEFAULT_RANGE,
        choices=[t.value for t in RangeToken],
    )

    sub = parser.add_subparsers(dest="command", required=True)

    alloc = sub.add_parser("allocate", parents=[market], help="Compute the Smart Allocator split.")
    alloc.add_argument("--budget", type=float, default=DEFAULT_BUDGET)
    alloc.add_argument("--preset", choices=list(STRATEGY_PRESETS), default=None)
    alloc.add_argument("--alpha", type=float, default=None, help="Reversion weight override.")
    alloc.add_argument("--beta", type=float, default=None, help="Momentum weight override.")
    alloc.add_argument("--exclude", nargs="*", default=[], metavar="SYMBOL")
    alloc.add_argument("--json", action="store_true", help="Print allocations as JSON.")

    sub.add_parser("performance", parents=[market], help="Range performance per symbol.")

    chart = sub.add_parser("chart", parents=[market], help="Distance-from-peak view of one symbol.")
    chart.add_argument("symbol")

    sub.add_parser("presets", help="List strategy presets.")

    port = sub.add_parser("portfolio", help="Show or edit the watched symbols.")
    port.add_argument("action", choices=["list", "add", "remove"], nargs="?", default="list")
    port.add_argument("symbols", nargs="*")

    return parser


def run(args: argparse.Namespace) -> str:
    """Execute one sub-command and return the text to print."""
    generator = ResponseGenerator()

    if args.command == "presets":
        return generator.preset_list()

    store = PortfolioStore(args.portfolio_file)
    state = DashboardState()
    dashboard = Dashboard(store=store, state=state)

    if args.command == "portfolio":
        symbols = store.load()
        if args.action == "add":
            for s in args.symbols:
                symbols = dashboard.add_symbol(s)
        elif args.action == "remove":
            for s in args.symbols:
                symbols = dashboard.remove_symbol(s)
        return generator.portfolio_list(symbols)

    state.set_range(args.range_token)

    if args.command == "performance":
        return generator.performance_list(dashboard.performance(), state.range_token)

    if args.command == "chart":
        state.selected_symbol = args.symbol.upper()
        dashboard.refresh()
        return generator.drawdown_chart(state.selected_symbol, dashboard.drawdown())

    # allocate
    state.budget = args.budget
    state.weights = ScoringEngine.resolve_weights(args.preset, args.alpha, args.beta)
    state.excluded = {s.upper() for s in args.exclude}
    allocations = dashboard.refresh()

    if args.json:
        return json.dumps([a.to_dict() for a in allocations], indent=2)
    return generator.allocation_table(allocations, state.budget, state.weights, state.range_token)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        print(run(args))
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
