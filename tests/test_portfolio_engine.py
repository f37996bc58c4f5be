"""
tests/test_portfolio_engine.py
-------------------------------
Unit tests for PortfolioEngine / compute_allocations.

Test coverage:
    Empty / single-stock edge cases
    Proportional split and budget scaling
    Ranking order (descending amount, stable ties)
    Zero / invalid budgets
    Reference scenarios (symmetric signals, degenerate history)
    Input shapes (Quote, mappings, DataFrame and raw-sample histories)
    Properties: percentages sum to 100, idempotence, no input mutation
"""

import copy
import random
import unittest

import numpy as np
import pandas as pd

from smart_allocator.models import HistorySeries, Quote, ScoringWeights, StockScore
from smart_allocator.portfolio_engine import PortfolioEngine, compute_allocations


T = pd.date_range("2024-01-01", periods=4, freq="D")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _score(symbol: str, raw: float, dip: float = 0.0, trend: float = 0.0) -> StockScore:
    return StockScore(
        symbol=symbol, price=10.0, high=10.0, high_timestamp=None,
        average=10.0, dip_ratio=dip, trend_score=trend, raw_score=raw,
    )


def _pairs(*prices):
    return list(zip(T, prices))


def _by_symbol(allocations) -> dict:
    return {a.symbol: a for a in allocations}


def _sum_percent(allocations) -> float:
    return sum(a.percent_of_budget for a in allocations)


# ===========================================================================
# 1. Edge Cases
# ===========================================================================

class TestEdgeCases(unittest.TestCase):

    def test_empty_input_returns_empty(self):
        self.assertEqual(PortfolioEngine.allocate([], 100), [])
        self.assertEqual(compute_allocations([], {}, 100, (1, 1)), [])

    def test_single_stock_gets_full_budget(self):
        result = compute_allocations(
            [{"symbol": "A", "price": 100.0}], {"A": _pairs(100.0, 100.0)}, 70, (1.0, 1.0)
        )
        self.assertEqual(len(result), 1)
        a = result[0]
        self.assertEqual(a.dip_percent, 0.0)
        self.assertEqual(a.trend_percent, 0.0)
        self.assertAlmostEqual(a.percent_of_budget, 100.0, places=9)
        self.assertAlmostEqual(a.allocation_amount, 70.0, places=9)

    def test_zero_total_score_gives_zero_weights(self):
        result = PortfolioEngine.allocate([_score("A", 0.0), _score("B", 0.0)], 100)
        self.assertEqual([a.allocation_amount for a in result], [0.0, 0.0])
        self.assertEqual(_sum_percent(result), 0.0)

    def test_invalid_budgets_treated_as_zero(self):
        for budget in (None, float("nan"), -50, "abc"):
            with self.subTest(budget=budget):
                result = PortfolioEngine.allocate([_score("A", 0.2)], budget)
                self.assertEqual(result[0].allocation_amount, 0.0)
                self.assertAlmostEqual(result[0].percent_of_budget, 100.0)


# ===========================================================================
# 2. Proportional split
# ===========================================================================

class TestProportional(unittest.TestCase):

    def test_two_stocks_ratio(self):
        result = _by_symbol(PortfolioEngine.allocate([_score("A", 0.2), _score("B", 0.1)], 90))
        self.assertAlmostEqual(result["A"].allocation_amount, 60.0, places=9)
        self.assertAlmostEqual(result["B"].allocation_amount, 30.0, places=9)
        self.assertAlmostEqual(result["A"].percent_of_budget, 200 / 3, places=9)

    def test_signals_reported_in_percent(self):
        a = PortfolioEngine.allocate([_score("A", 0.3, dip=0.25, trend=-0.05)], 10)[0]
        self.assertAlmostEqual(a.dip_percent, 25.0)
        self.assertAlmostEqual(a.trend_percent, -5.0)

    def test_budget_zero_keeps_percentages(self):
        result = PortfolioEngine.allocate([_score("A", 0.3), _score("B", 0.1)], 0)
        self.assertTrue(all(a.allocation_amount == 0 for a in result))
        self.assertAlmostEqual(_sum_percent(result), 100.0, places=9)


# ===========================================================================
# 3. Ranking
# ===========================================================================

class TestRanking(unittest.TestCase):

    def test_sorted_descending_by_amount(self):
        result = PortfolioEngine.allocate(
            [_score("LOW", 0.1), _score("HIGH", 0.5), _score("MID", 0.3)], 100
        )
        self.assertEqual([a.symbol for a in result], ["HIGH", "MID", "LOW"])

    def test_ties_keep_input_order(self):
        result = PortfolioEngine.allocate(
            [_score("B", 0.2), _score("A", 0.2), _score("C", 0.2)], 100
        )
        self.assertEqual([a.symbol for a in result], ["B", "A", "C"])

    def test_zero_budget_keeps_input_order(self):
        result = PortfolioEngine.allocate([_score("X", 0.1), _score("Y", 0.9)], 0)
        self.assertEqual([a.symbol for a in result], ["X", "Y"])


# ===========================================================================
# 4. Reference scenarios
# ===========================================================================

class TestScenarios(unittest.TestCase):

    def test_symmetric_signals_split_evenly(self):
        stocks = [{"symbol": "A", "price": 80.0}, {"symbol": "B", "price": 110.0}]
        histories = {
            "A": _pairs(100.0, 90.0, 80.0),   # high 100, avg 90
            "B": _pairs(100.0, 80.0, 90.0),   # high 100, avg 90
        }
        result = _by_symbol(compute_allocations(stocks, histories, 100, (0.5, 0.3)))

        self.assertAlmostEqual(result["A"].dip_percent, 20.0, places=9)
        self.assertAlmostEqual(result["A"].trend_percent, -100 / 9, places=9)
        self.assertEqual(result["B"].dip_percent, 0.0)
        self.assertAlmostEqual(result["B"].trend_percent, 200 / 9, places=9)
        self.assertAlmostEqual(result["A"].percent_of_budget, 50.0, places=6)
        self.assertAlmostEqual(result["B"].percent_of_budget, 50.0, places=6)

    def test_empty_history_is_degenerate_baseline(self):
        result = compute_allocations(
            [Quote(symbol="Z", price=50.0)], {"Z": HistorySeries()}, 40, (1.0, 1.0), "1mo"
        )
        z = result[0]
        self.assertEqual(z.reference_high, 50.0)
        self.assertIsNone(z.reference_high_timestamp)
        self.assertEqual((z.dip_percent, z.trend_percent), (0.0, 0.0))
        self.assertAlmostEqual(z.allocation_amount, 40.0)

    def test_missing_history_entry_uses_fallback(self):
        stocks = [{"symbol": "q", "regularMarketPrice": 75.0, "fiftyTwoWeekHigh": 100.0}]
        result = compute_allocations(stocks, None, 10, (1.0, 0.0), "1y")
        self.assertEqual(result[0].symbol, "Q")
        self.assertEqual(result[0].reference_high, 100.0)
        self.assertAlmostEqual(result[0].dip_percent, 25.0)

    def test_missing_price_scores_base(self):
        result = compute_allocations([{"symbol": "N"}], {}, 10, (2.0, 2.0))
        self.assertEqual(result[0].price, 0.0)
        self.assertEqual(result[0].dip_percent, 0.0)
        self.assertAlmostEqual(result[0].percent_of_budget, 100.0)

    def test_dip_stock_outweighs_flat_stock_on_reversion(self):
        stocks = [Quote("FLAT", 100.0), Quote("DIP", 70.0)]
        histories = {"FLAT": _pairs(100.0, 100.0), "DIP": _pairs(100.0, 70.0)}
        result = compute_allocations(stocks, histories, 100, "Buy the Dip")
        self.assertEqual(result[0].symbol, "DIP")
        self.assertGreater(result[0].allocation_amount, result[1].allocation_amount)


# ===========================================================================
# 5. Input shapes
# ===========================================================================

class TestInputShapes(unittest.TestCase):

    def test_dataframe_history(self):
        df = pd.DataFrame({"Open": [99.0, 98.0], "Close": [100.0, 90.0]}, index=T[:2])
        result = compute_allocations([Quote("A", 90.0)], {"A": df}, 10, ScoringWeights(1, 0))
        self.assertEqual(result[0].reference_high, 100.0)
        self.assertEqual(result[0].reference_high_timestamp, T[0])

    def test_numpy_sample_history(self):
        raw = np.array([[1.0, 100.0, 99.0], [2.0, 80.0, 81.0]])
        result = compute_allocations([{"symbol": "A", "price": 80}], {"A": raw}, 100, (0.5, 0.3))
        self.assertEqual(len(result), 1)
        self.assertEqual(result[0].reference_high, 100.0)
        self.assertAlmostEqual(result[0].allocation_amount, 100.0)

    def test_preset_name_and_default_weights(self):
        stocks = [Quote("A", 80.0), Quote("B", 110.0)]
        histories = {"A": _pairs(100.0, 90.0, 80.0), "B": _pairs(100.0, 80.0, 90.0)}
        by_name = compute_allocations(stocks, histories, 100, "balanced")
        by_default = compute_allocations(stocks, histories, 100)
        self.assertEqual(by_name, by_default)

    def test_unknown_preset_raises(self):
        with self.assertRaises(ValueError):
            compute_allocations([Quote("A", 1.0)], {}, 10, "nope")

    def test_peak_for(self):
        result = compute_allocations([Quote("A", 90.0)], {"A": _pairs(95.0, 100.0)}, 10)
        self.assertEqual(PortfolioEngine.peak_for(result, "A"), (100.0, T[1]))
        self.assertEqual(PortfolioEngine.peak_for(result, "ZZZ"), (0.0, None))

    def test_to_dict_renders_timestamp(self):
        result = compute_allocations([Quote("A", 90.0)], {"A": _pairs(100.0)}, 10)
        data = result[0].to_dict()
        self.assertEqual(data["symbol"], "A")
        self.assertEqual(data["reference_high_timestamp"], T[0].isoformat())


# ===========================================================================
# 6. Properties
# ===========================================================================

class TestProperties(unittest.TestCase):

    def _random_inputs(self, rng: random.Random):
        stocks, histories = [], {}
        for i in range(rng.randint(1, 8)):
            sym = f"S{i}"
            stocks.append({"symbol": sym, "price": rng.uniform(0, 300)})
            if rng.random() < 0.8:
                histories[sym] = _pairs(*[rng.uniform(1, 300) for _ in range(4)])
        return stocks, histories

    def test_percentages_sum_to_100(self):
        rng = random.Random(11)
        for _ in range(200):
            stocks, histories = self._random_inputs(rng)
            weights = (rng.uniform(0, 2), rng.uniform(0, 2))
            result = compute_allocations(stocks, histories, rng.uniform(0, 1e4), weights)
            self.assertAlmostEqual(_sum_percent(result), 100.0, delta=1e-6)
            for a in result:
                self.assertGreaterEqual(a.dip_percent, 0.0)
                self.assertLessEqual(a.dip_percent, 100.0)
                self.assertGreater(a.percent_of_budget, 0.0)

    def test_idempotent(self):
        rng = random.Random(3)
        stocks, histories = self._random_inputs(rng)
        first = compute_allocations(stocks, histories, 500, (0.5, 0.3), "1y")
        second = compute_allocations(stocks, histories, 500, (0.5, 0.3), "1y")
        self.assertEqual(first, second)

    def test_does_not_mutate_input(self):
        stocks = [{"symbol": "A", "price": 80.0}, {"symbol": "B", "price": 60.0}]
        histories = {"A": _pairs(100.0, 80.0)}
        s_snap, h_snap = copy.deepcopy(stocks), copy.deepcopy(histories)
        compute_allocations(stocks, histories, 100, (0.5, 0.3))
        self.assertEqual(stocks, s_snap)
        self.assertEqual(histories, h_snap)


if __name__ == "__main__":
    unittest.main()
