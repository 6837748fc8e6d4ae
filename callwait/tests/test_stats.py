import math
import unittest

from callwait.config import ExperimentSettings
from callwait.entities import Call
from callwait.stats import ResultTable, general_stats, summarize_calls


class ResultTableTest(unittest.TestCase):
    """Per-bucket accumulation with a hard sample cap."""

    def test_bucket_stops_at_cap(self) -> None:
        table = ResultTable(max_samples=3)
        self.assertEqual(table.extend("k", [1.0, 2.0, 3.0, 4.0, 5.0]), 3)
        self.assertEqual(table.count("k"), 3)
        self.assertEqual(table.extend("k", [6.0]), 0)
        self.assertEqual(table.count("k"), 3)
        self.assertEqual(table.total_generated, 6)
        self.assertEqual(table.total_stored, 3)
        self.assertEqual(table.average("k"), 2.0)
        self.assertEqual(table.median("k"), 2.0)

    def test_merge_and_bucket_sizes(self) -> None:
        table = ResultTable(max_samples=10)
        stored = table.merge({(0, 0): [1.0], (0, 10): [2.0, 4.0]})
        self.assertEqual(stored, 3)
        self.assertEqual(table.bucket_sizes(), (1, 2))
        self.assertIn((0, 10), table)
        self.assertNotIn((5, 0), table)
        self.assertEqual(table.average((0, 10)), 3.0)

    def test_empty_table(self) -> None:
        table = ResultTable(max_samples=10)
        self.assertEqual(table.bucket_sizes(), (0, 0))
        self.assertTrue(math.isnan(table.average(0)))
        self.assertTrue(math.isnan(table.median(0)))
        self.assertEqual(table.count(0), 0)

    def test_rejects_non_positive_cap(self) -> None:
        with self.assertRaises(ValueError):
            ResultTable(max_samples=0)


class SummaryTest(unittest.TestCase):
    def test_summarize_hand_built_day(self) -> None:
        calls = []
        for arrival, waiting in [(0.0, 0.0), (1.0, 0.0), (2.0, 4.0), (3.0, 6.0)]:
            call = Call(arrival, 2.0)
            call.answer(arrival + waiting, 0)
            calls.append(call)
        summary = summarize_calls(calls, 1)
        self.assertEqual(summary.calls, 4)
        self.assertEqual(summary.median, 4.0)
        self.assertEqual(summary.max, 6.0)
        self.assertEqual(summary.instant_fraction, 0.5)
        self.assertAlmostEqual(summary.utilization, 8.0 / 11.0)

    def test_summarize_empty(self) -> None:
        self.assertEqual(summarize_calls([], 3).calls, 0)

    def test_general_stats_frame(self) -> None:
        settings = ExperimentSettings.from_config(
            agent_count=2, median_wait_target=2.0, mean_talk_duration=1.0, horizon=300.0, max_iterations=500
        )
        frame = general_stats(settings, [1, 2])
        self.assertEqual(list(frame.index), [1, 2])
        for column in ("calls", "median", "p95", "max", "instant_fraction", "utilization"):
            self.assertIn(column, frame.columns)
        self.assertTrue((frame["median"] < 2.0).all())
        self.assertTrue((frame["p95"] >= frame["median"]).all())


if __name__ == "__main__":
    unittest.main()
