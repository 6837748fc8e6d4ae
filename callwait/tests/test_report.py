import io
import unittest

from callwait.config import ExperimentSettings
from callwait.report import ReportSink
from callwait.stats import ResultTable


class ReportSinkTest(unittest.TestCase):
    def test_remaining_rows(self) -> None:
        table = ResultTable(max_samples=10)
        table.extend(0, [1.0, 3.0])
        out = io.StringIO()
        sink = ReportSink(out)
        sink.write_remaining_rows(table, range(0, 3))
        sink.write_totals(table)
        self.assertEqual(out.getvalue(), "0,2.0000,2.0000,2\ntotal,2,2,2,2\n")

    def test_callback_rows(self) -> None:
        table = ResultTable(max_samples=10)
        table.extend((0, 0), [1.0])
        table.extend((0, 10), [2.0, 4.0])
        out = io.StringIO()
        sink = ReportSink(out)
        sink.write_header([0, 10, 120])
        sink.write_callback_rows(table, [0, 1], [0, 10, 120])
        self.assertEqual(out.getvalue(), "patience,0,10,120,count\n0,1.0000,3.0000,,3\n")

    def test_emit_remaining_has_no_header(self) -> None:
        table = ResultTable(max_samples=10)
        table.extend(1, [0.5])
        out = io.StringIO()
        settings = ExperimentSettings.from_config(patience_max=2)
        ReportSink(out).emit(table, "remaining", settings)
        self.assertEqual(out.getvalue().splitlines(), ["1,0.5000,0.5000,1", "total,1,1,1,1"])


if __name__ == "__main__":
    unittest.main()
