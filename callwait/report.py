# v1
# file: callwait/report.py

"""
CSV-style report rows for the running ResultTable, written to stdout by default.
"""

from __future__ import annotations

import csv
import sys
from typing import Optional, Sequence, TextIO

from .stats import ResultTable


def _fmt(value: float) -> str:
    return "" if value != value else f"{value:.4f}"


class ReportSink:
    """Writes periodic aggregate rows; holds no state beyond the output stream."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdout
        self.writer = csv.writer(self.stream, lineterminator="\n")

    def write_header(self, callback_delays: Sequence[int]) -> None:
        self.writer.writerow(["patience", *callback_delays, "count"])

    def write_remaining_rows(self, table: ResultTable, patience_values: Sequence[int]) -> None:
        for patience in patience_values:
            if patience not in table:
                continue
            self.writer.writerow(
                [patience, _fmt(table.average(patience)), _fmt(table.median(patience)), table.count(patience)]
            )

    def write_callback_rows(
        self, table: ResultTable, patience_values: Sequence[int], callback_delays: Sequence[int]
    ) -> None:
        for patience in patience_values:
            keys = [(patience, delay) for delay in callback_delays]
            counts = [table.count(key) for key in keys]
            if not any(counts):
                continue
            self.writer.writerow([patience, *(_fmt(table.average(key)) for key in keys), sum(counts)])

    def write_totals(self, table: ResultTable) -> None:
        smallest, largest = table.bucket_sizes()
        self.writer.writerow(["total", table.total_generated, table.total_stored, smallest, largest])

    def emit(self, table: ResultTable, mode: str, settings) -> None:
        if mode == "callback":
            self.write_header(settings.callback_delays)
            self.write_callback_rows(table, settings.patience_values, settings.callback_delays)
        else:
            self.write_remaining_rows(table, settings.patience_values)
        self.write_totals(table)
        self.stream.flush()
