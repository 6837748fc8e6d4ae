# v1
# file: callwait/stats.py

"""
Wait-time summaries for calibrated call sets and the process-wide ResultTable
that accumulates Monte Carlo samples per bucket.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, List, Mapping, Sequence, Tuple

import numpy as np
import pandas as pd

from .calibrate import calibrate
from .config import ExperimentSettings
from .entities import Call


@dataclass
class WaitSummary:
    """Descriptive statistics for one calibrated day."""

    calls: int
    median: float
    p95: float
    max: float
    instant_fraction: float
    utilization: float


def summarize_calls(calls: Sequence[Call], agent_count: int) -> WaitSummary:
    ordered = sorted(calls, key=lambda c: c.waiting)
    count = len(ordered)
    if count == 0:
        return WaitSummary(0, 0.0, 0.0, 0.0, 0.0, 0.0)
    start = min(c.arrival_time for c in ordered)
    end = max(c.ended_time for c in ordered)
    busy = sum(c.talk_duration for c in ordered)
    span = end - start
    return WaitSummary(
        calls=count,
        median=ordered[count // 2].waiting,
        p95=ordered[count * 95 // 100].waiting,
        max=ordered[-1].waiting,
        instant_fraction=sum(1 for c in ordered if c.waiting == 0) / count,
        utilization=busy / (agent_count * span) if span > 0 else 0.0,
    )


def general_stats(settings: ExperimentSettings, seeds: Iterable[int]) -> pd.DataFrame:
    """Calibrate one day per seed and tabulate how stable the calibrated load is."""
    rows: List[Dict[str, float]] = []
    for seed in seeds:
        rng = np.random.default_rng(seed)
        calls = calibrate(
            rng,
            settings.agent_count,
            settings.median_wait_target,
            settings.mean_talk_duration,
            horizon=settings.horizon,
            max_iterations=settings.max_iterations,
        )
        summary = summarize_calls(calls, settings.agent_count)
        logging.info(
            "Seed %d: calls=%d p50=%.2f p95=%.2f max=%.2f instant=%.3f",
            seed,
            summary.calls,
            summary.median,
            summary.p95,
            summary.max,
            summary.instant_fraction,
        )
        rows.append({"seed": seed, **summary.__dict__})
    return pd.DataFrame(rows).set_index("seed")


class ResultTable:
    """
    Bucket -> list of outcome samples, capped per bucket.

    One table lives for the whole harness loop: it only grows, stops accepting
    samples for a bucket once that bucket holds ``max_samples`` values, and is
    never reset.
    """

    def __init__(self, max_samples: int):
        if max_samples < 1:
            raise ValueError(f"max_samples must be >= 1, got {max_samples}")
        self.max_samples = max_samples
        self._buckets: Dict[Hashable, List[float]] = {}
        self.total_generated = 0
        self.total_stored = 0

    def extend(self, key: Hashable, values: Iterable[float]) -> int:
        """Append samples until the bucket is full; returns how many were stored."""
        bucket = self._buckets.setdefault(key, [])
        stored = 0
        for value in values:
            self.total_generated += 1
            if len(bucket) >= self.max_samples:
                continue
            bucket.append(float(value))
            stored += 1
        self.total_stored += stored
        return stored

    def merge(self, samples: Mapping[Hashable, Iterable[float]]) -> int:
        return sum(self.extend(key, values) for key, values in samples.items())

    def __contains__(self, key: Hashable) -> bool:
        return bool(self._buckets.get(key))

    def keys(self) -> List[Hashable]:
        return list(self._buckets.keys())

    def count(self, key: Hashable) -> int:
        return len(self._buckets.get(key, ()))

    def average(self, key: Hashable) -> float:
        bucket = self._buckets.get(key)
        return float(np.mean(bucket)) if bucket else float("nan")

    def median(self, key: Hashable) -> float:
        bucket = self._buckets.get(key)
        return float(np.median(bucket)) if bucket else float("nan")

    def bucket_sizes(self) -> Tuple[int, int]:
        """(smallest, largest) non-empty bucket size; (0, 0) when empty."""
        sizes = [len(bucket) for bucket in self._buckets.values() if bucket]
        if not sizes:
            return 0, 0
        return min(sizes), max(sizes)
