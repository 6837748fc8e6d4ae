# v1
# file: callwait/harness.py

"""
Monte Carlo harness: runs batches of independent calibrated days in parallel,
samples each one, and merges the samples into a process-wide ResultTable.

Two modes:
  * ``remaining``: remaining wait of callers still on hold after P minutes,
    bucketed by patience P.
  * ``callback``: extra wait caused by hanging up after P minutes and calling
    back D minutes later, bucketed by (P, D). The callback is modelled by the
    actual call of the same day arriving closest to the re-arrival instant.
"""

from __future__ import annotations

import logging
import signal
import threading
from concurrent.futures import ProcessPoolExecutor, wait
from dataclasses import dataclass
from typing import Dict, Hashable, List, Optional, Sequence, Tuple

import numpy as np

from .calibrate import calibrate
from .config import MAX_WORKERS, ExperimentSettings
from .entities import Call
from .stats import ResultTable

MODES = ("remaining", "callback")

Samples = Dict[Hashable, List[float]]


def callback_tolerance(delay: float) -> float:
    """How far (minutes) a real arrival may sit from the wanted re-arrival instant."""
    if delay == 0:
        return 0.2
    if delay <= 10:
        return 0.5
    if delay < 120:
        return 1.0
    return 3.0


def _nearest_within(arrivals: np.ndarray, wanted: np.ndarray, tolerance) -> Tuple[np.ndarray, np.ndarray]:
    """Index of the nearest arrival for every wanted time, and whether it is within tolerance."""
    last = len(arrivals) - 1
    right = np.searchsorted(arrivals, wanted)
    left = np.clip(right - 1, 0, last)
    right = np.clip(right, 0, last)
    left_dist = np.abs(arrivals[left] - wanted)
    right_dist = np.abs(arrivals[right] - wanted)
    nearest = np.where(right_dist < left_dist, right, left)
    distance = np.minimum(left_dist, right_dist)
    return nearest, distance <= tolerance


def find_callback_match(arrivals: np.ndarray, wanted: float, tolerance: float) -> Optional[int]:
    """Index into the sorted ``arrivals`` of the nearest arrival within tolerance, else None."""
    if len(arrivals) == 0:
        return None
    nearest, ok = _nearest_within(arrivals, np.asarray([wanted]), tolerance)
    return int(nearest[0]) if ok[0] else None


def sample_remaining_waits(
    calls: Sequence[Call],
    rng: np.random.Generator,
    patience_values: Sequence[int],
    samples_per_set: Optional[int] = None,
) -> Samples:
    """Remaining wait ``waiting - P`` for calls still unanswered after P minutes."""
    waits = np.fromiter((c.waiting for c in calls), dtype=float, count=len(calls))
    samples: Samples = {}
    if len(waits) == 0:
        return samples
    for patience in patience_values:
        if samples_per_set is None:
            drawn = waits
        else:
            drawn = waits[rng.integers(len(waits), size=samples_per_set)]
        survivors = drawn[drawn > patience]
        if len(survivors):
            samples[patience] = (survivors - patience).tolist()
    return samples


def sample_callback_waits(
    calls: Sequence[Call],
    rng: np.random.Generator,
    patience_values: Sequence[int],
    callback_delays: Sequence[int],
    samples_per_set: Optional[int] = None,
) -> Samples:
    """Extra wait of calling back after D minutes versus holding on, per (P, D)."""
    samples: Samples = {}
    if not calls:
        return samples
    by_arrival = sorted(calls, key=lambda c: c.arrival_time)
    arrivals = np.array([c.arrival_time for c in by_arrival])
    waits = np.array([c.waiting for c in by_arrival])
    patience = np.asarray(patience_values, dtype=float)
    delays = np.asarray(callback_delays, dtype=float)
    tolerances = np.array([callback_tolerance(d) for d in callback_delays])

    if samples_per_set is None:
        picks = np.arange(len(by_arrival))
    else:
        picks = rng.integers(len(by_arrival), size=samples_per_set)

    for pick in picks:
        arrival, waiting = arrivals[pick], waits[pick]
        surviving = patience[patience < waiting]
        if len(surviving) == 0:
            continue
        time_left = waiting - surviving
        wanted = arrival + surviving[:, None] + delays[None, :]
        nearest, ok = _nearest_within(arrivals, wanted, tolerances[None, :])
        extra = waits[nearest] - time_left[:, None]
        for p_idx, d_idx in zip(*np.nonzero(ok)):
            key = (int(surviving[p_idx]), int(callback_delays[d_idx]))
            samples.setdefault(key, []).append(float(extra[p_idx, d_idx]))
    return samples


@dataclass
class TaskResult:
    """Output of one calibrated day."""

    call_count: int
    samples: Samples


def run_sampling_task(mode: str, settings: ExperimentSettings, seed: np.random.SeedSequence) -> TaskResult:
    """Calibrate one independent day with its own generator and sample it."""
    rng = np.random.default_rng(seed)
    calls = calibrate(
        rng,
        settings.agent_count,
        settings.median_wait_target,
        settings.mean_talk_duration,
        horizon=settings.horizon,
        max_iterations=settings.max_iterations,
    )
    if mode == "remaining":
        samples = sample_remaining_waits(calls, rng, settings.patience_values, settings.remaining_samples_per_set)
    elif mode == "callback":
        samples = sample_callback_waits(
            calls, rng, settings.patience_values, settings.callback_delays, settings.callback_samples_per_set
        )
    else:
        raise ValueError(f"Unknown sampling mode {mode!r}; expected one of {MODES}")
    return TaskResult(len(calls), samples)


def _ignore_interrupts() -> None:
    """Workers leave Ctrl-C to the parent, which stops between batches."""
    signal.signal(signal.SIGINT, signal.SIG_IGN)


class ExperimentHarness:
    """Runs calibrated days in parallel batches and accumulates their samples."""

    def __init__(
        self,
        settings: ExperimentSettings,
        mode: str,
        sink=None,
        seed: Optional[int] = None,
        workers: Optional[int] = MAX_WORKERS,
        table: Optional[ResultTable] = None,
    ):
        if mode not in MODES:
            raise ValueError(f"Unknown sampling mode {mode!r}; expected one of {MODES}")
        self.settings = settings.validate()
        self.mode = mode
        self.sink = sink
        self.workers = workers
        self.table = table if table is not None else ResultTable(settings.max_bucket_samples)
        self._seeds = np.random.SeedSequence(seed)
        self.days_simulated = 0
        self.calls_generated = 0

    def _run_tasks(self, executor: Optional[ProcessPoolExecutor]) -> List[TaskResult]:
        seeds = self._seeds.spawn(self.settings.batch_size)
        if executor is None:
            return [run_sampling_task(self.mode, self.settings, seed) for seed in seeds]
        futures = [executor.submit(run_sampling_task, self.mode, self.settings, seed) for seed in seeds]
        wait(futures)
        return [future.result() for future in futures]

    def run_batch(self, executor: Optional[ProcessPoolExecutor] = None) -> int:
        """Run one batch to completion, merge it, and return the samples stored."""
        results = self._run_tasks(executor)
        stored = 0
        for result in results:
            stored += self.table.merge(result.samples)
            self.calls_generated += result.call_count
        self.days_simulated += len(results)
        logging.info(
            "Total calibrated days: %d, calls generated: %d",
            self.days_simulated,
            self.calls_generated,
        )
        return stored

    def run(self, stop_event: Optional[threading.Event] = None, max_reports: Optional[int] = None) -> ResultTable:
        """Loop until stopped (or ``max_reports`` reports), reporting every few batches."""
        stop_event = stop_event or threading.Event()
        reports = 0
        executor = None
        if self.workers != 0:
            executor = ProcessPoolExecutor(max_workers=self.workers, initializer=_ignore_interrupts)
        try:
            while not stop_event.is_set():
                for _ in range(self.settings.batches_per_report):
                    if stop_event.is_set():
                        break
                    self.run_batch(executor)
                if self.sink is not None:
                    self.sink.emit(self.table, self.mode, self.settings)
                reports += 1
                if max_reports is not None and reports >= max_reports:
                    break
        finally:
            if executor is not None:
                executor.shutdown(wait=True)
        logging.info("Harness stopped after %d reports (%d calibrated days).", reports, self.days_simulated)
        return self.table
