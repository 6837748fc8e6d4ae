# v1
# file: callwait/verify.py

"""Verification CLI for the simulation engine and calibrator.

Calibrates one simulated day, runs consistency checks over the answered
calls, prints a Markdown report to stdout, and exits with a
machine-friendly status code (0 on success, non-zero on failures).

Example:
    python -m callwait.verify --seed 7 --agents 3 --horizon 2000
"""

from __future__ import annotations

import argparse
import datetime as dt
import sys
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .calibrate import calibrate, median_wait
from .config import ExperimentSettings, resolve_seed
from .engine import simulate
from .entities import Call
from .stats import summarize_calls


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------
@dataclass
class CheckResult:
    """Represents a single verification check."""

    name: str
    passed: bool
    details: str


@dataclass
class RunReport:
    """Collects the results for a single calibrated day."""

    label: str
    results: List[CheckResult]

    @property
    def passed(self) -> bool:
        return all(result.passed for result in self.results)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------
def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Verify engine invariants on a calibrated call set.")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (default: config / CALLWAIT_SEED).")
    parser.add_argument("--agents", type=int, default=None, help="Number of agents.")
    parser.add_argument("--median-wait", type=float, default=None, help="Target median wait in minutes.")
    parser.add_argument("--talk-mean", type=float, default=None, help="Mean talk duration in minutes.")
    parser.add_argument("--horizon", type=float, default=None, help="Arrival window in minutes.")
    parser.add_argument(
        "--tolerance",
        type=float,
        default=1e-9,
        help="Tolerance for floating-point comparisons.",
    )
    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Check routines
# ---------------------------------------------------------------------------
def _all_answered_check(calls: Sequence[Call]) -> CheckResult:
    missing = sum(1 for c in calls if not c.is_answered)
    return CheckResult("All calls answered", missing == 0, f"{missing} of {len(calls)} calls unanswered")


def _non_negative_wait_check(calls: Sequence[Call], tolerance: float) -> CheckResult:
    negative = [c for c in calls if c.waiting < -tolerance]
    details = f"min wait {min(c.waiting for c in calls):.6f}" if calls else "no calls"
    return CheckResult("Waits non-negative", not negative, details)


def _fifo_check(calls: Sequence[Call], tolerance: float) -> CheckResult:
    by_arrival = sorted(calls, key=lambda c: c.arrival_time)
    inversions = sum(
        1 for prev, cur in zip(by_arrival, by_arrival[1:]) if cur.answered_time < prev.answered_time - tolerance
    )
    return CheckResult("FIFO answer order", inversions == 0, f"{inversions} answer-order inversions")


def _concurrency_check(calls: Sequence[Call], agent_count: int) -> CheckResult:
    # Ends sort before starts at equal times.
    marks = sorted([(c.answered_time, 1) for c in calls] + [(c.ended_time, -1) for c in calls])
    busy = peak = 0
    for _, delta in marks:
        busy += delta
        peak = max(peak, busy)
    return CheckResult("Agents never over-allocated", peak <= agent_count, f"peak busy {peak} of {agent_count}")


def _median_target_check(ordered: Sequence[Call], target: float) -> CheckResult:
    p50 = median_wait(ordered)
    return CheckResult("Median wait below target", p50 < target, f"median {p50:.4f} vs target {target:.4f}")


def _idempotence_check(calls: Sequence[Call], agent_count: int) -> CheckResult:
    replay = simulate([Call(c.arrival_time, c.talk_duration) for c in calls], agent_count)
    mismatches = sum(1 for a, b in zip(calls, replay) if a.answered_time != b.answered_time)
    return CheckResult("Engine idempotent", mismatches == 0, f"{mismatches} answered times differ on replay")


def verify_single_run(settings: ExperimentSettings, seed: int, tolerance: float) -> RunReport:
    rng = np.random.default_rng(seed)
    ordered = calibrate(
        rng,
        settings.agent_count,
        settings.median_wait_target,
        settings.mean_talk_duration,
        horizon=settings.horizon,
        max_iterations=settings.max_iterations,
    )
    calls = ordered
    results = [
        _all_answered_check(calls),
        _non_negative_wait_check(calls, tolerance),
        _fifo_check(calls, tolerance),
        _concurrency_check(calls, settings.agent_count),
        _median_target_check(ordered, settings.median_wait_target),
        _idempotence_check(calls, settings.agent_count),
    ]
    summary = summarize_calls(calls, settings.agent_count)
    label = (
        f"seed={seed}, agents={settings.agent_count}, calls={summary.calls}, "
        f"p50={summary.median:.2f}, p95={summary.p95:.2f}, utilization={summary.utilization:.3f}"
    )
    return RunReport(label, results)


# ---------------------------------------------------------------------------
# Report rendering
# ---------------------------------------------------------------------------
def _render_table(results: List[CheckResult]) -> List[str]:
    lines = ["| Status | Check | Details |", "| --- | --- | --- |"]
    for result in results:
        status = "✅" if result.passed else "❌"
        lines.append(f"| {status} | {result.name} | {result.details} |")
    return lines


def build_report(report: RunReport, tolerance: float) -> str:
    lines: List[str] = [
        "# Verification Report",
        f"*Generated: {dt.datetime.now(dt.timezone.utc).isoformat()}*",
        "",
        f"- Run: {report.label}",
        f"- Tolerance: {tolerance}",
        "",
        f"## Overall Status: {'✅ PASS' if report.passed else '❌ FAIL'}",
        "",
    ]
    lines.extend(_render_table(report.results))
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    settings = ExperimentSettings.from_config(
        agent_count=args.agents,
        median_wait_target=args.median_wait,
        mean_talk_duration=args.talk_mean,
        horizon=args.horizon,
    )
    seed = args.seed if args.seed is not None else resolve_seed()[0]
    report = verify_single_run(settings, seed, args.tolerance)
    print(build_report(report, args.tolerance))
    return 0 if report.passed else 1


if __name__ == "__main__":
    sys.exit(main())
