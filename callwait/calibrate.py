# v1
# file: callwait/calibrate.py

"""
Sizes a synthetic call volume so that the simulated median wait sits just
under a target.

The search grows the call set by a doubling step until the median wait
reaches the target, then shrinks and regrows with halving steps. Shrinking
drops the most recently added calls rather than a random subset, so the
landing point is path-dependent and biased towards overshoot. A shrink step
never rounds down to zero, so the search can only stop from below the target.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

import numpy as np

from .call_stream import generate_calls
from .config import ARRIVAL_HORIZON, CALIBRATION_MAX_ITERATIONS
from .engine import simulate
from .entities import Call


class CalibrationError(RuntimeError):
    """The step search did not settle within the allowed number of rounds."""


def median_wait(ordered: Sequence[Call]) -> float:
    """Upper median waiting of a list already sorted by waiting."""
    if not ordered:
        raise ValueError("median_wait requires at least one call")
    return ordered[len(ordered) // 2].waiting


def next_step(step: int, growing: bool, below_target: bool) -> int:
    if below_target:
        return abs(step) * 2 if growing else abs(step) // 2
    return -max(abs(step) // 2, 1)


def calibrate(
    rng: np.random.Generator,
    agent_count: int,
    median_wait_target: float,
    mean_talk_duration: float,
    horizon: float = ARRIVAL_HORIZON,
    max_iterations: int = CALIBRATION_MAX_ITERATIONS,
) -> List[Call]:
    """Return a simulated call set, sorted by waiting, whose median wait is below target."""
    if agent_count < 1:
        raise ValueError(f"agent_count must be >= 1, got {agent_count}")
    if median_wait_target <= 0 or mean_talk_duration <= 0 or horizon <= 0:
        raise ValueError("median_wait_target, mean_talk_duration and horizon must be > 0")

    calls: List[Call] = []
    step = 1
    growing = True
    for iteration in range(1, max_iterations + 1):
        logging.debug("Calibration round %d: calls=%d, step=%d", iteration, len(calls), step)
        if step > 0:
            calls.extend(generate_calls(rng, step, mean_talk_duration, horizon))
        else:
            del calls[step:]

        simulate(calls, agent_count)
        ordered = sorted(calls, key=lambda c: c.waiting)
        p50 = median_wait(ordered)
        below_target = p50 < median_wait_target
        if not below_target:
            growing = False
        step = next_step(step, growing, below_target)

        if step == 0:
            logging.info(
                "Calibrated %d calls in %d rounds: median=%.2fm, 95%%=%.2fm, max=%.2fm",
                len(ordered),
                iteration,
                p50,
                ordered[len(ordered) * 95 // 100].waiting,
                ordered[-1].waiting,
            )
            return ordered

    raise CalibrationError(
        f"Calibration did not converge within {max_iterations} rounds "
        f"(calls={len(calls)}, step={step}, target={median_wait_target})"
    )
