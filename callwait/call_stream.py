# v1
# file: callwait/call_stream.py

"""
Draws candidate calls: arrival uniform over the horizon, exponential talk time.
Every function consumes the numpy Generator it is handed and keeps no state.
"""

from __future__ import annotations

import math
from typing import List

import numpy as np

from .entities import Call


def exponential(rng: np.random.Generator, mean: float) -> float:
    """Inverse-CDF exponential sample with the given mean."""
    if mean <= 0:
        raise ValueError(f"Exponential mean must be > 0, got {mean}")
    return -math.log(1.0 - rng.random()) * mean


def generate_candidate(rng: np.random.Generator, mean_talk_duration: float, horizon: float) -> Call:
    arrival_time = rng.random() * horizon
    return Call(arrival_time, exponential(rng, mean_talk_duration))


def generate_calls(rng: np.random.Generator, count: int, mean_talk_duration: float, horizon: float) -> List[Call]:
    return [generate_candidate(rng, mean_talk_duration, horizon) for _ in range(count)]
