# v1
# file: callwait/config.py

"""
Central configuration for the call-waiting experiments.
All times are in MINUTES. Call volume is not configured directly: it is
calibrated per simulated day so that the median wait lands just under
MEDIAN_WAIT_TARGET.
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

# ----------------------------- Call center ----------------------------- #
AGENT_COUNT = 5
MEDIAN_WAIT_TARGET = 5.0  # minutes
MEAN_TALK_DURATION = 5.0  # minutes, exponential

# --------------------------- Arrival process --------------------------- #
ARRIVAL_HORIZON = 100_000.0  # minutes; arrivals are uniform on [0, horizon)

# --------------------------- Calibration --------------------------- #
CALIBRATION_MAX_ITERATIONS = 1_000

# --------------------------- Sampling --------------------------- #
PATIENCE_MIN = 0
PATIENCE_MAX = 80  # inclusive
CALLBACK_DELAYS = (0, 1, 2, 3, 4, 5, 10, 20, 30, 40, 50, 60, 90, 120, 240, 360, 720, 1440, 2160, 2880)
REMAINING_SAMPLES_PER_SET: Optional[int] = None  # None samples every call
CALLBACK_SAMPLES_PER_SET = 1_000
MAX_BUCKET_SAMPLES = 1_000_000

# --------------------------- Parallel batches --------------------------- #
BATCH_SIZE = 20
BATCHES_PER_REPORT = 25
MAX_WORKERS: Optional[int] = None  # None lets the executor pick; 0 runs inline

# ----------------------------- Logging ----------------------------- #
LOG_FILE = "logs/callwait.log"

# --------------------------- Random seeds --------------------------- #
GLOBAL_RANDOM_SEED = 12345
SEED_OVERRIDE_ENV_VAR = "CALLWAIT_SEED"
GENERAL_STATS_SEEDS = tuple(range(12345, 12356))
GENERAL_STATS_AGENT_COUNT = 50


def resolve_seed() -> Tuple[int, Optional[str]]:
    """Return the global seed and the env var it came from, if overridden."""
    override_val = os.environ.get(SEED_OVERRIDE_ENV_VAR)
    if override_val is None:
        return GLOBAL_RANDOM_SEED, None
    try:
        return int(override_val), SEED_OVERRIDE_ENV_VAR
    except ValueError:
        logging.warning(
            "Env override %s=%r is not an integer; falling back to default seed %d.",
            SEED_OVERRIDE_ENV_VAR,
            override_val,
            GLOBAL_RANDOM_SEED,
        )
        return GLOBAL_RANDOM_SEED, None


@dataclass(frozen=True)
class ExperimentSettings:
    """Numeric parameters shipped to every sampling task."""

    agent_count: int = AGENT_COUNT
    median_wait_target: float = MEDIAN_WAIT_TARGET
    mean_talk_duration: float = MEAN_TALK_DURATION
    horizon: float = ARRIVAL_HORIZON
    max_iterations: int = CALIBRATION_MAX_ITERATIONS
    patience_min: int = PATIENCE_MIN
    patience_max: int = PATIENCE_MAX
    callback_delays: Tuple[int, ...] = field(default=CALLBACK_DELAYS)
    remaining_samples_per_set: Optional[int] = REMAINING_SAMPLES_PER_SET
    callback_samples_per_set: Optional[int] = CALLBACK_SAMPLES_PER_SET
    max_bucket_samples: int = MAX_BUCKET_SAMPLES
    batch_size: int = BATCH_SIZE
    batches_per_report: int = BATCHES_PER_REPORT

    @classmethod
    def from_config(cls, **overrides: Any) -> "ExperimentSettings":
        """Build settings from the module constants, skipping None overrides."""
        settings = cls()
        applied = {key: value for key, value in overrides.items() if value is not None}
        if "callback_delays" in applied:
            applied["callback_delays"] = tuple(applied["callback_delays"])
        return replace(settings, **applied).validate()

    @property
    def patience_values(self) -> range:
        return range(self.patience_min, self.patience_max + 1)

    def validate(self) -> "ExperimentSettings":
        if self.agent_count < 1:
            raise ValueError(f"agent_count must be >= 1, got {self.agent_count}")
        for name in ("median_wait_target", "mean_talk_duration", "horizon"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be > 0, got {value}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if self.patience_min < 0 or self.patience_max < self.patience_min:
            raise ValueError(f"Invalid patience range [{self.patience_min}, {self.patience_max}]")
        if any(delay < 0 for delay in self.callback_delays):
            raise ValueError(f"Callback delays must be >= 0, got {self.callback_delays}")
        for name in ("remaining_samples_per_set", "callback_samples_per_set"):
            value = getattr(self, name)
            if value is not None and value < 1:
                raise ValueError(f"{name} must be >= 1 or None, got {value}")
        if self.max_bucket_samples < 1:
            raise ValueError(f"max_bucket_samples must be >= 1, got {self.max_bucket_samples}")
        if self.batch_size < 1 or self.batches_per_report < 1:
            raise ValueError("batch_size and batches_per_report must be >= 1")
        return self

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def current_config() -> Dict[str, Any]:
    """Snapshot of the module-level constants, for logging."""
    return {
        key: value
        for key, value in globals().items()
        if key.isupper() and not key.startswith("_")
    }
