# v1
# file: callwait/run_experiments.py

"""
Entry point for the call-waiting Monte Carlo experiments.

Modes:
  * remaining: expected remaining wait after holding P minutes.
  * callback:  extra wait from hanging up after P minutes and calling back D minutes later.
  * stats:     calibration stability across a fixed set of seeds.

The sampling modes run until interrupted (Ctrl-C stops after the current
batch) unless ``--reports`` bounds them. Example usage:

    python -m callwait.run_experiments --mode callback --agents 5 --reports 3
"""

from __future__ import annotations

import argparse
import logging
import os
import signal
import sys
import threading
from datetime import datetime
from typing import List, Sequence

from .config import (
    GENERAL_STATS_AGENT_COUNT,
    GENERAL_STATS_SEEDS,
    LOG_FILE,
    MAX_WORKERS,
    ExperimentSettings,
    current_config,
    resolve_seed,
)
from .harness import ExperimentHarness
from .report import ReportSink
from .stats import general_stats


def configure_logging(log_file: str) -> None:
    """File logging at INFO; stdout only sees warnings so report rows stay clean."""
    log_dir = os.path.dirname(log_file) or "."
    os.makedirs(log_dir, exist_ok=True)
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(logging.WARNING)
    handlers: List[logging.Handler] = [
        logging.FileHandler(log_file, mode="w"),
        stream_handler,
    ]
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
        force=True,
    )
    logging.info("Experiment logging initialized at %s", datetime.now().isoformat())


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Monte Carlo study of call-center wait times.")
    parser.add_argument("--mode", choices=["remaining", "callback", "stats"], default="remaining")
    parser.add_argument("--agents", type=int, default=None, help="Number of agents.")
    parser.add_argument("--median-wait", type=float, default=None, help="Target median wait in minutes.")
    parser.add_argument("--talk-mean", type=float, default=None, help="Mean talk duration in minutes.")
    parser.add_argument("--horizon", type=float, default=None, help="Arrival window in minutes.")
    parser.add_argument("--patience-max", type=int, default=None, help="Largest patience value (inclusive).")
    parser.add_argument("--samples-per-set", type=int, default=None, help="Random calls sampled per calibrated day.")
    parser.add_argument("--batch-size", type=int, default=None, help="Calibrated days run in parallel per batch.")
    parser.add_argument("--batches-per-report", type=int, default=None, help="Batches between report rows.")
    parser.add_argument("--max-bucket-samples", type=int, default=None, help="Sample cap per bucket.")
    parser.add_argument(
        "--workers",
        type=int,
        default=MAX_WORKERS,
        help="Worker processes (default: executor decides; 0 runs inline).",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed (default: config / CALLWAIT_SEED).")
    parser.add_argument("--reports", type=int, default=None, help="Stop after this many reports (default: run forever).")
    parser.add_argument("--log-file", default=LOG_FILE, help=f"Log file path (default: {LOG_FILE}).")
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> ExperimentSettings:
    overrides = dict(
        agent_count=args.agents,
        median_wait_target=args.median_wait,
        mean_talk_duration=args.talk_mean,
        horizon=args.horizon,
        patience_max=args.patience_max,
        batch_size=args.batch_size,
        batches_per_report=args.batches_per_report,
        max_bucket_samples=args.max_bucket_samples,
    )
    if args.mode == "callback":
        overrides["callback_samples_per_set"] = args.samples_per_set
    else:
        overrides["remaining_samples_per_set"] = args.samples_per_set
    if args.mode == "stats" and args.agents is None:
        overrides["agent_count"] = GENERAL_STATS_AGENT_COUNT
    return ExperimentSettings.from_config(**overrides)


def _install_stop_signal(stop_event: threading.Event) -> None:
    def _handle(signum, frame):
        logging.warning("Signal %s received; stopping after the current batch.", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _handle)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, _handle)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_file)
    settings = build_settings(args)
    seed, override_source = resolve_seed()
    if args.seed is not None:
        seed, override_source = args.seed, "--seed"
    logging.info("Configuration constants: %s", current_config())
    logging.info("Experiment settings: %s", settings.as_dict())
    logging.info("Random seed %d (source: %s)", seed, override_source or "config")

    if args.mode == "stats":
        table = general_stats(settings, GENERAL_STATS_SEEDS)
        logging.info("General stats:\n%s", table.describe().to_string())
        print(table.to_string())
        print(table.describe().to_string())
        return 0

    stop_event = threading.Event()
    _install_stop_signal(stop_event)
    harness = ExperimentHarness(settings, args.mode, ReportSink(), seed=seed, workers=args.workers)
    harness.run(stop_event, max_reports=args.reports)
    return 0


if __name__ == "__main__":
    sys.exit(main())
