"""Prebake baseline analytics for every challenge.

Usage:
    python -m scripts.prebake                     # settings from TRIPBENCH_* / .env
    python -m scripts.prebake --data-dir data/system --no-dev
"""

import argparse
import sys
from pathlib import Path

import structlog

from tripbench.config.log_setup import configure_logging
from tripbench.config.settings import get_settings
from tripbench.engine.prebake import prebake_all
from tripbench.errors import TripBenchError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compute and persist baseline analytics for all challenges",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Override TRIPBENCH_DATA_DIR",
    )
    parser.add_argument(
        "--checkpoint-dir",
        type=Path,
        default=None,
        help="Override TRIPBENCH_CHECKPOINT_DIR",
    )
    parser.add_argument(
        "--no-dev",
        action="store_true",
        help="Skip work-in-progress challenge categories",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    overrides = {}
    if args.data_dir is not None:
        overrides["DATA_DIR"] = args.data_dir
    if args.checkpoint_dir is not None:
        overrides["CHECKPOINT_DIR"] = args.checkpoint_dir
    if overrides:
        settings = settings.model_copy(update=overrides)
    dev = settings.DEV_CHALLENGES and not args.no_dev

    configure_logging(settings.LOG_LEVEL)
    logger = structlog.get_logger()
    logger.info("prebake_start", data_dir=str(settings.DATA_DIR), dev=dev)

    try:
        report = prebake_all(settings, dev=dev)
    except TripBenchError as exc:
        logger.error("prebake_failed", error=str(exc))
        return 1

    for map_name, scenario_name in report.written:
        logger.info("prebaked", map=map_name, scenario=scenario_name)
    logger.info("prebake_done", written=len(report.written), skipped=len(report.skipped))
    return 0


if __name__ == "__main__":
    sys.exit(main())
