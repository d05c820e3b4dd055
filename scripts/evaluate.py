"""Evaluate a saved edit set against a challenge.

Applies the edits to the challenge's map, simulates the challenge scenario
with the prebake seed and compares the result with the stored baseline.

Usage:
    python -m scripts.evaluate trafficsig/main --edits retimed_signals
"""

import argparse
import sys
from pathlib import Path

import structlog

from tripbench.catalog.challenges import find_by_alias
from tripbench.config.log_setup import configure_logging
from tripbench.config.settings import Settings, get_settings
from tripbench.engine.evaluator import evaluate_with_store
from tripbench.engine.gameplay_rules import allows
from tripbench.engine.generator import scenario_for_gameplay
from tripbench.engine.runner import SimulationRunner
from tripbench.errors import InvalidEditError, TripBenchError
from tripbench.models.analytics import Verdict
from tripbench.models.duration import Duration
from tripbench.stores.analytics import FileAnalyticsStore
from tripbench.stores.objects import FileObjectStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Score saved edits against a challenge")
    parser.add_argument("alias", help="Challenge alias, e.g. trafficsig/main")
    parser.add_argument("--edits", required=True, help="Name of the saved edit set")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Override TRIPBENCH_DATA_DIR",
    )
    return parser


def run_attempt(settings: Settings, alias: str, edits_name: str) -> Verdict:
    """Simulate ``edits_name`` on the challenge and score it.

    Raises:
        KeyError: If the alias is unknown.
        InvalidEditError: If the challenge's mode does not allow the edits.
        TripBenchError: For missing maps, scenarios, edits or baselines.
    """
    challenge = find_by_alias(alias, dev=settings.DEV_CHALLENGES)
    objects = FileObjectStore(settings.DATA_DIR)
    edits = objects.load_edits(challenge.map_name, edits_name)
    if not allows(challenge.gameplay, edits):
        msg = f"Edits {edits_name} are not allowed for {alias}"
        raise InvalidEditError(msg)

    road_map = objects.load_map(challenge.map_name).apply_edits(edits)
    scenario = scenario_for_gameplay(
        challenge.gameplay, road_map, objects, settings.PREBAKE_SEED
    )
    if scenario is None:
        msg = f"Challenge {alias} has no scenario to simulate"
        raise ValueError(msg)

    attempt = SimulationRunner().run(
        road_map,
        scenario,
        settings.PREBAKE_SEED,
        scenario.end_of_day(),
        step=Duration.seconds(float(settings.STEP_SECONDS)),
    )
    return evaluate_with_store(challenge, attempt, FileAnalyticsStore(settings.DATA_DIR))


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    if args.data_dir is not None:
        settings = settings.model_copy(update={"DATA_DIR": args.data_dir})

    configure_logging(settings.LOG_LEVEL)
    logger = structlog.get_logger()

    try:
        verdict = run_attempt(settings, args.alias, args.edits)
    except (KeyError, ValueError, TripBenchError) as exc:
        logger.error("evaluate_failed", alias=args.alias, edits=args.edits, error=str(exc))
        return 1

    logger.info(
        "evaluated",
        alias=args.alias,
        metric=verdict.metric,
        baseline=str(verdict.baseline_value),
        attempt=str(verdict.attempt_value),
        margin=str(verdict.margin),
        threshold=str(verdict.threshold),
        passed=verdict.passed,
    )
    return 0 if verdict.passed else 2


if __name__ == "__main__":
    sys.exit(main())
