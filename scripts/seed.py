"""Seed script: write demo maps and weekday scenarios for every catalog map.

Creates, for each map referenced by the challenge catalog:
1. A synthetic grid map (larger grids for the bigger areas)
2. A "weekday" commute scenario generated with the prebake seed

Idempotent: existing maps and scenarios are left untouched.

Usage:
    python -m scripts.seed                      # against TRIPBENCH_DATA_DIR
    python -m scripts.seed --data-dir /tmp/tripbench
"""

import argparse
import sys
from pathlib import Path

import structlog

from tripbench.config.log_setup import configure_logging
from tripbench.config.settings import get_settings
from tripbench.engine.generator import WEEKDAY_SCENARIO, ScenarioGenerator, build_grid_map
from tripbench.engine.prebake import challenges_by_map
from tripbench.errors import MapNotFoundError
from tripbench.stores.objects import FileObjectStore, ObjectStore

# Grid size and commuters per demo map
DEMO_MAPS: dict[str, tuple[int, int, int]] = {
    "signal_single": (3, 3, 200),
    "montlake": (4, 5, 600),
    "23rd": (6, 6, 1200),
}
DEFAULT_DEMO_MAP = (3, 3, 200)


def seed_maps(store: ObjectStore, map_names: list[str], rng_seed: int) -> list[str]:
    """Write a grid map and weekday scenario for each name; return what was created."""
    created = []
    for name in map_names:
        rows, cols, people = DEMO_MAPS.get(name, DEFAULT_DEMO_MAP)
        try:
            road_map = store.load_map(name)
        except MapNotFoundError:
            road_map = build_grid_map(name, rows, cols)
            store.save_map(road_map)
            created.append(f"{name}/map")
        if not store.has_scenario(name, WEEKDAY_SCENARIO):
            weekday = ScenarioGenerator.home_to_work(road_map, people, rng_seed)
            store.save_scenario(weekday.renamed(WEEKDAY_SCENARIO))
            created.append(f"{name}/{WEEKDAY_SCENARIO}")
    return created


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Write demo maps and scenarios")
    parser.add_argument("--data-dir", type=Path, default=None, help="Override TRIPBENCH_DATA_DIR")
    args = parser.parse_args(argv)

    settings = get_settings()
    data_dir = args.data_dir or settings.DATA_DIR
    configure_logging(settings.LOG_LEVEL)
    logger = structlog.get_logger()

    created = seed_maps(
        FileObjectStore(data_dir),
        list(challenges_by_map(dev=True)),
        settings.PREBAKE_SEED,
    )
    logger.info("seed_done", data_dir=str(data_dir), created=created)
    return 0


if __name__ == "__main__":
    sys.exit(main())
