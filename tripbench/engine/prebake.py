"""Prebake pipeline: compute and persist baseline analytics for every challenge.

Challenges are grouped by map (maps in sorted order) so each map is loaded
once. Each distinct scenario of a map is simulated once with the fixed
prebake seed over a full day, checkpointing hourly, and written to the
analytics store. Runs are sequential.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field

from tripbench.catalog.challenges import all_challenges
from tripbench.config.settings import Settings
from tripbench.engine.generator import scenario_for_gameplay
from tripbench.engine.runner import SimulationRunner
from tripbench.models.duration import Duration
from tripbench.models.gameplay import Challenge
from tripbench.stores.analytics import AnalyticsStore, FileAnalyticsStore
from tripbench.stores.checkpoints import FileCheckpointStore
from tripbench.stores.objects import FileObjectStore, ObjectStore

logger = logging.getLogger(__name__)


@dataclass
class PrebakeReport:
    """What a prebake pass wrote, and what it skipped as already processed."""

    written: list[tuple[str, str]] = field(default_factory=list)
    skipped: list[tuple[str, str]] = field(default_factory=list)


def challenges_by_map(dev: bool) -> dict[str, list[Challenge]]:
    """Every catalog challenge grouped by map name, maps sorted."""
    grouped: dict[str, list[Challenge]] = defaultdict(list)
    for challenges in all_challenges(dev).values():
        for challenge in challenges:
            grouped[challenge.map_name].append(challenge)
    return {name: grouped[name] for name in sorted(grouped)}


def prebake_challenges(
    challenges: dict[str, list[Challenge]],
    object_store: ObjectStore,
    analytics_store: AnalyticsStore,
    runner: SimulationRunner,
    rng_seed: int,
    step: Duration,
    checkpoint_interval: Duration,
) -> PrebakeReport:
    """Run and persist the baseline for each distinct (map, scenario) pair.

    Raises:
        MapNotFoundError: If a challenge's map has not been stored.
        ScenarioNotFoundError: If a challenge's scenario has not been stored.
    """
    report = PrebakeReport()
    for map_name, map_challenges in challenges.items():
        road_map = object_store.load_map(map_name)
        done: set[str] = set()
        for challenge in map_challenges:
            scenario = scenario_for_gameplay(challenge.gameplay, road_map, object_store, rng_seed)
            if scenario is None:
                continue
            key = (map_name, scenario.scenario_name)
            if scenario.scenario_name in done:
                logger.debug("Already prebaked %s/%s, skipping", *key)
                report.skipped.append(key)
                continue
            done.add(scenario.scenario_name)

            logger.info(
                "Prebaking %s/%s (%d trips) for %s",
                map_name, scenario.scenario_name, len(scenario.trips), challenge.alias,
            )
            analytics = runner.run(
                road_map,
                scenario,
                rng_seed,
                scenario.end_of_day(),
                checkpoint_interval=checkpoint_interval,
                step=step,
            )
            analytics_store.save(map_name, scenario.scenario_name, analytics)
            report.written.append(key)

    logger.info(
        "Prebake finished: %d written, %d skipped", len(report.written), len(report.skipped)
    )
    return report


def prebake_all(settings: Settings, dev: bool = True) -> PrebakeReport:
    """Prebake every catalog challenge using the filesystem stores from ``settings``."""
    return prebake_challenges(
        challenges_by_map(dev),
        object_store=FileObjectStore(settings.DATA_DIR),
        analytics_store=FileAnalyticsStore(settings.DATA_DIR),
        runner=SimulationRunner(FileCheckpointStore(settings.CHECKPOINT_DIR)),
        rng_seed=settings.PREBAKE_SEED,
        step=Duration.seconds(float(settings.STEP_SECONDS)),
        checkpoint_interval=Duration.seconds(float(settings.CHECKPOINT_INTERVAL_SECONDS)),
    )
