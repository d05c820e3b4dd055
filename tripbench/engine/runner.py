"""Deterministic simulation runner with checkpoint/resume.

Runs a scenario on a map with a fixed seed and horizon, stepping the
simulator in fixed increments. With a checkpoint store and interval the full
simulator state is saved at every interval multiple; a later ``run`` with the
same inputs picks up from the latest checkpoint and produces analytics
identical to an uninterrupted run.
"""

import hashlib
import logging
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from tripbench.engine.simulator import Simulator, SimulatorState, TripSimulator
from tripbench.models.analytics import Analytics
from tripbench.models.duration import Duration
from tripbench.models.road_map import RoadMap
from tripbench.models.scenario import Scenario
from tripbench.stores.checkpoints import CheckpointStore

logger = logging.getLogger(__name__)

SimulatorFactory = Callable[[RoadMap, Scenario, int], Simulator]
SimulatorRestorer = Callable[[RoadMap, Scenario, SimulatorState], Simulator]


def _new_trip_simulator(road_map: RoadMap, scenario: Scenario, rng_seed: int) -> Simulator:
    return TripSimulator(road_map, scenario.trips, np.random.default_rng(rng_seed))


def _restore_trip_simulator(
    road_map: RoadMap, scenario: Scenario, state: SimulatorState
) -> Simulator:
    return TripSimulator.from_state(road_map, scenario.trips, state)


def run_key(
    road_map: RoadMap, scenario: Scenario, rng_seed: int, time_horizon: Duration
) -> str:
    """Identity of a run: checkpoints are only shared between equal inputs."""
    h = hashlib.sha256()
    for part in (
        road_map.checksum(),
        scenario.checksum(),
        str(rng_seed),
        str(time_horizon.to_ticks()),
    ):
        h.update(part.encode("utf-8"))
        h.update(b"\x00")
    return h.hexdigest()


@dataclass(frozen=True)
class RunReport:
    """How the last run went: steps taken and where it started from."""

    run_key: str
    steps: int
    resumed_from: Duration | None
    end_time: Duration
    checkpoints_written: int


class SimulationRunner:
    """Runs scenarios to a fixed horizon. One runner may be reused across runs."""

    def __init__(
        self,
        checkpoint_store: CheckpointStore | None = None,
        simulator_factory: SimulatorFactory = _new_trip_simulator,
        simulator_restorer: SimulatorRestorer = _restore_trip_simulator,
    ) -> None:
        self._checkpoints = checkpoint_store
        self._factory = simulator_factory
        self._restorer = simulator_restorer
        self.last_report: RunReport | None = None

    def run(
        self,
        road_map: RoadMap,
        scenario: Scenario,
        rng_seed: int,
        time_horizon: Duration,
        checkpoint_interval: Duration | None = None,
        step: Duration = Duration.minutes(1),
    ) -> Analytics:
        """Simulate to ``time_horizon`` (or until nothing is left to do).

        Raises:
            ValueError: If the horizon, step or checkpoint interval is not
                positive.
        """
        sim, key = self._advance(
            road_map, scenario, rng_seed, time_horizon, time_horizon, checkpoint_interval, step
        )
        analytics = sim.get_analytics(scenario.map_name, scenario.scenario_name)
        if self._checkpoints is not None:
            self._checkpoints.clear(key)
        return analytics

    def run_until(
        self,
        road_map: RoadMap,
        scenario: Scenario,
        rng_seed: int,
        time_horizon: Duration,
        stop_at: Duration,
        checkpoint_interval: Duration | None = None,
        step: Duration = Duration.minutes(1),
    ) -> SimulatorState:
        """Advance a run only to ``stop_at`` and leave its checkpoints in place.

        A subsequent ``run`` with the same inputs resumes from the latest
        checkpoint written here.
        """
        sim, _ = self._advance(
            road_map, scenario, rng_seed, time_horizon, stop_at, checkpoint_interval, step
        )
        return sim.to_state()

    # ------------------------------------------------------------------

    def _advance(
        self,
        road_map: RoadMap,
        scenario: Scenario,
        rng_seed: int,
        time_horizon: Duration,
        stop_at: Duration,
        checkpoint_interval: Duration | None,
        step: Duration,
    ) -> tuple[Simulator, str]:
        if time_horizon <= Duration.ZERO:
            msg = f"Time horizon must be positive, got {time_horizon}"
            raise ValueError(msg)
        if step <= Duration.ZERO:
            msg = f"Step must be positive, got {step}"
            raise ValueError(msg)
        if checkpoint_interval is not None and checkpoint_interval <= Duration.ZERO:
            msg = f"Checkpoint interval must be positive, got {checkpoint_interval}"
            raise ValueError(msg)

        key = run_key(road_map, scenario, rng_seed, time_horizon)
        checkpointing = self._checkpoints is not None and checkpoint_interval is not None

        sim: Simulator
        resumed_from: Duration | None = None
        saved = self._checkpoints.latest(key) if self._checkpoints is not None else None
        if saved is not None:
            sim = self._restorer(road_map, scenario, saved)
            resumed_from = saved.now
            logger.info("Resuming run %s from checkpoint at %s", key[:12], saved.now)
        else:
            sim = self._factory(road_map, scenario, rng_seed)

        limit = min(stop_at, time_horizon)
        interval_ticks = checkpoint_interval.to_ticks() if checkpoint_interval else 0
        steps = 0
        written = 0
        while sim.now < limit and sim.has_pending_work():
            sim.step(min(step, limit - sim.now))
            steps += 1
            if (
                checkpointing
                and sim.now < time_horizon
                and sim.now.to_ticks() % interval_ticks == 0
            ):
                self._checkpoints.save(key, sim.to_state())
                written += 1

        self.last_report = RunReport(
            run_key=key,
            steps=steps,
            resumed_from=resumed_from,
            end_time=sim.now,
            checkpoints_written=written,
        )
        logger.info(
            "Run %s on %s/%s: %d steps to %s (resumed=%s, checkpoints=%d)",
            key[:12], scenario.map_name, scenario.scenario_name,
            steps, sim.now, resumed_from is not None, written,
        )
        return sim, key
