"""Tests for SimulationRunner: determinism, checkpoints and resume."""

import pytest

from tripbench.engine.runner import SimulationRunner, run_key
from tripbench.models.duration import Duration
from tripbench.models.road_map import RoadMap
from tripbench.models.scenario import Scenario
from tripbench.stores.checkpoints import FileCheckpointStore, InMemoryCheckpointStore

HORIZON = Duration.hours(24)
HOURLY = Duration.hours(1)


class TestDeterminism:
    def test_two_runs_equal(self, grid_map: RoadMap, weekday: Scenario) -> None:
        runner = SimulationRunner()
        a = runner.run(grid_map, weekday, 42, HORIZON)
        b = SimulationRunner().run(grid_map, weekday, 42, HORIZON)
        assert a == b
        assert a.checksum() == b.checksum()

    def test_identity_carried_into_analytics(self, grid_map: RoadMap, weekday: Scenario) -> None:
        a = SimulationRunner().run(grid_map, weekday, 42, HORIZON)
        assert (a.map_name, a.scenario_name) == weekday.key
        assert len(a.outcomes) + a.cancelled_trips == len(weekday.trips)

    def test_stops_early_without_work(self, grid_map: RoadMap, weekday: Scenario) -> None:
        runner = SimulationRunner()
        a = runner.run(grid_map, weekday, 42, Duration.hours(48))
        assert a.end_time < Duration.hours(24)
        assert runner.last_report.steps == a.end_time.num_minutes_rounded_up()

    def test_horizon_cuts_run(self, grid_map: RoadMap, weekday: Scenario) -> None:
        a = SimulationRunner().run(grid_map, weekday, 42, Duration.hours(8))
        assert a.end_time == Duration.hours(8)
        assert any(not o.finished for o in a.outcomes)


class TestValidation:
    @pytest.mark.parametrize("horizon", [Duration.ZERO, Duration.seconds(-1.0)])
    def test_horizon_must_be_positive(
        self, grid_map: RoadMap, weekday: Scenario, horizon: Duration
    ) -> None:
        with pytest.raises(ValueError):
            SimulationRunner().run(grid_map, weekday, 1, horizon)

    def test_step_must_be_positive(self, grid_map: RoadMap, weekday: Scenario) -> None:
        with pytest.raises(ValueError):
            SimulationRunner().run(grid_map, weekday, 1, HORIZON, step=Duration.ZERO)


class TestRunKey:
    def test_stable(self, grid_map: RoadMap, weekday: Scenario) -> None:
        assert run_key(grid_map, weekday, 1, HORIZON) == run_key(grid_map, weekday, 1, HORIZON)

    def test_depends_on_every_input(self, grid_map: RoadMap, weekday: Scenario) -> None:
        base = run_key(grid_map, weekday, 1, HORIZON)
        assert run_key(grid_map, weekday, 2, HORIZON) != base
        assert run_key(grid_map, weekday, 1, Duration.hours(23)) != base
        assert run_key(grid_map, weekday.with_trips(weekday.trips[:-1]), 1, HORIZON) != base


# ---------------------------------------------------------------------------
# Checkpoint / resume
# ---------------------------------------------------------------------------


class TestCheckpointResume:
    def test_interrupted_run_resumes_identically(
        self, grid_map: RoadMap, weekday: Scenario
    ) -> None:
        straight = SimulationRunner().run(grid_map, weekday, 42, HORIZON)

        store = InMemoryCheckpointStore()
        runner = SimulationRunner(store)
        runner.run_until(
            grid_map, weekday, 42, HORIZON,
            stop_at=Duration.hours(8) + Duration.minutes(20),
            checkpoint_interval=HOURLY,
        )
        key = run_key(grid_map, weekday, 42, HORIZON)
        assert store.latest(key).now == Duration.hours(8)

        resumed = runner.run(grid_map, weekday, 42, HORIZON, checkpoint_interval=HOURLY)
        assert runner.last_report.resumed_from == Duration.hours(8)
        assert resumed == straight

    def test_checkpoints_cleared_after_success(
        self, grid_map: RoadMap, weekday: Scenario
    ) -> None:
        store = InMemoryCheckpointStore()
        runner = SimulationRunner(store)
        runner.run(grid_map, weekday, 42, HORIZON, checkpoint_interval=HOURLY)
        assert runner.last_report.checkpoints_written > 0
        assert store.count(run_key(grid_map, weekday, 42, HORIZON)) == 0

    def test_store_without_interval_writes_nothing(
        self, grid_map: RoadMap, weekday: Scenario
    ) -> None:
        store = InMemoryCheckpointStore()
        runner = SimulationRunner(store)
        result = runner.run(grid_map, weekday, 42, HORIZON)
        assert runner.last_report.checkpoints_written == 0
        assert store.count(run_key(grid_map, weekday, 42, HORIZON)) == 0
        assert result == SimulationRunner().run(grid_map, weekday, 42, HORIZON)

    def test_run_until_without_interval(self, grid_map: RoadMap, weekday: Scenario) -> None:
        state = SimulationRunner().run_until(
            grid_map, weekday, 42, HORIZON, stop_at=Duration.hours(9)
        )
        assert state.now == Duration.hours(9)

    def test_other_seed_does_not_resume(self, grid_map: RoadMap, weekday: Scenario) -> None:
        store = InMemoryCheckpointStore()
        runner = SimulationRunner(store)
        runner.run_until(
            grid_map, weekday, 42, HORIZON, stop_at=Duration.hours(9), checkpoint_interval=HOURLY
        )
        runner.run(grid_map, weekday, 43, HORIZON, checkpoint_interval=HOURLY)
        assert runner.last_report.resumed_from is None

    def test_file_checkpoints(self, tmp_path, grid_map: RoadMap, weekday: Scenario) -> None:
        straight = SimulationRunner().run(grid_map, weekday, 5, HORIZON)
        runner = SimulationRunner(FileCheckpointStore(tmp_path))
        runner.run_until(
            grid_map, weekday, 5, HORIZON, stop_at=Duration.hours(10), checkpoint_interval=HOURLY
        )
        assert any(tmp_path.iterdir())
        assert runner.run(grid_map, weekday, 5, HORIZON, checkpoint_interval=HOURLY) == straight
        assert not any(tmp_path.iterdir())
