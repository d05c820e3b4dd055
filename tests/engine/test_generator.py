"""Tests for scenario generation and gameplay scenario resolution."""

import pytest

from tripbench.engine.generator import (
    HOME_TO_WORK_SCENARIO,
    RANDOM_SCENARIO,
    ScenarioGenerator,
    build_grid_map,
    scenario_for_gameplay,
)
from tripbench.errors import ScenarioNotFoundError
from tripbench.models.common import TripMode
from tripbench.models.duration import DAY, Duration
from tripbench.models.gameplay import GameplayMode
from tripbench.models.road_map import IntersectionControl, RoadMap
from tripbench.models.scenario import RepeatDays, Scenario
from tripbench.stores.objects import InMemoryObjectStore


class TestBuildGridMap:
    def test_shape(self) -> None:
        m = build_grid_map("g", rows=3, cols=4)
        assert len(m.intersections) == 12
        # 3 rows of 3 horizontal roads + 2 rows of 4 vertical roads
        assert len(m.roads) == 17

    def test_controls(self) -> None:
        m = build_grid_map("g", rows=3, cols=3)
        assert m.intersection("i1_1").control == IntersectionControl.SIGNAL
        assert m.intersection("i0_0").control == IntersectionControl.STOP_SIGN

    def test_bus_route_along_middle_row(self) -> None:
        m = build_grid_map("g", rows=3, cols=3)
        assert m.route("43").stops == ("i1_0", "i1_1", "i1_2")

    def test_too_small(self) -> None:
        with pytest.raises(ValueError):
            build_grid_map("g", rows=1, cols=3)


class TestScenarioGenerator:
    def test_random_is_reproducible(self, grid_map: RoadMap) -> None:
        a = ScenarioGenerator.random(grid_map, 50, rng_seed=11)
        b = ScenarioGenerator.random(grid_map, 50, rng_seed=11)
        assert a == b
        assert a.scenario_name == RANDOM_SCENARIO

    def test_random_seed_matters(self, grid_map: RoadMap) -> None:
        a = ScenarioGenerator.random(grid_map, 50, rng_seed=11)
        b = ScenarioGenerator.random(grid_map, 50, rng_seed=12)
        assert a != b

    def test_random_trips_sorted_within_day(self, grid_map: RoadMap) -> None:
        s = ScenarioGenerator.random(grid_map, 100, rng_seed=1)
        departures = [t.departure for t in s.trips]
        assert departures == sorted(departures)
        assert all(Duration.ZERO <= d < DAY for d in departures)
        assert all(t.origin != t.destination for t in s.trips)

    def test_home_to_work_pairs(self, grid_map: RoadMap) -> None:
        s = ScenarioGenerator.home_to_work(grid_map, 20, rng_seed=3)
        assert len(s.trips) == 40
        assert s.scenario_name == HOME_TO_WORK_SCENARIO
        morning = [t for t in s.trips if t.departure <= Duration.hours(11)]
        assert len(morning) == 20

    def test_negative_count(self, grid_map: RoadMap) -> None:
        with pytest.raises(ValueError):
            ScenarioGenerator.random(grid_map, -1, rng_seed=0)


class TestScenarioForGameplay:
    def test_freeform_has_none(self, grid_map: RoadMap, object_store: InMemoryObjectStore) -> None:
        assert scenario_for_gameplay(GameplayMode.freeform("grid"), grid_map, object_store, 1) is None

    def test_challenge_plays_weekday(
        self, grid_map: RoadMap, object_store: InMemoryObjectStore, weekday: Scenario
    ) -> None:
        mode = GameplayMode.fix_traffic_signals()
        assert scenario_for_gameplay(mode, grid_map, object_store, 1) == weekday

    def test_challenge_without_weekday(self, grid_map: RoadMap) -> None:
        with pytest.raises(ScenarioNotFoundError):
            scenario_for_gameplay(
                GameplayMode.create_gridlock(), grid_map, InMemoryObjectStore(), 1
            )

    def test_play_stored_scenario_with_modifiers(
        self, grid_map: RoadMap, object_store: InMemoryObjectStore, weekday: Scenario
    ) -> None:
        mode = GameplayMode.play_scenario("grid", "weekday", [RepeatDays(n=2)])
        s = scenario_for_gameplay(mode, grid_map, object_store, 1)
        assert len(s.trips) == 2 * len(weekday.trips)
        assert s.key == weekday.key

    def test_play_dynamic_scenario(
        self, grid_map: RoadMap, object_store: InMemoryObjectStore
    ) -> None:
        mode = GameplayMode.play_scenario("grid", RANDOM_SCENARIO)
        s = scenario_for_gameplay(mode, grid_map, object_store, 5)
        assert s == scenario_for_gameplay(mode, grid_map, object_store, 5)
        assert {t.mode for t in s.trips} <= set(TripMode)
