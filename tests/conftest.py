"""Shared pytest fixtures for the tripbench test suite.

Provides:
- grid_map: a 3x3 grid ("grid") with one signal in the middle and bus route 43
- weekday: a small hand-written "weekday" scenario on that grid
- object_store: an InMemoryObjectStore holding both
"""

import pytest

from tripbench.engine.generator import build_grid_map
from tripbench.models.common import TripMode
from tripbench.models.duration import Duration
from tripbench.models.road_map import RoadMap
from tripbench.models.scenario import Scenario, Trip
from tripbench.stores.objects import InMemoryObjectStore


def _trip(mode: TripMode, hour: int, minute: int, origin: str, destination: str) -> Trip:
    return Trip(
        mode=mode,
        departure=Duration.hours(hour) + Duration.minutes(minute),
        origin=origin,
        destination=destination,
    )


@pytest.fixture
def grid_map() -> RoadMap:
    return build_grid_map("grid", rows=3, cols=3)


@pytest.fixture
def weekday() -> Scenario:
    return Scenario(
        map_name="grid",
        scenario_name="weekday",
        trips=(
            _trip(TripMode.DRIVE, 7, 30, "i0_0", "i2_2"),
            _trip(TripMode.DRIVE, 7, 45, "i0_2", "i2_0"),
            _trip(TripMode.BIKE, 8, 0, "i0_0", "i1_2"),
            _trip(TripMode.WALK, 8, 0, "i1_1", "i2_1"),
            _trip(TripMode.TRANSIT, 8, 5, "i1_0", "i1_2"),
            _trip(TripMode.DRIVE, 8, 10, "i2_2", "i0_0"),
            _trip(TripMode.TRANSIT, 17, 3, "i1_2", "i1_0"),
            _trip(TripMode.DRIVE, 17, 30, "i2_0", "i0_2"),
        ),
    )


@pytest.fixture
def object_store(grid_map: RoadMap, weekday: Scenario) -> InMemoryObjectStore:
    store = InMemoryObjectStore()
    store.save_map(grid_map)
    store.save_scenario(weekday)
    return store
