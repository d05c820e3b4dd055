"""Seeded scenario generation and gameplay scenario resolution.

``ScenarioGenerator`` builds reproducible synthetic scenarios ("random" and
"home_to_work") for a map. ``build_grid_map`` creates a small Manhattan
style map for demos and tests. ``scenario_for_gameplay`` picks the scenario a
gameplay mode is played on.
"""

import logging

import numpy as np

from tripbench.engine.modifiers import apply_modifiers
from tripbench.models.common import TripMode
from tripbench.models.duration import Duration
from tripbench.models.gameplay import GameplayKind, GameplayMode
from tripbench.models.road_map import (
    BusRoute,
    Intersection,
    IntersectionControl,
    Road,
    RoadMap,
)
from tripbench.models.scenario import Scenario, Trip
from tripbench.stores.objects import ObjectStore

logger = logging.getLogger(__name__)

RANDOM_SCENARIO = "random"
HOME_TO_WORK_SCENARIO = "home_to_work"
WEEKDAY_SCENARIO = "weekday"
DYNAMIC_SCENARIOS = frozenset({RANDOM_SCENARIO, HOME_TO_WORK_SCENARIO})

DEFAULT_TRIPS = 1_000

# Mode mix for generated trips; order matches the probabilities
_MODES = (TripMode.WALK, TripMode.BIKE, TripMode.TRANSIT, TripMode.DRIVE)
_MODE_WEIGHTS = (0.1, 0.15, 0.15, 0.6)

_SECONDS_PER_DAY = 24 * 3600


class ScenarioGenerator:
    """Reproducible synthetic scenarios. Same map and seed -> same trips."""

    @staticmethod
    def _endpoints(road_map: RoadMap) -> list[str]:
        ids = sorted(
            i.id for i in road_map.intersections if i.control != IntersectionControl.CLOSED
        )
        if len(ids) < 2:
            msg = f"Map {road_map.name} needs at least two open intersections"
            raise ValueError(msg)
        return ids

    @staticmethod
    def _pick_pair(rng: np.random.Generator, ids: list[str]) -> tuple[str, str]:
        origin, destination = rng.choice(len(ids), size=2, replace=False)
        return ids[int(origin)], ids[int(destination)]

    @staticmethod
    def _pick_mode(rng: np.random.Generator) -> TripMode:
        return _MODES[int(rng.choice(len(_MODES), p=_MODE_WEIGHTS))]

    @classmethod
    def random(cls, road_map: RoadMap, n_trips: int, rng_seed: int) -> Scenario:
        """Trips between uniformly chosen intersections, spread over one day."""
        if n_trips < 0:
            msg = f"n_trips must be >= 0, got {n_trips}"
            raise ValueError(msg)
        rng = np.random.default_rng(rng_seed)
        ids = cls._endpoints(road_map)

        trips = []
        for _ in range(n_trips):
            origin, destination = cls._pick_pair(rng, ids)
            trips.append(
                Trip(
                    mode=cls._pick_mode(rng),
                    departure=Duration.seconds(float(rng.integers(0, _SECONDS_PER_DAY))),
                    origin=origin,
                    destination=destination,
                )
            )
        trips.sort(key=lambda t: t.departure)
        logger.debug("Generated %d random trips on %s", len(trips), road_map.name)
        return Scenario(map_name=road_map.name, scenario_name=RANDOM_SCENARIO, trips=tuple(trips))

    @classmethod
    def home_to_work(cls, road_map: RoadMap, n_people: int, rng_seed: int) -> Scenario:
        """Each person commutes to work in the morning and back in the evening."""
        if n_people < 0:
            msg = f"n_people must be >= 0, got {n_people}"
            raise ValueError(msg)
        rng = np.random.default_rng(rng_seed)
        ids = cls._endpoints(road_map)

        trips = []
        for _ in range(n_people):
            home, work = cls._pick_pair(rng, ids)
            mode = cls._pick_mode(rng)
            morning = float(np.clip(rng.normal(8 * 3600, 3600), 5 * 3600, 11 * 3600))
            evening = float(np.clip(rng.normal(17 * 3600, 3600), 14 * 3600, 21 * 3600))
            trips.append(
                Trip(
                    mode=mode,
                    departure=Duration.seconds(round(morning)),
                    origin=home,
                    destination=work,
                )
            )
            trips.append(
                Trip(
                    mode=mode,
                    departure=Duration.seconds(round(evening)),
                    origin=work,
                    destination=home,
                )
            )
        trips.sort(key=lambda t: t.departure)
        logger.debug("Generated %d commute trips on %s", len(trips), road_map.name)
        return Scenario(
            map_name=road_map.name, scenario_name=HOME_TO_WORK_SCENARIO, trips=tuple(trips)
        )


def build_grid_map(
    name: str,
    rows: int = 3,
    cols: int = 3,
    block_m: float = 200.0,
    bus_headway: Duration | None = None,
) -> RoadMap:
    """A ``rows`` x ``cols`` grid of two-lane streets.

    Interior intersections are signalized, the rest have stop signs. Bus
    route "43" runs along the middle row.
    """
    if rows < 2 or cols < 2:
        msg = f"Grid must be at least 2x2, got {rows}x{cols}"
        raise ValueError(msg)

    def node(r: int, c: int) -> str:
        return f"i{r}_{c}"

    intersections = []
    for r in range(rows):
        for c in range(cols):
            interior = 0 < r < rows - 1 and 0 < c < cols - 1
            control = IntersectionControl.SIGNAL if interior else IntersectionControl.STOP_SIGN
            intersections.append(Intersection(id=node(r, c), control=control))

    roads = []
    for r in range(rows):
        for c in range(cols):
            if c + 1 < cols:
                roads.append(
                    Road(
                        id=f"h{r}_{c}",
                        src=node(r, c),
                        dst=node(r, c + 1),
                        length_m=block_m,
                        lanes=2,
                    )
                )
            if r + 1 < rows:
                roads.append(
                    Road(
                        id=f"v{r}_{c}",
                        src=node(r, c),
                        dst=node(r + 1, c),
                        length_m=block_m,
                        lanes=2,
                    )
                )

    middle = rows // 2
    route = BusRoute(
        name="43",
        stops=tuple(node(middle, c) for c in range(cols)),
        headway=bus_headway or Duration.minutes(10),
    )
    return RoadMap(
        name=name,
        intersections=tuple(intersections),
        roads=tuple(roads),
        bus_routes=(route,),
    )


def scenario_for_gameplay(
    mode: GameplayMode,
    road_map: RoadMap,
    scenario_store: ObjectStore,
    rng_seed: int,
) -> Scenario | None:
    """The scenario a gameplay mode is played on, or None for freeform.

    PLAY_SCENARIO generates dynamic scenarios ("random", "home_to_work") and
    loads every other name from the store, then applies its modifiers. All
    challenge modes play the map's "weekday" scenario.

    Raises:
        ScenarioNotFoundError: If a stored scenario is missing.
    """
    match mode.kind:
        case GameplayKind.FREEFORM:
            return None
        case GameplayKind.PLAY_SCENARIO:
            name = mode.scenario_name
            if name == RANDOM_SCENARIO:
                base = ScenarioGenerator.random(road_map, DEFAULT_TRIPS, rng_seed)
            elif name == HOME_TO_WORK_SCENARIO:
                base = ScenarioGenerator.home_to_work(road_map, DEFAULT_TRIPS // 2, rng_seed)
            else:
                base = scenario_store.load_scenario(road_map.name, name)
            return apply_modifiers(base, mode.modifiers, rng_seed, scenario_store)
        case _:
            return scenario_store.load_scenario(road_map.name, WEEKDAY_SCENARIO)
