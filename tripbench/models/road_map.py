"""Road map collaborator: intersections, roads, bus routes, edits and routing.

The pipeline treats a map as an opaque, named handle. It only needs to look
up paths for trips and to apply or validate an edit set, so the model here
is small: a graph of intersections joined by roads, plus the
bus routes that serve some of those intersections.
"""

import heapq
from enum import StrEnum

from pydantic import Field, model_validator

from tripbench.errors import InvalidEditError
from tripbench.models.common import TripBenchBase, TripMode
from tripbench.models.duration import Duration
from tripbench.models.edits import (
    ChangeLanes,
    ChangeRouteSchedule,
    ChangeSignalTiming,
    ChangeSpeedLimit,
    ChangeStopSign,
    CloseIntersection,
    MapEdits,
)


class IntersectionControl(StrEnum):
    SIGNAL = "SIGNAL"
    STOP_SIGN = "STOP_SIGN"
    UNCONTROLLED = "UNCONTROLLED"
    CLOSED = "CLOSED"


class Intersection(TripBenchBase, frozen=True):
    id: str = Field(..., min_length=1)
    control: IntersectionControl = IntersectionControl.UNCONTROLLED
    cycle_length: Duration = Field(
        default_factory=lambda: Duration.seconds(60.0),
        description="Full signal cycle; only used when control is SIGNAL.",
    )


class Road(TripBenchBase, frozen=True):
    """A two-way road between two intersections."""

    id: str = Field(..., min_length=1)
    src: str = Field(..., min_length=1)
    dst: str = Field(..., min_length=1)
    length_m: float = Field(..., gt=0.0)
    lanes: int = Field(default=1, ge=1)
    speed_limit_mps: float = Field(default=13.4, gt=0.0)

    def other_end(self, intersection_id: str) -> str:
        return self.dst if intersection_id == self.src else self.src


class BusRoute(TripBenchBase, frozen=True):
    name: str = Field(..., min_length=1)
    stops: tuple[str, ...] = Field(..., min_length=2)
    headway: Duration = Field(default_factory=lambda: Duration.minutes(15))

    def serves(self, origin: str, destination: str) -> bool:
        return origin in self.stops and destination in self.stops


class RoadMap(TripBenchBase, frozen=True):
    """Immutable map snapshot. ``apply_edits`` returns a new RoadMap."""

    name: str = Field(..., min_length=1)
    intersections: tuple[Intersection, ...]
    roads: tuple[Road, ...]
    bus_routes: tuple[BusRoute, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _check_references(self) -> "RoadMap":
        ids = {i.id for i in self.intersections}
        if len(ids) != len(self.intersections):
            msg = f"Map {self.name}: duplicate intersection ids"
            raise ValueError(msg)
        road_ids = {r.id for r in self.roads}
        if len(road_ids) != len(self.roads):
            msg = f"Map {self.name}: duplicate road ids"
            raise ValueError(msg)
        for road in self.roads:
            if road.src not in ids or road.dst not in ids:
                msg = f"Map {self.name}: road {road.id} references an unknown intersection"
                raise ValueError(msg)
        for route in self.bus_routes:
            unknown = [s for s in route.stops if s not in ids]
            if unknown:
                msg = f"Map {self.name}: route {route.name} stops at unknown {unknown}"
                raise ValueError(msg)
        return self

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def intersection(self, intersection_id: str) -> Intersection:
        for i in self.intersections:
            if i.id == intersection_id:
                return i
        msg = f"Map {self.name} has no intersection {intersection_id}"
        raise KeyError(msg)

    def route(self, name: str) -> BusRoute | None:
        for r in self.bus_routes:
            if r.name == name:
                return r
        return None

    def routes_serving(self, origin: str, destination: str) -> list[BusRoute]:
        """Routes stopping at both ends, ordered by name."""
        return sorted(
            (r for r in self.bus_routes if r.serves(origin, destination)),
            key=lambda r: r.name,
        )

    def shortest_path(
        self, origin: str, destination: str, mode: TripMode = TripMode.DRIVE
    ) -> list[Road] | None:
        return Router(self).path(origin, destination, mode)

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def apply_edits(self, edits: MapEdits) -> "RoadMap":
        """Return a copy of this map with every command of ``edits`` applied.

        Raises:
            InvalidEditError: If the edits target another map or reference
                an id this map does not have.
        """
        if edits.map_name != self.name:
            msg = f"Edits {edits.edits_name} are for {edits.map_name}, not {self.name}"
            raise InvalidEditError(msg)

        intersections = {i.id: i for i in self.intersections}
        roads = {r.id: r for r in self.roads}
        routes = {r.name: r for r in self.bus_routes}

        def _need(table: dict, key: str, what: str) -> None:
            if key not in table:
                msg = f"Edits {edits.edits_name}: {self.name} has no {what} {key}"
                raise InvalidEditError(msg)

        for cmd in edits.commands:
            match cmd:
                case ChangeLanes(road=road_id, lanes=lanes):
                    _need(roads, road_id, "road")
                    roads[road_id] = roads[road_id].model_copy(update={"lanes": lanes})
                case ChangeSpeedLimit(road=road_id, speed_mps=speed):
                    _need(roads, road_id, "road")
                    roads[road_id] = roads[road_id].model_copy(
                        update={"speed_limit_mps": speed}
                    )
                case ChangeSignalTiming(intersection=i_id, cycle_length=cycle):
                    _need(intersections, i_id, "intersection")
                    intersections[i_id] = intersections[i_id].model_copy(
                        update={"control": IntersectionControl.SIGNAL, "cycle_length": cycle}
                    )
                case ChangeStopSign(intersection=i_id):
                    _need(intersections, i_id, "intersection")
                    intersections[i_id] = intersections[i_id].model_copy(
                        update={"control": IntersectionControl.STOP_SIGN}
                    )
                case CloseIntersection(intersection=i_id):
                    _need(intersections, i_id, "intersection")
                    intersections[i_id] = intersections[i_id].model_copy(
                        update={"control": IntersectionControl.CLOSED}
                    )
                case ChangeRouteSchedule(route=name, headway=headway):
                    _need(routes, name, "bus route")
                    routes[name] = routes[name].model_copy(update={"headway": headway})

        return self.model_copy(
            update={
                "intersections": tuple(intersections.values()),
                "roads": tuple(roads.values()),
                "bus_routes": tuple(routes.values()),
            }
        )


class Router:
    """Dijkstra over free-flow travel time. Ties break on intersection id."""

    def __init__(self, road_map: RoadMap) -> None:
        self._map = road_map
        self._closed = {
            i.id for i in road_map.intersections if i.control == IntersectionControl.CLOSED
        }
        self._adjacency: dict[str, list[Road]] = {i.id: [] for i in road_map.intersections}
        for road in road_map.roads:
            self._adjacency[road.src].append(road)
            self._adjacency[road.dst].append(road)

    def path(self, origin: str, destination: str, mode: TripMode) -> list[Road] | None:
        """Roads from ``origin`` to ``destination`` in order, or None if unreachable."""
        if origin not in self._adjacency or destination not in self._adjacency:
            return None
        if origin in self._closed or destination in self._closed:
            return None
        if origin == destination:
            return []

        speed = mode.cruising_speed_mps
        best: dict[str, float] = {origin: 0.0}
        parents: dict[str, tuple[str, Road]] = {}
        open_set: list[tuple[float, str]] = [(0.0, origin)]
        done: set[str] = set()

        while open_set:
            cost, current = heapq.heappop(open_set)
            if current == destination:
                return self._reconstruct(parents, origin, destination)
            if current in done:
                continue
            done.add(current)

            for road in self._adjacency[current]:
                neighbor = road.other_end(current)
                if neighbor in done or neighbor in self._closed:
                    continue
                tentative = cost + road.length_m / min(speed, road.speed_limit_mps)
                if neighbor in best and tentative >= best[neighbor]:
                    continue
                best[neighbor] = tentative
                parents[neighbor] = (current, road)
                heapq.heappush(open_set, (tentative, neighbor))
        return None

    @staticmethod
    def _reconstruct(
        parents: dict[str, tuple[str, Road]], origin: str, destination: str
    ) -> list[Road]:
        path: list[Road] = []
        current = destination
        while current != origin:
            current, road = parents[current]
            path.append(road)
        path.reverse()
        return path
