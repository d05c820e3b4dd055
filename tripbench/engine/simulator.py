"""Reference traffic simulator behind the ``Simulator`` contract.

The runner only relies on the Protocol below: a state machine advanced in
fixed increments that can report analytics and export its full state. The
``TripSimulator`` implementation is a small event-driven model:

- a trip departs at its scheduled time and follows the shortest path;
- each road takes free-flow time, stretched by how many cars are on it;
- each intersection between two roads adds control delay (half the
  signal cycle or a fixed stop-sign delay, plus a little seeded jitter);
- transit riders first wait for the next bus on their route.

All times are quantized Durations and the only randomness comes from the
injected numpy Generator, so equal inputs give identical analytics, and a
simulator rebuilt from ``to_state()`` continues exactly where it stopped.
"""

import heapq
import json
import logging
from enum import StrEnum
from typing import Protocol

import numpy as np
from pydantic import Field

from tripbench.models.analytics import Analytics, TripOutcome
from tripbench.models.common import TripBenchBase, TripMode
from tripbench.models.duration import Duration
from tripbench.models.road_map import IntersectionControl, Road, RoadMap, Router
from tripbench.models.scenario import Trip

logger = logging.getLogger(__name__)

LANE_CAPACITY = 20
STOP_SIGN_DELAY = Duration.seconds(5.0)
MAX_JITTER = Duration.seconds(2.0)
_CONGESTED_MODES = frozenset({TripMode.DRIVE, TripMode.TRANSIT})


class EventKind(StrEnum):
    DEPART = "DEPART"
    ENTER_ROAD = "ENTER_ROAD"
    EXIT_ROAD = "EXIT_ROAD"


# ---------------------------------------------------------------------------
# Resumable state
# ---------------------------------------------------------------------------


class PendingEvent(TripBenchBase, frozen=True):
    time: int = Field(..., description="Event time in ticks.")
    seq: int = Field(..., ge=0)
    kind: EventKind
    trip_index: int = Field(..., ge=0)
    leg: int = Field(default=0, ge=0)


class SimulatorState(TripBenchBase, frozen=True):
    """Everything needed to resume a TripSimulator, given the same map and trips."""

    now: Duration
    next_seq: int = Field(..., ge=0)
    events: tuple[PendingEvent, ...]
    occupancy: dict[str, int] = Field(default_factory=dict)
    paths: dict[int, tuple[str, ...]] = Field(default_factory=dict)
    finished: dict[int, Duration] = Field(default_factory=dict)
    cancelled: tuple[int, ...] = Field(default_factory=tuple)
    bus_waits: dict[str, tuple[Duration, ...]] = Field(default_factory=dict)
    rng_state: str = Field(..., description="JSON of the PCG64 bit generator state.")


# ---------------------------------------------------------------------------
# Collaborator contract
# ---------------------------------------------------------------------------


class Simulator(Protocol):
    """What the runner needs from a simulator."""

    @property
    def now(self) -> Duration: ...

    def step(self, dt: Duration) -> None: ...

    def has_pending_work(self) -> bool: ...

    def get_analytics(self, map_name: str, scenario_name: str) -> Analytics: ...

    def to_state(self) -> SimulatorState: ...


# ---------------------------------------------------------------------------
# Reference implementation
# ---------------------------------------------------------------------------


class TripSimulator:
    """Event-driven trip simulator. Not thread-safe; one instance per run."""

    def __init__(
        self,
        road_map: RoadMap,
        trips: tuple[Trip, ...] | list[Trip],
        rng: np.random.Generator,
    ) -> None:
        self._map = road_map
        self._trips = tuple(trips)
        self._rng = rng
        self._router = Router(road_map)
        self._roads = {r.id: r for r in road_map.roads}
        self._intersections = {i.id: i for i in road_map.intersections}

        self._now = 0
        self._seq = 0
        self._events: list[tuple[int, int, str, int, int]] = []
        self._occupancy: dict[str, int] = {}
        self._paths: dict[int, tuple[str, ...]] = {}
        self._nodes: dict[int, list[str]] = {}
        self._finished: dict[int, int] = {}
        self._cancelled: set[int] = set()
        self._bus_waits: dict[str, list[int]] = {}

        for idx, trip in enumerate(self._trips):
            self._push(trip.departure.to_ticks(), EventKind.DEPART, idx)

    @classmethod
    def from_state(
        cls,
        road_map: RoadMap,
        trips: tuple[Trip, ...] | list[Trip],
        state: SimulatorState,
    ) -> "TripSimulator":
        """Rebuild a simulator from a checkpoint taken on the same map and trips."""
        rng = np.random.Generator(np.random.PCG64())
        rng.bit_generator.state = json.loads(state.rng_state)
        sim = cls.__new__(cls)
        sim._map = road_map
        sim._trips = tuple(trips)
        sim._rng = rng
        sim._router = Router(road_map)
        sim._roads = {r.id: r for r in road_map.roads}
        sim._intersections = {i.id: i for i in road_map.intersections}

        sim._now = state.now.to_ticks()
        sim._seq = state.next_seq
        sim._events = [(e.time, e.seq, e.kind.value, e.trip_index, e.leg) for e in state.events]
        heapq.heapify(sim._events)
        sim._occupancy = dict(state.occupancy)
        sim._paths = {idx: tuple(path) for idx, path in state.paths.items()}
        sim._nodes = {idx: sim._walk_nodes(idx, path) for idx, path in sim._paths.items()}
        sim._finished = {idx: d.to_ticks() for idx, d in state.finished.items()}
        sim._cancelled = set(state.cancelled)
        sim._bus_waits = {
            route: [w.to_ticks() for w in waits] for route, waits in state.bus_waits.items()
        }
        return sim

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    @property
    def now(self) -> Duration:
        return Duration.from_ticks(self._now)

    def has_pending_work(self) -> bool:
        return bool(self._events)

    def step(self, dt: Duration) -> None:
        """Process every event up to and including ``now + dt``."""
        if dt <= Duration.ZERO:
            msg = f"Step must be positive, got {dt}"
            raise ValueError(msg)
        target = self._now + dt.to_ticks()
        while self._events and self._events[0][0] <= target:
            time, _, kind, trip_idx, leg = heapq.heappop(self._events)
            self._now = time
            self._handle(EventKind(kind), trip_idx, leg)
        self._now = target

    def get_analytics(self, map_name: str, scenario_name: str) -> Analytics:
        outcomes = []
        for idx, trip in enumerate(self._trips):
            if idx in self._cancelled:
                continue
            finished = self._finished.get(idx)
            outcomes.append(
                TripOutcome(
                    trip_index=idx,
                    mode=trip.mode,
                    departure=trip.departure,
                    duration=None if finished is None else Duration.from_ticks(finished),
                )
            )
        return Analytics(
            map_name=map_name,
            scenario_name=scenario_name,
            end_time=self.now,
            outcomes=tuple(outcomes),
            bus_waits={
                route: tuple(Duration.from_ticks(w) for w in waits)
                for route, waits in self._bus_waits.items()
            },
            cancelled_trips=len(self._cancelled),
        )

    def to_state(self) -> SimulatorState:
        return SimulatorState(
            now=self.now,
            next_seq=self._seq,
            events=tuple(
                PendingEvent(time=t, seq=s, kind=EventKind(k), trip_index=i, leg=leg)
                for t, s, k, i, leg in sorted(self._events)
            ),
            occupancy={road: n for road, n in sorted(self._occupancy.items()) if n},
            paths=dict(sorted(self._paths.items())),
            finished={i: Duration.from_ticks(t) for i, t in sorted(self._finished.items())},
            cancelled=tuple(sorted(self._cancelled)),
            bus_waits={
                route: tuple(Duration.from_ticks(w) for w in waits)
                for route, waits in sorted(self._bus_waits.items())
            },
            rng_state=json.dumps(self._rng.bit_generator.state, sort_keys=True),
        )

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------

    def _push(self, time: int, kind: EventKind, trip_idx: int, leg: int = 0) -> None:
        heapq.heappush(self._events, (time, self._seq, kind.value, trip_idx, leg))
        self._seq += 1

    def _handle(self, kind: EventKind, trip_idx: int, leg: int) -> None:
        match kind:
            case EventKind.DEPART:
                self._depart(trip_idx)
            case EventKind.ENTER_ROAD:
                self._enter_road(trip_idx, leg)
            case EventKind.EXIT_ROAD:
                self._exit_road(trip_idx, leg)

    def _depart(self, trip_idx: int) -> None:
        trip = self._trips[trip_idx]
        start = self._now
        if trip.mode == TripMode.TRANSIT:
            route = self._pick_route(trip)
            if route is None:
                self._cancel(trip_idx, "no bus route serves it")
                return
            headway = route.headway.to_ticks()
            wait = (-self._now) % headway
            self._bus_waits.setdefault(route.name, []).append(wait)
            start = self._now + wait

        path = self._router.path(trip.origin, trip.destination, trip.mode)
        if path is None:
            self._cancel(trip_idx, "no path")
            return
        self._paths[trip_idx] = tuple(r.id for r in path)
        self._nodes[trip_idx] = self._walk_nodes(trip_idx, self._paths[trip_idx])
        if not path:
            self._finish(trip_idx)
            return
        self._push(start, EventKind.ENTER_ROAD, trip_idx, 0)

    def _enter_road(self, trip_idx: int, leg: int) -> None:
        trip = self._trips[trip_idx]
        road = self._roads[self._paths[trip_idx][leg]]
        if trip.mode == TripMode.DRIVE:
            self._occupancy[road.id] = self._occupancy.get(road.id, 0) + 1
        self._push(
            self._now + self._traversal_time(road, trip.mode).to_ticks(),
            EventKind.EXIT_ROAD,
            trip_idx,
            leg,
        )

    def _exit_road(self, trip_idx: int, leg: int) -> None:
        trip = self._trips[trip_idx]
        path = self._paths[trip_idx]
        if trip.mode == TripMode.DRIVE:
            self._occupancy[path[leg]] -= 1
        if leg + 1 == len(path):
            self._finish(trip_idx)
            return
        node = self._nodes[trip_idx][leg + 1]
        delay = self._control_delay(node, trip.mode)
        self._push(self._now + delay.to_ticks(), EventKind.ENTER_ROAD, trip_idx, leg + 1)

    def _finish(self, trip_idx: int) -> None:
        departure = self._trips[trip_idx].departure.to_ticks()
        self._finished[trip_idx] = self._now - departure

    def _cancel(self, trip_idx: int, reason: str) -> None:
        trip = self._trips[trip_idx]
        logger.debug(
            "Cancelling trip %d (%s %s -> %s): %s",
            trip_idx, trip.mode, trip.origin, trip.destination, reason,
        )
        self._cancelled.add(trip_idx)

    # ------------------------------------------------------------------
    # Model
    # ------------------------------------------------------------------

    def _pick_route(self, trip: Trip):
        if trip.route is not None:
            route = self._map.route(trip.route)
            if route is not None and route.serves(trip.origin, trip.destination):
                return route
        serving = self._map.routes_serving(trip.origin, trip.destination)
        return serving[0] if serving else None

    def _traversal_time(self, road: Road, mode: TripMode) -> Duration:
        speed = min(mode.cruising_speed_mps, road.speed_limit_mps)
        free_flow = Duration.seconds(road.length_m / speed)
        if mode not in _CONGESTED_MODES:
            return free_flow
        load = self._occupancy.get(road.id, 0) / (road.lanes * LANE_CAPACITY)
        return free_flow * (1.0 + load)

    def _control_delay(self, intersection_id: str, mode: TripMode) -> Duration:
        intersection = self._intersections[intersection_id]
        match intersection.control:
            case IntersectionControl.SIGNAL:
                base = intersection.cycle_length * 0.5
            case IntersectionControl.STOP_SIGN:
                if mode == TripMode.WALK:
                    return Duration.ZERO
                base = STOP_SIGN_DELAY
            case _:
                return Duration.ZERO
        return base + MAX_JITTER * float(self._rng.random())

    def _walk_nodes(self, trip_idx: int, path: tuple[str, ...]) -> list[str]:
        """Intersections visited: origin, then the far end of each road."""
        nodes = [self._trips[trip_idx].origin]
        for road_id in path:
            nodes.append(self._roads[road_id].other_end(nodes[-1]))
        return nodes
