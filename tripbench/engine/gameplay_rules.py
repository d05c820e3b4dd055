"""Per-kind gameplay behaviour as dispatch tables keyed by GameplayKind.

Three questions are answered for every gameplay kind:
- which edit categories it forbids (``allows``);
- which metric scores it, and in which direction (``objective_for``);
- how much the metric must improve to pass (``Objective.threshold``).

Adding a kind means adding a row to each table; nothing dispatches on
class hierarchy.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from tripbench.errors import NoObjectiveError
from tripbench.models.analytics import Analytics
from tripbench.models.common import TripMode
from tripbench.models.duration import Duration
from tripbench.models.edits import EditCategory, MapEdits
from tripbench.models.gameplay import GameplayKind, GameplayMode

# ---------------------------------------------------------------------------
# Edit restrictions
# ---------------------------------------------------------------------------

_FORBIDDEN_EDITS: dict[GameplayKind, frozenset[EditCategory]] = {
    GameplayKind.FREEFORM: frozenset(),
    GameplayKind.PLAY_SCENARIO: frozenset(),
    GameplayKind.FIX_TRAFFIC_SIGNALS: frozenset({EditCategory.LANES, EditCategory.STOP_SIGN}),
    GameplayKind.FIX_TRAFFIC_SIGNALS_TUTORIAL: frozenset(
        {EditCategory.LANES, EditCategory.STOP_SIGN}
    ),
    GameplayKind.OPTIMIZE_BUS: frozenset(),
    GameplayKind.CREATE_GRIDLOCK: frozenset({EditCategory.BUS_ROUTE}),
    GameplayKind.FASTER_TRIPS: frozenset({EditCategory.BUS_ROUTE}),
}


def allows(mode: GameplayMode, edits: MapEdits) -> bool:
    """Whether every command in ``edits`` is permitted under ``mode``."""
    return not (edits.categories() & _FORBIDDEN_EDITS[mode.kind])


# ---------------------------------------------------------------------------
# Objectives
# ---------------------------------------------------------------------------


class Direction(StrEnum):
    """Which way the metric has to move for the player to make progress."""

    DECREASE = "DECREASE"
    INCREASE = "INCREASE"


@dataclass(frozen=True)
class Objective:
    metric: str
    direction: Direction
    threshold: Duration
    measure: Callable[[Analytics], Duration | None]

    def margin(self, baseline_value: Duration, attempt_value: Duration) -> Duration:
        """Signed improvement: positive means the attempt moved the right way."""
        if self.direction == Direction.DECREASE:
            return baseline_value - attempt_value
        return attempt_value - baseline_value


def _mean_trip_time(analytics: Analytics) -> Duration | None:
    return analytics.mean_trip_time()


def _fix_signals(mode: GameplayMode) -> Objective:
    return Objective(
        metric="mean trip time",
        direction=Direction.DECREASE,
        threshold=Duration.seconds(30.0),
        measure=_mean_trip_time,
    )


def _fix_signals_tutorial(mode: GameplayMode) -> Objective:
    return Objective(
        metric="mean trip time",
        direction=Direction.DECREASE,
        threshold=Duration.seconds(10.0),
        measure=_mean_trip_time,
    )


def _optimize_bus(mode: GameplayMode) -> Objective:
    route = mode.route
    return Objective(
        metric=f"mean wait for route {route}",
        direction=Direction.DECREASE,
        threshold=Duration.seconds(30.0),
        measure=lambda analytics: analytics.mean_bus_wait(route),
    )


def _create_gridlock(mode: GameplayMode) -> Objective:
    return Objective(
        metric="mean trip time",
        direction=Direction.INCREASE,
        threshold=Duration.minutes(10),
        measure=_mean_trip_time,
    )


def _faster_trips(mode: GameplayMode) -> Objective:
    trip_mode = mode.mode
    threshold = Duration.minutes(5) if trip_mode == TripMode.DRIVE else Duration.minutes(1)
    return Objective(
        metric=f"50th percentile {trip_mode} trip time",
        direction=Direction.DECREASE,
        threshold=threshold,
        measure=lambda analytics: analytics.percentile_trip_time(50.0, trip_mode),
    )


_OBJECTIVES: dict[GameplayKind, Callable[[GameplayMode], Objective]] = {
    GameplayKind.FIX_TRAFFIC_SIGNALS: _fix_signals,
    GameplayKind.FIX_TRAFFIC_SIGNALS_TUTORIAL: _fix_signals_tutorial,
    GameplayKind.OPTIMIZE_BUS: _optimize_bus,
    GameplayKind.CREATE_GRIDLOCK: _create_gridlock,
    GameplayKind.FASTER_TRIPS: _faster_trips,
}


def has_objective(mode: GameplayMode) -> bool:
    return mode.kind in _OBJECTIVES


def objective_for(mode: GameplayMode) -> Objective:
    """The scoring objective of ``mode``.

    Raises:
        NoObjectiveError: For freeform and play-scenario modes.
    """
    builder = _OBJECTIVES.get(mode.kind)
    if builder is None:
        msg = f"{mode.kind} has no objective to evaluate"
        raise NoObjectiveError(msg)
    return builder(mode)
