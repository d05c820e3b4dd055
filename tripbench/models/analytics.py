"""Analytics models: per-trip outcomes of one run, and challenge verdicts.

Analytics are produced once per simulation run and never mutated. The copy
persisted for a scenario name is the baseline ("prebaked") result that
attempts are scored against.
"""

from dataclasses import dataclass

import numpy as np
from pydantic import Field, field_validator

from tripbench.models.common import TripBenchBase, TripMode
from tripbench.models.duration import TICKS_PER_SECOND, Duration


class TripOutcome(TripBenchBase, frozen=True):
    """What happened to one trip of the scenario."""

    trip_index: int = Field(..., ge=0)
    mode: TripMode
    departure: Duration
    duration: Duration | None = Field(
        default=None,
        description="Door-to-door time; None while the trip is unfinished.",
    )

    @property
    def finished(self) -> bool:
        return self.duration is not None


@dataclass(frozen=True)
class ModeSummary:
    """Aggregate trip statistics for one mode."""

    finished: int
    unfinished: int
    mean: Duration | None
    p50: Duration | None
    p90: Duration | None


def _mean(values: list[Duration]) -> Duration | None:
    if not values:
        return None
    ticks = np.array([v.to_ticks() for v in values], dtype=np.int64)
    return Duration.seconds(float(ticks.mean()) / TICKS_PER_SECOND)


def _percentile(values: list[Duration], pct: float) -> Duration | None:
    if not values:
        return None
    ticks = np.array([v.to_ticks() for v in values], dtype=np.int64)
    # "lower" always returns an observed sample, so the result stays on the tick grid
    return Duration.from_ticks(int(np.percentile(ticks, pct, method="lower")))


class Analytics(TripBenchBase, frozen=True):
    """Aggregated outcome of one full simulation run."""

    map_name: str = Field(..., min_length=1)
    scenario_name: str = Field(..., min_length=1)
    end_time: Duration
    outcomes: tuple[TripOutcome, ...] = Field(default_factory=tuple)
    bus_waits: dict[str, tuple[Duration, ...]] = Field(
        default_factory=dict,
        description="Per-route passenger waiting times, in boarding order.",
    )
    cancelled_trips: int = Field(default=0, ge=0)

    @field_validator("bus_waits")
    @classmethod
    def _sorted_routes(
        cls, value: dict[str, tuple[Duration, ...]]
    ) -> dict[str, tuple[Duration, ...]]:
        return {route: value[route] for route in sorted(value)}

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def finished_trip_times(self, mode: TripMode | None = None) -> list[Duration]:
        return [
            o.duration
            for o in self.outcomes
            if o.duration is not None and (mode is None or o.mode == mode)
        ]

    def mean_trip_time(self, mode: TripMode | None = None) -> Duration | None:
        return _mean(self.finished_trip_times(mode))

    def percentile_trip_time(
        self, pct: float, mode: TripMode | None = None
    ) -> Duration | None:
        if not 0.0 <= pct <= 100.0:
            msg = f"Percentile must be in [0, 100], got {pct}"
            raise ValueError(msg)
        return _percentile(self.finished_trip_times(mode), pct)

    def mean_bus_wait(self, route: str) -> Duration | None:
        return _mean(list(self.bus_waits.get(route, ())))

    def summary(self) -> dict[TripMode, ModeSummary]:
        """Per-mode counts and trip time statistics, for modes that appear."""
        result: dict[TripMode, ModeSummary] = {}
        for mode in TripMode:
            outcomes = [o for o in self.outcomes if o.mode == mode]
            if not outcomes:
                continue
            times = self.finished_trip_times(mode)
            result[mode] = ModeSummary(
                finished=len(times),
                unfinished=len(outcomes) - len(times),
                mean=_mean(times),
                p50=_percentile(times, 50.0),
                p90=_percentile(times, 90.0),
            )
        return result


class Verdict(TripBenchBase, frozen=True):
    """Outcome of scoring an attempt against a baseline.

    ``margin`` is the signed improvement on the objective metric; the attempt
    passes iff ``margin >= threshold``.
    """

    passed: bool
    margin: Duration
    threshold: Duration
    metric: str
    baseline_value: Duration
    attempt_value: Duration
