"""Scenario models: Trip, Scenario and the ScenarioModifier variants."""

from typing import Annotated, Any, Literal, Union

from pydantic import Field, TypeAdapter, field_serializer, field_validator, model_validator

from tripbench.models.common import TripBenchBase, TripMode
from tripbench.models.duration import DAY, Duration

SAVED_PREFIX = "saved_"


# ---------------------------------------------------------------------------
# Trips and scenarios
# ---------------------------------------------------------------------------


class Trip(TripBenchBase, frozen=True):
    """One trip: leave ``origin`` at ``departure`` (from day start) for ``destination``."""

    mode: TripMode
    departure: Duration
    origin: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
    route: str | None = Field(
        default=None,
        description="Bus route to ride; only meaningful for TRANSIT trips.",
    )


class Scenario(TripBenchBase, frozen=True):
    """An ordered list of trips for one map.

    Identity is ``(map_name, scenario_name)``. Modifiers produce new Scenario
    objects with the same identity; only ``renamed``/``saved_copy`` change it.
    """

    map_name: str = Field(..., min_length=1)
    scenario_name: str = Field(..., min_length=1)
    trips: tuple[Trip, ...] = Field(default_factory=tuple)

    @property
    def key(self) -> tuple[str, str]:
        return (self.map_name, self.scenario_name)

    def with_trips(self, trips: list[Trip] | tuple[Trip, ...]) -> "Scenario":
        """Copy with the same identity and new content."""
        return self.model_copy(update={"trips": tuple(trips)})

    def renamed(self, scenario_name: str) -> "Scenario":
        return Scenario(map_name=self.map_name, scenario_name=scenario_name, trips=self.trips)

    def saved_copy(self) -> "Scenario":
        """Rename so that saving can't clobber a canonical (prebaked) scenario."""
        return self.renamed(f"{SAVED_PREFIX}{self.scenario_name}")

    def end_of_day(self) -> Duration:
        """At least 24h, extended to the last departure for multi-day scenarios."""
        last = max((t.departure for t in self.trips), default=Duration.ZERO)
        return max(DAY, last)


# ---------------------------------------------------------------------------
# Modifier variants (tagged union)
# ---------------------------------------------------------------------------


class ChangeMode(TripBenchBase, frozen=True):
    """Reassign ``pct_ppl`` percent of matching trips to ``to_mode`` (None cancels them)."""

    type: Literal["CHANGE_MODE"] = "CHANGE_MODE"
    from_modes: frozenset[TripMode]
    to_mode: TripMode | None = None
    pct_ppl: int = Field(..., ge=1, le=100)
    departure_filter: tuple[Duration, Duration]

    @model_validator(mode="before")
    @classmethod
    def _drop_target_from_sources(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        to_mode = data.get("to_mode")
        modes = data.get("from_modes")
        if to_mode is not None and isinstance(modes, (list, tuple, set, frozenset)):
            data = {**data, "from_modes": frozenset(m for m in modes if m != to_mode)}
        return data

    @model_validator(mode="after")
    def _check_modes_and_range(self) -> "ChangeMode":
        if not self.from_modes:
            msg = "You have to select at least one mode to convert from"
            raise ValueError(msg)
        start, end = self.departure_filter
        if start >= end:
            msg = f"Departure range is backwards: [{start}, {end})"
            raise ValueError(msg)
        return self

    @field_serializer("from_modes")
    def _serialize_from_modes(self, modes: frozenset[TripMode]) -> list[str]:
        return sorted(m.value for m in modes)

    def matches(self, trip: Trip) -> bool:
        start, end = self.departure_filter
        return trip.mode in self.from_modes and start <= trip.departure < end

    def describe(self) -> str:
        modes = ", ".join(sorted(m.ongoing_verb for m in self.from_modes))
        target = "cancel the trip" if self.to_mode is None else self.to_mode.ongoing_verb
        start, end = self.departure_filter
        return (
            f"Change {self.pct_ppl}% of trips {modes} and leaving between "
            f"{start} and {end} to {target}"
        )


class RepeatDays(TripBenchBase, frozen=True):
    """Repeat the whole schedule ``n`` days in a row."""

    type: Literal["REPEAT_DAYS"] = "REPEAT_DAYS"
    n: int = Field(..., ge=2)

    def describe(self) -> str:
        return f"Repeat the entire day {self.n} times"


class AddExtraTrips(TripBenchBase, frozen=True):
    """Append every trip of another scenario for the same map."""

    type: Literal["ADD_EXTRA_TRIPS"] = "ADD_EXTRA_TRIPS"
    source_scenario_name: str = Field(..., min_length=1)

    @field_validator("source_scenario_name")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            msg = "source_scenario_name must not be blank"
            raise ValueError(msg)
        return value

    def describe(self) -> str:
        return f"Add extra trips from {self.source_scenario_name}"


ScenarioModifier = Annotated[
    Union[ChangeMode, RepeatDays, AddExtraTrips],
    Field(discriminator="type"),
]

_MODIFIER_LIST = TypeAdapter(list[ScenarioModifier])


def modifiers_to_json(modifiers: list[ScenarioModifier]) -> str:
    """Terse JSON for a modifier list, suitable for a command-line flag."""
    return _MODIFIER_LIST.dump_json(modifiers).decode("utf-8")


def modifiers_from_json(raw: str | bytes) -> list[ScenarioModifier]:
    return _MODIFIER_LIST.validate_json(raw)
