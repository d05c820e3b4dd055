"""Named failure states surfaced by the scenario/evaluation pipeline.

Each error also derives from the builtin exception a caller would naturally
catch (ValueError for bad construction input, KeyError/LookupError for
missing records), so existing ``except ValueError`` call sites keep working.
"""


class TripBenchError(Exception):
    """Base class for all tripbench errors."""


class InvalidDurationError(TripBenchError, ValueError):
    """A duration was constructed from a non-finite value."""


class InvalidEditError(TripBenchError, ValueError):
    """A map edit references a road, intersection or route the map lacks."""


class ScenarioNotFoundError(TripBenchError, KeyError):
    """No scenario with the requested name exists for the map."""

    def __init__(self, map_name: str, scenario_name: str) -> None:
        super().__init__(f"No scenario {scenario_name!r} for map {map_name!r}")
        self.map_name = map_name
        self.scenario_name = scenario_name

    def __str__(self) -> str:
        return self.args[0]


class MapNotFoundError(TripBenchError, KeyError):
    """No map with the requested name has been stored."""

    def __init__(self, map_name: str) -> None:
        super().__init__(f"No map {map_name!r}")
        self.map_name = map_name

    def __str__(self) -> str:
        return self.args[0]


class EditsNotFoundError(TripBenchError, KeyError):
    """No saved edit set with the requested name exists for the map."""

    def __init__(self, map_name: str, edits_name: str) -> None:
        super().__init__(f"No edits {edits_name!r} for map {map_name!r}")
        self.map_name = map_name
        self.edits_name = edits_name

    def __str__(self) -> str:
        return self.args[0]


class BaselineNotComputedError(TripBenchError, LookupError):
    """The prebaked baseline for a scenario has not been computed yet."""

    def __init__(self, map_name: str, scenario_name: str) -> None:
        super().__init__(
            f"Baseline not yet computed for {map_name}/{scenario_name}; run the prebake pipeline"
        )
        self.map_name = map_name
        self.scenario_name = scenario_name


class NoObjectiveError(TripBenchError, ValueError):
    """The gameplay mode has no scoring objective."""


class MetricUnavailableError(TripBenchError, ValueError):
    """The objective metric cannot be computed from an analytics record."""
