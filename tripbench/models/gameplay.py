"""Gameplay models: GameplayKind, GameplayMode and Challenge catalog entries.

A GameplayMode is plain data: the enumerated ``kind`` plus whichever
parameters that kind needs. Behaviour (which edits it allows, how it is
scored, which scenario it plays) lives in the dispatch tables of
``tripbench.engine.gameplay_rules``, keyed by ``kind``.
"""

from enum import StrEnum

from pydantic import Field, model_validator

from tripbench.models.common import TripBenchBase, TripMode
from tripbench.models.scenario import ScenarioModifier


class GameplayKind(StrEnum):
    """Objective class of a gameplay mode."""

    FREEFORM = "FREEFORM"
    PLAY_SCENARIO = "PLAY_SCENARIO"
    FIX_TRAFFIC_SIGNALS = "FIX_TRAFFIC_SIGNALS"
    FIX_TRAFFIC_SIGNALS_TUTORIAL = "FIX_TRAFFIC_SIGNALS_TUTORIAL"
    OPTIMIZE_BUS = "OPTIMIZE_BUS"
    CREATE_GRIDLOCK = "CREATE_GRIDLOCK"
    FASTER_TRIPS = "FASTER_TRIPS"


# Parameters each kind must carry
_REQUIRED_PARAMS: dict[GameplayKind, tuple[str, ...]] = {
    GameplayKind.FREEFORM: ("map_name",),
    GameplayKind.PLAY_SCENARIO: ("map_name", "scenario_name"),
    GameplayKind.FIX_TRAFFIC_SIGNALS: (),
    GameplayKind.FIX_TRAFFIC_SIGNALS_TUTORIAL: ("tutorial_stage",),
    GameplayKind.OPTIMIZE_BUS: ("route",),
    GameplayKind.CREATE_GRIDLOCK: (),
    GameplayKind.FASTER_TRIPS: ("mode",),
}


class GameplayMode(TripBenchBase, frozen=True):
    """The ruleset a challenge attempt is validated and scored under."""

    kind: GameplayKind
    map_name: str | None = None
    scenario_name: str | None = None
    modifiers: tuple[ScenarioModifier, ...] = Field(default_factory=tuple)
    route: str | None = None
    mode: TripMode | None = None
    tutorial_stage: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _has_required_params(self) -> "GameplayMode":
        missing = [p for p in _REQUIRED_PARAMS[self.kind] if getattr(self, p) is None]
        if missing:
            msg = f"{self.kind} requires {', '.join(missing)}"
            raise ValueError(msg)
        if self.modifiers and self.kind != GameplayKind.PLAY_SCENARIO:
            msg = f"{self.kind} does not take scenario modifiers"
            raise ValueError(msg)
        return self

    # --- Factories, one per kind ---

    @classmethod
    def freeform(cls, map_name: str) -> "GameplayMode":
        return cls(kind=GameplayKind.FREEFORM, map_name=map_name)

    @classmethod
    def play_scenario(
        cls,
        map_name: str,
        scenario_name: str,
        modifiers: list[ScenarioModifier] | tuple[ScenarioModifier, ...] = (),
    ) -> "GameplayMode":
        return cls(
            kind=GameplayKind.PLAY_SCENARIO,
            map_name=map_name,
            scenario_name=scenario_name,
            modifiers=tuple(modifiers),
        )

    @classmethod
    def fix_traffic_signals(cls) -> "GameplayMode":
        return cls(kind=GameplayKind.FIX_TRAFFIC_SIGNALS)

    @classmethod
    def fix_traffic_signals_tutorial(cls, stage: int) -> "GameplayMode":
        return cls(kind=GameplayKind.FIX_TRAFFIC_SIGNALS_TUTORIAL, tutorial_stage=stage)

    @classmethod
    def optimize_bus(cls, route: str) -> "GameplayMode":
        return cls(kind=GameplayKind.OPTIMIZE_BUS, route=route)

    @classmethod
    def create_gridlock(cls) -> "GameplayMode":
        return cls(kind=GameplayKind.CREATE_GRIDLOCK)

    @classmethod
    def faster_trips(cls, mode: TripMode) -> "GameplayMode":
        return cls(kind=GameplayKind.FASTER_TRIPS, mode=mode)


class Challenge(TripBenchBase, frozen=True):
    """Immutable catalog entry: an objective on one map."""

    title: str = Field(..., min_length=1)
    description: tuple[str, ...] = Field(default_factory=tuple)
    map_name: str = Field(..., min_length=1)
    alias: str = Field(..., min_length=1)
    gameplay: GameplayMode
