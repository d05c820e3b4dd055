"""Map edit models: EditCmd variants and named MapEdits sets."""

from enum import StrEnum
from typing import Annotated, ClassVar, Literal, Union

from pydantic import AfterValidator, Field

from tripbench.models.common import TripBenchBase
from tripbench.models.duration import Duration


class EditCategory(StrEnum):
    """What part of the map an edit touches; gameplay modes allow or reject by category."""

    LANES = "LANES"
    SIGNAL = "SIGNAL"
    STOP_SIGN = "STOP_SIGN"
    BUS_ROUTE = "BUS_ROUTE"


def _positive(value: Duration) -> Duration:
    if value <= Duration.ZERO:
        msg = f"Duration must be positive, got {value}"
        raise ValueError(msg)
    return value


PositiveDuration = Annotated[Duration, AfterValidator(_positive)]


# ---------------------------------------------------------------------------
# Edit command variants (tagged union)
# ---------------------------------------------------------------------------


class ChangeLanes(TripBenchBase, frozen=True):
    """Add or remove lanes on a road."""

    category: ClassVar[EditCategory] = EditCategory.LANES
    type: Literal["CHANGE_LANES"] = "CHANGE_LANES"
    road: str = Field(..., min_length=1)
    lanes: int = Field(..., ge=1, le=8)


class ChangeSpeedLimit(TripBenchBase, frozen=True):
    category: ClassVar[EditCategory] = EditCategory.LANES
    type: Literal["CHANGE_SPEED_LIMIT"] = "CHANGE_SPEED_LIMIT"
    road: str = Field(..., min_length=1)
    speed_mps: float = Field(..., gt=0.0)


class ChangeSignalTiming(TripBenchBase, frozen=True):
    """Retime (or install) a traffic signal."""

    category: ClassVar[EditCategory] = EditCategory.SIGNAL
    type: Literal["CHANGE_SIGNAL_TIMING"] = "CHANGE_SIGNAL_TIMING"
    intersection: str = Field(..., min_length=1)
    cycle_length: PositiveDuration


class ChangeStopSign(TripBenchBase, frozen=True):
    """Replace an intersection's control with an all-way stop."""

    category: ClassVar[EditCategory] = EditCategory.STOP_SIGN
    type: Literal["CHANGE_STOP_SIGN"] = "CHANGE_STOP_SIGN"
    intersection: str = Field(..., min_length=1)


class CloseIntersection(TripBenchBase, frozen=True):
    category: ClassVar[EditCategory] = EditCategory.LANES
    type: Literal["CLOSE_INTERSECTION"] = "CLOSE_INTERSECTION"
    intersection: str = Field(..., min_length=1)


class ChangeRouteSchedule(TripBenchBase, frozen=True):
    """Change how often buses on a route depart."""

    category: ClassVar[EditCategory] = EditCategory.BUS_ROUTE
    type: Literal["CHANGE_ROUTE_SCHEDULE"] = "CHANGE_ROUTE_SCHEDULE"
    route: str = Field(..., min_length=1)
    headway: PositiveDuration


EditCmd = Annotated[
    Union[
        ChangeLanes,
        ChangeSpeedLimit,
        ChangeSignalTiming,
        ChangeStopSign,
        CloseIntersection,
        ChangeRouteSchedule,
    ],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# MapEdits
# ---------------------------------------------------------------------------


class MapEdits(TripBenchBase, frozen=True):
    """A named, serialisable set of modifications to one map."""

    edits_name: str = Field(..., min_length=1)
    map_name: str = Field(..., min_length=1)
    commands: tuple[EditCmd, ...] = Field(default_factory=tuple)

    def categories(self) -> frozenset[EditCategory]:
        return frozenset(cmd.category for cmd in self.commands)
