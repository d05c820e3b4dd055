"""Quantized durations for reproducible scheduling.

A Duration is a signed number of seconds trimmed to a fixed precision of
EPSILON = 0.0001s. Repeated add/subtract during stepping therefore never
accumulates floating-point drift, and every value maps losslessly onto an
integer tick count (seconds / EPSILON) for hashing and serialisation.

Formatting and parsing are intentionally not inverses: ``format`` always
emits "1hr 2min 3.4s" style text, while ``parse`` reads "H:MM:SS[.d]".
"""

from __future__ import annotations

import math
from functools import total_ordering
from typing import Any

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

from tripbench.errors import InvalidDurationError

TICKS_PER_SECOND = 10_000
_TICKS_PER_DECISECOND = TICKS_PER_SECOND // 10
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def _trim(value: float) -> float:
    """Round to the nearest multiple of EPSILON, halves away from zero."""
    scaled = math.floor(abs(value) * TICKS_PER_SECOND + 0.5)
    # + 0.0 folds -0.0 into 0.0
    return math.copysign(scaled, value) / TICKS_PER_SECOND + 0.0


@total_ordering
class Duration:
    """A duration in seconds. Can be negative."""

    __slots__ = ("_seconds",)

    ZERO: Duration
    EPSILON: Duration

    def __init__(self, value: float) -> None:
        value = float(value)
        if not math.isfinite(value):
            msg = f"Bad Duration {value}"
            raise InvalidDurationError(msg)
        self._seconds = _trim(value)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def seconds(cls, value: float) -> Duration:
        """Creates a duration in seconds."""
        return cls(value)

    @classmethod
    def minutes(cls, mins: int) -> Duration:
        return cls(mins * 60.0)

    @classmethod
    def hours(cls, hours: int) -> Duration:
        return cls(hours * 3600.0)

    @classmethod
    def f64_minutes(cls, mins: float) -> Duration:
        return cls(mins * 60.0)

    @classmethod
    def from_ticks(cls, ticks: int) -> Duration:
        """Decode a tick count produced by ``to_ticks``."""
        if not _INT64_MIN <= ticks <= _INT64_MAX:
            msg = f"Tick count {ticks} does not fit in 64 bits"
            raise OverflowError(msg)
        return cls(ticks / TICKS_PER_SECOND)

    @classmethod
    def parse(cls, string: str) -> Duration:
        """Parses a duration such as "3:00" to ``Duration.minutes(3)``.

        Accepts "S", "M:S" or "H:M:S", where the last part may carry a single
        decimal digit ("1:02:03.4"). This is NOT the inverse of ``format``.
        """
        parts = string.split(":")
        if len(parts) > 3:
            msg = f"Duration {string}: weird number of parts"
            raise ValueError(msg)

        last = parts[-1]
        if "." in last:
            last_parts = last.split(".")
            if len(last_parts) != 2:
                msg = f"Duration {string}: no . in last part"
                raise ValueError(msg)
            seconds = _parse_number(string, last_parts[1]) / 10.0
            seconds += _parse_number(string, last_parts[0])
        else:
            seconds = _parse_number(string, last)

        if len(parts) == 2:
            seconds += 60.0 * _parse_number(string, parts[0])
        elif len(parts) == 3:
            seconds += 60.0 * _parse_number(string, parts[1])
            seconds += 3600.0 * _parse_number(string, parts[0])
        return cls(seconds)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def inner_seconds(self) -> float:
        """Returns the duration in seconds. Prefer working in typesafe Durations."""
        return self._seconds

    def to_ticks(self) -> int:
        """Encode as a signed 64-bit count of EPSILON ticks."""
        ticks = round(self._seconds * TICKS_PER_SECOND)
        if not _INT64_MIN <= ticks <= _INT64_MAX:
            msg = f"{self!r} does not fit in 64 bits of ticks"
            raise OverflowError(msg)
        return ticks

    def _parts(self) -> tuple[int, int, int, int]:
        """Split |self| into (hours, minutes, seconds, deciseconds)."""
        ticks = round(abs(self._seconds) * TICKS_PER_SECOND)
        whole_seconds, rem_ticks = divmod(ticks, TICKS_PER_SECOND)
        hours, rest = divmod(whole_seconds, 3600)
        minutes, seconds = divmod(rest, 60)
        return hours, minutes, seconds, rem_ticks // _TICKS_PER_DECISECOND

    # ------------------------------------------------------------------
    # Derived helpers
    # ------------------------------------------------------------------

    def percent_of(self, fraction: float) -> Duration:
        """Map a fraction in [0, 1] onto [ZERO, self]."""
        if not 0.0 <= fraction <= 1.0:
            msg = f"percent_of expects a fraction in [0, 1], got {fraction}"
            raise ValueError(msg)
        return self * fraction

    def epsilon_eq(self, other: Duration) -> bool:
        """If two durations are within 0.1s, they'll print as if they're the same."""
        return abs(self - other) < _PRINT_EPSILON

    def round_up(self, multiple: Duration) -> Duration:
        """Rounds a duration up to the nearest whole number multiple."""
        remainder = self % multiple
        if remainder == Duration.ZERO:
            return self
        return self + multiple - remainder

    def num_minutes_rounded_up(self) -> int:
        hours, minutes, seconds, decis = self._parts()
        result = minutes + 60 * hours
        if seconds != 0 or decis != 0:
            result += 1
        return result

    def make_intervals_for_max(self, num_labels: int) -> tuple[Duration, list[int]]:
        """Returns (rounded max, the label boundaries in minutes) for a time axis."""
        raw_mins_per_interval = self.num_minutes_rounded_up() / num_labels
        mins_per_interval = (
            Duration.seconds(60.0 * raw_mins_per_interval)
            .round_up(Duration.minutes(5))
            .num_minutes_rounded_up()
        )
        # Under num_labels * 5min, 5-minute multiples leave most labels empty
        if self < num_labels * Duration.minutes(5):
            mins_per_interval = (
                self.round_up(Duration.minutes(5)) / float(num_labels)
            ).num_minutes_rounded_up()

        max_ = num_labels * Duration.minutes(mins_per_interval)
        labels = [i * mins_per_interval for i in range(num_labels + 1)]
        if max_ < self:
            msg = (
                f"Wait max of {self} with {num_labels} labels wound up "
                f"with rounded max of {max_}"
            )
            raise RuntimeError(msg)
        return max_, labels

    def format(self, round_durations: bool = False) -> str:
        """Describes the duration, e.g. "1hr 2min 3.4s"; "3s" when rounding."""
        hours, minutes, seconds, decis = self._parts()
        if hours == 0 and minutes == 0 and seconds == 0 and decis == 0:
            return "0s"

        s = "-" if self._seconds < 0 else ""
        if hours != 0:
            s += f"{hours}hr "
        if minutes != 0:
            s += f"{minutes}min "
        if decis != 0:
            if round_durations:
                s += f"{seconds}s"
            else:
                s += f"{seconds}.{decis}s"
        elif seconds != 0:
            s += f"{seconds}s"
        return s.rstrip()

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def __add__(self, other: object) -> Duration:
        if not isinstance(other, Duration):
            return NotImplemented
        return Duration(self._seconds + other._seconds)

    def __sub__(self, other: object) -> Duration:
        if not isinstance(other, Duration):
            return NotImplemented
        return Duration(self._seconds - other._seconds)

    def __neg__(self) -> Duration:
        return Duration(-self._seconds)

    def __abs__(self) -> Duration:
        return Duration(abs(self._seconds))

    def __mul__(self, other: object) -> Duration:
        if isinstance(other, (int, float)) and not isinstance(other, bool):
            return Duration(self._seconds * other)
        return NotImplemented

    __rmul__ = __mul__

    def __radd__(self, other: object) -> Duration:
        # sum() starts from the int 0
        if isinstance(other, int) and not isinstance(other, bool) and other == 0:
            return self
        return NotImplemented

    def __truediv__(self, other: object) -> Duration | float:
        if isinstance(other, Duration):
            if other._seconds == 0.0:
                msg = f"Can't divide {self} / {other}"
                raise ZeroDivisionError(msg)
            return self._seconds / other._seconds
        if isinstance(other, (int, float)) and not isinstance(other, bool):
            if other == 0:
                msg = f"Can't divide {self} / {other}"
                raise ZeroDivisionError(msg)
            return Duration(self._seconds / other)
        return NotImplemented

    def __mod__(self, other: object) -> Duration:
        if not isinstance(other, Duration):
            return NotImplemented
        if other._seconds == 0.0:
            msg = f"Can't take {self} % {other}"
            raise ZeroDivisionError(msg)
        return Duration(math.fmod(self._seconds, other._seconds))

    # ------------------------------------------------------------------
    # Comparison / hashing
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Duration):
            return NotImplemented
        return self._seconds == other._seconds

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Duration):
            return NotImplemented
        return self._seconds < other._seconds

    def __hash__(self) -> int:
        return hash(self._seconds)

    def __str__(self) -> str:
        return self.format(round_durations=False)

    def __repr__(self) -> str:
        return f"Duration.seconds({self._seconds!r})"

    def __reduce__(self) -> tuple[Any, ...]:
        return (Duration, (self._seconds,))

    # ------------------------------------------------------------------
    # Pydantic integration: serialised as the integer tick count
    # ------------------------------------------------------------------

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda d: d.to_ticks(),
                return_schema=core_schema.int_schema(),
            ),
        )

    @classmethod
    def _validate(cls, value: Any) -> Duration:
        if isinstance(value, Duration):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return cls.from_ticks(value)
        msg = f"Expected a Duration or an integer tick count, got {type(value).__name__}"
        raise ValueError(msg)


Duration.ZERO = Duration(0.0)
Duration.EPSILON = Duration(1.0 / TICKS_PER_SECOND)

_PRINT_EPSILON = Duration(0.1)

DAY = Duration.hours(24)


def _parse_number(string: str, part: str) -> float:
    try:
        return float(part)
    except ValueError as exc:
        msg = f"Duration {string}: can't parse {part!r}"
        raise ValueError(msg) from exc
