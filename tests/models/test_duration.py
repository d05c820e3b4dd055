"""Tests for the quantized Duration type."""

import math
import pickle

import pytest
from pydantic import BaseModel

from tripbench.errors import InvalidDurationError
from tripbench.models.duration import DAY, TICKS_PER_SECOND, Duration


# ---------------------------------------------------------------------------
# Construction and quantization
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_trims_to_epsilon(self) -> None:
        assert Duration.seconds(1.23456789).inner_seconds() == 1.2346

    def test_rounds_to_nearest_tick(self) -> None:
        assert Duration.seconds(0.00004).to_ticks() == 0
        assert Duration.seconds(0.00006).to_ticks() == 1
        assert Duration.seconds(-0.00006).to_ticks() == -1

    def test_negative_zero_folds_to_zero(self) -> None:
        d = Duration.seconds(-0.0)
        assert math.copysign(1.0, d.inner_seconds()) == 1.0
        assert d == Duration.ZERO

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
    def test_non_finite_rejected(self, bad: float) -> None:
        with pytest.raises(InvalidDurationError):
            Duration.seconds(bad)

    def test_invalid_duration_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            Duration.seconds(math.nan)

    def test_unit_constructors(self) -> None:
        assert Duration.minutes(2) == Duration.seconds(120.0)
        assert Duration.hours(1) == Duration.seconds(3600.0)
        assert Duration.f64_minutes(1.5) == Duration.seconds(90.0)
        assert DAY == Duration.hours(24)


# ---------------------------------------------------------------------------
# Tick encoding
# ---------------------------------------------------------------------------


class TestTicks:
    @pytest.mark.parametrize(
        "value", [0.0, 0.0001, 0.3, 1.5, 59.9999, 3600.0, 86400.25, -12.3456, 1e9]
    )
    def test_decode_encode_identity(self, value: float) -> None:
        d = Duration.seconds(value)
        assert Duration.from_ticks(d.to_ticks()) == d

    def test_within_epsilon_of_input(self) -> None:
        for value in (0.12345678, 1234.56789, -7.77777):
            d = Duration.from_ticks(Duration.seconds(value).to_ticks())
            assert abs(d.inner_seconds() - value) <= 1.0 / TICKS_PER_SECOND

    def test_tick_values(self) -> None:
        assert Duration.seconds(1.0).to_ticks() == TICKS_PER_SECOND
        assert Duration.EPSILON.to_ticks() == 1

    def test_from_ticks_overflow(self) -> None:
        with pytest.raises(OverflowError):
            Duration.from_ticks(2**63)


# ---------------------------------------------------------------------------
# Formatting and parsing
# ---------------------------------------------------------------------------


class TestFormat:
    def test_unrounded(self) -> None:
        assert Duration.seconds(90.123).format() == "1min 30.1s"

    def test_rounded(self) -> None:
        assert Duration.seconds(90.123).format(round_durations=True) == "1min 30s"

    def test_whole_hours(self) -> None:
        assert Duration.hours(3).format() == "3hr"

    def test_zero(self) -> None:
        assert Duration.ZERO.format() == "0s"
        assert Duration.seconds(0.04).format() == "0s"

    def test_negative(self) -> None:
        assert Duration.seconds(-61.0).format() == "-1min 1s"

    def test_all_parts(self) -> None:
        assert Duration.seconds(3723.4).format() == "1hr 2min 3.4s"

    def test_beyond_tick_range(self) -> None:
        huge = Duration.seconds(1e15)
        with pytest.raises(OverflowError):
            huge.to_ticks()
        assert huge.format() == "277777777777hr 46min 40s"
        assert str(-huge) == "-277777777777hr 46min 40s"

    def test_str_is_unrounded(self) -> None:
        assert str(Duration.seconds(0.3)) == "0.3s"

    def test_repr(self) -> None:
        assert repr(Duration.seconds(1.5)) == "Duration.seconds(1.5)"


class TestParse:
    def test_seconds_only(self) -> None:
        assert Duration.parse("45") == Duration.seconds(45.0)

    def test_minutes_seconds(self) -> None:
        assert Duration.parse("3:00") == Duration.minutes(3)

    def test_hours_minutes_seconds(self) -> None:
        assert Duration.parse("1:02:03") == Duration.seconds(3723.0)

    def test_decimal_last_part(self) -> None:
        assert Duration.parse("1:02:03.4") == Duration.seconds(3723.4)

    def test_decimal_part_always_divided_by_ten(self) -> None:
        # "5.25" reads as 5 + 25/10, not 5.25
        assert Duration.parse("5.25") == Duration.seconds(7.5)

    def test_too_many_parts(self) -> None:
        with pytest.raises(ValueError, match="weird number of parts"):
            Duration.parse("1:2:3:4")

    def test_two_dots(self) -> None:
        with pytest.raises(ValueError):
            Duration.parse("1.2.3")

    def test_garbage(self) -> None:
        with pytest.raises(ValueError):
            Duration.parse("ab:cd")

    def test_not_inverse_of_format(self) -> None:
        d = Duration.seconds(3723.4)
        with pytest.raises(ValueError):
            Duration.parse(d.format())


# ---------------------------------------------------------------------------
# Arithmetic
# ---------------------------------------------------------------------------


class TestArithmetic:
    def test_add_sub_round_trip(self) -> None:
        a = Duration.seconds(12.3456)
        b = Duration.seconds(0.1)
        assert (a + b - b).epsilon_eq(a)
        assert abs((a + b - b) - a) <= Duration.EPSILON

    def test_repeated_steps_do_not_drift(self) -> None:
        total = Duration.ZERO
        for _ in range(36_000):
            total = total + Duration.seconds(0.1)
        assert total == Duration.hours(1)

    def test_scalar_multiply(self) -> None:
        assert Duration.minutes(1) * 2 == Duration.minutes(2)
        assert 0.5 * Duration.minutes(1) == Duration.seconds(30.0)

    def test_bool_multiply_rejected(self) -> None:
        with pytest.raises(TypeError):
            Duration.minutes(1) * True  # noqa: B015

    def test_divide(self) -> None:
        assert Duration.minutes(3) / Duration.minutes(1) == 3.0
        assert Duration.minutes(3) / 3 == Duration.minutes(1)

    def test_divide_by_zero(self) -> None:
        with pytest.raises(ZeroDivisionError):
            Duration.minutes(1) / Duration.ZERO
        with pytest.raises(ZeroDivisionError):
            Duration.minutes(1) / 0

    def test_mod(self) -> None:
        assert Duration.seconds(130.0) % Duration.minutes(1) == Duration.seconds(10.0)
        with pytest.raises(ZeroDivisionError):
            Duration.minutes(1) % Duration.ZERO

    def test_sum(self) -> None:
        assert sum([Duration.seconds(1.0), Duration.seconds(2.0)]) == Duration.seconds(3.0)

    def test_neg_abs(self) -> None:
        assert -Duration.seconds(2.0) == Duration.seconds(-2.0)
        assert abs(Duration.seconds(-2.0)) == Duration.seconds(2.0)

    def test_ordering(self) -> None:
        assert Duration.seconds(1.0) < Duration.seconds(2.0)
        assert max(Duration.ZERO, Duration.minutes(1)) == Duration.minutes(1)

    def test_hash_matches_eq(self) -> None:
        assert len({Duration.seconds(1.00001), Duration.seconds(1.0)}) == 1


class TestHelpers:
    def test_percent_of(self) -> None:
        assert Duration.minutes(10).percent_of(0.5) == Duration.minutes(5)
        with pytest.raises(ValueError):
            Duration.minutes(10).percent_of(1.5)

    def test_round_up(self) -> None:
        assert Duration.minutes(7).round_up(Duration.minutes(5)) == Duration.minutes(10)
        assert Duration.minutes(10).round_up(Duration.minutes(5)) == Duration.minutes(10)

    def test_num_minutes_rounded_up(self) -> None:
        assert Duration.seconds(61.0).num_minutes_rounded_up() == 2
        assert Duration.minutes(3).num_minutes_rounded_up() == 3

    def test_make_intervals_for_max(self) -> None:
        max_, labels = Duration.minutes(47).make_intervals_for_max(5)
        assert max_ >= Duration.minutes(47)
        assert labels[0] == 0
        assert len(labels) == 6

    def test_epsilon_eq(self) -> None:
        assert Duration.seconds(1.0).epsilon_eq(Duration.seconds(1.09))
        assert not Duration.seconds(1.0).epsilon_eq(Duration.seconds(1.1))

    def test_pickle(self) -> None:
        d = Duration.seconds(4.2)
        assert pickle.loads(pickle.dumps(d)) == d


# ---------------------------------------------------------------------------
# Pydantic integration
# ---------------------------------------------------------------------------


class _Holder(BaseModel):
    d: Duration


class TestPydantic:
    def test_serializes_as_ticks(self) -> None:
        assert _Holder(d=Duration.seconds(1.5)).model_dump() == {"d": 15_000}

    def test_json_round_trip(self) -> None:
        holder = _Holder(d=Duration.seconds(-3.25))
        assert _Holder.model_validate_json(holder.model_dump_json()) == holder

    def test_rejects_float(self) -> None:
        with pytest.raises(ValueError):
            _Holder(d=1.5)
