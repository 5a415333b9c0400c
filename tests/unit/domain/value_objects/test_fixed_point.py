"""
Tests for fixed-point arithmetic helpers.
"""
import pytest
from decimal import Decimal

from perp_market.domain.exceptions import ArithmeticOverflowError
from perp_market.domain.value_objects.fixed_point import (
    MAX_INT128,
    MIN_INT128,
    ONE,
    UNIT,
    ZERO,
    absolute,
    checked_add,
    checked_sub,
    checked_sub_unsigned,
    div,
    from_wad,
    mul,
    negate,
    same_side,
    sign,
    to_decimal,
    to_wad,
)


class TestConversion:
    """Tests for to_decimal / WAD conversion."""

    def test_accepts_int_str_and_decimal(self):
        assert to_decimal(5) == Decimal("5")
        assert to_decimal("1.25") == Decimal("1.25")
        assert to_decimal(Decimal("0.5")) == Decimal("0.5")

    def test_rejects_float(self):
        with pytest.raises(TypeError):
            to_decimal(1.5)

    def test_truncates_to_18_decimals(self):
        assert to_decimal("0.1234567890123456789") == Decimal("0.123456789012345678")

    def test_truncates_toward_zero(self):
        assert to_decimal("-0.1234567890123456789") == Decimal("-0.123456789012345678")

    def test_wad_round_trip_values(self):
        assert from_wad(10 ** 18) == ONE
        assert to_wad(Decimal("1.5")) == 1_500_000_000_000_000_000
        assert from_wad(1) == UNIT

    def test_out_of_range_input_overflows(self):
        """Values beyond the context precision fail as overflow, not InvalidOperation"""
        with pytest.raises(ArithmeticOverflowError):
            to_decimal(Decimal("1e100"))
        with pytest.raises(ArithmeticOverflowError):
            to_decimal("-1e100")
        with pytest.raises(ArithmeticOverflowError):
            to_decimal(MAX_INT128 * 2)

    def test_bounds_convert(self):
        assert to_decimal(MAX_INT128) == MAX_INT128
        assert to_decimal(MIN_INT128) == MIN_INT128

    def test_non_finite_rejected(self):
        with pytest.raises(ArithmeticOverflowError):
            to_decimal(Decimal("Infinity"))
        with pytest.raises(ArithmeticOverflowError):
            to_decimal("NaN")


class TestCheckedArithmetic:
    """Ledger arithmetic fails closed outside the int128 range."""

    def test_add_and_sub(self):
        assert checked_add(Decimal("1.5"), Decimal("2.25")) == Decimal("3.75")
        assert checked_sub(Decimal("1"), Decimal("2.5")) == Decimal("-1.5")

    def test_add_overflow(self):
        with pytest.raises(ArithmeticOverflowError) as exc_info:
            checked_add(MAX_INT128, UNIT)
        assert exc_info.value.operation == "add"

    def test_sub_underflow(self):
        with pytest.raises(ArithmeticOverflowError):
            checked_sub(MIN_INT128, UNIT)

    def test_bounds_are_exact(self):
        assert checked_add(MAX_INT128, ZERO) == MAX_INT128
        assert checked_sub(MIN_INT128, ZERO) == MIN_INT128

    def test_unsigned_sub_rejects_negative_result(self):
        assert checked_sub_unsigned(Decimal("2"), Decimal("2")) == ZERO
        with pytest.raises(ArithmeticOverflowError):
            checked_sub_unsigned(Decimal("1"), Decimal("2"))

    def test_mul_truncates(self):
        assert mul(UNIT, Decimal("0.5")) == ZERO
        assert mul(Decimal("1000"), Decimal("0.001")) == Decimal("1")

    def test_mul_overflow(self):
        with pytest.raises(ArithmeticOverflowError):
            mul(MAX_INT128, Decimal("2"))

    def test_div(self):
        assert div(ONE, Decimal("3")) == Decimal("0.333333333333333333")
        assert div(Decimal("-2"), Decimal("3")) == Decimal("-0.666666666666666666")

    def test_div_by_zero(self):
        with pytest.raises(ZeroDivisionError):
            div(ONE, ZERO)


class TestSignHelpers:

    def test_sign(self):
        assert sign(Decimal("3")) == 1
        assert sign(Decimal("-0.1")) == -1
        assert sign(ZERO) == 0

    def test_same_side(self):
        assert same_side(Decimal("1"), Decimal("2"))
        assert same_side(Decimal("-1"), Decimal("-2"))
        assert not same_side(Decimal("1"), Decimal("-2"))
        assert not same_side(ZERO, ZERO)

    def test_absolute_and_negate(self):
        assert absolute(Decimal("-1.5")) == Decimal("1.5")
        assert negate(Decimal("1.5")) == Decimal("-1.5")
