"""
Fixed-point arithmetic

All monetary amounts, sizes and prices are Decimals with 18 decimal places
(WAD), truncated toward zero. Ledger arithmetic is checked against the
signed 128-bit range counted in WAD units and fails closed.
"""
from __future__ import annotations
from decimal import Context, Decimal, ROUND_DOWN
from typing import Union

from perp_market.domain.exceptions import ArithmeticOverflowError

Numeric = Union[int, str, Decimal]

DECIMALS = 18
ZERO = Decimal("0")
ONE = Decimal("1")

_CONTEXT = Context(prec=80, rounding=ROUND_DOWN)

UNIT = Decimal(1).scaleb(-DECIMALS, context=_CONTEXT)

# int128 bounds expressed in WAD units
MAX_INT128 = Decimal(2 ** 127 - 1).scaleb(-DECIMALS, context=_CONTEXT)
MIN_INT128 = Decimal(-(2 ** 127)).scaleb(-DECIMALS, context=_CONTEXT)


def to_decimal(value: Numeric) -> Decimal:
    """Convert to a WAD-quantized Decimal. Floats are rejected."""
    if isinstance(value, float):
        raise TypeError("Floats are not accepted for fixed-point amounts")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    if not value.is_finite():
        raise ArithmeticOverflowError("convert", value)
    return quantize(_check("convert", value))


def quantize(value: Decimal) -> Decimal:
    """Truncate to 18 decimal places."""
    return value.quantize(UNIT, rounding=ROUND_DOWN, context=_CONTEXT)


def from_wad(raw: int) -> Decimal:
    """Decimal from a raw integer scaled by 1e18."""
    return Decimal(raw).scaleb(-DECIMALS, context=_CONTEXT)


def to_wad(value: Decimal) -> int:
    """Raw integer scaled by 1e18."""
    return int(quantize(value).scaleb(DECIMALS, context=_CONTEXT))


def _check(operation: str, value: Decimal) -> Decimal:
    if value > MAX_INT128 or value < MIN_INT128:
        raise ArithmeticOverflowError(operation, value)
    return value


def checked_add(a: Decimal, b: Decimal) -> Decimal:
    """a + b, failing outside the int128 range."""
    return quantize(_check("add", _CONTEXT.add(a, b)))


def checked_sub(a: Decimal, b: Decimal) -> Decimal:
    """a - b, failing outside the int128 range."""
    return quantize(_check("sub", _CONTEXT.subtract(a, b)))


def checked_sub_unsigned(a: Decimal, b: Decimal) -> Decimal:
    """a - b for balances that must stay non-negative."""
    result = checked_sub(a, b)
    if result < ZERO:
        raise ArithmeticOverflowError("unsigned sub", result)
    return result


def mul(a: Decimal, b: Decimal) -> Decimal:
    """a * b truncated to WAD precision."""
    return quantize(_check("mul", _CONTEXT.multiply(a, b)))


def div(a: Decimal, b: Decimal) -> Decimal:
    """a / b truncated to WAD precision."""
    if b == ZERO:
        raise ZeroDivisionError("Fixed-point division by zero")
    return quantize(_check("div", _CONTEXT.divide(a, b)))


def sign(value: Decimal) -> int:
    """-1, 0 or 1."""
    if value > ZERO:
        return 1
    if value < ZERO:
        return -1
    return 0


def same_side(a: Decimal, b: Decimal) -> bool:
    """True when both values are non-zero with the same sign."""
    return sign(a) != 0 and sign(a) == sign(b)


def absolute(value: Decimal) -> Decimal:
    """|value| without context rounding."""
    return value.copy_abs()


def negate(value: Decimal) -> Decimal:
    """-value without context rounding."""
    return value.copy_negate()
