"""
Percentage Value Object

Margin ratios, fee rates and reward percentages, stored as decimals
(0.05 = 5%).
"""
from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Union

from perp_market.domain.value_objects.fixed_point import ZERO, mul, to_decimal


@dataclass(frozen=True)
class Percentage:
    """
    Immutable value object representing a percentage.

    Attributes:
        value: The percentage as decimal (e.g., 0.05 for 5%)
    """
    value: Decimal

    def __post_init__(self) -> None:
        """Convert to a WAD-quantized Decimal."""
        object.__setattr__(self, "value", to_decimal(self.value))

    # --- Factory Methods ---

    @classmethod
    def from_points(cls, points: Union[int, str, Decimal]) -> Percentage:
        """Create Percentage from percentage points (5 = 5%)."""
        return cls(Decimal(str(points)) / Decimal("100"))

    @classmethod
    def zero(cls) -> Percentage:
        """Create zero percentage."""
        return cls(ZERO)

    # --- Arithmetic Operations ---

    def apply_to(self, amount: Decimal) -> Decimal:
        """Apply percentage to an amount."""
        return mul(to_decimal(amount), self.value)

    def __add__(self, other: Percentage) -> Percentage:
        return Percentage(self.value + other.value)

    # --- Comparison Operations ---

    def __lt__(self, other: Percentage) -> bool:
        return self.value < other.value

    def __le__(self, other: Percentage) -> bool:
        return self.value <= other.value

    def __gt__(self, other: Percentage) -> bool:
        return self.value > other.value

    def __ge__(self, other: Percentage) -> bool:
        return self.value >= other.value

    # --- Utility Methods ---

    def is_zero(self) -> bool:
        return self.value == ZERO

    def is_negative(self) -> bool:
        return self.value < ZERO

    def as_points(self) -> Decimal:
        """Return as percentage points (0.05 -> 5)."""
        return self.value * Decimal("100")

    def __str__(self) -> str:
        return f"{self.as_points().normalize():f}%"
