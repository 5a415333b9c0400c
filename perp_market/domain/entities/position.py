"""
Position entity.

Net directional exposure of an account in a market, with weighted-average
entry price and realized PnL carried in accumulated_margin.
"""
from __future__ import annotations
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Tuple

from perp_market.domain.value_objects.fixed_point import (
    ZERO,
    absolute,
    checked_add,
    checked_sub,
    div,
    mul,
    same_side,
    sign,
    to_decimal,
)


@dataclass(frozen=True)
class Position:
    """
    Immutable position entity.

    Attributes:
        account_id: Owning account
        market_id: Market of the position
        size: Signed size (positive = long, zero = closed)
        entry_price: Weighted-average entry price of the open size
        accumulated_margin: Realized PnL in USD not yet paid out (signed)
    """
    account_id: int
    market_id: int
    size: Decimal = ZERO
    entry_price: Decimal = ZERO
    accumulated_margin: Decimal = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "size", to_decimal(self.size))
        object.__setattr__(self, "entry_price", to_decimal(self.entry_price))
        object.__setattr__(self, "accumulated_margin", to_decimal(self.accumulated_margin))

    # --- Factory Methods ---

    @classmethod
    def empty(cls, account_id: int, market_id: int) -> Position:
        return cls(account_id=account_id, market_id=market_id)

    # --- Computed Properties ---

    @property
    def is_open(self) -> bool:
        return self.size != ZERO

    @property
    def is_empty(self) -> bool:
        """Nothing left worth storing."""
        return self.size == ZERO and self.accumulated_margin == ZERO

    def notional_value(self, price: Decimal) -> Decimal:
        """|size| * price."""
        return mul(absolute(self.size), price)

    def unrealized_pnl(self, price: Decimal) -> Decimal:
        """(price - entry) * size."""
        if not self.is_open:
            return ZERO
        return mul(checked_sub(price, self.entry_price), self.size)

    # --- State Transitions ---

    def apply_fill(self, size_delta: Decimal, fill_price: Decimal) -> Tuple[Position, Decimal]:
        """
        Apply a filled order.

        Same-direction increases re-weight the entry price. Reductions realize
        PnL on the closed size at the old entry price; a flip re-opens the
        remainder at the fill price.

        Returns:
            (new position, realized PnL in USD)
        """
        size_delta = to_decimal(size_delta)
        fill_price = to_decimal(fill_price)
        new_size = checked_add(self.size, size_delta)

        if not self.is_open:
            return replace(self, size=new_size, entry_price=fill_price), ZERO

        if same_side(self.size, size_delta):
            old_notional = mul(absolute(self.size), self.entry_price)
            added_notional = mul(absolute(size_delta), fill_price)
            entry_price = div(checked_add(old_notional, added_notional), absolute(new_size))
            return replace(self, size=new_size, entry_price=entry_price), ZERO

        closed_size = min(absolute(size_delta), absolute(self.size))
        realized_pnl = mul(
            mul(checked_sub(fill_price, self.entry_price), closed_size),
            Decimal(sign(self.size)),
        )
        accumulated_margin = checked_add(self.accumulated_margin, realized_pnl)

        if new_size == ZERO:
            entry_price = ZERO
        elif same_side(new_size, self.size):
            entry_price = self.entry_price
        else:
            entry_price = fill_price

        position = replace(
            self,
            size=new_size,
            entry_price=entry_price,
            accumulated_margin=accumulated_margin,
        )
        return position, realized_pnl

    def increases_exposure(self, size_delta: Decimal) -> bool:
        """True when |size + delta| > |size|."""
        return absolute(checked_add(self.size, size_delta)) > absolute(self.size)
