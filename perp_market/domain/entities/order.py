"""
Pending order entity and order lifecycle states.
"""
from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from perp_market.domain.exceptions import NilOrderError
from perp_market.domain.value_objects.fixed_point import ZERO, to_decimal


class OrderState(Enum):
    """Order lifecycle state per (account, market)."""
    IDLE = "idle"
    PENDING = "pending"
    SETTLED = "settled"
    EXPIRED = "expired"
    CANCELLED = "cancelled"

    def is_terminal(self) -> bool:
        """Terminal states return the pair to IDLE immediately."""
        return self in (
            OrderState.SETTLED,
            OrderState.EXPIRED,
            OrderState.CANCELLED,
        )


@dataclass(frozen=True)
class Order:
    """
    Committed order awaiting settlement.

    Attributes:
        account_id: Trading account
        market_id: Market the order trades
        size_delta: Signed size change (positive = long)
        limit_price: Worst acceptable fill price
        keeper_fee_buffer_usd: Upper bound on the keeper settlement fee
        commitment_time: Unix seconds at commit
    """
    account_id: int
    market_id: int
    size_delta: Decimal
    limit_price: Decimal
    keeper_fee_buffer_usd: Decimal
    commitment_time: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "size_delta", to_decimal(self.size_delta))
        object.__setattr__(self, "limit_price", to_decimal(self.limit_price))
        object.__setattr__(self, "keeper_fee_buffer_usd", to_decimal(self.keeper_fee_buffer_usd))
        if self.size_delta == ZERO:
            raise NilOrderError()

    @property
    def is_long(self) -> bool:
        return self.size_delta > ZERO

    def age(self, now: int) -> int:
        """Seconds since commitment."""
        return now - self.commitment_time

    def is_ready(self, now: int, min_order_age: int) -> bool:
        """Old enough to settle."""
        return self.age(now) >= min_order_age

    def is_expired(self, now: int, max_order_age: int) -> bool:
        """Too old to settle; may be cancelled by anyone."""
        return self.age(now) > max_order_age
