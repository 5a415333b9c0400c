"""
Domain Events

Ordered side channel for external observers. Every use case returns the
events it emitted alongside its result; they are published after the
operation commits.
"""
from __future__ import annotations
from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Any, Dict

from perp_market.domain.entities.order import OrderState
from perp_market.domain.value_objects.fixed_point import ZERO


MARGIN_TRANSFER = "margin"
KEEPER_FEE_TRANSFER = "keeper_fee"


@dataclass(frozen=True)
class DomainEvent:
    """Base class for domain events."""

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        """Flat dict with Decimals rendered as strings."""
        payload: Dict[str, Any] = {"event": self.name}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Decimal):
                value = str(value)
            elif isinstance(value, OrderState):
                value = value.value
            payload[f.name] = value
        return payload


@dataclass(frozen=True)
class Transfer(DomainEvent):
    """Collateral moved between a wallet and the margin ledger (kind: margin or keeper_fee)."""
    from_address: str
    to_address: str
    amount: Decimal
    collateral_type_id: str
    account_id: int
    market_id: int
    kind: str = MARGIN_TRANSFER


@dataclass(frozen=True)
class CollateralConfigured(DomainEvent):
    """Collateral whitelist replaced."""
    admin: str
    count: int


@dataclass(frozen=True)
class MarketCreated(DomainEvent):
    market_id: int
    market_name: str


@dataclass(frozen=True)
class MarketConfigured(DomainEvent):
    market_id: int
    admin: str


@dataclass(frozen=True)
class OrderCommitted(DomainEvent):
    """Order recorded; pair moved to PENDING."""
    account_id: int
    market_id: int
    commitment_time: int
    size_delta: Decimal
    limit_price: Decimal
    estimated_order_fee: Decimal
    estimated_keeper_fee: Decimal


@dataclass(frozen=True)
class OrderSettled(DomainEvent):
    """Order applied to the position."""
    account_id: int
    market_id: int
    settlement_time: int
    size_delta: Decimal
    new_size: Decimal
    fill_price: Decimal
    order_fee: Decimal
    keeper_fee: Decimal
    realized_pnl: Decimal
    keeper: str


@dataclass(frozen=True)
class OrderCanceled(DomainEvent):
    """Expired order cleared without touching the position."""
    account_id: int
    market_id: int
    commitment_time: int
    canceled_at: int
    caller: str
    state: OrderState = OrderState.EXPIRED
    current_size: Decimal = ZERO
