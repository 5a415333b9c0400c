"""
DTOs for markets, the order pipeline and position queries.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from perp_market.domain.entities.market import Market, MarketConfiguration, MarketState
from perp_market.domain.entities.order import Order, OrderState
from perp_market.domain.entities.position import Position
from perp_market.domain.events import DomainEvent
from perp_market.domain.services.fee_calculator import SettlementFees
from perp_market.domain.services.risk_evaluator import RiskAssessment


@dataclass(frozen=True)
class MarketResult:
    market: Market
    configuration: MarketConfiguration
    events: List[DomainEvent] = field(default_factory=list)


@dataclass(frozen=True)
class MarketDigest:
    """
    Market snapshot.

    Attributes:
        market: Market definition
        configuration: Current configuration
        state: Skew and gross open interest
        oracle_price: Current oracle price
    """
    market: Market
    configuration: MarketConfiguration
    state: MarketState
    oracle_price: Decimal


@dataclass(frozen=True)
class CommitOrderResult:
    """
    Committed order.

    Attributes:
        order: Recorded order (state PENDING)
        estimated_fees: Fees at the current oracle price
        events: Emitted events
    """
    order: Order
    estimated_fees: SettlementFees
    state: OrderState = OrderState.PENDING
    events: List[DomainEvent] = field(default_factory=list)


@dataclass(frozen=True)
class SettleOrderResult:
    """
    Settled order.

    Attributes:
        order: The order that was consumed
        position: Resulting position (None when the record was dropped)
        fill_price: Settlement price
        fees: Order and keeper fees charged
        realized_pnl: PnL realized by this fill
        keeper: Address paid the keeper fee
    """
    order: Order
    position: Optional[Position]
    fill_price: Decimal
    fees: SettlementFees
    realized_pnl: Decimal
    keeper: str
    state: OrderState = OrderState.SETTLED
    events: List[DomainEvent] = field(default_factory=list)


@dataclass(frozen=True)
class CancelOrderResult:
    order: Order
    state: OrderState
    events: List[DomainEvent] = field(default_factory=list)


@dataclass(frozen=True)
class OrderDigest:
    """
    Pending order snapshot of an (account, market) pair.

    Attributes:
        state: IDLE or PENDING
        order: Pending order, if any
        age: Seconds since commitment (None when idle)
        is_ready: min_order_age reached
        is_expired: max_order_age exceeded
    """
    account_id: int
    market_id: int
    state: OrderState
    order: Optional[Order] = None
    age: Optional[int] = None
    is_ready: bool = False
    is_expired: bool = False


@dataclass(frozen=True)
class PositionDigest:
    """
    Position snapshot at the current oracle price.

    Attributes:
        position: Stored position (None when absent)
        oracle_price: Current market oracle price
        collateral_usd: Collateral value in USD
        risk: Margin, thresholds and liquidation eligibility
    """
    account_id: int
    market_id: int
    position: Optional[Position]
    oracle_price: Decimal
    collateral_usd: Decimal
    risk: RiskAssessment

    @property
    def size(self) -> Decimal:
        return self.position.size if self.position is not None else Decimal("0")

    @property
    def can_liquidate(self) -> bool:
        return self.risk.is_liquidatable
