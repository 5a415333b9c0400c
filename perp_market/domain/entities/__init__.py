"""Domain entities."""
from perp_market.domain.entities.collateral import CollateralType, MarginLedgerEntry
from perp_market.domain.entities.market import Market, MarketConfiguration, MarketState
from perp_market.domain.entities.order import Order, OrderState
from perp_market.domain.entities.position import Position

__all__ = [
    "CollateralType",
    "MarginLedgerEntry",
    "Market",
    "MarketConfiguration",
    "MarketState",
    "Order",
    "OrderState",
    "Position",
]
