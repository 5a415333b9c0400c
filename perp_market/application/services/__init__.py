"""Application services shared by the use cases."""
from perp_market.application.services.access_guard import AccessGuard
from perp_market.application.services.custody_moves import CustodyMoves
from perp_market.application.services.event_dispatch import publish_events
from perp_market.application.services.margin_service import (
    CollateralDebit,
    CollateralSnapshot,
    MarginService,
)
from perp_market.application.services.price_oracle import PriceOracleService

__all__ = [
    "AccessGuard",
    "CustodyMoves",
    "publish_events",
    "CollateralDebit",
    "CollateralSnapshot",
    "MarginService",
    "PriceOracleService",
]
