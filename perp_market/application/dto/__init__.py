"""Data Transfer Objects returned by the use cases."""
from perp_market.application.dto.margin import (
    CollateralConfigEntry,
    CollateralConfigurationResult,
    MarginDigest,
    TransferResult,
)
from perp_market.application.dto.trading import (
    CancelOrderResult,
    CommitOrderResult,
    MarketDigest,
    MarketResult,
    OrderDigest,
    PositionDigest,
    SettleOrderResult,
)

__all__ = [
    "CollateralConfigEntry",
    "CollateralConfigurationResult",
    "MarginDigest",
    "TransferResult",
    "CancelOrderResult",
    "CommitOrderResult",
    "MarketDigest",
    "MarketResult",
    "OrderDigest",
    "PositionDigest",
    "SettleOrderResult",
]
