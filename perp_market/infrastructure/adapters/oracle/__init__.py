from perp_market.infrastructure.adapters.oracle.pyth_price_feed_adapter import (
    PythPriceFeedAdapter,
    encode_price_update,
)
from perp_market.infrastructure.adapters.oracle.static_oracle_adapter import StaticOracleAdapter

__all__ = ["PythPriceFeedAdapter", "StaticOracleAdapter", "encode_price_update"]
