from perp_market.config.settings import (
    KeeperConfig,
    LogConfig,
    MarginConfig,
    OrderConfig,
    default_market_configuration,
    validate_all_configs,
)

__all__ = [
    "KeeperConfig",
    "LogConfig",
    "MarginConfig",
    "OrderConfig",
    "default_market_configuration",
    "validate_all_configs",
]
