"""
Venue settings.

Environment variables take precedence (a local .env file is loaded first);
every value is range-checked and a bad value raises ConfigurationError.
Ratios and fee rates are decimals (0.05 = 5%).
"""
import os
from decimal import Decimal, InvalidOperation
from typing import Optional

from dotenv import load_dotenv

from perp_market.domain.entities.market import MarketConfiguration
from perp_market.domain.value_objects.percentage import Percentage
from perp_market.exceptions import ConfigurationError

load_dotenv()


def get_env_int(key: str, default: int, min_value: Optional[int] = None, max_value: Optional[int] = None) -> int:
    """Integer environment value (with range check)."""
    value = os.getenv(key)
    if value is None:
        return default

    try:
        int_value = int(value)
    except ValueError:
        raise ConfigurationError(key, f"not an integer: {value}")
    if min_value is not None and int_value < min_value:
        raise ConfigurationError(key, f"below minimum ({min_value}): {int_value}")
    if max_value is not None and int_value > max_value:
        raise ConfigurationError(key, f"above maximum ({max_value}): {int_value}")
    return int_value


def get_env_decimal(
    key: str,
    default: str,
    min_value: Optional[Decimal] = None,
    max_value: Optional[Decimal] = None,
) -> Decimal:
    """Decimal environment value (with range check). Defaults are strings."""
    value = os.getenv(key, default)

    try:
        decimal_value = Decimal(value.strip())
    except InvalidOperation:
        raise ConfigurationError(key, f"not a decimal: {value}")
    if not decimal_value.is_finite():
        raise ConfigurationError(key, f"not a finite decimal: {value}")
    if min_value is not None and decimal_value < min_value:
        raise ConfigurationError(key, f"below minimum ({min_value}): {decimal_value}")
    if max_value is not None and decimal_value > max_value:
        raise ConfigurationError(key, f"above maximum ({max_value}): {decimal_value}")
    return decimal_value


def get_env_str(key: str, default: str) -> str:
    """String environment value."""
    return os.getenv(key, default)


class OrderConfig:
    """Order timing defaults"""
    MIN_ORDER_AGE = get_env_int("PERP_MIN_ORDER_AGE", 12, min_value=0)
    MAX_ORDER_AGE = get_env_int("PERP_MAX_ORDER_AGE", 60, min_value=0)
    PYTH_PUBLISH_TIME_MIN = get_env_int("PERP_PYTH_PUBLISH_TIME_MIN", 6, min_value=0)
    PYTH_PUBLISH_TIME_MAX = get_env_int("PERP_PYTH_PUBLISH_TIME_MAX", 12, min_value=0)

    @classmethod
    def validate(cls):
        if cls.MIN_ORDER_AGE > cls.MAX_ORDER_AGE:
            raise ConfigurationError("PERP_MIN_ORDER_AGE", "must not exceed PERP_MAX_ORDER_AGE")
        if cls.PYTH_PUBLISH_TIME_MIN > cls.PYTH_PUBLISH_TIME_MAX:
            raise ConfigurationError("PERP_PYTH_PUBLISH_TIME_MIN", "must not exceed PERP_PYTH_PUBLISH_TIME_MAX")


class MarginConfig:
    """Margin and liquidation defaults"""
    INITIAL_MARGIN_RATIO = get_env_decimal("PERP_INITIAL_MARGIN_RATIO", "0.1", min_value=Decimal("0"), max_value=Decimal("1"))
    MAINTENANCE_MARGIN_RATIO = get_env_decimal("PERP_MAINTENANCE_MARGIN_RATIO", "0.05", min_value=Decimal("0"), max_value=Decimal("1"))
    LIQUIDATION_REWARD_PERCENT = get_env_decimal("PERP_LIQUIDATION_REWARD_PERCENT", "0", min_value=Decimal("0"), max_value=Decimal("1"))
    MIN_MARGIN_USD = get_env_decimal("PERP_MIN_MARGIN_USD", "0", min_value=Decimal("0"))
    MAX_MARKET_SIZE = get_env_decimal("PERP_MAX_MARKET_SIZE", "0", min_value=Decimal("0"))  # 0 = unlimited

    @classmethod
    def validate(cls):
        if cls.MAINTENANCE_MARGIN_RATIO > cls.INITIAL_MARGIN_RATIO:
            raise ConfigurationError(
                "PERP_MAINTENANCE_MARGIN_RATIO",
                "must not exceed PERP_INITIAL_MARGIN_RATIO",
            )


class KeeperConfig:
    """Order and keeper fee defaults"""
    MAKER_FEE = get_env_decimal("PERP_MAKER_FEE", "0", min_value=Decimal("0"), max_value=Decimal("1"))
    TAKER_FEE = get_env_decimal("PERP_TAKER_FEE", "0", min_value=Decimal("0"), max_value=Decimal("1"))
    MIN_KEEPER_FEE_USD = get_env_decimal("PERP_MIN_KEEPER_FEE_USD", "0", min_value=Decimal("0"))
    MAX_KEEPER_FEE_USD = get_env_decimal("PERP_MAX_KEEPER_FEE_USD", "0", min_value=Decimal("0"))
    BASE_KEEPER_FEE_USD = get_env_decimal("PERP_BASE_KEEPER_FEE_USD", "0", min_value=Decimal("0"))
    KEEPER_PROFIT_MARGIN_PERCENT = get_env_decimal("PERP_KEEPER_PROFIT_MARGIN_PERCENT", "0", min_value=Decimal("0"))

    @classmethod
    def validate(cls):
        if cls.MIN_KEEPER_FEE_USD > cls.MAX_KEEPER_FEE_USD:
            raise ConfigurationError("PERP_MIN_KEEPER_FEE_USD", "must not exceed PERP_MAX_KEEPER_FEE_USD")


class LogConfig:
    """Logging settings"""
    LEVEL = get_env_str("LOG_LEVEL", "INFO").upper()
    FORMAT = get_env_str("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    @classmethod
    def validate(cls):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if cls.LEVEL not in valid_levels:
            raise ConfigurationError("LOG_LEVEL", f"unsupported level: {cls.LEVEL}. Use one of {', '.join(valid_levels)}")


def validate_all_configs():
    """Validate every settings class."""
    OrderConfig.validate()
    MarginConfig.validate()
    KeeperConfig.validate()
    LogConfig.validate()


def default_market_configuration() -> MarketConfiguration:
    """MarketConfiguration built from the environment defaults."""
    return MarketConfiguration(
        min_order_age=OrderConfig.MIN_ORDER_AGE,
        max_order_age=OrderConfig.MAX_ORDER_AGE,
        pyth_publish_time_min=OrderConfig.PYTH_PUBLISH_TIME_MIN,
        pyth_publish_time_max=OrderConfig.PYTH_PUBLISH_TIME_MAX,
        initial_margin_ratio=Percentage(MarginConfig.INITIAL_MARGIN_RATIO),
        maintenance_margin_ratio=Percentage(MarginConfig.MAINTENANCE_MARGIN_RATIO),
        liquidation_reward_percent=Percentage(MarginConfig.LIQUIDATION_REWARD_PERCENT),
        min_margin_usd=MarginConfig.MIN_MARGIN_USD,
        maker_fee=Percentage(KeeperConfig.MAKER_FEE),
        taker_fee=Percentage(KeeperConfig.TAKER_FEE),
        max_market_size=MarginConfig.MAX_MARKET_SIZE,
        min_keeper_fee_usd=KeeperConfig.MIN_KEEPER_FEE_USD,
        max_keeper_fee_usd=KeeperConfig.MAX_KEEPER_FEE_USD,
        base_keeper_fee_usd=KeeperConfig.BASE_KEEPER_FEE_USD,
        keeper_profit_margin_percent=Percentage(KeeperConfig.KEEPER_PROFIT_MARGIN_PERCENT),
    ).validate()
