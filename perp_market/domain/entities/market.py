"""
Market and MarketConfiguration entities.
"""
from __future__ import annotations
from dataclasses import dataclass, field, replace
from decimal import Decimal

from perp_market.domain.exceptions import InvalidMarketConfigurationError
from perp_market.domain.value_objects.fixed_point import (
    ZERO,
    checked_add,
    checked_sub,
    div,
    to_decimal,
)
from perp_market.domain.value_objects.percentage import Percentage

TWO = Decimal("2")


@dataclass(frozen=True)
class MarketConfiguration:
    """
    Admin-controlled parameters of a market.

    Attributes:
        min_order_age: Seconds before a committed order may settle
        max_order_age: Seconds after which a pending order expires
        pyth_publish_time_min: Minimum lag between publish and settlement
        pyth_publish_time_max: Maximum lag between publish and settlement
        initial_margin_ratio: Initial margin as share of notional
        maintenance_margin_ratio: Maintenance margin as share of notional
        liquidation_reward_percent: Liquidation premium as share of notional
        min_margin_usd: Flat margin added to initial and maintenance margin
        maker_fee: Fee rate for orders reducing market skew
        taker_fee: Fee rate for orders increasing market skew
        max_market_size: Max open interest per side (0 = unlimited)
        min_keeper_fee_usd: Lower bound of the keeper settlement fee
        max_keeper_fee_usd: Upper bound of the keeper settlement fee
        base_keeper_fee_usd: Keeper settlement cost before profit margin
        keeper_profit_margin_percent: Profit margin applied to the base fee
    """
    min_order_age: int
    max_order_age: int
    pyth_publish_time_min: int
    pyth_publish_time_max: int
    initial_margin_ratio: Percentage
    maintenance_margin_ratio: Percentage
    liquidation_reward_percent: Percentage = field(default_factory=Percentage.zero)
    min_margin_usd: Decimal = ZERO
    maker_fee: Percentage = field(default_factory=Percentage.zero)
    taker_fee: Percentage = field(default_factory=Percentage.zero)
    max_market_size: Decimal = ZERO
    min_keeper_fee_usd: Decimal = ZERO
    max_keeper_fee_usd: Decimal = ZERO
    base_keeper_fee_usd: Decimal = ZERO
    keeper_profit_margin_percent: Percentage = field(default_factory=Percentage.zero)

    def __post_init__(self) -> None:
        for name in (
            "min_margin_usd",
            "max_market_size",
            "min_keeper_fee_usd",
            "max_keeper_fee_usd",
            "base_keeper_fee_usd",
        ):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))

    def validate(self) -> MarketConfiguration:
        """Raise InvalidMarketConfigurationError unless all invariants hold."""
        for name in ("min_order_age", "max_order_age", "pyth_publish_time_min", "pyth_publish_time_max"):
            if getattr(self, name) < 0:
                raise InvalidMarketConfigurationError(f"{name} must be non-negative")
        if self.min_order_age > self.max_order_age:
            raise InvalidMarketConfigurationError(
                f"min_order_age {self.min_order_age} > max_order_age {self.max_order_age}"
            )
        if self.pyth_publish_time_min > self.pyth_publish_time_max:
            raise InvalidMarketConfigurationError(
                f"pyth_publish_time_min {self.pyth_publish_time_min} > "
                f"pyth_publish_time_max {self.pyth_publish_time_max}"
            )
        for name in (
            "initial_margin_ratio",
            "maintenance_margin_ratio",
            "liquidation_reward_percent",
            "maker_fee",
            "taker_fee",
            "keeper_profit_margin_percent",
        ):
            if getattr(self, name).is_negative():
                raise InvalidMarketConfigurationError(f"{name} must be non-negative")
        for name in (
            "min_margin_usd",
            "max_market_size",
            "min_keeper_fee_usd",
            "max_keeper_fee_usd",
            "base_keeper_fee_usd",
        ):
            if getattr(self, name) < ZERO:
                raise InvalidMarketConfigurationError(f"{name} must be non-negative")
        if self.maintenance_margin_ratio > self.initial_margin_ratio:
            raise InvalidMarketConfigurationError(
                f"maintenance_margin_ratio {self.maintenance_margin_ratio} > "
                f"initial_margin_ratio {self.initial_margin_ratio}"
            )
        if self.min_keeper_fee_usd > self.max_keeper_fee_usd:
            raise InvalidMarketConfigurationError(
                f"min_keeper_fee_usd {self.min_keeper_fee_usd} > "
                f"max_keeper_fee_usd {self.max_keeper_fee_usd}"
            )
        return self

    def with_changes(self, **changes) -> MarketConfiguration:
        """Copy with some parameters replaced, validated."""
        return replace(self, **changes).validate()


@dataclass(frozen=True)
class Market:
    """
    A perpetual market.

    Attributes:
        id: Sequential market id
        name: Display name (e.g. "ETHPERP")
        oracle_node_id: Oracle manager node valuing the market
        pyth_price_feed_id: Feed settlement price updates must belong to
    """
    id: int
    name: str
    oracle_node_id: str
    pyth_price_feed_id: str


@dataclass(frozen=True)
class MarketState:
    """
    Aggregate open interest of a market.

    Attributes:
        skew: Net open interest (sum of signed sizes)
        size: Gross open interest (sum of absolute sizes)
    """
    skew: Decimal = ZERO
    size: Decimal = ZERO

    @property
    def long_open_interest(self) -> Decimal:
        return div(checked_add(self.size, self.skew), TWO)

    @property
    def short_open_interest(self) -> Decimal:
        return div(checked_sub(self.size, self.skew), TWO)

    def apply(self, old_size: Decimal, new_size: Decimal) -> MarketState:
        """State after a position moves from old_size to new_size."""
        return MarketState(
            skew=checked_add(checked_sub(self.skew, old_size), new_size),
            size=checked_add(checked_sub(self.size, old_size.copy_abs()), new_size.copy_abs()),
        )
