"""
Order rules: settlement timing, publish-time band, limit price and market
size checks. Each check raises the matching domain error or returns None.
"""
from __future__ import annotations
from decimal import Decimal
from typing import Tuple

from perp_market.domain.entities.market import MarketConfiguration, MarketState
from perp_market.domain.entities.order import Order
from perp_market.domain.exceptions import (
    LimitPriceExceededError,
    MaxMarketSizeExceededError,
    OrderExpiredError,
    OrderTooEarlyError,
    PriceTooFreshError,
    StalePriceError,
)
from perp_market.domain.value_objects.fixed_point import ZERO


def check_settlement_window(order: Order, settlement_time: int, config: MarketConfiguration) -> None:
    """commitment + min_order_age <= settlement_time <= commitment + max_order_age."""
    age = order.age(settlement_time)
    if not order.is_ready(settlement_time, config.min_order_age):
        raise OrderTooEarlyError(age, config.min_order_age)
    if order.is_expired(settlement_time, config.max_order_age):
        raise OrderExpiredError(age, config.max_order_age)


def publish_time_window(settlement_time: int, config: MarketConfiguration) -> Tuple[int, int]:
    """[settlement_time - pyth_publish_time_max, settlement_time - pyth_publish_time_min]."""
    return (
        settlement_time - config.pyth_publish_time_max,
        settlement_time - config.pyth_publish_time_min,
    )


def check_publish_time(
    publish_time: int,
    now: int,
    settlement_time: int,
    config: MarketConfiguration,
) -> None:
    """Reject prices from the future, before the band, or after it."""
    window_start, window_end = publish_time_window(settlement_time, config)
    if publish_time > now:
        raise PriceTooFreshError(publish_time, window_start, window_end)
    if publish_time < window_start:
        raise StalePriceError(publish_time, window_start, window_end)
    if publish_time > window_end:
        raise PriceTooFreshError(publish_time, window_start, window_end)


def check_limit_price(order: Order, fill_price: Decimal) -> None:
    """Longs must fill at or below the limit, shorts at or above it."""
    if order.is_long and fill_price > order.limit_price:
        raise LimitPriceExceededError(fill_price, order.limit_price)
    if not order.is_long and fill_price < order.limit_price:
        raise LimitPriceExceededError(fill_price, order.limit_price)


def check_market_size(market_id: int, state: MarketState, config: MarketConfiguration) -> None:
    """Open interest on either side must stay within max_market_size (0 = unlimited)."""
    if config.max_market_size == ZERO:
        return
    for side_size in (state.long_open_interest, state.short_open_interest):
        if side_size > config.max_market_size:
            raise MaxMarketSizeExceededError(market_id, side_size, config.max_market_size)
