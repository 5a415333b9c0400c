"""
FeeCalculator Domain Service

Order fee (maker/taker by skew) and the keeper settlement fee bounded by
the order's keeper fee buffer.
"""
from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal

from perp_market.domain.entities.market import MarketConfiguration
from perp_market.domain.value_objects.fixed_point import (
    ONE,
    ZERO,
    absolute,
    checked_add,
    mul,
    sign,
)
from perp_market.domain.value_objects.percentage import Percentage


@dataclass(frozen=True)
class SettlementFees:
    """
    Fees charged when an order settles.

    Attributes:
        order_fee: |size_delta| * fill_price * maker/taker rate
        keeper_fee: Paid to the settling keeper
    """
    order_fee: Decimal
    keeper_fee: Decimal

    @property
    def total(self) -> Decimal:
        return checked_add(self.order_fee, self.keeper_fee)


class FeeCalculator:
    """Domain service for settlement fee calculations."""

    def __init__(self, config: MarketConfiguration):
        self.config = config

    def fee_rate(self, size_delta: Decimal, skew: Decimal) -> Percentage:
        """
        Maker rate when the order reduces skew without crossing it,
        taker rate otherwise.
        """
        if skew != ZERO and sign(size_delta) != sign(skew) and absolute(size_delta) <= absolute(skew):
            return self.config.maker_fee
        return self.config.taker_fee

    def order_fee(self, size_delta: Decimal, fill_price: Decimal, skew: Decimal) -> Decimal:
        notional = mul(absolute(size_delta), fill_price)
        return self.fee_rate(size_delta, skew).apply_to(notional)

    def keeper_fee(self, keeper_fee_buffer_usd: Decimal) -> Decimal:
        """
        Keeper fee = clamp(base * (1 + profit margin), min, max), then capped
        by the trader's keeper fee buffer.
        """
        config = self.config
        with_margin = mul(
            config.base_keeper_fee_usd,
            checked_add(ONE, config.keeper_profit_margin_percent.value),
        )
        bounded = min(max(with_margin, config.min_keeper_fee_usd), config.max_keeper_fee_usd)
        return min(bounded, keeper_fee_buffer_usd)

    def settlement_fees(
        self,
        size_delta: Decimal,
        fill_price: Decimal,
        skew: Decimal,
        keeper_fee_buffer_usd: Decimal,
    ) -> SettlementFees:
        return SettlementFees(
            order_fee=self.order_fee(size_delta, fill_price, skew),
            keeper_fee=self.keeper_fee(keeper_fee_buffer_usd),
        )
