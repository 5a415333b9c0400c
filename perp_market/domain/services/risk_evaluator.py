"""
PositionRiskEvaluator Domain Service

Pure margin and liquidation maths shared by the margin ledger (withdrawal
safety) and the order pipeline (settlement safety). Never mutates state;
identical inputs give identical answers.
"""
from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Tuple

from perp_market.domain.entities.collateral import MarginLedgerEntry
from perp_market.domain.entities.market import MarketConfiguration
from perp_market.domain.entities.position import Position
from perp_market.domain.value_objects.fixed_point import (
    ZERO,
    checked_add,
    div,
    mul,
)


@dataclass(frozen=True)
class LiquidationMargin:
    """
    Margin thresholds for a position size at a price.

    Attributes:
        initial_margin_usd: Required to open or increase exposure
        maintenance_margin_usd: Below this (plus premium) the position is liquidatable
        liquidation_premium_usd: Reward reserved for the liquidating keeper
    """
    initial_margin_usd: Decimal
    maintenance_margin_usd: Decimal
    liquidation_premium_usd: Decimal

    @property
    def liquidation_threshold_usd(self) -> Decimal:
        return checked_add(self.maintenance_margin_usd, self.liquidation_premium_usd)

    def as_tuple(self) -> Tuple[Decimal, Decimal, Decimal]:
        return (
            self.initial_margin_usd,
            self.maintenance_margin_usd,
            self.liquidation_premium_usd,
        )


@dataclass(frozen=True)
class RiskAssessment:
    """
    Result of evaluating a position at a price.

    Attributes:
        margin_usd: Collateral USD + accumulated margin + unrealized PnL
        notional_usd: |size| * price
        unrealized_pnl: Open PnL at the price
        thresholds: Initial/maintenance margin and liquidation premium
        is_liquidatable: margin below maintenance + premium
    """
    margin_usd: Decimal
    notional_usd: Decimal
    unrealized_pnl: Decimal
    thresholds: LiquidationMargin
    is_liquidatable: bool

    @property
    def health_factor(self) -> Optional[Decimal]:
        """margin / liquidation threshold; None when nothing is at risk."""
        threshold = self.thresholds.liquidation_threshold_usd
        if threshold == ZERO:
            return None
        return div(self.margin_usd, threshold)

    @property
    def is_below_initial_margin(self) -> bool:
        return self.margin_usd < self.thresholds.initial_margin_usd


class PositionRiskEvaluator:
    """
    Domain service for margin requirements and liquidation eligibility.

    Usage:
        evaluator = PositionRiskEvaluator()
        assessment = evaluator.assess(position, collateral_usd, price, config)
        if assessment.is_liquidatable:
            ...
    """

    # --- Margin Valuation ---

    @staticmethod
    def collateral_usd(
        entries: Iterable[MarginLedgerEntry],
        prices: Mapping[str, Decimal],
    ) -> Decimal:
        """Sum of available collateral valued at each collateral's own price."""
        total = ZERO
        for entry in entries:
            if entry.is_empty:
                continue
            total = checked_add(total, mul(entry.available, prices[entry.collateral_type_id]))
        return total

    @staticmethod
    def margin_usd(position: Optional[Position], collateral_usd: Decimal, price: Decimal) -> Decimal:
        """Collateral plus realized and unrealized PnL of the position."""
        if position is None:
            return collateral_usd
        margin = checked_add(collateral_usd, position.accumulated_margin)
        return checked_add(margin, position.unrealized_pnl(price))

    # --- Thresholds ---

    @staticmethod
    def get_liquidation_margin_usd(
        size: Decimal,
        price: Decimal,
        config: MarketConfiguration,
    ) -> LiquidationMargin:
        """
        Margin thresholds for a position of the given size.

        notional = |size| * price
        initial = notional * initial_margin_ratio + min_margin_usd
        maintenance = notional * maintenance_margin_ratio + min_margin_usd
        premium = notional * liquidation_reward_percent
        """
        if size == ZERO:
            return LiquidationMargin(ZERO, ZERO, ZERO)
        notional = mul(size.copy_abs(), price)
        return LiquidationMargin(
            initial_margin_usd=checked_add(
                config.initial_margin_ratio.apply_to(notional), config.min_margin_usd
            ),
            maintenance_margin_usd=checked_add(
                config.maintenance_margin_ratio.apply_to(notional), config.min_margin_usd
            ),
            liquidation_premium_usd=config.liquidation_reward_percent.apply_to(notional),
        )

    def is_liquidatable(
        self,
        margin_usd: Decimal,
        size: Decimal,
        price: Decimal,
        config: MarketConfiguration,
    ) -> bool:
        """True iff an open position's margin is below maintenance + premium."""
        if size == ZERO:
            return False
        thresholds = self.get_liquidation_margin_usd(size, price, config)
        return margin_usd < thresholds.liquidation_threshold_usd

    # --- Assessment ---

    def assess(
        self,
        position: Optional[Position],
        collateral_usd: Decimal,
        price: Decimal,
        config: MarketConfiguration,
    ) -> RiskAssessment:
        """Full risk picture of a position at a price."""
        size = position.size if position is not None else ZERO
        margin = self.margin_usd(position, collateral_usd, price)
        thresholds = self.get_liquidation_margin_usd(size, price, config)
        return RiskAssessment(
            margin_usd=margin,
            notional_usd=position.notional_value(price) if position is not None else ZERO,
            unrealized_pnl=position.unrealized_pnl(price) if position is not None else ZERO,
            thresholds=thresholds,
            is_liquidatable=self.is_liquidatable(margin, size, price, config),
        )
