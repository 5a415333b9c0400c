"""
MarginService - Margin valuation and fee debiting over the margin ledger.

Shared by the margin ledger (withdrawal safety) and the order pipeline
(commit estimates, settlement fees). Must be called inside a state store
transaction or read scope.
"""
from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from perp_market.application.ports.outbound.state_store_port import StateStorePort
from perp_market.application.services.price_oracle import PriceOracleService
from perp_market.domain.entities.collateral import MarginLedgerEntry
from perp_market.domain.entities.market import MarketConfiguration
from perp_market.domain.entities.position import Position
from perp_market.domain.exceptions import InsufficientMarginError
from perp_market.domain.services.risk_evaluator import PositionRiskEvaluator, RiskAssessment
from perp_market.domain.value_objects.fixed_point import (
    UNIT,
    ZERO,
    checked_add,
    checked_sub,
    checked_sub_unsigned,
    div,
    mul,
)


@dataclass(frozen=True)
class CollateralSnapshot:
    """
    Ledger entries of an (account, market) pair with their prices.

    Attributes:
        entries: One entry per configured collateral, in configuration order
        prices: USD price per collateral type id
    """
    entries: List[MarginLedgerEntry]
    prices: Dict[str, Decimal]

    @property
    def collateral_usd(self) -> Decimal:
        return PositionRiskEvaluator.collateral_usd(self.entries, self.prices)


@dataclass(frozen=True)
class CollateralDebit:
    """Collateral taken from one ledger entry to cover a USD amount."""
    collateral_type_id: str
    amount: Decimal
    usd_value: Decimal


class MarginService:
    """
    Margin valuation over the ledger.

    Usage:
        async with store.transaction():
            snapshot = await margin.snapshot(account_id, market_id)
            debits = margin.debit_usd(snapshot, account_id, market_id, fee_usd)
    """

    def __init__(
        self,
        store: StateStorePort,
        price_oracle: PriceOracleService,
        evaluator: Optional[PositionRiskEvaluator] = None,
    ):
        self.store = store
        self.price_oracle = price_oracle
        self.evaluator = evaluator or PositionRiskEvaluator()

    # --- Valuation ---

    async def snapshot(self, account_id: int, market_id: int) -> CollateralSnapshot:
        """
        Entries and prices of every configured collateral.

        Disabled collateral (zero cap) still counts towards margin while it
        is held.
        """
        collaterals = self.store.get_collaterals()
        entries = [
            self.store.get_ledger_entry(account_id, market_id, collateral.id)
            for collateral in collaterals
        ]
        prices: Dict[str, Decimal] = {}
        for collateral, entry in zip(collaterals, entries):
            if entry.is_empty:
                continue
            prices[collateral.id] = await self.price_oracle.resolve_collateral_price(collateral)
        return CollateralSnapshot(entries=entries, prices=prices)

    async def collateral_usd(self, account_id: int, market_id: int) -> Decimal:
        return (await self.snapshot(account_id, market_id)).collateral_usd

    def assess(
        self,
        position: Optional[Position],
        collateral_usd: Decimal,
        price: Decimal,
        config: MarketConfiguration,
    ) -> RiskAssessment:
        return self.evaluator.assess(position, collateral_usd, price, config)

    # --- Fee Debiting ---

    def debit_usd(
        self,
        snapshot: CollateralSnapshot,
        account_id: int,
        market_id: int,
        amount_usd: Decimal,
    ) -> Tuple[CollateralSnapshot, List[CollateralDebit]]:
        """
        Debit a USD amount from the ledger in collateral configuration order.

        Each collateral covers as much as it can at its own price; the units
        taken are rounded up so the debit never undershoots.

        Args:
            snapshot: Current entries and prices (from snapshot())
            account_id: Account to debit
            market_id: Market to debit
            amount_usd: USD amount to cover (non-negative)

        Returns:
            (snapshot after the debit, debits per collateral)

        Raises:
            InsufficientMarginError: Collateral cannot cover the amount
        """
        remaining = amount_usd
        debits: List[CollateralDebit] = []
        entries: List[MarginLedgerEntry] = []

        for entry in snapshot.entries:
            if remaining <= ZERO or entry.is_empty:
                entries.append(entry)
                continue

            price = snapshot.prices[entry.collateral_type_id]
            units = self._units_for_usd(remaining, price)
            taken = min(units, entry.available)
            covered = remaining if taken == units else mul(taken, price)

            updated = entry.with_available(checked_sub_unsigned(entry.available, taken))
            self.store.save_ledger_entry(updated)
            entries.append(updated)
            debits.append(CollateralDebit(entry.collateral_type_id, taken, covered))
            remaining = checked_sub(remaining, min(covered, remaining))

        if remaining > ZERO:
            covered_usd = checked_sub(amount_usd, remaining)
            raise InsufficientMarginError(covered_usd, amount_usd)

        return CollateralSnapshot(entries=entries, prices=snapshot.prices), debits

    @staticmethod
    def _units_for_usd(amount_usd: Decimal, price: Decimal) -> Decimal:
        units = div(amount_usd, price)
        if mul(units, price) < amount_usd:
            units = checked_add(units, UNIT)
        return units
