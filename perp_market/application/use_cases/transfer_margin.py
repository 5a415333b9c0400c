"""
MarginLedgerUseCase - Deposits and withdrawals of margin collateral.

A transfer follows a fixed order: validate, update the ledger, then move
funds through custody. Withdrawals are risk-checked against the position
after the ledger has been decremented, before any funds leave. The whole
operation runs in one state store transaction, so a failure at any step
(including custody) leaves the ledger untouched.
"""
import logging
from decimal import Decimal
from typing import List, Optional

from perp_market.application.dto.margin import MarginDigest, TransferResult
from perp_market.application.ports.outbound.custody_port import CustodyPort
from perp_market.application.ports.outbound.event_publisher_port import EventPublisherPort
from perp_market.application.ports.outbound.state_store_port import StateStorePort
from perp_market.application.services.access_guard import AccessGuard
from perp_market.application.services.custody_moves import CustodyMoves
from perp_market.application.services.event_dispatch import publish_events
from perp_market.application.services.margin_service import MarginService
from perp_market.application.services.price_oracle import PriceOracleService
from perp_market.domain.entities.collateral import MarginLedgerEntry
from perp_market.domain.events import DomainEvent, Transfer
from perp_market.domain.exceptions import (
    CanLiquidatePositionError,
    InsufficientCollateralError,
    InsufficientMarginError,
    MaxCollateralExceededError,
    OrderFoundError,
    PerpMarketError,
)
from perp_market.domain.value_objects.fixed_point import (
    ZERO,
    absolute,
    checked_add,
    checked_sub_unsigned,
    to_decimal,
)
from perp_market.domain.value_objects.identifiers import LEDGER_ADDRESS, normalize_address
from perp_market.exceptions import PerpInfrastructureError

logger = logging.getLogger(__name__)


class MarginLedgerUseCase:
    """
    Use case for moving collateral in and out of the margin ledger.

    Usage:
        ledger = container.get_margin_ledger_use_case()
        await ledger.transfer_to(trader, account_id, market_id, USDC, Decimal("1000"))
        await ledger.transfer_to(trader, account_id, market_id, USDC, Decimal("-250"))
    """

    def __init__(
        self,
        store: StateStorePort,
        custody: CustodyPort,
        price_oracle: PriceOracleService,
        margin: MarginService,
        access: AccessGuard,
        publisher: Optional[EventPublisherPort] = None,
    ):
        """
        Initialize with required ports.

        Args:
            store: Venue state
            custody: Funds movements
            price_oracle: Market and collateral prices
            margin: Margin valuation
            access: Capability checks
            publisher: Event publisher (optional)
        """
        self.store = store
        self.custody = custody
        self.price_oracle = price_oracle
        self.margin = margin
        self.access = access
        self.publisher = publisher

    async def transfer_to(
        self,
        caller: str,
        account_id: int,
        market_id: int,
        collateral_type_id: str,
        amount_delta: Decimal,
    ) -> TransferResult:
        """
        Deposit (positive delta) or withdraw (negative delta) collateral.

        Args:
            caller: Calling wallet (needs account permission)
            account_id: Account
            market_id: Market
            collateral_type_id: Whitelisted collateral
            amount_delta: Signed amount; zero is a no-op

        Returns:
            TransferResult with the new available amount

        Raises:
            AccountNotFoundError, UnauthorizedError: Identity checks
            MarketNotFoundError: Unknown market
            UnsupportedCollateralError: Collateral not whitelisted
            OrderFoundError: An order is pending for the pair
            MaxCollateralExceededError: Deposit above the cap
            InsufficientCollateralError: Withdrawal above available
            CanLiquidatePositionError, InsufficientMarginError: Withdrawal
                would leave the position unsafe
        """
        collateral_type_id = normalize_address(collateral_type_id)

        try:
            amount_delta = to_decimal(amount_delta)

            async with self.store.transaction():
                await self.access.require_account_permission(account_id, caller, "transfer margin")

                if amount_delta == ZERO:
                    return TransferResult(
                        account_id=account_id,
                        market_id=market_id,
                        collateral_type_id=collateral_type_id,
                        amount_delta=ZERO,
                        available=self.store.available(account_id, market_id, collateral_type_id),
                    )

                self.store.require_market(market_id)
                collateral = self.store.require_supported_collateral(collateral_type_id)
                if self.store.get_order(account_id, market_id) is not None:
                    raise OrderFoundError(account_id, market_id)

                entry = self.store.get_ledger_entry(account_id, market_id, collateral.id)
                if amount_delta > ZERO:
                    updated, events = await self._deposit(caller, entry, amount_delta, collateral.max_allowable)
                else:
                    updated, events = await self._withdraw(caller, entry, absolute(amount_delta))
        except (PerpMarketError, PerpInfrastructureError) as e:
            logger.warning(
                f"Transfer rejected (account={account_id}, market={market_id}, "
                f"collateral={collateral_type_id}, delta={amount_delta}): {e}"
            )
            raise

        logger.info(
            f"Transfer account={account_id} market={market_id} collateral={collateral_type_id} "
            f"delta={amount_delta} available={updated.available}"
        )
        await publish_events(self.publisher, events)
        return TransferResult(
            account_id=account_id,
            market_id=market_id,
            collateral_type_id=collateral_type_id,
            amount_delta=amount_delta,
            available=updated.available,
            events=events,
        )

    async def _deposit(
        self,
        caller: str,
        entry: MarginLedgerEntry,
        amount: Decimal,
        max_allowable: Decimal,
    ):
        new_available = checked_add(entry.available, amount)
        if new_available > max_allowable:
            raise MaxCollateralExceededError(entry.collateral_type_id, entry.available, amount, max_allowable)

        updated = entry.with_available(new_available)
        self.store.save_ledger_entry(updated)

        async with CustodyMoves(self.custody) as moves:
            await moves.pull(entry.collateral_type_id, caller, amount)
            await moves.deposit_market_collateral(entry.market_id, entry.collateral_type_id, amount)

        events: List[DomainEvent] = [
            Transfer(
                from_address=caller,
                to_address=LEDGER_ADDRESS,
                amount=amount,
                collateral_type_id=entry.collateral_type_id,
                account_id=entry.account_id,
                market_id=entry.market_id,
            )
        ]
        return updated, events

    async def _withdraw(self, caller: str, entry: MarginLedgerEntry, amount: Decimal):
        if entry.available < amount:
            raise InsufficientCollateralError(entry.collateral_type_id, entry.available, amount)

        # Decrement before any risk check or custody call.
        updated = entry.with_available(checked_sub_unsigned(entry.available, amount))
        self.store.save_ledger_entry(updated)

        await self._check_withdrawal_risk(entry.account_id, entry.market_id)

        async with CustodyMoves(self.custody) as moves:
            await moves.withdraw_market_collateral(entry.market_id, entry.collateral_type_id, amount)
            await moves.push(entry.collateral_type_id, caller, amount)

        events: List[DomainEvent] = [
            Transfer(
                from_address=LEDGER_ADDRESS,
                to_address=caller,
                amount=amount,
                collateral_type_id=entry.collateral_type_id,
                account_id=entry.account_id,
                market_id=entry.market_id,
            )
        ]
        return updated, events

    async def _check_withdrawal_risk(self, account_id: int, market_id: int) -> None:
        """Post-withdrawal margin of the position, if any, at the oracle price."""
        position = self.store.get_position(account_id, market_id)
        if position is None:
            return

        market = self.store.require_market(market_id)
        config = self.store.require_market_configuration(market_id)
        price = await self.price_oracle.resolve_price(market)
        collateral_usd = await self.margin.collateral_usd(account_id, market_id)
        risk = self.margin.assess(position, collateral_usd, price, config)

        if position.is_open:
            if risk.is_liquidatable:
                raise CanLiquidatePositionError(
                    account_id,
                    market_id,
                    risk.margin_usd,
                    risk.thresholds.liquidation_threshold_usd,
                )
            if risk.is_below_initial_margin:
                raise InsufficientMarginError(risk.margin_usd, risk.thresholds.initial_margin_usd)
        elif risk.margin_usd < ZERO:
            raise InsufficientMarginError(risk.margin_usd, ZERO)

    # --- Queries ---

    async def get_notional_value_usd(self, account_id: int, market_id: int) -> Decimal:
        """|size| * current oracle price; zero without a position."""
        async with self.store.read():
            market = self.store.require_market(market_id)
            position = self.store.get_position(account_id, market_id)
            if position is None or not position.is_open:
                return ZERO
            price = await self.price_oracle.resolve_price(market)
            return position.notional_value(price)

    async def get_collateral_usd(self, account_id: int, market_id: int) -> Decimal:
        """Available collateral valued in USD."""
        async with self.store.read():
            self.store.require_market(market_id)
            return await self.margin.collateral_usd(account_id, market_id)

    async def get_margin_digest(self, account_id: int, market_id: int) -> MarginDigest:
        """Ledger entries, their prices and total USD value."""
        async with self.store.read():
            self.store.require_market(market_id)
            snapshot = await self.margin.snapshot(account_id, market_id)
            return MarginDigest(
                account_id=account_id,
                market_id=market_id,
                entries=snapshot.entries,
                collateral_prices=dict(snapshot.prices),
                collateral_usd=snapshot.collateral_usd,
            )

    async def get_available(self, account_id: int, market_id: int, collateral_type_id: str) -> Decimal:
        async with self.store.read():
            return self.store.available(account_id, market_id, normalize_address(collateral_type_id))
