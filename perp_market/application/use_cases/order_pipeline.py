"""
OrderPipelineUseCase - Commit/settle state machine.

States per (account, market):
    IDLE -> PENDING -> {SETTLED, EXPIRED, CANCELLED} -> IDLE

commit_order records intent at the current time. settle_order applies the
order, no sooner than min_order_age and no later than max_order_age, at a
price published inside the settlement window. cancel_order clears an order
that outlived max_order_age. A pending order blocks margin transfers for
the pair.
"""
import logging
from decimal import Decimal
from typing import List, Optional

from perp_market.application.dto.trading import (
    CancelOrderResult,
    CommitOrderResult,
    OrderDigest,
    SettleOrderResult,
)
from perp_market.application.ports.outbound.custody_port import CustodyPort
from perp_market.application.ports.outbound.event_publisher_port import EventPublisherPort
from perp_market.application.ports.outbound.state_store_port import StateStorePort
from perp_market.application.ports.outbound.time_provider_port import TimeProviderPort
from perp_market.application.services.access_guard import AccessGuard
from perp_market.application.services.custody_moves import CustodyMoves
from perp_market.application.services.event_dispatch import publish_events
from perp_market.application.services.margin_service import CollateralDebit, MarginService
from perp_market.application.services.price_oracle import PriceOracleService
from perp_market.domain.entities.market import MarketConfiguration
from perp_market.domain.entities.order import Order, OrderState
from perp_market.domain.entities.position import Position
from perp_market.domain.events import (
    KEEPER_FEE_TRANSFER,
    DomainEvent,
    OrderCanceled,
    OrderCommitted,
    OrderSettled,
    Transfer,
)
from perp_market.domain.exceptions import (
    InsufficientMarginError,
    InvalidOrderError,
    NilOrderError,
    OrderFoundError,
    OrderNotExpiredError,
    PerpMarketError,
    ZeroAddressError,
)
from perp_market.domain.services.fee_calculator import FeeCalculator
from perp_market.domain.services.order_rules import (
    check_limit_price,
    check_market_size,
    check_settlement_window,
)
from perp_market.domain.services.risk_evaluator import PositionRiskEvaluator
from perp_market.domain.value_objects.fixed_point import ZERO, checked_add, checked_sub, to_decimal
from perp_market.domain.value_objects.identifiers import LEDGER_ADDRESS, is_zero_address
from perp_market.exceptions import PerpInfrastructureError

logger = logging.getLogger(__name__)


class OrderPipelineUseCase:
    """
    Use case for the order commit/settle protocol.

    Usage:
        pipeline = container.get_order_pipeline_use_case()
        await pipeline.commit_order(trader, account_id, market_id,
                                    size_delta=Decimal("10"), limit_price=Decimal("100"),
                                    keeper_fee_buffer_usd=Decimal("5"))
        # min_order_age later, by any keeper:
        await pipeline.settle_order(keeper, account_id, market_id, price_update_blob)
    """

    def __init__(
        self,
        store: StateStorePort,
        custody: CustodyPort,
        price_oracle: PriceOracleService,
        margin: MarginService,
        access: AccessGuard,
        time_provider: TimeProviderPort,
        publisher: Optional[EventPublisherPort] = None,
        evaluator: Optional[PositionRiskEvaluator] = None,
    ):
        """
        Initialize with required ports.

        Args:
            store: Venue state
            custody: Keeper fee payouts
            price_oracle: Oracle prices and settlement updates
            margin: Margin valuation and fee debiting
            access: Capability checks
            time_provider: Clock for commitment and settlement times
            publisher: Event publisher (optional)
            evaluator: Risk evaluator (default instance if None)
        """
        self.store = store
        self.custody = custody
        self.price_oracle = price_oracle
        self.margin = margin
        self.access = access
        self.time_provider = time_provider
        self.publisher = publisher
        self.evaluator = evaluator or PositionRiskEvaluator()

    # --- Commit ---

    async def commit_order(
        self,
        caller: str,
        account_id: int,
        market_id: int,
        size_delta: Decimal,
        limit_price: Decimal,
        keeper_fee_buffer_usd: Decimal,
    ) -> CommitOrderResult:
        """
        Record an order for later settlement.

        The order is pre-checked at the current oracle price: open interest
        must stay within max_market_size and, when exposure grows, margin
        after estimated fees and the full keeper fee buffer must cover
        initial margin.

        Args:
            caller: Calling wallet (needs account permission)
            account_id: Account
            market_id: Market
            size_delta: Signed size change (non-zero)
            limit_price: Worst acceptable fill price (positive)
            keeper_fee_buffer_usd: Max keeper fee the trader accepts

        Returns:
            CommitOrderResult with the pending order and fee estimates

        Raises:
            AccountNotFoundError, UnauthorizedError: Identity checks
            MarketNotFoundError: Unknown market
            OrderFoundError: An order is already pending
            NilOrderError: size_delta is zero
            InvalidOrderError: Non-positive limit or negative buffer
            MaxMarketSizeExceededError: Open interest above the cap
            InsufficientMarginError: Margin cannot support the order
        """
        try:
            size_delta = to_decimal(size_delta)
            limit_price = to_decimal(limit_price)
            keeper_fee_buffer_usd = to_decimal(keeper_fee_buffer_usd)

            async with self.store.transaction():
                await self.access.require_account_permission(account_id, caller, "commit order")
                market = self.store.require_market(market_id)
                config = self.store.require_market_configuration(market_id)

                if self.store.get_order(account_id, market_id) is not None:
                    raise OrderFoundError(account_id, market_id)
                if size_delta == ZERO:
                    raise NilOrderError()
                if limit_price <= ZERO:
                    raise InvalidOrderError(f"limit price must be positive, got {limit_price}")
                if keeper_fee_buffer_usd < ZERO:
                    raise InvalidOrderError(
                        f"keeper fee buffer must be non-negative, got {keeper_fee_buffer_usd}"
                    )

                price = await self.price_oracle.resolve_price(market)
                position = self._position_or_empty(account_id, market_id)
                state = self.store.get_market_state(market_id)
                new_position, _ = position.apply_fill(size_delta, price)
                check_market_size(market_id, state.apply(position.size, new_position.size), config)

                fees = FeeCalculator(config).settlement_fees(
                    size_delta, price, state.skew, keeper_fee_buffer_usd
                )
                if position.increases_exposure(size_delta):
                    collateral_usd = await self.margin.collateral_usd(account_id, market_id)
                    self._check_initial_margin(
                        new_position,
                        collateral_usd,
                        price,
                        config,
                        reserved_usd=checked_add(fees.order_fee, keeper_fee_buffer_usd),
                    )

                order = Order(
                    account_id=account_id,
                    market_id=market_id,
                    size_delta=size_delta,
                    limit_price=limit_price,
                    keeper_fee_buffer_usd=keeper_fee_buffer_usd,
                    commitment_time=self.time_provider.now(),
                )
                self.store.save_order(order)

                events: List[DomainEvent] = [
                    OrderCommitted(
                        account_id=account_id,
                        market_id=market_id,
                        commitment_time=order.commitment_time,
                        size_delta=size_delta,
                        limit_price=limit_price,
                        estimated_order_fee=fees.order_fee,
                        estimated_keeper_fee=fees.keeper_fee,
                    )
                ]
        except (PerpMarketError, PerpInfrastructureError) as e:
            logger.warning(
                f"Commit rejected (account={account_id}, market={market_id}, delta={size_delta}): {e}"
            )
            raise

        logger.info(
            f"Order committed account={account_id} market={market_id} "
            f"delta={size_delta} limit={limit_price} at {order.commitment_time}"
        )
        await publish_events(self.publisher, events)
        return CommitOrderResult(order=order, estimated_fees=fees, events=events)

    # --- Settle ---

    async def settle_order(
        self,
        caller: str,
        account_id: int,
        market_id: int,
        price_update_blob: bytes,
    ) -> SettleOrderResult:
        """
        Settle a pending order against a keeper-supplied price update.

        Args:
            caller: Settling keeper (anyone; receives the keeper fee)
            account_id: Account
            market_id: Market
            price_update_blob: Pyth update for the market feed

        Returns:
            SettleOrderResult with the new position and fees

        Raises:
            OrderNotFoundError: Nothing pending
            OrderTooEarlyError, OrderExpiredError: Outside the settlement window
            StalePriceError, PriceTooFreshError: Price published outside the band
            PriceFeedMismatchError, InvalidPriceError: Unusable update
            LimitPriceExceededError: Fill worse than the limit
            MaxMarketSizeExceededError: Open interest above the cap
            InsufficientMarginError: Fees not covered or resulting position unsafe
        """
        try:
            async with self.store.transaction():
                if is_zero_address(caller):
                    raise ZeroAddressError("keeper")

                order = self.store.require_order(account_id, market_id)
                market = self.store.require_market(market_id)
                config = self.store.require_market_configuration(market_id)

                settlement_time = self.time_provider.now()
                check_settlement_window(order, settlement_time, config)

                update = await self.price_oracle.validate_and_extract_update(
                    market.pyth_price_feed_id,
                    price_update_blob,
                    settlement_time,
                    config,
                )
                fill_price = update.price
                check_limit_price(order, fill_price)

                position = self._position_or_empty(account_id, market_id)
                state = self.store.get_market_state(market_id)
                fees = FeeCalculator(config).settlement_fees(
                    order.size_delta, fill_price, state.skew, order.keeper_fee_buffer_usd
                )
                new_position, realized_pnl = position.apply_fill(order.size_delta, fill_price)
                new_state = state.apply(position.size, new_position.size)
                check_market_size(market_id, new_state, config)

                # Keeper fee first so its debits can be paid out separately.
                snapshot = await self.margin.snapshot(account_id, market_id)
                snapshot, keeper_debits = self.margin.debit_usd(
                    snapshot, account_id, market_id, fees.keeper_fee
                )
                snapshot, _ = self.margin.debit_usd(snapshot, account_id, market_id, fees.order_fee)

                risk = self.evaluator.assess(new_position, snapshot.collateral_usd, fill_price, config)
                if risk.is_liquidatable:
                    raise InsufficientMarginError(risk.margin_usd, risk.thresholds.liquidation_threshold_usd)
                if position.increases_exposure(order.size_delta) and risk.is_below_initial_margin:
                    raise InsufficientMarginError(risk.margin_usd, risk.thresholds.initial_margin_usd)

                self.store.save_position(new_position)
                self.store.save_market_state(market_id, new_state)
                self.store.delete_order(account_id, market_id)

                events = await self._pay_keeper(caller, account_id, market_id, keeper_debits)
                events.append(
                    OrderSettled(
                        account_id=account_id,
                        market_id=market_id,
                        settlement_time=settlement_time,
                        size_delta=order.size_delta,
                        new_size=new_position.size,
                        fill_price=fill_price,
                        order_fee=fees.order_fee,
                        keeper_fee=fees.keeper_fee,
                        realized_pnl=realized_pnl,
                        keeper=caller,
                    )
                )
        except (PerpMarketError, PerpInfrastructureError) as e:
            logger.warning(f"Settlement rejected (account={account_id}, market={market_id}): {e}")
            raise

        logger.info(
            f"Order settled account={account_id} market={market_id} delta={order.size_delta} "
            f"fill={fill_price} size={new_position.size} fees={fees.total} keeper={caller}"
        )
        await publish_events(self.publisher, events)
        return SettleOrderResult(
            order=order,
            position=None if new_position.is_empty else new_position,
            fill_price=fill_price,
            fees=fees,
            realized_pnl=realized_pnl,
            keeper=caller,
            events=events,
        )

    async def _pay_keeper(
        self,
        keeper: str,
        account_id: int,
        market_id: int,
        debits: List[CollateralDebit],
    ) -> List[DomainEvent]:
        events: List[DomainEvent] = []
        async with CustodyMoves(self.custody) as moves:
            for debit in debits:
                if debit.amount == ZERO:
                    continue
                await moves.withdraw_market_collateral(market_id, debit.collateral_type_id, debit.amount)
                await moves.push(debit.collateral_type_id, keeper, debit.amount)
                events.append(
                    Transfer(
                        from_address=LEDGER_ADDRESS,
                        to_address=keeper,
                        amount=debit.amount,
                        collateral_type_id=debit.collateral_type_id,
                        account_id=account_id,
                        market_id=market_id,
                        kind=KEEPER_FEE_TRANSFER,
                    )
                )
        return events

    # --- Cancel ---

    async def cancel_order(self, caller: str, account_id: int, market_id: int) -> CancelOrderResult:
        """
        Clear an order that outlived max_order_age. Anyone may call.

        The position is left untouched. The order ends CANCELLED when the
        caller may act for the account, EXPIRED otherwise.

        Raises:
            OrderNotFoundError: Nothing pending
            OrderNotExpiredError: Order is still within max_order_age
        """
        try:
            async with self.store.transaction():
                order = self.store.require_order(account_id, market_id)
                config = self.store.require_market_configuration(market_id)

                now = self.time_provider.now()
                if not order.is_expired(now, config.max_order_age):
                    raise OrderNotExpiredError(order.commitment_time, now, config.max_order_age)

                if await self.access.has_account_permission(account_id, caller):
                    state = OrderState.CANCELLED
                else:
                    state = OrderState.EXPIRED

                self.store.delete_order(account_id, market_id)
                position = self.store.get_position(account_id, market_id)

                events: List[DomainEvent] = [
                    OrderCanceled(
                        account_id=account_id,
                        market_id=market_id,
                        commitment_time=order.commitment_time,
                        canceled_at=now,
                        caller=caller,
                        state=state,
                        current_size=position.size if position is not None else ZERO,
                    )
                ]
        except PerpMarketError as e:
            logger.warning(f"Cancel rejected (account={account_id}, market={market_id}): {e}")
            raise

        logger.info(f"Order {state.value} account={account_id} market={market_id} by {caller}")
        await publish_events(self.publisher, events)
        return CancelOrderResult(order=order, state=state, events=events)

    # --- Queries ---

    async def get_order_state(self, account_id: int, market_id: int) -> OrderState:
        """PENDING while an order exists, IDLE otherwise."""
        async with self.store.read():
            if self.store.get_order(account_id, market_id) is None:
                return OrderState.IDLE
            return OrderState.PENDING

    async def get_order(self, account_id: int, market_id: int) -> Order:
        async with self.store.read():
            return self.store.require_order(account_id, market_id)

    async def get_order_digest(self, account_id: int, market_id: int) -> OrderDigest:
        async with self.store.read():
            order = self.store.get_order(account_id, market_id)
            if order is None:
                return OrderDigest(account_id=account_id, market_id=market_id, state=OrderState.IDLE)

            config = self.store.require_market_configuration(market_id)
            now = self.time_provider.now()
            return OrderDigest(
                account_id=account_id,
                market_id=market_id,
                state=OrderState.PENDING,
                order=order,
                age=order.age(now),
                is_ready=order.is_ready(now, config.min_order_age),
                is_expired=order.is_expired(now, config.max_order_age),
            )

    # --- Helpers ---

    def _position_or_empty(self, account_id: int, market_id: int) -> Position:
        position = self.store.get_position(account_id, market_id)
        return position if position is not None else Position.empty(account_id, market_id)

    def _check_initial_margin(
        self,
        new_position: Position,
        collateral_usd: Decimal,
        price: Decimal,
        config: MarketConfiguration,
        reserved_usd: Decimal,
    ) -> None:
        margin = checked_sub(
            self.evaluator.margin_usd(new_position, collateral_usd, price),
            reserved_usd,
        )
        required = self.evaluator.get_liquidation_margin_usd(new_position.size, price, config).initial_margin_usd
        if margin < required:
            raise InsufficientMarginError(margin, required)
