"""
Tests for OrderPipelineUseCase.settle_order.
"""
import pytest
from decimal import Decimal

from perp_market.domain.entities.order import OrderState
from perp_market.domain.events import KEEPER_FEE_TRANSFER, OrderSettled, Transfer
from perp_market.domain.exceptions import (
    InsufficientMarginError,
    LimitPriceExceededError,
    OrderExpiredError,
    OrderNotFoundError,
    OrderTooEarlyError,
    PriceFeedMismatchError,
    PriceTooFreshError,
    StalePriceError,
    ZeroAddressError,
)
from perp_market.domain.value_objects.identifiers import LEDGER_ADDRESS
from perp_market.domain.value_objects.percentage import Percentage
from perp_market.infrastructure.adapters.oracle.pyth_price_feed_adapter import encode_price_update


async def pending_long(venue, size="10", limit="100", buffer="5", deposit="1000"):
    await venue.deposit(deposit)
    await venue.commit(size, limit, buffer)


class TestSettleOrder:

    @pytest.mark.asyncio
    async def test_settle_opens_position(self, venue):
        await pending_long(venue)

        result = await venue.settle("100")

        assert result.state == OrderState.SETTLED
        assert result.position.size == Decimal("10")
        assert result.position.entry_price == Decimal("100")
        assert result.fill_price == Decimal("100")
        assert result.fees.order_fee == Decimal("1")
        assert result.fees.keeper_fee == Decimal("2")
        assert await venue.available() == Decimal("997")
        assert await venue.pipeline.get_order_state(venue.account_id, venue.market_id) == OrderState.IDLE

    @pytest.mark.asyncio
    async def test_keeper_is_paid_from_market_custody(self, venue):
        await pending_long(venue)

        result = await venue.settle("100")

        assert venue.custody.balance_of(venue.usdc, venue.keeper) == Decimal("2")
        assert venue.custody.market_collateral(venue.market_id, venue.usdc) == Decimal("998")
        assert result.events[0] == Transfer(
            from_address=LEDGER_ADDRESS,
            to_address=venue.keeper,
            amount=Decimal("2"),
            collateral_type_id=venue.usdc,
            account_id=venue.account_id,
            market_id=venue.market_id,
            kind=KEEPER_FEE_TRANSFER,
        )
        assert isinstance(result.events[-1], OrderSettled)
        assert venue.events.events[-len(result.events):] == result.events

    @pytest.mark.asyncio
    async def test_updates_market_open_interest(self, venue):
        await pending_long(venue)

        await venue.settle("100")

        state = venue.store.get_market_state(venue.market_id)
        assert state.skew == Decimal("10")
        assert state.size == Decimal("10")

    @pytest.mark.asyncio
    async def test_fill_uses_update_price(self, venue):
        await pending_long(venue)

        result = await venue.settle("99.5")

        assert result.position.entry_price == Decimal("99.5")
        assert result.fees.order_fee == Decimal("0.995")

    @pytest.mark.asyncio
    async def test_keeper_fee_capped_by_buffer(self, venue):
        await pending_long(venue, buffer="1.5")

        result = await venue.settle("100")

        assert result.fees.keeper_fee == Decimal("1.5")
        assert await venue.available() == Decimal("997.5")

    @pytest.mark.asyncio
    async def test_zero_buffer_pays_no_keeper(self, venue):
        await pending_long(venue, buffer="0")

        result = await venue.settle("100")

        assert [event.name for event in result.events] == ["OrderSettled"]
        assert venue.custody.balance_of(venue.usdc, venue.keeper) == Decimal("0")

    @pytest.mark.asyncio
    async def test_close_realizes_pnl(self, venue):
        await venue.deposit("1000")
        await venue.open_position("10", "100")

        result = await venue.open_position("-10", "110")

        assert result.realized_pnl == Decimal("100")
        assert result.position.size == Decimal("0")
        assert result.position.accumulated_margin == Decimal("100")

    @pytest.mark.asyncio
    async def test_any_keeper_may_settle(self, venue):
        await pending_long(venue)

        result = await venue.settle("100", keeper=venue.stranger)

        assert result.keeper == venue.stranger
        assert venue.custody.balance_of(venue.usdc, venue.stranger) == Decimal("2")


class TestSettlementRejections:
    """Every rejection leaves the order pending and the ledger untouched."""

    async def assert_unchanged(self, venue, available="1000"):
        assert await venue.pipeline.get_order_state(venue.account_id, venue.market_id) == OrderState.PENDING
        assert await venue.available() == Decimal(available)
        assert venue.store.get_position(venue.account_id, venue.market_id) is None
        assert venue.custody.balance_of(venue.usdc, venue.keeper) == Decimal("0")

    @pytest.mark.asyncio
    async def test_no_pending_order(self, venue):
        with pytest.raises(OrderNotFoundError):
            await venue.settle("100")

    @pytest.mark.asyncio
    async def test_zero_keeper_address(self, venue):
        await pending_long(venue)

        with pytest.raises(ZeroAddressError):
            await venue.settle("100", keeper="0x" + "0" * 40)
        await self.assert_unchanged(venue)

    @pytest.mark.asyncio
    async def test_too_early(self, venue):
        await pending_long(venue)

        with pytest.raises(OrderTooEarlyError):
            await venue.settle("100", wait=11)
        await self.assert_unchanged(venue)

    @pytest.mark.asyncio
    async def test_settle_at_max_order_age(self, venue):
        await pending_long(venue)

        result = await venue.settle("100", wait=60)

        assert result.position.size == Decimal("10")

    @pytest.mark.asyncio
    async def test_expired(self, venue):
        await pending_long(venue)

        with pytest.raises(OrderExpiredError):
            await venue.settle("100", wait=61)
        await self.assert_unchanged(venue)

    @pytest.mark.asyncio
    async def test_stale_price(self, venue):
        await pending_long(venue)
        venue.clock.advance(12)

        with pytest.raises(StalePriceError):
            await venue.settle("100", wait=None, publish_time=venue.clock.now() - 13)
        await self.assert_unchanged(venue)

    @pytest.mark.asyncio
    async def test_price_too_fresh(self, venue):
        await pending_long(venue)
        venue.clock.advance(12)

        with pytest.raises(PriceTooFreshError):
            await venue.settle("100", wait=None, publish_time=venue.clock.now() - 5)
        await self.assert_unchanged(venue)

    @pytest.mark.asyncio
    async def test_wrong_feed(self, venue):
        await pending_long(venue)
        venue.clock.advance(12)
        blob = encode_price_update("0x" + "f" * 64, Decimal("100"), venue.clock.now() - 6)

        with pytest.raises(PriceFeedMismatchError):
            await venue.pipeline.settle_order(venue.keeper, venue.account_id, venue.market_id, blob)
        await self.assert_unchanged(venue)

    @pytest.mark.asyncio
    async def test_limit_price_exceeded(self, venue):
        await pending_long(venue)

        with pytest.raises(LimitPriceExceededError):
            await venue.settle("100.01")
        await self.assert_unchanged(venue)

    @pytest.mark.asyncio
    async def test_initial_margin_checked_at_settlement(self, venue, market_config):
        """A configuration change between commit and settle is honoured."""
        await pending_long(venue, buffer="0", deposit="110")
        await venue.markets.set_market_configuration(
            venue.admin,
            venue.market_id,
            market_config.with_changes(initial_margin_ratio=Percentage(Decimal("0.2"))),
        )

        with pytest.raises(InsufficientMarginError) as exc_info:
            await venue.settle("100")

        assert exc_info.value.required_usd == Decimal("200")
        await self.assert_unchanged(venue, available="110")

    @pytest.mark.asyncio
    async def test_liquidatable_result_rejected(self, venue):
        await venue.deposit("110")
        await venue.open_position("10", "100")
        venue.oracle.set_price("eth-usd", Decimal("94"))
        await venue.commit("-1", "94")

        with pytest.raises(InsufficientMarginError):
            await venue.settle("94")

        assert await venue.pipeline.get_order_state(venue.account_id, venue.market_id) == OrderState.PENDING
        assert await venue.available() == Decimal("107")
