"""
Collateral cap contract

Contract: available <= max_allowable for every ledger entry, after every
deposit, whatever the sequence of deposits and withdrawals.
"""
import pytest
from decimal import Decimal

from perp_market.application.dto.margin import CollateralConfigEntry
from perp_market.domain.exceptions import MaxCollateralExceededError, UnsupportedCollateralError


class TestCollateralCapContract:
    """Cap on available collateral per (account, market, collateral)"""

    # =========================================================================
    # CONTRACT 1: deposits never exceed the cap
    # =========================================================================

    @pytest.mark.contract
    @pytest.mark.asyncio
    async def test_cap_holds_across_sequence(self, venue):
        """Interleaved deposits and withdrawals never leave available above 5000"""
        for delta in ["3000", "-500", "2000", "1", "-1000", "1500", "1499"]:
            try:
                await venue.ledger.transfer_to(
                    venue.trader, venue.account_id, venue.market_id, venue.usdc, Decimal(delta)
                )
            except MaxCollateralExceededError:
                pass
            assert await venue.available() <= Decimal("5000")

        assert await venue.available() == Decimal("5000")

    @pytest.mark.contract
    @pytest.mark.asyncio
    async def test_cap_is_per_market(self, venue, market_config):
        """The same account may fill the cap in every market"""
        second = await venue.markets.create_market(
            venue.admin, "BTCPERP", "eth-usd", "0x" + "b" * 64, market_config
        )
        await venue.deposit("5000")

        await venue.ledger.transfer_to(
            venue.trader, venue.account_id, second.market.id, venue.usdc, Decimal("5000")
        )

        assert await venue.ledger.get_available(venue.account_id, second.market.id, venue.usdc) == Decimal("5000")

    # =========================================================================
    # CONTRACT 2: lowering the cap blocks deposits but keeps existing funds
    # =========================================================================

    @pytest.mark.contract
    @pytest.mark.asyncio
    async def test_lowered_cap(self, venue):
        """Funds above a lowered cap stay; further deposits are refused"""
        await venue.deposit("3000")
        await venue.registry.set_collateral_configuration(
            venue.admin,
            [CollateralConfigEntry(id=venue.usdc, oracle_feed_id="usdc-usd", max_allowable=Decimal("1000"))],
        )

        with pytest.raises(MaxCollateralExceededError):
            await venue.deposit("1")

        assert await venue.available() == Decimal("3000")
        await venue.withdraw("2500")
        assert await venue.available() == Decimal("500")

    @pytest.mark.contract
    @pytest.mark.asyncio
    async def test_zero_cap_disables_collateral(self, venue):
        """A zero cap refuses every non-zero transfer"""
        await venue.registry.set_collateral_configuration(
            venue.admin,
            [CollateralConfigEntry(id=venue.usdc, oracle_feed_id="usdc-usd", max_allowable=Decimal("0"))],
        )

        with pytest.raises(UnsupportedCollateralError):
            await venue.deposit("1")
