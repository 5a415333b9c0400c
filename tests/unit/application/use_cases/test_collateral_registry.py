"""
Tests for CollateralRegistryUseCase.
"""
import pytest
from decimal import Decimal

from perp_market.application.dto.margin import CollateralConfigEntry
from perp_market.domain.events import CollateralConfigured
from perp_market.domain.exceptions import (
    DuplicateCollateralError,
    InvalidCollateralConfigurationError,
    UnauthorizedError,
    UnsupportedCollateralError,
    ZeroAddressError,
)

ADMIN = "0x" + "a" * 40
STRANGER = "0x" + "d" * 40
USDC = "0x" + "1" * 40
WETH = "0x" + "2" * 40
USDC_NODE = "usdc-usd"
WETH_NODE = "weth-usd"


def entry(collateral_id, feed, cap):
    return CollateralConfigEntry(id=collateral_id, oracle_feed_id=feed, max_allowable=Decimal(cap))


class TestSetCollateralConfiguration:
    """Whitelist replacement."""

    @pytest.mark.asyncio
    async def test_installs_entries_in_order(self, container):
        registry = container.get_collateral_registry_use_case()

        result = await registry.set_collateral_configuration(
            ADMIN, [entry(WETH, WETH_NODE, "10"), entry(USDC, USDC_NODE, "5000")]
        )

        assert [c.id for c in result.collaterals] == [WETH, USDC]
        assert [c.id for c in await registry.get_configured_collaterals()] == [WETH, USDC]
        assert result.events == [CollateralConfigured(admin=ADMIN, count=2)]
        assert container.get_event_publisher().events == result.events

    @pytest.mark.asyncio
    async def test_grants_allowance_per_collateral(self, container):
        registry = container.get_collateral_registry_use_case()
        custody = container.get_custody_port()

        await registry.set_collateral_configuration(ADMIN, [entry(USDC, USDC_NODE, "5000")])

        assert custody.allowance(USDC) == Decimal("5000")

    @pytest.mark.asyncio
    async def test_replacement_revokes_previous_allowances(self, container):
        registry = container.get_collateral_registry_use_case()
        custody = container.get_custody_port()
        await registry.set_collateral_configuration(ADMIN, [entry(USDC, USDC_NODE, "5000")])

        await registry.set_collateral_configuration(ADMIN, [entry(WETH, WETH_NODE, "10")])

        assert custody.allowance(USDC) is None
        assert custody.allowance(WETH) == Decimal("10")
        assert [c.id for c in await registry.get_configured_collaterals()] == [WETH]

    @pytest.mark.asyncio
    async def test_empty_configuration_clears_registry(self, container):
        registry = container.get_collateral_registry_use_case()
        await registry.set_collateral_configuration(ADMIN, [entry(USDC, USDC_NODE, "5000")])

        result = await registry.set_collateral_configuration(ADMIN, [])

        assert result.collaterals == []
        assert await registry.get_configured_collaterals() == []

    @pytest.mark.asyncio
    async def test_ids_are_case_insensitive(self, container):
        registry = container.get_collateral_registry_use_case()

        result = await registry.set_collateral_configuration(ADMIN, [entry(USDC.upper().replace("0X", "0x"), USDC_NODE, "1")])

        assert result.collaterals[0].id == USDC

    # --- Rejections ---

    @pytest.mark.asyncio
    async def test_only_owner(self, container):
        registry = container.get_collateral_registry_use_case()

        with pytest.raises(UnauthorizedError):
            await registry.set_collateral_configuration(STRANGER, [entry(USDC, USDC_NODE, "5000")])

    @pytest.mark.asyncio
    @pytest.mark.parametrize("collateral_id", [None, "", "0x" + "0" * 40])
    async def test_zero_address_rejected(self, container, collateral_id):
        registry = container.get_collateral_registry_use_case()

        with pytest.raises(ZeroAddressError):
            await registry.set_collateral_configuration(ADMIN, [entry(collateral_id, USDC_NODE, "1")])

    @pytest.mark.asyncio
    async def test_duplicate_rejected(self, container):
        registry = container.get_collateral_registry_use_case()

        with pytest.raises(DuplicateCollateralError):
            await registry.set_collateral_configuration(
                ADMIN, [entry(USDC, USDC_NODE, "1"), entry(USDC, USDC_NODE, "2")]
            )

    @pytest.mark.asyncio
    async def test_negative_cap_rejected(self, container):
        registry = container.get_collateral_registry_use_case()

        with pytest.raises(InvalidCollateralConfigurationError):
            await registry.set_collateral_configuration(ADMIN, [entry(USDC, USDC_NODE, "-1")])

    @pytest.mark.asyncio
    async def test_missing_feed_rejected(self, container):
        registry = container.get_collateral_registry_use_case()

        with pytest.raises(InvalidCollateralConfigurationError):
            await registry.set_collateral_configuration(ADMIN, [entry(USDC, "", "1")])

    @pytest.mark.asyncio
    async def test_failed_replacement_keeps_previous_whitelist(self, container):
        """A rejected entry anywhere in the list changes nothing."""
        registry = container.get_collateral_registry_use_case()
        custody = container.get_custody_port()
        await registry.set_collateral_configuration(ADMIN, [entry(USDC, USDC_NODE, "5000")])
        container.get_event_publisher().clear()

        with pytest.raises(DuplicateCollateralError):
            await registry.set_collateral_configuration(
                ADMIN, [entry(WETH, WETH_NODE, "1"), entry(WETH, WETH_NODE, "1")]
            )

        assert [c.id for c in await registry.get_configured_collaterals()] == [USDC]
        assert custody.allowance(USDC) == Decimal("5000")
        assert container.get_event_publisher().events == []


class TestDisabledCollateral:

    @pytest.mark.asyncio
    async def test_zero_cap_blocks_deposits(self, venue):
        await venue.registry.set_collateral_configuration(
            ADMIN, [entry(USDC, USDC_NODE, "0")]
        )

        with pytest.raises(UnsupportedCollateralError):
            await venue.deposit("10")


class TestCollateralConfigEntry:

    def test_from_dict_accepts_camel_case(self):
        parsed = CollateralConfigEntry.from_dict(
            {"id": USDC, "oracleFeedId": USDC_NODE, "maxAllowable": "12.5"}
        )

        assert parsed == entry(USDC, USDC_NODE, "12.5")
