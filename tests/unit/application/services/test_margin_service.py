"""
Tests for MarginService (valuation and fee debiting).
"""
import pytest
from decimal import Decimal
from unittest.mock import AsyncMock

from perp_market.application.services.margin_service import CollateralSnapshot, MarginService
from perp_market.domain.entities.collateral import CollateralType, MarginLedgerEntry
from perp_market.domain.exceptions import InsufficientMarginError
from perp_market.infrastructure.adapters.persistence.memory_state_store import InMemoryStateStore

USDC = "0x" + "1" * 40
WETH = "0x" + "2" * 40


@pytest.fixture
def store():
    store = InMemoryStateStore()
    store.replace_collaterals([
        CollateralType.create(USDC, "usdc-usd", Decimal("10000")),
        CollateralType.create(WETH, "weth-usd", Decimal("10")),
    ])
    return store


@pytest.fixture
def price_oracle():
    prices = {"usdc-usd": Decimal("1"), "weth-usd": Decimal("3")}
    mock = AsyncMock()
    mock.resolve_collateral_price = AsyncMock(side_effect=lambda c: prices[c.oracle_feed_id])
    return mock


@pytest.fixture
def margin(store, price_oracle):
    return MarginService(store, price_oracle)


def fund(store, collateral_id, amount):
    store.save_ledger_entry(MarginLedgerEntry(1, 1, collateral_id, Decimal(amount)))


class TestSnapshot:

    @pytest.mark.asyncio
    async def test_entries_in_configuration_order(self, margin, store):
        fund(store, WETH, "2")

        snapshot = await margin.snapshot(1, 1)

        assert [entry.collateral_type_id for entry in snapshot.entries] == [USDC, WETH]
        assert snapshot.collateral_usd == Decimal("6")

    @pytest.mark.asyncio
    async def test_empty_entries_are_not_priced(self, margin, store, price_oracle):
        fund(store, USDC, "50")

        snapshot = await margin.snapshot(1, 1)

        assert snapshot.prices == {USDC: Decimal("1")}
        price_oracle.resolve_collateral_price.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_disabled_collateral_still_counts(self, margin, store):
        fund(store, WETH, "2")
        store.replace_collaterals([
            CollateralType.create(USDC, "usdc-usd", Decimal("10000")),
            CollateralType.create(WETH, "weth-usd", Decimal("0")),
        ])

        assert await margin.collateral_usd(1, 1) == Decimal("6")


class TestDebitUsd:

    @pytest.mark.asyncio
    async def test_debits_first_collateral_first(self, margin, store):
        fund(store, USDC, "10")
        fund(store, WETH, "1")
        snapshot = await margin.snapshot(1, 1)

        snapshot, debits = margin.debit_usd(snapshot, 1, 1, Decimal("4"))

        assert [(d.collateral_type_id, d.amount) for d in debits] == [(USDC, Decimal("4"))]
        assert store.available(1, 1, USDC) == Decimal("6")
        assert store.available(1, 1, WETH) == Decimal("1")
        assert snapshot.collateral_usd == Decimal("9")

    @pytest.mark.asyncio
    async def test_spills_over_to_next_collateral(self, margin, store):
        fund(store, USDC, "2")
        fund(store, WETH, "1")
        snapshot = await margin.snapshot(1, 1)

        _, debits = margin.debit_usd(snapshot, 1, 1, Decimal("3"))

        assert debits[0].amount == Decimal("2")
        assert debits[0].usd_value == Decimal("2")
        # 1 USD at price 3 rounds up to the next unit
        assert debits[1].amount == Decimal("0.333333333333333334")
        assert store.available(1, 1, USDC) == Decimal("0")
        assert store.available(1, 1, WETH) == Decimal("0.666666666666666666")

    @pytest.mark.asyncio
    async def test_zero_amount_is_noop(self, margin, store):
        fund(store, USDC, "2")
        snapshot = await margin.snapshot(1, 1)

        _, debits = margin.debit_usd(snapshot, 1, 1, Decimal("0"))

        assert debits == []
        assert store.available(1, 1, USDC) == Decimal("2")

    @pytest.mark.asyncio
    async def test_shortfall_raises(self, margin, store):
        fund(store, USDC, "2")
        snapshot = await margin.snapshot(1, 1)

        with pytest.raises(InsufficientMarginError) as exc_info:
            margin.debit_usd(snapshot, 1, 1, Decimal("5"))
        assert exc_info.value.margin_usd == Decimal("2")
        assert exc_info.value.required_usd == Decimal("5")

    def test_snapshot_without_entries_is_worth_nothing(self):
        assert CollateralSnapshot(entries=[], prices={}).collateral_usd == Decimal("0")
