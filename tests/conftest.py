"""
pytest common fixtures

The `venue` fixture wires an in-memory container with one whitelisted
collateral (USDC, price 1, cap 5000), one market (ETHPERP, price 100) and
one trading account funded with 10000 USDC in its owner's wallet.
"""
from decimal import Decimal
from typing import Optional

import pytest
import pytest_asyncio

from perp_market.application.dto.margin import CollateralConfigEntry
from perp_market.container import Container
from perp_market.domain.entities.market import MarketConfiguration
from perp_market.domain.value_objects.percentage import Percentage
from perp_market.infrastructure.adapters.oracle.pyth_price_feed_adapter import encode_price_update

ADMIN = "0x" + "a" * 40
TRADER = "0x" + "b" * 40
KEEPER = "0x" + "c" * 40
STRANGER = "0x" + "d" * 40
USDC = "0x" + "1" * 40
WETH = "0x" + "2" * 40

USDC_NODE = "usdc-usd"
WETH_NODE = "weth-usd"
ETH_NODE = "eth-usd"
ETH_FEED = "0x" + "e" * 64

ACCOUNT_ID = 1


def build_market_config(**changes) -> MarketConfiguration:
    """
    Test market: settle 12-60s after commit, price published 6-12s before
    settlement, 10% IM / 5% MM, taker 0.1%, keeper fee 2 USD.
    """
    config = MarketConfiguration(
        min_order_age=12,
        max_order_age=60,
        pyth_publish_time_min=6,
        pyth_publish_time_max=12,
        initial_margin_ratio=Percentage(Decimal("0.1")),
        maintenance_margin_ratio=Percentage(Decimal("0.05")),
        liquidation_reward_percent=Percentage(Decimal("0.01")),
        min_margin_usd=Decimal("0"),
        maker_fee=Percentage(Decimal("0.0005")),
        taker_fee=Percentage(Decimal("0.001")),
        max_market_size=Decimal("1000"),
        min_keeper_fee_usd=Decimal("1"),
        max_keeper_fee_usd=Decimal("10"),
        base_keeper_fee_usd=Decimal("2"),
        keeper_profit_margin_percent=Percentage(Decimal("0")),
    )
    return config.with_changes(**changes) if changes else config.validate()


class Venue:
    """Container plus shortcuts for the common trader and keeper actions."""

    admin = ADMIN
    trader = TRADER
    keeper = KEEPER
    stranger = STRANGER
    usdc = USDC
    account_id = ACCOUNT_ID
    feed_id = ETH_FEED

    def __init__(self, container: Container, market_id: int):
        self.container = container
        self.market_id = market_id

    # --- Components ---

    @property
    def store(self):
        return self.container.get_state_store()

    @property
    def identity(self):
        return self.container.get_identity_port()

    @property
    def custody(self):
        return self.container.get_custody_port()

    @property
    def oracle(self):
        return self.container.get_oracle_port()

    @property
    def clock(self):
        return self.container.get_time_provider()

    @property
    def events(self):
        return self.container.get_event_publisher()

    @property
    def registry(self):
        return self.container.get_collateral_registry_use_case()

    @property
    def markets(self):
        return self.container.get_market_registry_use_case()

    @property
    def ledger(self):
        return self.container.get_margin_ledger_use_case()

    @property
    def pipeline(self):
        return self.container.get_order_pipeline_use_case()

    @property
    def queries(self):
        return self.container.get_account_queries_use_case()

    # --- Actions ---

    async def deposit(self, amount, account_id: int = ACCOUNT_ID, caller: str = TRADER):
        return await self.ledger.transfer_to(caller, account_id, self.market_id, USDC, Decimal(amount))

    async def withdraw(self, amount, account_id: int = ACCOUNT_ID, caller: str = TRADER):
        return await self.ledger.transfer_to(caller, account_id, self.market_id, USDC, -Decimal(amount))

    async def available(self, account_id: int = ACCOUNT_ID) -> Decimal:
        return await self.ledger.get_available(account_id, self.market_id, USDC)

    async def commit(self, size_delta, limit_price, keeper_fee_buffer="5", account_id: int = ACCOUNT_ID):
        return await self.pipeline.commit_order(
            TRADER,
            account_id,
            self.market_id,
            Decimal(size_delta),
            Decimal(limit_price),
            Decimal(keeper_fee_buffer),
        )

    def blob(self, price, publish_time: Optional[int] = None, feed_id: str = ETH_FEED) -> bytes:
        """Update blob published at the latest accepted time by default."""
        if publish_time is None:
            publish_time = self.clock.now() - 6
        return encode_price_update(feed_id, Decimal(price), publish_time)

    async def settle(
        self,
        price,
        wait: Optional[int] = 12,
        publish_time: Optional[int] = None,
        account_id: int = ACCOUNT_ID,
        keeper: str = KEEPER,
    ):
        if wait:
            self.clock.advance(wait)
        return await self.pipeline.settle_order(
            keeper, account_id, self.market_id, self.blob(price, publish_time)
        )

    async def open_position(self, size_delta, price, keeper_fee_buffer="5"):
        """Commit and settle at `price`, moving the oracle there first."""
        self.oracle.set_price(ETH_NODE, Decimal(price))
        await self.commit(size_delta, price, keeper_fee_buffer)
        return await self.settle(price)


@pytest.fixture
def market_config() -> MarketConfiguration:
    return build_market_config()


@pytest.fixture
def container() -> Container:
    """Bare in-memory container (no collateral, markets or accounts)."""
    container = Container.create_for_testing(owner=ADMIN)
    container.get_oracle_port().set_price(USDC_NODE, Decimal("1"))
    container.get_oracle_port().set_price(WETH_NODE, Decimal("2000"))
    container.get_oracle_port().set_price(ETH_NODE, Decimal("100"))
    return container


@pytest_asyncio.fixture
async def venue(container, market_config) -> Venue:
    """Configured venue: USDC collateral, ETHPERP market, funded account."""
    await container.get_collateral_registry_use_case().set_collateral_configuration(
        ADMIN,
        [CollateralConfigEntry(id=USDC, oracle_feed_id=USDC_NODE, max_allowable=Decimal("5000"))],
    )
    result = await container.get_market_registry_use_case().create_market(
        ADMIN, "ETHPERP", ETH_NODE, ETH_FEED, market_config
    )
    container.get_identity_port().create_account(ACCOUNT_ID, owner=TRADER)
    container.get_custody_port().mint(USDC, TRADER, Decimal("10000"))
    container.get_event_publisher().clear()
    return Venue(container, result.market.id)
