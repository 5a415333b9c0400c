"""
Perpetual market demo runner

Wires the in-memory venue and walks one account through the full
commit/settle lifecycle:

1. Admin whitelists a collateral and creates a market
2. Trader deposits margin
3. Trader commits an order
4. After min_order_age a keeper settles it with a price published inside
   the settlement window
5. Trader closes the position and withdraws

Usage:
    python main.py
"""
import asyncio
import logging
from decimal import Decimal

from perp_market.application.dto.margin import CollateralConfigEntry
from perp_market.config.settings import default_market_configuration, validate_all_configs
from perp_market.container import Container
from perp_market.domain.exceptions import PerpMarketError
from perp_market.domain.value_objects.fixed_point import negate
from perp_market.infrastructure.adapters.oracle.pyth_price_feed_adapter import encode_price_update
from perp_market.utils.logger import Logger, setup_logging

logger = logging.getLogger(__name__)

ADMIN = "0x" + "a" * 40
TRADER = "0x" + "b" * 40
KEEPER = "0x" + "c" * 40
USDC = "0x" + "1" * 40
ACCOUNT_ID = 1

USDC_NODE = "usdc-usd"
ETH_NODE = "eth-usd"
ETH_FEED = "0x" + "e" * 64


async def settle_at_window_end(container: Container, account_id: int, market_id: int, price: Decimal):
    """Advance past min_order_age and settle with a price published at the band edge."""
    clock = container.get_time_provider()
    config = await container.get_market_registry_use_case().get_market_configuration(market_id)
    clock.advance(config.min_order_age)
    publish_time = clock.now() - config.pyth_publish_time_min
    blob = encode_price_update(ETH_FEED, price, publish_time)
    return await container.get_order_pipeline_use_case().settle_order(KEEPER, account_id, market_id, blob)


async def main():
    """Run the demo scenario (standalone)."""
    setup_logging()
    validate_all_configs()

    container = Container.create_for_testing(owner=ADMIN)
    identity = container.get_identity_port()
    custody = container.get_custody_port()
    oracle = container.get_oracle_port()

    identity.create_account(ACCOUNT_ID, owner=TRADER)
    custody.mint(USDC, TRADER, Decimal("10000"))
    oracle.set_price(USDC_NODE, Decimal("1"))
    oracle.set_price(ETH_NODE, Decimal("100"))

    registry = container.get_collateral_registry_use_case()
    markets = container.get_market_registry_use_case()
    ledger = container.get_margin_ledger_use_case()
    pipeline = container.get_order_pipeline_use_case()
    queries = container.get_account_queries_use_case()

    Logger.print_header("Setup")
    result = await registry.set_collateral_configuration(
        ADMIN,
        [CollateralConfigEntry(id=USDC, oracle_feed_id=USDC_NODE, max_allowable=Decimal("5000"))],
    )
    Logger.print_events(result.events)
    market_result = await markets.create_market(
        ADMIN, "ETHPERP", ETH_NODE, ETH_FEED, default_market_configuration()
    )
    market_id = market_result.market.id
    Logger.print_events(market_result.events)

    Logger.print_header("Deposit")
    transfer = await ledger.transfer_to(TRADER, ACCOUNT_ID, market_id, USDC, Decimal("1000"))
    Logger.print_events(transfer.events)

    Logger.print_header("Open long 10 @ limit 100")
    commit = await pipeline.commit_order(
        TRADER, ACCOUNT_ID, market_id, Decimal("10"), Decimal("100"), Decimal("5")
    )
    Logger.print_events(commit.events)
    settled = await settle_at_window_end(container, ACCOUNT_ID, market_id, Decimal("100"))
    Logger.print_events(settled.events)
    Logger.print_position(await queries.get_position_digest(ACCOUNT_ID, market_id))

    Logger.print_header("Close at 110")
    oracle.set_price(ETH_NODE, Decimal("110"))
    await pipeline.commit_order(TRADER, ACCOUNT_ID, market_id, Decimal("-10"), Decimal("110"), Decimal("5"))
    settled = await settle_at_window_end(container, ACCOUNT_ID, market_id, Decimal("110"))
    Logger.print_events(settled.events)
    Logger.print_position(await queries.get_position_digest(ACCOUNT_ID, market_id))

    Logger.print_header("Withdraw")
    available = await ledger.get_available(ACCOUNT_ID, market_id, USDC)
    try:
        transfer = await ledger.transfer_to(TRADER, ACCOUNT_ID, market_id, USDC, negate(available))
        Logger.print_events(transfer.events)
    except PerpMarketError as e:
        logger.error(f"Withdrawal failed: {e.message}")

    print(f"\nTrader wallet: {custody.balance_of(USDC, TRADER)} USDC")
    print(f"Keeper wallet: {custody.balance_of(USDC, KEEPER)} USDC")


if __name__ == "__main__":
    asyncio.run(main())
