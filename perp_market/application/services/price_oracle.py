"""
PriceOracleService - Price resolution and external price validation.

Two sources of price:
- the oracle manager, for current valuation of markets and collateral
  (margin checks, withdrawals, commit-time estimates)
- keeper-supplied Pyth update blobs, the only source of settlement prices,
  accepted only when published inside the settlement window
"""
import logging
from decimal import Decimal
from typing import Dict, Iterable

from perp_market.application.ports.outbound.oracle_port import OraclePort
from perp_market.application.ports.outbound.price_feed_port import PriceFeedPort, PriceFeedUpdate
from perp_market.application.ports.outbound.time_provider_port import TimeProviderPort
from perp_market.domain.entities.collateral import CollateralType
from perp_market.domain.entities.market import Market, MarketConfiguration
from perp_market.domain.exceptions import InvalidPriceError, PriceFeedMismatchError
from perp_market.domain.services.order_rules import check_publish_time
from perp_market.domain.value_objects.fixed_point import ZERO, quantize

logger = logging.getLogger(__name__)


class PriceOracleService:
    """
    Resolves oracle prices and validates settlement price updates.

    Usage:
        oracle = PriceOracleService(oracle_port, price_feed_port, time_provider)
        price = await oracle.resolve_price(market)
        update = await oracle.validate_and_extract_update(
            market.pyth_price_feed_id, blob, settlement_time, config
        )
    """

    def __init__(
        self,
        oracle: OraclePort,
        price_feed: PriceFeedPort,
        time_provider: TimeProviderPort,
    ):
        """
        Initialize with required ports.

        Args:
            oracle: Oracle manager port
            price_feed: Pyth update decoder
            time_provider: Clock
        """
        self.oracle = oracle
        self.price_feed = price_feed
        self.time_provider = time_provider

    # --- Oracle Manager ---

    async def _resolve(self, node_id: str) -> Decimal:
        price = quantize(await self.oracle.get_price(node_id))
        if price <= ZERO:
            raise InvalidPriceError(node_id, price)
        return price

    async def resolve_price(self, market: Market) -> Decimal:
        """Current index price of a market."""
        return await self._resolve(market.oracle_node_id)

    async def resolve_collateral_price(self, collateral: CollateralType) -> Decimal:
        """Current USD price of one unit of collateral."""
        return await self._resolve(collateral.oracle_feed_id)

    async def resolve_collateral_prices(self, collaterals: Iterable[CollateralType]) -> Dict[str, Decimal]:
        """USD price per collateral type id."""
        prices: Dict[str, Decimal] = {}
        for collateral in collaterals:
            prices[collateral.id] = await self.resolve_collateral_price(collateral)
        return prices

    # --- Settlement Prices ---

    async def validate_and_extract_update(
        self,
        feed_id: str,
        update_blob: bytes,
        settlement_time: int,
        config: MarketConfiguration,
    ) -> PriceFeedUpdate:
        """
        Decode a price update and accept it only for a settlement at
        settlement_time.

        Args:
            feed_id: Feed the market settles against
            update_blob: Keeper-supplied update data
            settlement_time: Time the settlement happens at
            config: Market configuration (publish-time band)

        Returns:
            The validated PriceFeedUpdate

        Raises:
            PriceFeedMismatchError: Update belongs to another feed
            InvalidPriceError: Price is not positive
            StalePriceError: Published before the band
            PriceTooFreshError: Published after the band or in the future
        """
        update = await self.price_feed.parse_price_update(update_blob)

        if update.feed_id.lower() != feed_id.lower():
            raise PriceFeedMismatchError(feed_id, update.feed_id)
        if update.price <= ZERO:
            raise InvalidPriceError(update.feed_id, update.price)

        check_publish_time(
            publish_time=update.publish_time,
            now=self.time_provider.now(),
            settlement_time=settlement_time,
            config=config,
        )
        logger.debug(
            f"Accepted price update feed={update.feed_id} price={update.price} "
            f"publish_time={update.publish_time} settlement_time={settlement_time}"
        )
        return update
