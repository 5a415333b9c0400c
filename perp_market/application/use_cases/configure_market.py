"""
MarketRegistryUseCase - Market creation, configuration and snapshots.
"""
import logging
from typing import List, Optional

from perp_market.application.dto.trading import MarketDigest, MarketResult
from perp_market.application.ports.outbound.event_publisher_port import EventPublisherPort
from perp_market.application.ports.outbound.state_store_port import StateStorePort
from perp_market.application.services.access_guard import AccessGuard
from perp_market.application.services.event_dispatch import publish_events
from perp_market.application.services.price_oracle import PriceOracleService
from perp_market.domain.entities.market import Market, MarketConfiguration
from perp_market.domain.events import MarketConfigured, MarketCreated
from perp_market.domain.exceptions import PerpMarketError, ZeroAddressError
from perp_market.domain.value_objects.identifiers import is_zero_address

logger = logging.getLogger(__name__)


class MarketRegistryUseCase:
    """Use case for admin market management and market queries."""

    def __init__(
        self,
        store: StateStorePort,
        price_oracle: PriceOracleService,
        access: AccessGuard,
        publisher: Optional[EventPublisherPort] = None,
    ):
        self.store = store
        self.price_oracle = price_oracle
        self.access = access
        self.publisher = publisher

    async def create_market(
        self,
        caller: str,
        name: str,
        oracle_node_id: str,
        pyth_price_feed_id: str,
        configuration: MarketConfiguration,
    ) -> MarketResult:
        """
        Create a market with sequential id.

        Args:
            caller: Calling address (must be the system owner)
            name: Display name
            oracle_node_id: Oracle node valuing the market
            pyth_price_feed_id: Feed settlement updates must belong to
            configuration: Initial configuration

        Returns:
            MarketResult with the created market

        Raises:
            UnauthorizedError: Caller is not the owner
            ZeroAddressError: Missing oracle node or feed id
            InvalidMarketConfigurationError: Configuration invariant broken
        """
        try:
            async with self.store.transaction():
                await self.access.require_owner(caller, "create market")
                if is_zero_address(oracle_node_id):
                    raise ZeroAddressError("oracle_node_id")
                if is_zero_address(pyth_price_feed_id):
                    raise ZeroAddressError("pyth_price_feed_id")
                configuration.validate()

                market = Market(
                    id=self.store.next_market_id(),
                    name=name,
                    oracle_node_id=oracle_node_id,
                    pyth_price_feed_id=pyth_price_feed_id,
                )
                self.store.save_market(market, configuration)
                events = [MarketCreated(market_id=market.id, market_name=market.name)]
        except PerpMarketError as e:
            logger.warning(f"Market creation rejected: {e}")
            raise

        logger.info(f"Market created: {market.id} ({market.name})")
        await publish_events(self.publisher, events)
        return MarketResult(market=market, configuration=configuration, events=events)

    async def set_market_configuration(
        self,
        caller: str,
        market_id: int,
        configuration: MarketConfiguration,
    ) -> MarketResult:
        """
        Replace a market's configuration.

        Raises:
            UnauthorizedError: Caller is not the owner
            MarketNotFoundError: Unknown market
            InvalidMarketConfigurationError: Configuration invariant broken
        """
        try:
            async with self.store.transaction():
                await self.access.require_owner(caller, "set market configuration")
                market = self.store.require_market(market_id)
                configuration.validate()
                self.store.set_market_configuration(market_id, configuration)
                events = [MarketConfigured(market_id=market_id, admin=caller)]
        except PerpMarketError as e:
            logger.warning(f"Market {market_id} configuration rejected: {e}")
            raise

        logger.info(f"Market {market_id} reconfigured by {caller}")
        await publish_events(self.publisher, events)
        return MarketResult(market=market, configuration=configuration, events=events)

    # --- Queries ---

    async def get_market(self, market_id: int) -> Market:
        async with self.store.read():
            return self.store.require_market(market_id)

    async def get_markets(self) -> List[Market]:
        async with self.store.read():
            return self.store.get_markets()

    async def get_market_configuration(self, market_id: int) -> MarketConfiguration:
        async with self.store.read():
            return self.store.require_market_configuration(market_id)

    async def get_market_digest(self, market_id: int) -> MarketDigest:
        """Market, configuration, open interest and current oracle price."""
        async with self.store.read():
            market = self.store.require_market(market_id)
            return MarketDigest(
                market=market,
                configuration=self.store.require_market_configuration(market_id),
                state=self.store.get_market_state(market_id),
                oracle_price=await self.price_oracle.resolve_price(market),
            )
