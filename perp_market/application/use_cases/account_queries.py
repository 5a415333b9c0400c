"""
AccountQueriesUseCase - Read-only position and risk views.
"""
from perp_market.application.dto.trading import PositionDigest
from perp_market.application.ports.outbound.state_store_port import StateStorePort
from perp_market.application.services.margin_service import MarginService
from perp_market.application.services.price_oracle import PriceOracleService


class AccountQueriesUseCase:
    """Position snapshots and liquidation eligibility at the oracle price."""

    def __init__(
        self,
        store: StateStorePort,
        price_oracle: PriceOracleService,
        margin: MarginService,
    ):
        self.store = store
        self.price_oracle = price_oracle
        self.margin = margin

    async def get_position_digest(self, account_id: int, market_id: int) -> PositionDigest:
        """
        Position, collateral value and risk at the current oracle price.

        Args:
            account_id: Account
            market_id: Market

        Returns:
            PositionDigest (position is None when the pair has no record)
        """
        async with self.store.read():
            market = self.store.require_market(market_id)
            config = self.store.require_market_configuration(market_id)
            position = self.store.get_position(account_id, market_id)
            price = await self.price_oracle.resolve_price(market)
            collateral_usd = await self.margin.collateral_usd(account_id, market_id)

            return PositionDigest(
                account_id=account_id,
                market_id=market_id,
                position=position,
                oracle_price=price,
                collateral_usd=collateral_usd,
                risk=self.margin.assess(position, collateral_usd, price, config),
            )

    async def can_liquidate(self, account_id: int, market_id: int) -> bool:
        digest = await self.get_position_digest(account_id, market_id)
        return digest.can_liquidate
