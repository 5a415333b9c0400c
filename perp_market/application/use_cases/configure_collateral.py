"""
CollateralRegistryUseCase - Admin management of the collateral whitelist.

The whitelist is replaced as a whole: every entry is validated before any
change, then the old set is cleared (revoking its custody allowances) and
the new set installed in order.
"""
import logging
from typing import List, Optional, Sequence

from perp_market.application.dto.margin import CollateralConfigEntry, CollateralConfigurationResult
from perp_market.application.ports.outbound.custody_port import CustodyPort
from perp_market.application.ports.outbound.event_publisher_port import EventPublisherPort
from perp_market.application.ports.outbound.state_store_port import StateStorePort
from perp_market.application.services.access_guard import AccessGuard
from perp_market.application.services.event_dispatch import publish_events
from perp_market.domain.entities.collateral import CollateralType
from perp_market.domain.events import CollateralConfigured
from perp_market.domain.exceptions import (
    DuplicateCollateralError,
    InvalidCollateralConfigurationError,
    PerpMarketError,
    ZeroAddressError,
)
from perp_market.domain.value_objects.fixed_point import ZERO
from perp_market.domain.value_objects.identifiers import is_zero_address
from perp_market.exceptions import PerpInfrastructureError

logger = logging.getLogger(__name__)


class CollateralRegistryUseCase:
    """
    Use case for the collateral whitelist.

    Usage:
        registry = container.get_collateral_registry_use_case()
        await registry.set_collateral_configuration(admin, [
            CollateralConfigEntry(id=USDC, oracle_feed_id="usdc-usd", max_allowable=Decimal("5000")),
        ])
    """

    def __init__(
        self,
        store: StateStorePort,
        custody: CustodyPort,
        access: AccessGuard,
        publisher: Optional[EventPublisherPort] = None,
    ):
        """
        Initialize with required ports.

        Args:
            store: Venue state
            custody: Custody port (transfer allowances)
            access: Capability checks
            publisher: Event publisher (optional)
        """
        self.store = store
        self.custody = custody
        self.access = access
        self.publisher = publisher

    async def set_collateral_configuration(
        self,
        caller: str,
        entries: Sequence[CollateralConfigEntry],
    ) -> CollateralConfigurationResult:
        """
        Replace the whole collateral whitelist.

        Args:
            caller: Calling address (must be the system owner)
            entries: New whitelist in order

        Returns:
            CollateralConfigurationResult with the installed collaterals

        Raises:
            UnauthorizedError: Caller is not the owner
            ZeroAddressError: An entry id is null
            DuplicateCollateralError: An id appears twice
            InvalidCollateralConfigurationError: Negative cap or missing feed
        """
        try:
            async with self.store.transaction():
                await self.access.require_owner(caller, "set collateral configuration")
                collaterals = self._build_collaterals(entries)

                previous = self.store.get_collaterals()
                self.store.replace_collaterals(collaterals)

                for collateral in previous:
                    await self.custody.revoke_allowance(collateral.id)
                for collateral in collaterals:
                    await self.custody.grant_allowance(collateral.id, collateral.max_allowable)

                events = [CollateralConfigured(admin=caller, count=len(collaterals))]
        except (PerpMarketError, PerpInfrastructureError) as e:
            logger.warning(f"Collateral configuration rejected: {e}")
            raise

        logger.info(f"Collateral whitelist replaced by {caller}: {len(collaterals)} type(s)")
        await publish_events(self.publisher, events)
        return CollateralConfigurationResult(collaterals=collaterals, events=events)

    async def get_configured_collaterals(self) -> List[CollateralType]:
        """Snapshot of the whitelist in configuration order."""
        async with self.store.read():
            return list(self.store.get_collaterals())

    @staticmethod
    def _build_collaterals(entries: Sequence[CollateralConfigEntry]) -> List[CollateralType]:
        collaterals: List[CollateralType] = []
        seen = set()
        for entry in entries:
            if is_zero_address(entry.id):
                raise ZeroAddressError("collateral id")
            collateral = CollateralType.create(entry.id, entry.oracle_feed_id, entry.max_allowable)
            if collateral.id in seen:
                raise DuplicateCollateralError(collateral.id)
            if collateral.max_allowable < ZERO:
                raise InvalidCollateralConfigurationError(collateral.id, "max_allowable must be non-negative")
            if not collateral.oracle_feed_id:
                raise InvalidCollateralConfigurationError(collateral.id, "oracle_feed_id is required")
            seen.add(collateral.id)
            collaterals.append(collateral)
        return collaterals
