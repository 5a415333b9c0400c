"""
StateStorePort - Arena of all venue state.

Collateral registry, markets and their configuration, margin ledger entries,
pending orders and positions, keyed by ids and (account_id, market_id)
pairs. Lookups that require presence fail explicitly.

Every mutating operation runs inside transaction(): operations are
serialized and a failure restores the state seen at entry.
"""
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import AsyncContextManager, List, Optional, Sequence

from perp_market.domain.entities.collateral import CollateralType, MarginLedgerEntry
from perp_market.domain.entities.market import Market, MarketConfiguration, MarketState
from perp_market.domain.entities.order import Order
from perp_market.domain.entities.position import Position
from perp_market.domain.exceptions import (
    MarketNotFoundError,
    OrderNotFoundError,
    UnsupportedCollateralError,
)


class StateStorePort(ABC):
    """
    Port interface for venue state.

    Usage:
        async with store.transaction():
            entry = store.get_ledger_entry(account_id, market_id, collateral_id)
            store.save_ledger_entry(entry.with_available(new_amount))
            await custody.pull(...)   # failure here restores the entry

        async with store.read():
            order = store.get_order(account_id, market_id)
    """

    # --- Serialization ---

    @abstractmethod
    def transaction(self) -> AsyncContextManager[None]:
        """
        Exclusive, all-or-nothing scope for a mutating operation.

        Raises whatever the body raised, after restoring the state.
        """
        pass

    @abstractmethod
    def read(self) -> AsyncContextManager[None]:
        """Exclusive scope for a consistent read; never mutates."""
        pass

    # --- Collateral Registry ---

    @abstractmethod
    def get_collaterals(self) -> List[CollateralType]:
        """Configured collateral types in configuration order."""
        pass

    @abstractmethod
    def get_collateral(self, collateral_type_id: str) -> Optional[CollateralType]:
        pass

    @abstractmethod
    def replace_collaterals(self, collaterals: Sequence[CollateralType]) -> None:
        """Clear the whole registry, then install the new entries."""
        pass

    # --- Markets ---

    @abstractmethod
    def next_market_id(self) -> int:
        pass

    @abstractmethod
    def save_market(self, market: Market, configuration: MarketConfiguration) -> None:
        pass

    @abstractmethod
    def get_market(self, market_id: int) -> Optional[Market]:
        pass

    @abstractmethod
    def get_markets(self) -> List[Market]:
        pass

    @abstractmethod
    def get_market_configuration(self, market_id: int) -> Optional[MarketConfiguration]:
        pass

    @abstractmethod
    def set_market_configuration(self, market_id: int, configuration: MarketConfiguration) -> None:
        pass

    @abstractmethod
    def get_market_state(self, market_id: int) -> MarketState:
        pass

    @abstractmethod
    def save_market_state(self, market_id: int, state: MarketState) -> None:
        pass

    # --- Margin Ledger ---

    @abstractmethod
    def get_ledger_entry(self, account_id: int, market_id: int, collateral_type_id: str) -> MarginLedgerEntry:
        """Entry for the key; a zero entry when none was stored."""
        pass

    @abstractmethod
    def get_ledger_entries(self, account_id: int, market_id: int) -> List[MarginLedgerEntry]:
        """All stored entries of an (account, market) pair."""
        pass

    @abstractmethod
    def save_ledger_entry(self, entry: MarginLedgerEntry) -> None:
        pass

    # --- Orders ---

    @abstractmethod
    def get_order(self, account_id: int, market_id: int) -> Optional[Order]:
        pass

    @abstractmethod
    def save_order(self, order: Order) -> None:
        pass

    @abstractmethod
    def delete_order(self, account_id: int, market_id: int) -> None:
        pass

    # --- Positions ---

    @abstractmethod
    def get_position(self, account_id: int, market_id: int) -> Optional[Position]:
        pass

    @abstractmethod
    def save_position(self, position: Position) -> None:
        """Store the position; an empty position removes the record."""
        pass

    # --- Required Lookups ---

    def require_market(self, market_id: int) -> Market:
        market = self.get_market(market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        return market

    def require_market_configuration(self, market_id: int) -> MarketConfiguration:
        configuration = self.get_market_configuration(market_id)
        if configuration is None:
            raise MarketNotFoundError(market_id)
        return configuration

    def require_supported_collateral(self, collateral_type_id: str) -> CollateralType:
        collateral = self.get_collateral(collateral_type_id)
        if collateral is None or not collateral.is_supported:
            raise UnsupportedCollateralError(collateral_type_id)
        return collateral

    def require_order(self, account_id: int, market_id: int) -> Order:
        order = self.get_order(account_id, market_id)
        if order is None:
            raise OrderNotFoundError(account_id, market_id)
        return order

    def available(self, account_id: int, market_id: int, collateral_type_id: str) -> Decimal:
        return self.get_ledger_entry(account_id, market_id, collateral_type_id).available
