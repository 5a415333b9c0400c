"""
InMemoryStateStore - In-memory implementation of StateStorePort.

All venue state lives in dicts keyed by ids and (account_id, market_id)
pairs. A single asyncio.Lock serializes operations; transaction() snapshots
every dict on entry and restores them if the body raises. Entities are
immutable, so shallow dict copies are enough for a snapshot.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional, Sequence, Tuple

from perp_market.application.ports.outbound.state_store_port import StateStorePort
from perp_market.domain.entities.collateral import CollateralType, MarginLedgerEntry
from perp_market.domain.entities.market import Market, MarketConfiguration, MarketState
from perp_market.domain.entities.order import Order
from perp_market.domain.entities.position import Position
from perp_market.domain.value_objects.identifiers import normalize_address

PairKey = Tuple[int, int]
LedgerKey = Tuple[int, int, str]

_TABLES = (
    "_collaterals",
    "_markets",
    "_configurations",
    "_market_states",
    "_ledger",
    "_orders",
    "_positions",
)


class InMemoryStateStore(StateStorePort):
    """
    In-memory state store.

    Only works within a single process and event loop.
    """

    def __init__(self):
        """Initialize empty storage."""
        self._collaterals: Dict[str, CollateralType] = {}
        self._markets: Dict[int, Market] = {}
        self._configurations: Dict[int, MarketConfiguration] = {}
        self._market_states: Dict[int, MarketState] = {}
        self._ledger: Dict[LedgerKey, MarginLedgerEntry] = {}
        self._orders: Dict[PairKey, Order] = {}
        self._positions: Dict[PairKey, Position] = {}
        self._last_market_id = 0
        self._lock = asyncio.Lock()

    def clear(self):
        """Clear all stored data. Useful for test cleanup."""
        for table in _TABLES:
            getattr(self, table).clear()
        self._last_market_id = 0

    # --- Serialization ---

    def _snapshot(self) -> Dict[str, object]:
        snapshot: Dict[str, object] = {table: dict(getattr(self, table)) for table in _TABLES}
        snapshot["_last_market_id"] = self._last_market_id
        return snapshot

    def _restore(self, snapshot: Dict[str, object]) -> None:
        for name, value in snapshot.items():
            setattr(self, name, value)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        async with self._lock:
            snapshot = self._snapshot()
            try:
                yield
            except BaseException:
                self._restore(snapshot)
                raise

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        async with self._lock:
            yield

    # --- Collateral Registry ---

    def get_collaterals(self) -> List[CollateralType]:
        return list(self._collaterals.values())

    def get_collateral(self, collateral_type_id: str) -> Optional[CollateralType]:
        return self._collaterals.get(normalize_address(collateral_type_id))

    def replace_collaterals(self, collaterals: Sequence[CollateralType]) -> None:
        self._collaterals.clear()
        for collateral in collaterals:
            self._collaterals[collateral.id] = collateral

    # --- Markets ---

    def next_market_id(self) -> int:
        self._last_market_id += 1
        return self._last_market_id

    def save_market(self, market: Market, configuration: MarketConfiguration) -> None:
        self._markets[market.id] = market
        self._configurations[market.id] = configuration
        self._market_states.setdefault(market.id, MarketState())

    def get_market(self, market_id: int) -> Optional[Market]:
        return self._markets.get(market_id)

    def get_markets(self) -> List[Market]:
        return [self._markets[market_id] for market_id in sorted(self._markets)]

    def get_market_configuration(self, market_id: int) -> Optional[MarketConfiguration]:
        return self._configurations.get(market_id)

    def set_market_configuration(self, market_id: int, configuration: MarketConfiguration) -> None:
        self._configurations[market_id] = configuration

    def get_market_state(self, market_id: int) -> MarketState:
        return self._market_states.get(market_id, MarketState())

    def save_market_state(self, market_id: int, state: MarketState) -> None:
        self._market_states[market_id] = state

    # --- Margin Ledger ---

    def get_ledger_entry(self, account_id: int, market_id: int, collateral_type_id: str) -> MarginLedgerEntry:
        collateral_type_id = normalize_address(collateral_type_id)
        entry = self._ledger.get((account_id, market_id, collateral_type_id))
        if entry is None:
            return MarginLedgerEntry(account_id, market_id, collateral_type_id)
        return entry

    def get_ledger_entries(self, account_id: int, market_id: int) -> List[MarginLedgerEntry]:
        return [
            entry
            for (entry_account, entry_market, _), entry in self._ledger.items()
            if entry_account == account_id and entry_market == market_id
        ]

    def save_ledger_entry(self, entry: MarginLedgerEntry) -> None:
        self._ledger[(entry.account_id, entry.market_id, entry.collateral_type_id)] = entry

    # --- Orders ---

    def get_order(self, account_id: int, market_id: int) -> Optional[Order]:
        return self._orders.get((account_id, market_id))

    def save_order(self, order: Order) -> None:
        self._orders[(order.account_id, order.market_id)] = order

    def delete_order(self, account_id: int, market_id: int) -> None:
        self._orders.pop((account_id, market_id), None)

    # --- Positions ---

    def get_position(self, account_id: int, market_id: int) -> Optional[Position]:
        return self._positions.get((account_id, market_id))

    def save_position(self, position: Position) -> None:
        key = (position.account_id, position.market_id)
        if position.is_empty:
            self._positions.pop(key, None)
        else:
            self._positions[key] = position
