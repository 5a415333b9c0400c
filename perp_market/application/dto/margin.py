"""
DTOs for the collateral registry and margin ledger.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from perp_market.domain.entities.collateral import CollateralType, MarginLedgerEntry
from perp_market.domain.events import DomainEvent
from perp_market.domain.value_objects.fixed_point import to_decimal


@dataclass(frozen=True)
class CollateralConfigEntry:
    """
    One entry of a collateral whitelist replacement.

    Attributes:
        id: Collateral token address (None or zero address is rejected)
        oracle_feed_id: Oracle node valuing the collateral
        max_allowable: Cap per ledger entry
    """
    id: Optional[str]
    oracle_feed_id: str
    max_allowable: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "max_allowable", to_decimal(self.max_allowable))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CollateralConfigEntry:
        """Accepts snake_case or camelCase keys."""
        return cls(
            id=data.get("id"),
            oracle_feed_id=data.get("oracle_feed_id", data.get("oracleFeedId", "")),
            max_allowable=data.get("max_allowable", data.get("maxAllowable", "0")),
        )


@dataclass(frozen=True)
class CollateralConfigurationResult:
    """Installed whitelist and emitted events."""
    collaterals: List[CollateralType]
    events: List[DomainEvent] = field(default_factory=list)


@dataclass(frozen=True)
class TransferResult:
    """
    Outcome of a margin transfer.

    Attributes:
        account_id: Account
        market_id: Market
        collateral_type_id: Collateral moved
        amount_delta: Signed amount (positive = deposit)
        available: Available amount after the transfer
        events: Emitted events (empty for a zero delta)
    """
    account_id: int
    market_id: int
    collateral_type_id: str
    amount_delta: Decimal
    available: Decimal
    events: List[DomainEvent] = field(default_factory=list)


@dataclass(frozen=True)
class MarginDigest:
    """
    Collateral held by an (account, market) pair.

    Attributes:
        entries: Ledger entries in collateral configuration order
        collateral_prices: USD price per collateral type
        collateral_usd: Total collateral value in USD
    """
    account_id: int
    market_id: int
    entries: List[MarginLedgerEntry]
    collateral_prices: Dict[str, Decimal]
    collateral_usd: Decimal
