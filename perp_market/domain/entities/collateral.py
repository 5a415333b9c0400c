"""
Collateral type and margin ledger entry entities.
"""
from __future__ import annotations
from dataclasses import dataclass, replace
from decimal import Decimal

from perp_market.domain.value_objects.fixed_point import ZERO, to_decimal
from perp_market.domain.value_objects.identifiers import normalize_address


@dataclass(frozen=True)
class CollateralType:
    """
    Whitelisted collateral.

    Attributes:
        id: Collateral token address
        oracle_feed_id: Oracle node used to value one unit in USD
        max_allowable: Cap on the available amount per ledger entry
    """
    id: str
    oracle_feed_id: str
    max_allowable: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "max_allowable", to_decimal(self.max_allowable))

    @classmethod
    def create(cls, id: str, oracle_feed_id: str, max_allowable) -> CollateralType:
        """Create with a normalized id."""
        return cls(
            id=normalize_address(id),
            oracle_feed_id=oracle_feed_id,
            max_allowable=max_allowable,
        )

    @property
    def is_supported(self) -> bool:
        """A zero cap means the type is configured but disabled."""
        return self.max_allowable > ZERO


@dataclass(frozen=True)
class MarginLedgerEntry:
    """
    Available collateral of one type for an (account, market) pair.

    Invariant: 0 <= available <= max_allowable of its collateral type.
    """
    account_id: int
    market_id: int
    collateral_type_id: str
    available: Decimal = ZERO

    def with_available(self, available: Decimal) -> MarginLedgerEntry:
        return replace(self, available=available)

    @property
    def is_empty(self) -> bool:
        return self.available == ZERO
