"""Domain value objects."""
from perp_market.domain.value_objects.percentage import Percentage
from perp_market.domain.value_objects.identifiers import (
    LEDGER_ADDRESS,
    ZERO_ADDRESS,
    is_zero_address,
    normalize_address,
)

__all__ = [
    "Percentage",
    "LEDGER_ADDRESS",
    "ZERO_ADDRESS",
    "is_zero_address",
    "normalize_address",
]
