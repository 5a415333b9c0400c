"""
Identifier helpers.

Collateral types and wallets are addressed by hex strings; None, the empty
string and the all-zero address count as the null identifier.
"""
from typing import Optional

ZERO_ADDRESS = "0x" + "0" * 40

# Book-keeping address of the margin ledger in custody and Transfer events.
LEDGER_ADDRESS = "perp-market-ledger"


def is_zero_address(value: Optional[str]) -> bool:
    """True for a null identifier."""
    if value is None:
        return True
    stripped = value.strip().lower()
    if stripped in ("", "0x"):
        return True
    if stripped.startswith("0x"):
        stripped = stripped[2:]
    return set(stripped) == {"0"}


def normalize_address(value: str) -> str:
    """Lower-case, trimmed address used as a registry key."""
    return value.strip().lower()
