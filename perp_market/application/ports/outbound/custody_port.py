"""
CustodyPort - Interface to token transfers and upstream collateral custody.

The margin ledger keeps its own book-keeping; this port moves the actual
funds. Every method raises perp_market.exceptions.CustodyError on refusal.
"""
from abc import ABC, abstractmethod
from decimal import Decimal


class CustodyPort(ABC):
    """Port interface for funds movements."""

    # --- Wallet Transfers ---

    @abstractmethod
    async def pull(self, collateral_type_id: str, sender: str, amount: Decimal) -> None:
        """
        Pull collateral from a wallet into the ledger.

        Args:
            collateral_type_id: Collateral token
            sender: Wallet the funds come from
            amount: Amount to pull (positive)
        """
        pass

    @abstractmethod
    async def push(self, collateral_type_id: str, recipient: str, amount: Decimal) -> None:
        """
        Push collateral from the ledger to a wallet.

        Args:
            collateral_type_id: Collateral token
            recipient: Wallet receiving the funds
            amount: Amount to push (positive)
        """
        pass

    # --- Upstream Custody ---

    @abstractmethod
    async def deposit_market_collateral(self, market_id: int, collateral_type_id: str, amount: Decimal) -> None:
        """Forward ledger-held collateral into upstream custody for a market."""
        pass

    @abstractmethod
    async def withdraw_market_collateral(self, market_id: int, collateral_type_id: str, amount: Decimal) -> None:
        """Return collateral from upstream custody to the ledger."""
        pass

    # --- Transfer Authorization ---

    @abstractmethod
    async def grant_allowance(self, collateral_type_id: str, amount: Decimal) -> None:
        """Authorize upstream custody to move up to `amount` of the collateral."""
        pass

    @abstractmethod
    async def revoke_allowance(self, collateral_type_id: str) -> None:
        """Revoke any standing authorization for the collateral."""
        pass
