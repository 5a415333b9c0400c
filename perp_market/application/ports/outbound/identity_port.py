"""
IdentityPort - Interface to the account identity/ownership subsystem.

The core only asks three narrow questions: does the account exist, may the
caller act for it, and is the caller the system owner (administrator).
"""
from abc import ABC, abstractmethod


class IdentityPort(ABC):
    """Port interface for account and ownership checks."""

    @abstractmethod
    async def account_exists(self, account_id: int) -> bool:
        """
        Check that an account has been created.

        Args:
            account_id: Account identifier

        Returns:
            True if the account exists
        """
        pass

    @abstractmethod
    async def has_permission(self, account_id: int, caller: str) -> bool:
        """
        Check that the caller may trade and move margin for the account.

        Args:
            account_id: Account identifier
            caller: Calling wallet address

        Returns:
            True if the caller owns or is delegated the account
        """
        pass

    @abstractmethod
    async def is_owner(self, caller: str) -> bool:
        """
        Check that the caller is the system owner (administrator).

        Args:
            caller: Calling wallet address
        """
        pass
