"""
AccessGuard - Capability checks against the identity subsystem.
"""
from perp_market.application.ports.outbound.identity_port import IdentityPort
from perp_market.domain.exceptions import AccountNotFoundError, UnauthorizedError


class AccessGuard:
    """Raises unless the caller holds the capability an operation needs."""

    def __init__(self, identity: IdentityPort):
        self.identity = identity

    async def require_owner(self, caller: str, action: str) -> None:
        """Only the system owner may change registries and markets."""
        if not await self.identity.is_owner(caller):
            raise UnauthorizedError(caller, action)

    async def require_account(self, account_id: int) -> None:
        if not await self.identity.account_exists(account_id):
            raise AccountNotFoundError(account_id)

    async def require_account_permission(self, account_id: int, caller: str, action: str) -> None:
        """
        Account must exist and the caller must be allowed to act for it.

        Raises:
            AccountNotFoundError: Unknown account
            UnauthorizedError: Caller lacks permission
        """
        await self.require_account(account_id)
        if not await self.identity.has_permission(account_id, caller):
            raise UnauthorizedError(caller, action)

    async def has_account_permission(self, account_id: int, caller: str) -> bool:
        return await self.identity.has_permission(account_id, caller)
