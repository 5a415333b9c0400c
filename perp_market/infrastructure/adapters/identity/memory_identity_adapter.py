"""
InMemoryIdentityAdapter - In-memory implementation of IdentityPort.

Accounts with an owner wallet and optional delegated wallets, plus a single
system owner (administrator).
"""
from typing import Dict, Set

from perp_market.application.ports.outbound.identity_port import IdentityPort
from perp_market.domain.value_objects.identifiers import normalize_address


class InMemoryIdentityAdapter(IdentityPort):
    """
    In-memory identity adapter for testing and simulations.

    Usage:
        identity = InMemoryIdentityAdapter(owner=ADMIN)
        identity.create_account(1, owner=TRADER)
        identity.grant_permission(1, BOT)
    """

    def __init__(self, owner: str):
        self._owner = normalize_address(owner)
        self._accounts: Dict[int, str] = {}
        self._permissions: Dict[int, Set[str]] = {}

    def create_account(self, account_id: int, owner: str) -> None:
        """Create an account owned by a wallet."""
        if account_id in self._accounts:
            raise ValueError(f"Account already exists: {account_id}")
        self._accounts[account_id] = normalize_address(owner)
        self._permissions[account_id] = set()

    def grant_permission(self, account_id: int, wallet: str) -> None:
        """Delegate trading and margin rights to another wallet."""
        if account_id not in self._accounts:
            raise KeyError(account_id)
        self._permissions[account_id].add(normalize_address(wallet))

    def revoke_permission(self, account_id: int, wallet: str) -> None:
        self._permissions.get(account_id, set()).discard(normalize_address(wallet))

    def set_owner(self, owner: str) -> None:
        self._owner = normalize_address(owner)

    async def account_exists(self, account_id: int) -> bool:
        return account_id in self._accounts

    async def has_permission(self, account_id: int, caller: str) -> bool:
        owner = self._accounts.get(account_id)
        if owner is None:
            return False
        caller = normalize_address(caller)
        return caller == owner or caller in self._permissions[account_id]

    async def is_owner(self, caller: str) -> bool:
        return normalize_address(caller) == self._owner
