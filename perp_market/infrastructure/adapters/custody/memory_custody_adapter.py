"""
InMemoryCustodyAdapter - In-memory implementation of CustodyPort.

Books three kinds of balances per collateral type: wallets, funds held by
the margin ledger itself, and funds forwarded to upstream custody per
market. Upstream deposits require a standing allowance granted by the
collateral registry.
"""
import logging
from decimal import Decimal
from typing import Dict, Optional, Set, Tuple

from perp_market.application.ports.outbound.custody_port import CustodyPort
from perp_market.domain.value_objects.fixed_point import ZERO, checked_add, checked_sub, to_decimal
from perp_market.domain.value_objects.identifiers import normalize_address
from perp_market.exceptions import CustodyError

logger = logging.getLogger(__name__)


class InMemoryCustodyAdapter(CustodyPort):
    """
    In-memory custody for testing and simulations.

    fail_on() makes the next call of an operation raise CustodyError, to
    exercise rollback of the calling operation.
    """

    def __init__(self):
        self._wallets: Dict[Tuple[str, str], Decimal] = {}
        self._ledger: Dict[str, Decimal] = {}
        self._market_collateral: Dict[Tuple[int, str], Decimal] = {}
        self._allowances: Dict[str, Decimal] = {}
        self._failing: Set[str] = set()

    # --- Test Helpers ---

    def mint(self, collateral_type_id: str, wallet: str, amount) -> None:
        key = (normalize_address(collateral_type_id), normalize_address(wallet))
        self._wallets[key] = checked_add(self._wallets.get(key, ZERO), to_decimal(amount))

    def fail_on(self, operation: str) -> None:
        """Make the next call of `operation` (e.g. "push") fail."""
        self._failing.add(operation)

    def balance_of(self, collateral_type_id: str, wallet: str) -> Decimal:
        return self._wallets.get((normalize_address(collateral_type_id), normalize_address(wallet)), ZERO)

    def ledger_balance(self, collateral_type_id: str) -> Decimal:
        return self._ledger.get(normalize_address(collateral_type_id), ZERO)

    def market_collateral(self, market_id: int, collateral_type_id: str) -> Decimal:
        return self._market_collateral.get((market_id, normalize_address(collateral_type_id)), ZERO)

    def allowance(self, collateral_type_id: str) -> Optional[Decimal]:
        return self._allowances.get(normalize_address(collateral_type_id))

    def _maybe_fail(self, operation: str, collateral_type_id: str) -> None:
        if operation in self._failing:
            self._failing.discard(operation)
            raise CustodyError(operation, collateral_type_id, "injected failure")

    # --- Wallet Transfers ---

    async def pull(self, collateral_type_id: str, sender: str, amount: Decimal) -> None:
        self._maybe_fail("pull", collateral_type_id)
        key = (normalize_address(collateral_type_id), normalize_address(sender))
        balance = self._wallets.get(key, ZERO)
        if balance < amount:
            raise CustodyError("pull", collateral_type_id, f"wallet balance {balance} < {amount}")
        self._wallets[key] = checked_sub(balance, amount)
        self._ledger[key[0]] = checked_add(self._ledger.get(key[0], ZERO), amount)

    async def push(self, collateral_type_id: str, recipient: str, amount: Decimal) -> None:
        self._maybe_fail("push", collateral_type_id)
        collateral_type_id = normalize_address(collateral_type_id)
        held = self._ledger.get(collateral_type_id, ZERO)
        if held < amount:
            raise CustodyError("push", collateral_type_id, f"ledger balance {held} < {amount}")
        self._ledger[collateral_type_id] = checked_sub(held, amount)
        key = (collateral_type_id, normalize_address(recipient))
        self._wallets[key] = checked_add(self._wallets.get(key, ZERO), amount)

    # --- Upstream Custody ---

    async def deposit_market_collateral(self, market_id: int, collateral_type_id: str, amount: Decimal) -> None:
        self._maybe_fail("deposit", collateral_type_id)
        collateral_type_id = normalize_address(collateral_type_id)
        allowance = self._allowances.get(collateral_type_id)
        if allowance is None or allowance < amount:
            raise CustodyError("deposit", collateral_type_id, f"allowance {allowance} < {amount}")
        held = self._ledger.get(collateral_type_id, ZERO)
        if held < amount:
            raise CustodyError("deposit", collateral_type_id, f"ledger balance {held} < {amount}")
        self._ledger[collateral_type_id] = checked_sub(held, amount)
        key = (market_id, collateral_type_id)
        self._market_collateral[key] = checked_add(self._market_collateral.get(key, ZERO), amount)

    async def withdraw_market_collateral(self, market_id: int, collateral_type_id: str, amount: Decimal) -> None:
        self._maybe_fail("withdraw", collateral_type_id)
        collateral_type_id = normalize_address(collateral_type_id)
        key = (market_id, collateral_type_id)
        deposited = self._market_collateral.get(key, ZERO)
        if deposited < amount:
            raise CustodyError("withdraw", collateral_type_id, f"market collateral {deposited} < {amount}")
        self._market_collateral[key] = checked_sub(deposited, amount)
        self._ledger[collateral_type_id] = checked_add(self._ledger.get(collateral_type_id, ZERO), amount)

    # --- Transfer Authorization ---

    async def grant_allowance(self, collateral_type_id: str, amount: Decimal) -> None:
        self._allowances[normalize_address(collateral_type_id)] = amount
        logger.debug(f"Allowance granted: {collateral_type_id} up to {amount}")

    async def revoke_allowance(self, collateral_type_id: str) -> None:
        self._allowances.pop(normalize_address(collateral_type_id), None)
        logger.debug(f"Allowance revoked: {collateral_type_id}")
