"""
CustodyMoves - Custody calls of one operation, reversible as a unit.

The state store rolls itself back when an operation fails, but funds moved
through CustodyPort do not. Each completed call records its inverse; if the
block raises, the inverses run newest first and the error propagates.
"""
import logging
from decimal import Decimal
from typing import Awaitable, Callable, List, Tuple

from perp_market.application.ports.outbound.custody_port import CustodyPort

logger = logging.getLogger(__name__)

Undo = Tuple[str, Callable[[], Awaitable[None]]]


class CustodyMoves:
    """
    Usage:
        async with CustodyMoves(custody) as moves:
            await moves.pull(collateral, trader, amount)
            await moves.deposit_market_collateral(market_id, collateral, amount)
    """

    def __init__(self, custody: CustodyPort):
        self.custody = custody
        self._undo: List[Undo] = []

    async def __aenter__(self) -> "CustodyMoves":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            await self.rollback()
        return False

    async def pull(self, collateral_type_id: str, sender: str, amount: Decimal) -> None:
        await self.custody.pull(collateral_type_id, sender, amount)
        self._undo.append(
            (f"pull {amount} from {sender}", lambda: self.custody.push(collateral_type_id, sender, amount))
        )

    async def push(self, collateral_type_id: str, recipient: str, amount: Decimal) -> None:
        await self.custody.push(collateral_type_id, recipient, amount)
        self._undo.append(
            (f"push {amount} to {recipient}", lambda: self.custody.pull(collateral_type_id, recipient, amount))
        )

    async def deposit_market_collateral(self, market_id: int, collateral_type_id: str, amount: Decimal) -> None:
        await self.custody.deposit_market_collateral(market_id, collateral_type_id, amount)
        self._undo.append((
            f"deposit {amount} to market {market_id}",
            lambda: self.custody.withdraw_market_collateral(market_id, collateral_type_id, amount),
        ))

    async def withdraw_market_collateral(self, market_id: int, collateral_type_id: str, amount: Decimal) -> None:
        await self.custody.withdraw_market_collateral(market_id, collateral_type_id, amount)
        self._undo.append((
            f"withdraw {amount} from market {market_id}",
            lambda: self.custody.deposit_market_collateral(market_id, collateral_type_id, amount),
        ))

    async def rollback(self) -> None:
        """Reverse completed calls, newest first. A failing reversal is logged and the rest still run."""
        while self._undo:
            description, undo = self._undo.pop()
            try:
                await undo()
            except Exception:
                logger.exception(f"Failed to reverse custody call: {description}")
