"""
Tests for CustodyMoves.
"""
import logging

import pytest
import pytest_asyncio
from decimal import Decimal
from unittest.mock import AsyncMock

from perp_market.application.services.custody_moves import CustodyMoves
from perp_market.exceptions import CustodyError
from perp_market.infrastructure.adapters.custody.memory_custody_adapter import InMemoryCustodyAdapter

USDC = "0x" + "1" * 40
TRADER = "0x" + "b" * 40
KEEPER = "0x" + "c" * 40


class TestCustodyMoves:
    """Completed custody calls are reversed when the block fails."""

    @pytest_asyncio.fixture
    async def custody(self):
        custody = InMemoryCustodyAdapter()
        custody.mint(USDC, TRADER, Decimal("100"))
        await custody.grant_allowance(USDC, Decimal("1000"))
        return custody

    @pytest.mark.asyncio
    async def test_success_keeps_moves(self, custody):
        async with CustodyMoves(custody) as moves:
            await moves.pull(USDC, TRADER, Decimal("10"))
            await moves.deposit_market_collateral(1, USDC, Decimal("10"))

        assert custody.balance_of(USDC, TRADER) == Decimal("90")
        assert custody.market_collateral(1, USDC) == Decimal("10")

    @pytest.mark.asyncio
    async def test_failed_forward_returns_pull(self, custody):
        """Given a pull, When the forward fails, Then the wallet is refunded"""
        custody.fail_on("deposit")

        with pytest.raises(CustodyError):
            async with CustodyMoves(custody) as moves:
                await moves.pull(USDC, TRADER, Decimal("10"))
                await moves.deposit_market_collateral(1, USDC, Decimal("10"))

        assert custody.balance_of(USDC, TRADER) == Decimal("100")
        assert custody.ledger_balance(USDC) == Decimal("0")
        assert custody.market_collateral(1, USDC) == Decimal("0")

    @pytest.mark.asyncio
    async def test_reverses_newest_first(self, custody):
        """Two completed payouts and a later failure: both payouts come back"""
        async with CustodyMoves(custody) as setup:
            await setup.pull(USDC, TRADER, Decimal("20"))
            await setup.deposit_market_collateral(1, USDC, Decimal("20"))

        with pytest.raises(RuntimeError):
            async with CustodyMoves(custody) as moves:
                await moves.withdraw_market_collateral(1, USDC, Decimal("5"))
                await moves.push(USDC, KEEPER, Decimal("5"))
                await moves.withdraw_market_collateral(1, USDC, Decimal("3"))
                await moves.push(USDC, KEEPER, Decimal("3"))
                raise RuntimeError("later step failed")

        assert custody.balance_of(USDC, KEEPER) == Decimal("0")
        assert custody.market_collateral(1, USDC) == Decimal("20")
        assert custody.ledger_balance(USDC) == Decimal("0")

    @pytest.mark.asyncio
    async def test_failed_reversal_is_logged(self, caplog):
        custody = AsyncMock()
        custody.push = AsyncMock(side_effect=CustodyError("push", USDC, "down"))

        with caplog.at_level(logging.ERROR):
            with pytest.raises(CustodyError, match="deposit"):
                async with CustodyMoves(custody) as moves:
                    await moves.pull(USDC, TRADER, Decimal("10"))
                    raise CustodyError("deposit", USDC, "refused")

        custody.push.assert_awaited_once_with(USDC, TRADER, Decimal("10"))
        assert "Failed to reverse custody call" in caplog.text
