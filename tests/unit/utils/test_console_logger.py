"""
Tests for the console logger used by the demo runner.
"""
import pytest
from decimal import Decimal

from perp_market.domain.events import MarketCreated
from perp_market.utils.logger import Logger


class TestLogger:

    def test_print_header(self, capsys):
        Logger.print_header("Deposit")

        out = capsys.readouterr().out
        assert "Deposit" in out
        assert "=" * Logger.SEPARATOR_LENGTH in out

    def test_print_events(self, capsys):
        Logger.print_events([MarketCreated(market_id=1, market_name="ETHPERP")])

        assert "[MarketCreated] market_id=1, market_name=ETHPERP" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_print_position(self, venue, capsys):
        await venue.deposit("1000")
        await venue.open_position("10", "100")
        digest = await venue.queries.get_position_digest(venue.account_id, venue.market_id)

        Logger.print_position(digest)

        out = capsys.readouterr().out
        assert "Size: 10" in out
        assert "Collateral: 997.00 USD" in out
        assert "Liquidatable: no" in out

    def test_usd_format(self):
        assert Logger._usd(Decimal("1234.5")) == "1,234.50 USD"
