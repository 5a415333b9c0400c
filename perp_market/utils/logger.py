"""
Logging setup and console output
"""
import logging
from decimal import Decimal
from typing import Iterable, Optional

from perp_market.config.settings import LogConfig


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging once (LOG_LEVEL / LOG_FORMAT)."""
    logging.basicConfig(
        level=getattr(logging, (level or LogConfig.LEVEL).upper()),
        format=LogConfig.FORMAT,
    )


class Logger:
    """Console output for the demo runner"""

    SEPARATOR_LENGTH = 60

    @staticmethod
    def _separator() -> str:
        return "=" * Logger.SEPARATOR_LENGTH

    @staticmethod
    def print_header(title: str):
        print(f"\n{Logger._separator()}")
        print(title)
        print(Logger._separator())

    @staticmethod
    def _usd(value: Decimal) -> str:
        return f"{value:,.2f} USD"

    @staticmethod
    def print_position(digest):
        """
        Print a position digest.

        Args:
            digest: PositionDigest
        """
        Logger.print_header(f"Position account={digest.account_id} market={digest.market_id}")
        if digest.position is None:
            print("   No position")
        else:
            print(f"   Size: {digest.position.size.normalize():f}")
            print(f"   Entry price: {Logger._usd(digest.position.entry_price)}")
            print(f"   Accumulated margin: {Logger._usd(digest.position.accumulated_margin)}")
        print(f"   Oracle price: {Logger._usd(digest.oracle_price)}")
        print(f"   Collateral: {Logger._usd(digest.collateral_usd)}")
        print(f"   Margin: {Logger._usd(digest.risk.margin_usd)}")
        print(f"   Initial margin: {Logger._usd(digest.risk.thresholds.initial_margin_usd)}")
        print(f"   Maintenance margin: {Logger._usd(digest.risk.thresholds.maintenance_margin_usd)}")
        print(f"   Liquidatable: {'yes' if digest.can_liquidate else 'no'}")

    @staticmethod
    def print_events(events: Iterable):
        for event in events:
            payload = event.to_dict()
            name = payload.pop("event")
            details = ", ".join(f"{key}={value}" for key, value in payload.items())
            print(f"   [{name}] {details}")
