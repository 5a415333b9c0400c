"""
OraclePort - Interface to the oracle manager.

Resolves the current valuation price of an oracle node (market index price
or collateral USD price).
"""
from abc import ABC, abstractmethod
from decimal import Decimal


class OraclePort(ABC):
    """Port interface for current oracle prices."""

    @abstractmethod
    async def get_price(self, node_id: str) -> Decimal:
        """
        Get the current price of an oracle node.

        Args:
            node_id: Oracle node identifier

        Returns:
            Price in USD (18 decimal fixed point)
        """
        pass
