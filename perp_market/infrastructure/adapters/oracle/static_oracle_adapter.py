"""
StaticOracleAdapter - OraclePort backed by a settable price table.
"""
from decimal import Decimal
from typing import Dict, Mapping, Optional

from perp_market.application.ports.outbound.oracle_port import OraclePort
from perp_market.domain.value_objects.fixed_point import to_decimal


class StaticOracleAdapter(OraclePort):
    """
    Oracle manager stand-in for tests and simulations.

    Usage:
        oracle = StaticOracleAdapter({"eth-usd": Decimal("100")})
        oracle.set_price("eth-usd", Decimal("90"))
    """

    def __init__(self, prices: Optional[Mapping[str, Decimal]] = None):
        self._prices: Dict[str, Decimal] = {}
        for node_id, price in (prices or {}).items():
            self.set_price(node_id, price)

    def set_price(self, node_id: str, price) -> None:
        self._prices[node_id] = to_decimal(price)

    async def get_price(self, node_id: str) -> Decimal:
        """
        Raises:
            KeyError: Unknown oracle node
        """
        if node_id not in self._prices:
            raise KeyError(f"Unknown oracle node: {node_id}")
        return self._prices[node_id]
