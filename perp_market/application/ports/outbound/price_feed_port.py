"""
PriceFeedPort - Interface to the Pyth-style pull price feed.

An opaque, externally supplied update blob is decoded into the feed it
belongs to, its price and its publish time. Freshness is validated by the
application layer, never by the adapter.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class PriceFeedUpdate:
    """
    Decoded price update.

    Attributes:
        feed_id: Feed identifier the update was signed for
        price: Price in USD
        publish_time: Unix seconds the price was published at
    """
    feed_id: str
    price: Decimal
    publish_time: int


class PriceFeedPort(ABC):
    """Port interface for decoding price update blobs."""

    @abstractmethod
    async def parse_price_update(self, update_blob: bytes) -> PriceFeedUpdate:
        """
        Decode a price update.

        Args:
            update_blob: Opaque update data supplied by the keeper

        Returns:
            Decoded PriceFeedUpdate

        Raises:
            PriceFeedDecodeError: If the blob is malformed
        """
        pass
