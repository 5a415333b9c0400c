"""
PythPriceFeedAdapter - PriceFeedPort for Pyth-style update blobs.

An update is a UTF-8 JSON object:

    {"id": "<feed id>", "price": <int>, "expo": <int>, "publishTime": <unix seconds>}

with the USD price equal to price * 10**expo (expo is usually negative).
"""
import json
from decimal import Decimal
from typing import Any, Dict

from perp_market.application.ports.outbound.price_feed_port import PriceFeedPort, PriceFeedUpdate
from perp_market.domain.value_objects.fixed_point import DECIMALS, quantize, to_decimal
from perp_market.exceptions import PriceFeedDecodeError

REQUIRED_FIELDS = ("id", "price", "expo", "publishTime")


def encode_price_update(feed_id: str, price, publish_time: int, expo: int = -8) -> bytes:
    """
    Build an update blob (keepers, tests).

    Args:
        feed_id: Feed identifier
        price: USD price (Decimal, int or str)
        publish_time: Unix seconds
        expo: Decimal exponent of the encoded integer price
    """
    scaled = to_decimal(price).scaleb(-expo)
    payload = {
        "id": feed_id,
        "price": int(scaled),
        "expo": expo,
        "publishTime": publish_time,
    }
    return json.dumps(payload).encode("utf-8")


class PythPriceFeedAdapter(PriceFeedPort):
    """Decodes JSON price update blobs."""

    async def parse_price_update(self, update_blob: bytes) -> PriceFeedUpdate:
        data = self._load(update_blob)

        missing = [name for name in REQUIRED_FIELDS if name not in data]
        if missing:
            raise PriceFeedDecodeError(f"missing fields {missing}")

        try:
            raw_price = int(data["price"])
            expo = int(data["expo"])
            publish_time = int(data["publishTime"])
        except (TypeError, ValueError) as e:
            raise PriceFeedDecodeError(f"non-integer field: {e}") from e

        if expo < -DECIMALS or expo > DECIMALS:
            raise PriceFeedDecodeError(f"exponent out of range: {expo}")

        return PriceFeedUpdate(
            feed_id=str(data["id"]),
            price=quantize(Decimal(raw_price).scaleb(expo)),
            publish_time=publish_time,
        )

    @staticmethod
    def _load(update_blob: bytes) -> Dict[str, Any]:
        if not isinstance(update_blob, (bytes, bytearray)):
            raise PriceFeedDecodeError(f"expected bytes, got {type(update_blob).__name__}")
        try:
            data = json.loads(update_blob.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise PriceFeedDecodeError(str(e)) from e
        if not isinstance(data, dict):
            raise PriceFeedDecodeError("update must be a JSON object")
        return data
