"""
Aster Adapter

Binance-style futures API with signed requests, 8 hour funding.

Endpoint:
    GET https://fapi.asterdex.com/fapi/v1/fundingRate?timestamp=<ms>&signature=<hex>
    Header: X-MBX-APIKEY: <key>

Signing:
    signature = HMAC-SHA256(secret, "timestamp=<ms>").hexdigest()

Response Format:
    [{"symbol": "BTCUSDT", "fundingRate": "0.0001", "fundingTime": 1704124800000,
      "markPrice": "...", "indexPrice": "..."}, ...]
"""

import hashlib
import hmac
from typing import List

from core.errors import FormatError
from core.exchange_interface import AuthenticatedAdapter
from core.schemas import FundingRate
from core.utils.time import current_utc_timestamp, parse_timestamp


class AsterAdapter(AuthenticatedAdapter):
    """Aster funding rate adapter (API key + secret, 8h interval)."""

    venue_id = "aster"
    requires_secret = True

    capabilities = {
        "funding_rate": True,
        "next_funding_time": True,
        "mark_price": True,
        "index_price": True,
        "open_interest": False,
        "volume_24h": False,
    }

    FUNDING_PATH = "/fapi/v1/fundingRate"

    def sign(self, query_string: str) -> str:
        """HMAC-SHA256 hex signature of the query string."""
        return hmac.new(
            self.credentials.api_secret.encode(),
            query_string.encode(),
            hashlib.sha256
        ).hexdigest()

    async def _fetch_rates(self) -> List[FundingRate]:
        query = f"timestamp={current_utc_timestamp(milliseconds=True)}"
        data = await self._get(
            f"{self.FUNDING_PATH}?{query}&signature={self.sign(query)}",
            headers={"X-MBX-APIKEY": self.credentials.api_key}
        )

        if not isinstance(data, list):
            raise FormatError("Invalid response format: expected a list", venue=self.venue_id)

        return [
            self.create_funding_rate(
                raw_symbol=item["symbol"],
                funding_rate=float(item.get("fundingRate") or 0),
                next_funding_time=parse_timestamp(item.get("fundingTime")),
                mark_price=self.to_float(item.get("markPrice")),
                index_price=self.to_float(item.get("indexPrice")),
            )
            for item in data
        ]


__all__ = ["AsterAdapter"]
