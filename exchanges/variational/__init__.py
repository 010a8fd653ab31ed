"""
Variational Adapter

Hourly funding, requests signed with key + secret.

Endpoint:
    GET https://api.variational.io/v1/markets
    Headers:
        X-API-Key:   <key>
        X-Timestamp: <ms>
        X-Signature: HMAC-SHA256(secret, <ms> + "GET" + "/v1/markets").hexdigest()

Response Format:
    {"data": [{"symbol": "BTC-PERP", "fundingRate": "...", "markPrice": "...",
               "indexPrice": "...", "openInterest": "...",
               "nextFundingTime": "2024-01-01T13:00:00Z"}, ...]}
"""

import hashlib
import hmac
from typing import Dict, List

from core.exchange_interface import AuthenticatedAdapter
from core.schemas import FundingRate
from core.utils.time import current_utc_timestamp, parse_timestamp


class VariationalAdapter(AuthenticatedAdapter):
    """Variational funding rate adapter (API key + secret, 1h interval)."""

    venue_id = "variational"
    requires_secret = True

    capabilities = {
        "funding_rate": True,
        "next_funding_time": True,
        "mark_price": True,
        "index_price": True,
        "open_interest": True,
        "volume_24h": False,
    }

    MARKETS_PATH = "/v1/markets"

    def sign(self, timestamp: str, method: str, path: str) -> str:
        message = f"{timestamp}{method}{path}"
        return hmac.new(
            self.credentials.api_secret.encode(),
            message.encode(),
            hashlib.sha256
        ).hexdigest()

    def auth_headers(self, method: str, path: str) -> Dict[str, str]:
        timestamp = str(current_utc_timestamp(milliseconds=True))
        return {
            "X-API-Key": self.credentials.api_key,
            "X-Timestamp": timestamp,
            "X-Signature": self.sign(timestamp, method, path),
        }

    async def _fetch_rates(self) -> List[FundingRate]:
        data = await self._get(
            self.MARKETS_PATH,
            headers=self.auth_headers("GET", self.MARKETS_PATH)
        )

        return [
            self.create_funding_rate(
                raw_symbol=item["symbol"],
                funding_rate=float(item.get("fundingRate") or 0),
                next_funding_time=parse_timestamp(item.get("nextFundingTime")),
                mark_price=self.to_float(item.get("markPrice")),
                index_price=self.to_float(item.get("indexPrice")),
                open_interest=self.to_float(item.get("openInterest")),
            )
            for item in self.require(data, "data")
        ]


__all__ = ["VariationalAdapter"]
