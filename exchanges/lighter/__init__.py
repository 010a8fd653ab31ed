"""
Lighter Adapter

zkSync order book venue with hourly funding. Requires an API key.

Endpoint:
    GET https://mainnet.zklighter.elliot.ai/api/v1/funding-rates
    Header: X-API-Key: <key>

Response Format:
    {"data": [{"market": "BTC", "fundingRate": "0.00001", "markPrice": "...",
               "indexPrice": "...", "openInterest": "...",
               "nextFundingTime": 1704114000000}, ...]}
"""

from typing import List

from core.exchange_interface import AuthenticatedAdapter
from core.schemas import FundingRate
from core.utils.time import parse_timestamp


class LighterAdapter(AuthenticatedAdapter):
    """Lighter funding rate adapter (API key, 1h interval)."""

    venue_id = "lighter"

    capabilities = {
        "funding_rate": True,
        "next_funding_time": True,
        "mark_price": True,
        "index_price": True,
        "open_interest": True,
        "volume_24h": False,
    }

    FUNDING_PATH = "/api/v1/funding-rates"

    async def _fetch_rates(self) -> List[FundingRate]:
        data = await self._get(
            self.FUNDING_PATH,
            headers={"X-API-Key": self.credentials.api_key}
        )

        return [
            self.create_funding_rate(
                raw_symbol=item["market"],
                funding_rate=float(item.get("fundingRate") or 0),
                next_funding_time=parse_timestamp(item.get("nextFundingTime")),
                mark_price=self.to_float(item.get("markPrice")),
                index_price=self.to_float(item.get("indexPrice")),
                open_interest=self.to_float(item.get("openInterest")),
            )
            for item in self.require(data, "data")
        ]


__all__ = ["LighterAdapter"]
