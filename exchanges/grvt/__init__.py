"""
GRVT Adapter

8 hour funding. The API key doubles as session token.

Endpoint:
    GET https://api.grvt.io/v1/funding
    Headers: Cookie: session=<key>, Authorization: Bearer <key>

Response Format:
    {"result": [{"instrument": "BTC_USDT_Perp", "fundingRate": "0.0001",
                 "nextFundingTimestamp": "1704124800000", "markPrice": "...",
                 "indexPrice": "...", "openInterest": "..."}, ...]}
"""

from typing import List

from core.exchange_interface import AuthenticatedAdapter
from core.schemas import FundingRate
from core.utils.time import parse_timestamp


class GrvtAdapter(AuthenticatedAdapter):
    """GRVT funding rate adapter (API key, 8h interval)."""

    venue_id = "grvt"

    capabilities = {
        "funding_rate": True,
        "next_funding_time": True,
        "mark_price": True,
        "index_price": True,
        "open_interest": True,
        "volume_24h": False,
    }

    FUNDING_PATH = "/v1/funding"

    async def _fetch_rates(self) -> List[FundingRate]:
        key = self.credentials.api_key
        data = await self._get(
            self.FUNDING_PATH,
            headers={"Cookie": f"session={key}", "Authorization": f"Bearer {key}"}
        )

        return [
            self.create_funding_rate(
                raw_symbol=item["instrument"],
                funding_rate=float(item.get("fundingRate") or 0),
                next_funding_time=parse_timestamp(item.get("nextFundingTimestamp")),
                mark_price=self.to_float(item.get("markPrice")),
                index_price=self.to_float(item.get("indexPrice")),
                open_interest=self.to_float(item.get("openInterest")),
            )
            for item in self.require(data, "result")
        ]


__all__ = ["GrvtAdapter"]
