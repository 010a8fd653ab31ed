"""
EdgeX Adapter

8 hour funding, API key header.

Endpoint:
    GET https://api.edgex.exchange/api/v1/public/funding/getLatestFundingRate
    Header: X-EDGEX-API-KEY: <key>

Response Format:
    {"code": 0, "data": [{"symbol": "BTCUSDT", "fundingRate": "0.0001",
                          "fundingRateE8": "10000", "markPrice": "...",
                          "indexPrice": "...", "nextFundingTime": 1704124800000}, ...]}

Some rows only carry fundingRateE8 (rate scaled by 1e8).
"""

from typing import Any, Dict, List

from core.errors import FormatError
from core.exchange_interface import AuthenticatedAdapter
from core.schemas import FundingRate
from core.utils.time import parse_timestamp


class EdgeXAdapter(AuthenticatedAdapter):
    """EdgeX funding rate adapter (API key, 8h interval)."""

    venue_id = "edgex"

    capabilities = {
        "funding_rate": True,
        "next_funding_time": True,
        "mark_price": True,
        "index_price": True,
        "open_interest": False,
        "volume_24h": False,
    }

    FUNDING_PATH = "/api/v1/public/funding/getLatestFundingRate"
    E8 = 1e8

    async def _fetch_rates(self) -> List[FundingRate]:
        data = await self._get(
            self.FUNDING_PATH,
            headers={"X-EDGEX-API-KEY": self.credentials.api_key}
        )

        if not isinstance(data, dict) or data.get("code") != 0 or not data.get("data"):
            raise FormatError("Invalid response format", venue=self.venue_id)

        return [
            self.create_funding_rate(
                raw_symbol=item["symbol"],
                funding_rate=self._rate(item),
                next_funding_time=parse_timestamp(item.get("nextFundingTime")),
                mark_price=self.to_float(item.get("markPrice")),
                index_price=self.to_float(item.get("indexPrice")),
            )
            for item in data["data"]
        ]

    def _rate(self, item: Dict[str, Any]) -> float:
        if item.get("fundingRate"):
            return float(item["fundingRate"])
        return float(item.get("fundingRateE8") or 0) / self.E8


__all__ = ["EdgeXAdapter"]
