"""
MYX Finance Adapter

Public endpoint, 8 hour funding.

Endpoint:
    GET https://api.myx.finance/v2/quote/market/contracts

Response Format:
    {
        "code": 0,
        "data": {
            "contracts": [
                {"symbol": "BTCUSDT", "fundingRate": "0.0001", "markPrice": "...",
                 "indexPrice": "...", "openInterest": "...", "volume24h": "...",
                 "nextFundingTime": 1704124800000},
                ...
            ]
        }
    }
"""

from typing import List

from core.errors import FormatError
from core.exchange_interface import ExchangeAdapter
from core.schemas import FundingRate
from core.utils.time import parse_timestamp


class MyxAdapter(ExchangeAdapter):
    """MYX Finance funding rate adapter (public, 8h interval)."""

    venue_id = "myx"

    capabilities = {
        "funding_rate": True,
        "next_funding_time": True,
        "mark_price": True,
        "index_price": True,
        "open_interest": True,
        "volume_24h": True,
    }

    CONTRACTS_PATH = "/v2/quote/market/contracts"

    async def _fetch_rates(self) -> List[FundingRate]:
        data = await self._get(self.CONTRACTS_PATH)

        if (
            not isinstance(data, dict)
            or data.get("code") != 0
            or not isinstance(data.get("data"), dict)
            or data["data"].get("contracts") is None
        ):
            raise FormatError("Invalid response format", venue=self.venue_id)

        return [
            self.create_funding_rate(
                raw_symbol=contract["symbol"],
                funding_rate=float(contract.get("fundingRate") or 0),
                next_funding_time=parse_timestamp(contract.get("nextFundingTime")),
                mark_price=self.to_float(contract.get("markPrice")),
                index_price=self.to_float(contract.get("indexPrice")),
                open_interest=self.to_float(contract.get("openInterest")),
                volume_24h=self.to_float(contract.get("volume24h")),
            )
            for contract in data["data"]["contracts"]
        ]


__all__ = ["MyxAdapter"]
