"""
dYdX v4 Adapter

Public indexer endpoint, funding settled every 8 hours.

Endpoint:
    GET https://indexer.v4mainnet.dydx.exchange/v4/perpetualMarkets

Response Format:
    {
        "markets": {
            "BTC-USD": {
                "ticker": "BTC-USD",
                "status": "ACTIVE",
                "oraclePrice": "42150.5",
                "nextFundingRate": "0.0000125",
                "openInterest": "1234.5",
                "volume24H": "98000000"
            },
            ...
        }
    }

Only ACTIVE markets are reported.
"""

from typing import List

from core.exchange_interface import ExchangeAdapter
from core.schemas import FundingRate


class DydxAdapter(ExchangeAdapter):
    """dYdX v4 funding rate adapter (public, 8h interval)."""

    venue_id = "dydx"

    capabilities = {
        "funding_rate": True,
        "next_funding_time": False,
        "mark_price": False,
        "index_price": True,
        "open_interest": True,
        "volume_24h": True,
    }

    MARKETS_PATH = "/v4/perpetualMarkets"

    async def _fetch_rates(self) -> List[FundingRate]:
        data = await self._get(self.MARKETS_PATH)
        markets = self.require(data, "markets")

        rates = []
        for market in markets.values():
            if market.get("status") != "ACTIVE":
                continue

            rates.append(self.create_funding_rate(
                raw_symbol=market["ticker"],
                funding_rate=float(market.get("nextFundingRate") or 0),
                index_price=self.to_float(market.get("oraclePrice")),
                open_interest=self.to_float(market.get("openInterest")),
                volume_24h=self.to_float(market.get("volume24H")),
            ))

        return rates


__all__ = ["DydxAdapter"]
