"""
Jupiter Perps Adapter

Solana perpetuals. Jupiter charges continuous borrow fees with separate long
and short legs; they are averaged into one hourly funding-like rate.

Endpoints Used:
    Primary:  GET https://perps-api.jup.ag/v1/stats
        {"markets": [{"symbol": "SOL", "fundingRateLong": "...", "fundingRateShort": "...",
                      "markPrice": "...", "indexPrice": "...", "openInterest": "...",
                      "volume24h": "..."}, ...]}
    Fallback: GET https://api.fluxbeam.xyz/v1/jupiter-perps/markets
        {"data": [{"symbol": "SOL", "borrowRate": "...", "price": "...",
                   "openInterest": "..."}, ...]}
"""

from typing import Any, Dict, List

from core.errors import ExchangeError
from core.exchange_interface import ExchangeAdapter
from core.schemas import FundingRate


class JupiterAdapter(ExchangeAdapter):
    """Jupiter Perps funding rate adapter (public, 1h interval)."""

    venue_id = "jupiter"

    capabilities = {
        "funding_rate": True,
        "next_funding_time": False,
        "mark_price": True,
        "index_price": True,
        "open_interest": True,
        "volume_24h": True,
    }

    STATS_PATH = "/v1/stats"
    FALLBACK_URL = "https://api.fluxbeam.xyz/v1/jupiter-perps/markets"

    async def _fetch_rates(self) -> List[FundingRate]:
        try:
            data = await self._get(self.STATS_PATH)
            markets = self.require(data, "markets")
        except ExchangeError as e:
            self.logger.warning(f"Jupiter stats endpoint failed ({e}), trying fallback")
            return await self._fetch_fallback()

        return [
            self.create_funding_rate(
                raw_symbol=market["symbol"],
                funding_rate=self._combine_legs(market),
                mark_price=self.to_float(market.get("markPrice")),
                index_price=self.to_float(market.get("indexPrice")),
                open_interest=self.to_float(market.get("openInterest")),
                volume_24h=self.to_float(market.get("volume24h")),
            )
            for market in markets
        ]

    @staticmethod
    def _combine_legs(market: Dict[str, Any]) -> float:
        """Average of the long and short borrow legs."""
        long_rate = float(market.get("fundingRateLong") or 0)
        short_rate = float(market.get("fundingRateShort") or 0)
        return (long_rate + short_rate) / 2

    async def _fetch_fallback(self) -> List[FundingRate]:
        try:
            data = await self._get(self.FALLBACK_URL)
            items = self.require(data, "data")
        except ExchangeError as e:
            raise ExchangeError(
                "Could not fetch Jupiter data from any source",
                venue=self.venue_id
            ) from e

        return [
            self.create_funding_rate(
                raw_symbol=item["symbol"],
                funding_rate=float(item.get("borrowRate") or 0),
                mark_price=self.to_float(item.get("price")),
                open_interest=self.to_float(item.get("openInterest")),
            )
            for item in items
        ]


__all__ = ["JupiterAdapter"]
