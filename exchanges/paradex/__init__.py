"""
Paradex Adapter

Starknet perpetuals venue, funding quoted on an 8 hour basis.

Endpoints Used:
    REST: GET https://api.prod.paradex.trade/v1/markets/summary?market=ALL
        {"results": [{"symbol": "BTC-USD-PERP", "funding_rate": "0.0001",
                      "funding_rate_8h": "0.0001", "mark_price": "...",
                      "index_price": "...", "open_interest": "...",
                      "next_funding_at": "2024-01-01T16:00:00Z"}, ...]}

    WebSocket (fallback): wss://ws.api.prod.paradex.trade/v1, channel funding_data

The REST endpoint is tried first; on any transport or shape failure the
adapter falls back to one websocket snapshot (see ws_client.py).

Structure:
    exchanges/paradex/
    ├── __init__.py          # This file (ParadexAdapter class)
    └── ws_client.py         # Websocket snapshot reader
"""

from typing import Any, Dict, List

from core.errors import ExchangeError
from core.exchange_interface import ExchangeAdapter
from core.schemas import FundingRate
from core.utils.time import parse_timestamp
from .ws_client import ParadexWSClient


class ParadexAdapter(ExchangeAdapter):
    """Paradex funding rate adapter (public, 8h interval, REST with websocket fallback)."""

    venue_id = "paradex"

    capabilities = {
        "funding_rate": True,
        "next_funding_time": True,
        "mark_price": True,
        "index_price": True,
        "open_interest": True,
        "volume_24h": False,
    }

    SUMMARY_PATH = "/v1/markets/summary"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.ws_client = ParadexWSClient()

    async def _fetch_rates(self) -> List[FundingRate]:
        try:
            data = await self._get(self.SUMMARY_PATH, params={"market": "ALL"})
            markets = self.require(data, "results")
        except ExchangeError as e:
            self.logger.warning(f"Paradex REST failed ({e}), falling back to websocket")
            markets = await self.ws_client.fetch_funding_snapshot()

        return [self._to_rate(item) for item in markets]

    def _to_rate(self, item: Dict[str, Any]) -> FundingRate:
        return self.create_funding_rate(
            raw_symbol=item["symbol"],
            funding_rate=float(item.get("funding_rate_8h") or item.get("funding_rate") or 0),
            next_funding_time=parse_timestamp(item.get("next_funding_at")),
            mark_price=self.to_float(item.get("mark_price")),
            index_price=self.to_float(item.get("index_price")),
            open_interest=self.to_float(item.get("open_interest")),
        )


__all__ = ["ParadexAdapter", "ParadexWSClient"]
