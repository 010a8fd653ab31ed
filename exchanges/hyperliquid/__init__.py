"""
Hyperliquid Adapter

Hyperliquid is an L1 perpetuals venue that settles funding every hour.

Endpoints Used (POST to https://api.hyperliquid.xyz/info):
    - {"type": "predictedFundings"} - Predicted next funding per coin
    - {"type": "metaAndAssetCtxs"}  - Mark/oracle price, OI and volume per coin

predictedFundings Response Format:
    [
        ["BTC", [["BinPerp", {...}], ["HlPerp", {"fundingRate": "0.0000125",
                                                 "nextFundingTime": 1733961600000}]]],
        ...
    ]

    Only the HlPerp entry is Hyperliquid's own rate; the others are
    predictions for competing venues and are ignored.

metaAndAssetCtxs is best effort: if it fails, rates are still returned
without price/OI context.

Symbol format: bare coin names ("BTC") -> normalized to "BTC-USD".
"""

from typing import Any, Dict, List

from core.errors import ExchangeError, FormatError
from core.exchange_interface import ExchangeAdapter
from core.schemas import FundingRate
from core.utils.time import parse_timestamp


class HyperliquidAdapter(ExchangeAdapter):
    """
    Hyperliquid funding rate adapter (public, 1h interval).

    Example:
        >>> adapter = HyperliquidAdapter()
        >>> result = await adapter.fetch_funding_rates()
        >>> result.rates[0].symbol
        'BTC-USD'
    """

    venue_id = "hyperliquid"

    capabilities = {
        "funding_rate": True,
        "next_funding_time": True,
        "mark_price": True,
        "index_price": True,
        "open_interest": True,
        "volume_24h": True,
    }

    INFO_PATH = "/info"
    VENUE_KEY = "HlPerp"

    async def _fetch_rates(self) -> List[FundingRate]:
        predicted = await self._post(self.INFO_PATH, {"type": "predictedFundings"})
        if not isinstance(predicted, list):
            raise FormatError("Invalid response format: expected a list", venue=self.venue_id)

        contexts = await self._fetch_asset_contexts()

        rates = []
        for coin, funding in self._iter_predictions(predicted):
            ctx = contexts.get(coin, {})
            rates.append(self.create_funding_rate(
                raw_symbol=coin,
                funding_rate=float(funding.get("fundingRate") or funding.get("funding") or 0),
                next_funding_time=parse_timestamp(funding.get("nextFundingTime")),
                mark_price=self.to_float(ctx.get("markPx")),
                index_price=self.to_float(ctx.get("oraclePx")),
                open_interest=self.to_float(ctx.get("openInterest")),
                volume_24h=self.to_float(ctx.get("dayNtlVlm")),
            ))

        return rates

    def _iter_predictions(self, predicted: List[Any]):
        """Yield (coin, funding_info) pairs for Hyperliquid's own predictions."""
        for item in predicted:
            # Flat form: {"coin": "BTC", "funding": "0.0001"}
            if isinstance(item, dict) and "coin" in item:
                yield item["coin"], item
                continue

            if not isinstance(item, list) or len(item) < 2:
                continue

            coin, venues = item[0], item[1]
            for entry in venues or []:
                if isinstance(entry, list) and len(entry) >= 2 and entry[0] == self.VENUE_KEY:
                    if entry[1]:
                        yield coin, entry[1]
                    break

    async def _fetch_asset_contexts(self) -> Dict[str, Dict[str, Any]]:
        """Map coin -> asset context. Returns {} if the call fails."""
        try:
            data = await self._post(self.INFO_PATH, {"type": "metaAndAssetCtxs"})
        except ExchangeError as e:
            self.logger.warning(f"metaAndAssetCtxs unavailable, continuing without prices: {e}")
            return {}

        if not isinstance(data, list) or len(data) < 2:
            return {}

        meta, asset_ctxs = data[0], data[1]
        contexts = {}
        for index, asset in enumerate(meta.get("universe", [])):
            if index < len(asset_ctxs):
                contexts[asset["name"]] = asset_ctxs[index]
        return contexts


__all__ = ["HyperliquidAdapter"]
