"""
GMX (Arbitrum) Adapter

GMX v2 markets charge funding continuously. The API reports a per-second
funding factor, which is scaled to an hourly rate here so it can be
annualized with the venue's 1h interval.

Endpoint:
    GET https://arbitrum-api.gmxinfra.io/markets/info

Response Format:
    {
        "markets": [
            {
                "indexToken": "0x47904963fc8b2340414262125aF798B9655E58Cd",
                "fundingFactorPerSecond": "0.0000000035",
                "openInterestLong": "...",     # USD, 30 decimals
                "openInterestShort": "...",    # USD, 30 decimals
                "indexTokenPriceMax": "...",   # 30 decimals
                "indexTokenPriceMin": "..."
            },
            ...
        ]
    }

Markets are keyed by index token address; several pools can share the same
index token, so rates are deduplicated by open interest. Markets whose index
token is not in TOKEN_SYMBOLS are skipped.
"""

from typing import Dict, List

from core.exchange_interface import ExchangeAdapter
from core.schemas import FundingRate


# Arbitrum index token address (lowercase) -> asset symbol
TOKEN_SYMBOLS: Dict[str, str] = {
    "0x82af49447d8a07e3bd95bd0d56f35241523fbab1": "ETH",
    "0x2f2a2543b76a4166549f7aab2e75bef0aefc5b0f": "BTC",
    "0xf97f4df75117a78c1a5a0dbb814af92458539fb4": "LINK",
    "0xfa7f8980b0f1e64a2062791cc3b0871572f1f7f0": "UNI",
    "0x912ce59144191c1204e64559fe8253a0e49e6548": "ARB",
    "0xfc5a1a6eb076a2c7ad06ed22c90d7e710e35ad0a": "GMX",
    "0xfea7a6a0b346362bf88a9e4a88416b77a57d6c2a": "MIM",
    "0xff970a61a04b1ca14834a43f5de4533ebddb5cc8": "USDC",
    "0xfd086bc7cd5c481dcc9c85ebe478a1c0b69fcbb9": "USDT",
    "0xda10009cbd5d07dd0cecc66161fc93d7c9000da1": "DAI",
    "0xaf88d065e77c8cc2239327c5edb3a432268e5831": "USDC",
    "0x47c031236e19d024b42f8ae6780e44a573170703": "GM",
    "0x82e64f49ed5ec1bc6e43dad4fc8af9bb3a2312ee": "aUSDC",
    "0x5979d7b546e38e414f7e9822514be443a4800529": "wstETH",
    "0x35751007a407ca6feffe80b3cb397736d2cf4dbe": "weETH",
    "0x2416092f143378750bb29b79ed961ab195cceea5": "ezETH",
    "0x0c880f6761f1af8d9aa9c466984b80dab9a8c9e8": "PENDLE",
    "0x6985884c4392d348587b19cb9eaaf157f13271cd": "ZRO",
    "0xba5ddd1f9d7f570dc94a51479a000e3bce967196": "AAVE",
    "0x4e352cf164e64adcbad318c3a1e222e9eba4ce42": "MCB",
    "0x7dd9c5cba05e151c895fde1cf355c9a1d5da6429": "ATOM",
    "0x8d9ba570d6cb60c7e3e0f31343efe75ab8e65fb1": "NEAR",
    "0x289ba1701c2f088cf0faf8b3705246331cb8a839": "LTC",
    "0x9623063377ad1b27544c965ccd7342f7ea7e88c7": "XRP",
    "0x1f52145666c862ed3e2f1da213d479e61b2892af": "DOGE",
    "0xa9004a5421372e1d83fb1f85b0fc986c912f91f3": "SOL",
    "0x565609faf65b92f7be02468acf86f8979423e514": "BNB",
    "0x6fdf6f9c5c09aa3fa4bc53aaadb29da6be7d9ea4": "OP",
    "0xaed882f117a32ad47f2053ef30a16d97cfe52b42": "ORDI",
    "0x0000000000000000000000000000000000000000": "ETH",
    "0x4200000000000000000000000000000000000006": "ETH",
}


class GmxAdapter(ExchangeAdapter):
    """GMX v2 funding rate adapter (public, per-second factor scaled to 1h)."""

    venue_id = "gmx"

    capabilities = {
        "funding_rate": True,
        "next_funding_time": False,
        "mark_price": True,
        "index_price": False,
        "open_interest": True,
        "volume_24h": False,
    }

    MARKETS_PATH = "/markets/info"

    # Per-second factor -> hourly rate
    SECONDS_PER_FUNDING_INTERVAL = 3600

    # Prices and USD amounts are fixed point with 30 decimals
    PRICE_PRECISION = 1e30

    async def _fetch_rates(self) -> List[FundingRate]:
        data = await self._get(self.MARKETS_PATH)
        markets = self.require(data, "markets")

        rates = []
        for market in markets:
            symbol = TOKEN_SYMBOLS.get(str(market.get("indexToken", "")).lower())
            if symbol is None:
                continue

            per_second = float(market.get("fundingFactorPerSecond") or 0)
            oi_long = float(market.get("openInterestLong") or 0)
            oi_short = float(market.get("openInterestShort") or 0)
            price_max = float(market.get("indexTokenPriceMax") or 0)
            price_min = float(market.get("indexTokenPriceMin") or 0)

            rates.append(self.create_funding_rate(
                raw_symbol=f"{symbol}-USD",
                funding_rate=per_second * self.SECONDS_PER_FUNDING_INTERVAL,
                mark_price=((price_max + price_min) / 2) / self.PRICE_PRECISION,
                open_interest=(oi_long + oi_short) / self.PRICE_PRECISION,
            ))

        return self.dedupe_by_open_interest(rates)


__all__ = ["GmxAdapter", "TOKEN_SYMBOLS"]
