"""
Core Utilities Package

Pure helpers shared by adapters, the aggregation engine and the API.

Modules:
    - symbols: Venue symbol normalization ("BTCUSDT" -> "BTC-USD")
    - rates: Funding rate annualization
    - time: Timestamp conversion and normalization utilities
"""

from core.utils.symbols import normalize_symbol, get_base_asset, get_quote_asset
from core.utils.rates import annualize_funding_rate, deannualize_funding_rate
from core.utils.time import to_utc_datetime, parse_timestamp, current_utc_datetime

__all__ = [
    "normalize_symbol",
    "get_base_asset",
    "get_quote_asset",
    "annualize_funding_rate",
    "deannualize_funding_rate",
    "to_utc_datetime",
    "parse_timestamp",
    "current_utc_datetime",
]
