"""
Symbol Normalization

Every venue spells its markets differently:
- dYdX / Paradex: "BTC-USD", "BTC-USD-PERP"
- Aster / MYX: "BTCUSDT"
- Hyperliquid / Lighter: bare coin names ("BTC")
- CCXT-style: "BTC/USD:USD"

These helpers map all of them onto one canonical form, "BASE-USD", so rates
for the same asset can be grouped across venues. All stablecoin quotes
(USDT, USDC, BUSD) collapse to USD.
"""

import re


# Suffixes stripped (in this order) before any other processing
_PERP_SUFFIXES = (
    re.compile(r"-PERP$"),
    re.compile(r"_PERP$"),
    re.compile(r"PERP$"),
    re.compile(r":USD$"),
)

# Quote currencies recognised on concatenated symbols like "ETHUSDT".
# Order matters: USDT/USDC must be tried before USD.
QUOTE_CURRENCIES = ("USDT", "USDC", "USD", "BUSD", "DAI")

_STABLE_QUOTE = re.compile(r"-(USDT|USDC|BUSD)$")


def normalize_symbol(raw_symbol: str) -> str:
    """
    Normalize a venue symbol to the canonical "BASE-USD" form.

    Deterministic, case-insensitive and idempotent: normalizing an already
    canonical symbol returns it unchanged.

    Args:
        raw_symbol: Symbol as reported by the venue

    Returns:
        str: Canonical symbol

    Examples:
        >>> normalize_symbol("BTC-USD-PERP")
        'BTC-USD'
        >>> normalize_symbol("ethusdt")
        'ETH-USD'
        >>> normalize_symbol("BTC/USD:USD")
        'BTC-USD'
        >>> normalize_symbol("SOL")
        'SOL-USD'
    """
    symbol = raw_symbol.upper()

    for suffix in _PERP_SUFFIXES:
        symbol = suffix.sub("", symbol)

    if symbol.endswith("/USD"):
        symbol = symbol[:-len("/USD")] + "-USD"

    # Concatenated symbols (BTCUSDT -> BTC-USD)
    if "-" not in symbol and "/" not in symbol:
        for quote in QUOTE_CURRENCIES:
            if symbol.endswith(quote):
                base = symbol[:-len(quote)]
                if len(base) >= 2:
                    symbol = f"{base}-USD"
                    break

    symbol = symbol.replace("/", "-")

    if "-" not in symbol:
        symbol = f"{symbol}-USD"

    return _STABLE_QUOTE.sub("-USD", symbol)


def get_base_asset(symbol: str) -> str:
    """Return the base asset of a canonical symbol ("BTC-USD" -> "BTC")."""
    return symbol.split("-")[0]


def get_quote_asset(symbol: str) -> str:
    """Return the quote asset of a canonical symbol, defaulting to USD."""
    parts = symbol.split("-")
    return parts[1] if len(parts) > 1 and parts[1] else "USD"
