"""
Cross-Venue Funding Arbitrage Detection

For every symbol listed on at least two venues, pair the venue with the
lowest annualized funding (go long, receive/pay least) with the venue with
the highest (go short, collect most). Spreads at or below the materiality
threshold (1% annualized) are dropped.
"""

from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from core.schemas import ArbitrageOpportunity, FundingRate
from core.utils.time import current_utc_datetime


# Minimum annualized spread worth reporting (0.01 = 1%)
MIN_SPREAD_ANNUALIZED = 0.01


def find_arbitrage_opportunities(
    rates: Iterable[FundingRate],
    min_spread: float = MIN_SPREAD_ANNUALIZED,
    limit: Optional[int] = None,
    now: Optional[datetime] = None
) -> List[ArbitrageOpportunity]:
    """
    Detect one arbitrage opportunity per symbol, widest spread first.

    Args:
        rates: Normalized rates from one snapshot
        min_spread: Spreads with abs(spread) <= min_spread are ignored
        limit: Truncate the sorted result to this many entries
        now: Timestamp stamped on every opportunity (defaults to current UTC time)
    """
    now = now or current_utc_datetime()

    by_symbol: Dict[str, List[FundingRate]] = defaultdict(list)
    for rate in rates:
        by_symbol[rate.symbol].append(rate)

    opportunities = []
    for symbol, symbol_rates in by_symbol.items():
        if len({r.exchange for r in symbol_rates}) < 2:
            continue

        ordered = sorted(symbol_rates, key=lambda r: r.funding_rate_annualized)
        lowest, highest = ordered[0], ordered[-1]
        spread = highest.funding_rate_annualized - lowest.funding_rate_annualized

        if abs(spread) <= min_spread:
            continue

        opportunities.append(ArbitrageOpportunity(
            symbol=symbol,
            long_exchange=lowest.exchange,
            short_exchange=highest.exchange,
            long_rate=lowest.funding_rate_annualized,
            short_rate=highest.funding_rate_annualized,
            spread_annualized=spread,
            timestamp=now,
        ))

    opportunities.sort(key=lambda o: o.spread_annualized, reverse=True)

    if limit is not None:
        return opportunities[:limit]
    return opportunities
