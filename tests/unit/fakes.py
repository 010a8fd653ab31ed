"""
Test doubles shared across the unit tests.

ScriptedAdapter stands in for a real venue adapter: it returns canned rates
or raises a canned error, so engine and registry tests never touch the network.
"""

from datetime import datetime, timezone
from typing import List, Optional

from core.exchange_interface import ExchangeAdapter
from core.schemas import FundingRate
from core.utils.rates import annualize_funding_rate


FIXED_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def build_rate(
    exchange: str,
    symbol: str,
    annualized: float,
    interval: float = 8,
    timestamp: datetime = FIXED_TIME,
    open_interest: Optional[float] = None
) -> FundingRate:
    """FundingRate whose periodic rate is consistent with `annualized`."""
    periodic = annualized / (365 * 24 / interval)
    return FundingRate(
        exchange=exchange,
        symbol=symbol,
        raw_symbol=symbol,
        funding_rate=periodic,
        funding_rate_annualized=annualize_funding_rate(periodic, interval),
        timestamp=timestamp,
        funding_interval=interval,
        open_interest=open_interest,
    )


class ScriptedAdapter(ExchangeAdapter):
    """Adapter returning fixed rates, raising a fixed error, or reporting unconfigured."""

    def __init__(
        self,
        venue_id: str,
        rates: Optional[List[FundingRate]] = None,
        error: Optional[Exception] = None,
        configured: bool = True
    ):
        self.venue_id = venue_id
        super().__init__()
        self.rates = rates or []
        self.error = error
        self.configured = configured
        self.calls = 0

    def is_configured(self) -> bool:
        return self.configured

    async def _fetch_rates(self) -> List[FundingRate]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.rates)


class RaisingAdapter(ScriptedAdapter):
    """Breaks the never-raise contract of fetch_funding_rates."""

    async def fetch_funding_rates(self):
        self.calls += 1
        raise RuntimeError("adapter exploded")
