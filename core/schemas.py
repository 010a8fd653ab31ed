"""
Normalized Data Schemas

This module defines Pydantic models for all funding data types.
These schemas provide a unified, venue-agnostic data format.

Key Principle:
    Regardless of which venue the data comes from (Hyperliquid, dYdX, GMX, etc.),
    it gets normalized into these standardized schemas. Symbols are always
    canonical ("BTC-USD") and every periodic rate carries its annualized
    equivalent so venues with different funding intervals can be compared.

Models:
    - FundingRate: One normalized funding observation for a (venue, symbol)
    - FetchResult: Outcome of one adapter fetch (rates or error)
    - ExchangeStatus: Per-venue health snapshot
    - FundingRatesSnapshot: Complete output of one aggregation cycle
    - ArbitrageOpportunity: Cross-venue spread for one symbol
    - FundingRateSummary: Aggregate statistics over a snapshot
    - VenueInfo: Static venue metadata
    - VenueCredentials: Credentials handed to an adapter

All models are frozen: once a cycle has produced them they are never mutated.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, ConfigDict


# ============================================
# Funding Rate Schema
# ============================================

class FundingRate(BaseModel):
    """
    Normalized Funding Rate Observation

    Funding rates are periodic payments between long and short holders of a
    perpetual contract. Venues settle on different intervals (1h or 8h), so
    the annualized rate is the only field that is comparable across venues.

    The annualized rate is computed exactly once, by the adapter's shared
    create step, as funding_rate * (365 * 24 / funding_interval).

    Attributes:
        exchange: Venue id (lowercase)
        symbol: Canonical symbol ("BTC-USD")
        raw_symbol: Symbol exactly as the venue reported it
        funding_rate: Periodic rate on the venue's interval basis (signed)
        funding_rate_annualized: Rate scaled to one year
        timestamp: Observation time (UTC)
        funding_interval: Venue's settlement interval in hours
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "exchange": "dydx",
                "symbol": "BTC-USD",
                "raw_symbol": "BTC-USD",
                "funding_rate": 0.0001,
                "funding_rate_annualized": 0.1095,
                "timestamp": "2024-01-01T12:00:00Z",
                "funding_interval": 8,
                "next_funding_time": "2024-01-01T16:00:00Z",
                "mark_price": 42150.5,
                "index_price": 42148.0,
                "open_interest": 1250.3,
                "volume_24h": 98000000.0
            }
        }
    )

    exchange: str = Field(..., description="Venue id (lowercase)")
    symbol: str = Field(..., description="Canonical symbol, e.g. BTC-USD")
    raw_symbol: str = Field(..., description="Venue-native symbol")

    funding_rate: float = Field(
        ...,
        description="Periodic funding rate on the venue's interval (0.0001 = 0.01%)"
    )

    funding_rate_annualized: float = Field(
        ...,
        description="Funding rate scaled to a one-year basis"
    )

    timestamp: datetime = Field(..., description="Observation time in UTC")

    funding_interval: float = Field(
        ...,
        gt=0,
        description="Funding interval in hours"
    )

    next_funding_time: Optional[datetime] = None
    mark_price: Optional[float] = None
    index_price: Optional[float] = None
    open_interest: Optional[float] = None
    volume_24h: Optional[float] = None

    @field_validator('symbol')
    @classmethod
    def validate_symbol(cls, v: str) -> str:
        """Ensure symbol is uppercase"""
        return v.upper()

    @field_validator('exchange')
    @classmethod
    def validate_exchange(cls, v: str) -> str:
        """Ensure exchange is lowercase"""
        return v.lower()


# ============================================
# Fetch Outcome Schemas
# ============================================

class FetchResult(BaseModel):
    """
    Outcome of a single adapter fetch.

    On failure `rates` is empty and `error` carries the message; adapters never
    raise out of fetch_funding_rates, they return one of these instead.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    rates: List[FundingRate] = Field(default_factory=list)
    error: Optional[str] = None
    fetch_time: datetime


class ExchangeStatus(BaseModel):
    """
    Per-venue health snapshot.

    Attributes:
        id: Venue id
        name: Display name
        enabled: False only when the venue has no credentials configured
        last_fetch_time: When the venue was last queried
        error: Last error message (None after a success)
        rate_count: Number of rates delivered in the last cycle
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    enabled: bool
    last_fetch_time: Optional[datetime] = None
    error: Optional[str] = None
    rate_count: int = 0


class FundingRatesSnapshot(BaseModel):
    """
    Complete output of one aggregation cycle.

    A new cycle produces a wholly new snapshot that replaces the cached one;
    readers never see a partially built snapshot.
    """

    model_config = ConfigDict(frozen=True)

    rates: List[FundingRate] = Field(default_factory=list)
    exchanges: List[ExchangeStatus] = Field(default_factory=list)
    last_updated: datetime


# ============================================
# Derived Views
# ============================================

class ArbitrageOpportunity(BaseModel):
    """
    Cross-venue funding spread for one symbol.

    Go long where funding is cheapest, short where it is most expensive.
    long_rate <= short_rate always holds.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "symbol": "ETH-USD",
                "long_exchange": "dydx",
                "short_exchange": "hyperliquid",
                "long_rate": 0.05,
                "short_rate": 0.21,
                "spread_annualized": 0.16,
                "timestamp": "2024-01-01T12:00:00Z"
            }
        }
    )

    symbol: str
    long_exchange: str = Field(..., description="Venue with the lowest annualized rate")
    short_exchange: str = Field(..., description="Venue with the highest annualized rate")
    long_rate: float
    short_rate: float
    spread_annualized: float = Field(..., description="short_rate - long_rate")
    timestamp: datetime


class FundingRateSummary(BaseModel):
    """Aggregate statistics over the current snapshot."""

    model_config = ConfigDict(frozen=True)

    highest_rate: Optional[FundingRate] = None
    lowest_rate: Optional[FundingRate] = None
    average_rate: float = 0.0
    total_markets: int = 0
    top_arbitrage: List[ArbitrageOpportunity] = Field(default_factory=list)


# ============================================
# Venue Metadata
# ============================================

class VenueInfo(BaseModel):
    """Static description of a supported venue."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    api_url: str
    auth_required: bool
    funding_interval: float = Field(..., gt=0, description="Funding interval in hours")
    chain: Optional[str] = None
    website: str


class VenueCredentials(BaseModel):
    """Credentials for one venue. Empty strings mean "not provided"."""

    model_config = ConfigDict(frozen=True)

    api_key: str = ""
    api_secret: str = ""
    rpc_url: str = ""
