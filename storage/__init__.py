"""
Storage Package

Handles caching of the latest snapshot and persistence of the funding
rate time series.

Modules:
- cache: Snapshot cache (in-memory, or Redis when REDIS_HOST is set)
- database: SQLAlchemy async store for funding_rates and fetch_status

The modular design allows swapping backends without touching the
aggregation engine, which only sees the CacheStore and FundingRateRepository
interfaces.
"""

from storage.cache import CacheStore, InMemoryCache, RedisCache, create_cache
from storage.database import FundingRateRepository

__all__ = [
    "CacheStore",
    "InMemoryCache",
    "RedisCache",
    "create_cache",
    "FundingRateRepository",
]
