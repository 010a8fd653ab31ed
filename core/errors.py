"""
Error Taxonomy

All application errors derive from FundingAggregatorError so callers can
catch the whole family at once.

    FundingAggregatorError
    ├── ConfigurationError      venue credentials missing or settings invalid
    ├── ExchangeError           anything that went wrong talking to a venue
    │   ├── TransportError      network failure, timeout, non-2xx status
    │   └── FormatError         payload did not have the expected shape
    ├── PersistenceWriteError   database write failed
    └── CacheUnavailable        cache backend unreachable

Adapters convert ExchangeError into a failed FetchResult; the aggregation
engine logs PersistenceWriteError and CacheUnavailable without failing the
cycle.
"""

from typing import Optional


class FundingAggregatorError(Exception):
    """Base class for all application errors."""


class ConfigurationError(FundingAggregatorError, ValueError):
    """
    Venue credentials are missing, or a setting is out of range.

    Also a ValueError, so startup validation can be caught either way.
    """


class ExchangeError(FundingAggregatorError):
    """A venue request failed."""

    def __init__(self, message: str, venue: Optional[str] = None):
        super().__init__(message)
        self.venue = venue


class TransportError(ExchangeError):
    """
    Network failure, timeout or non-success HTTP status.

    Attributes:
        status: HTTP status code, or None for connection-level failures
    """

    def __init__(self, message: str, venue: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message, venue)
        self.status = status


class FormatError(ExchangeError):
    """The venue answered, but not with the payload shape we expect."""


class PersistenceWriteError(FundingAggregatorError):
    """Writing rates or status rows to the database failed."""


class CacheUnavailable(FundingAggregatorError):
    """The cache backend could not be reached."""
