"""
Exchange Adapter Interface: Abstract Contract for All Venues

This module defines the abstract base class that every venue adapter must
implement. By enforcing a consistent interface, we ensure:
- The aggregation engine treats all eleven venues identically
- New venues can be added without touching the engine or the API
- A venue failure never escapes as an exception

Design Philosophy:
    "Program to an interface, not an implementation"

    The aggregation engine only ever calls fetch_funding_rates() and
    is_configured(). Everything venue-specific (endpoints, auth, payload
    shapes, unit conversion) lives in the subclass's _fetch_rates().

Contract:
    fetch_funding_rates() NEVER raises. Missing credentials, non-2xx
    statuses, unexpected payload shapes and network exceptions are all
    turned into a failed FetchResult, and last_fetch_time / last_error are
    updated on every call.

Example:
    class DydxAdapter(ExchangeAdapter):
        venue_id = "dydx"

        async def _fetch_rates(self):
            data = await self._get("/v4/perpetualMarkets")
            return [self.create_funding_rate(...) for market in ...]

    adapter = registry.get_adapter("dydx")
    result = await adapter.fetch_funding_rates()
    if result.success:
        print(f"{len(result.rates)} markets")

Capabilities System:
    Each adapter declares which optional fields its venue provides via the
    `capabilities` dict. The API exposes it on /api/exchanges/{id}.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from core.errors import ConfigurationError, ExchangeError, FormatError
from core.http_client import VenueHTTPClient
from core.logging import get_logger
from core.schemas import FetchResult, FundingRate, VenueCredentials, VenueInfo
from core.utils.rates import annualize_funding_rate
from core.utils.symbols import normalize_symbol
from core.utils.time import current_utc_datetime
from core.venues import VENUES


MISSING_API_KEY = "API key not configured"
MISSING_API_KEY_SECRET = "API key/secret not configured"


class ExchangeAdapter(ABC):
    """
    Abstract Base Class for Venue Adapters

    Class Attributes:
        venue_id: Unique venue identifier (lowercase, e.g. "dydx")
        capabilities: Optional fields this venue reports

    Instance Attributes:
        info: Static VenueInfo for this venue
        credentials: VenueCredentials handed over by the registry
        client: Shared HTTP transport bound to the venue's base URL
        last_fetch_time: When fetch_funding_rates() last ran
        last_error: Error message of the last call (None after success)

    Abstract Methods (MUST be implemented by all venues):
        - _fetch_rates: Query the venue and return normalized FundingRate objects

    Optional Overrides:
        - is_configured / missing_credentials_message: for authenticated venues
        - initialize / shutdown: extra resources beyond the HTTP session
        - health_check: cheaper probe than a full fetch
    """

    # ============================================
    # Class Attributes (must be set by subclasses)
    # ============================================

    venue_id: str
    """Unique venue identifier. Example: "hyperliquid", "gmx" """

    capabilities: Dict[str, bool] = {
        "funding_rate": True,
        "next_funding_time": False,
        "mark_price": False,
        "index_price": False,
        "open_interest": False,
        "volume_24h": False,
    }

    missing_credentials_message: str = MISSING_API_KEY

    def __init__(
        self,
        credentials: Optional[VenueCredentials] = None,
        timeout: float = 10
    ):
        self.info: VenueInfo = VENUES[self.venue_id]
        self.credentials = credentials or VenueCredentials()
        self.client = VenueHTTPClient(self.venue_id, self.info.api_url, timeout=timeout)
        self.last_fetch_time: Optional[datetime] = None
        self.last_error: Optional[str] = None
        self.logger = get_logger(f"exchanges.{self.venue_id}")

    # ============================================
    # Metadata
    # ============================================

    @property
    def name(self) -> str:
        """Display name of the venue."""
        return self.info.name

    @property
    def funding_interval(self) -> float:
        """Funding interval in hours used for annualization."""
        return self.info.funding_interval

    def is_configured(self) -> bool:
        """
        True if the adapter has everything it needs to run.

        Public venues are always configured; authenticated venues override this.
        """
        return True

    def ensure_configured(self) -> None:
        """Raise ConfigurationError with the missing-credentials message if not configured."""
        if not self.is_configured():
            raise ConfigurationError(self.missing_credentials_message)

    # ============================================
    # Fetch (template method)
    # ============================================

    async def fetch_funding_rates(self) -> FetchResult:
        """
        Fetch the current funding rates for every market on this venue.

        Returns:
            FetchResult: success with rates, or failure with an error message.
                         Never raises.
        """
        self.last_fetch_time = current_utc_datetime()

        try:
            self.ensure_configured()
            rates = await self._fetch_rates()
        except ConfigurationError as e:
            self.logger.debug(f"{self.venue_id} skipped: {e}")
            return self._failure(str(e))
        except ExchangeError as e:
            self.logger.error(f"{self.venue_id} fetch failed: {e}")
            return self._failure(str(e))
        except Exception as e:
            self.logger.exception(f"{self.venue_id} fetch failed unexpectedly: {e}")
            return self._failure(str(e) or e.__class__.__name__)

        self.last_error = None
        self.logger.info(f"✓ {self.venue_id}: fetched {len(rates)} funding rates")
        return FetchResult(success=True, rates=rates, fetch_time=self.last_fetch_time)

    @abstractmethod
    async def _fetch_rates(self) -> List[FundingRate]:
        """
        Query the venue and return normalized rates.

        Implementations raise TransportError/FormatError (or let the HTTP
        client raise them) instead of returning partial garbage.
        """
        ...

    def _failure(self, message: str) -> FetchResult:
        self.last_error = message
        return FetchResult(
            success=False,
            rates=[],
            error=message,
            fetch_time=self.last_fetch_time or current_utc_datetime()
        )

    # ============================================
    # Shared Helpers for Subclasses
    # ============================================

    def create_funding_rate(
        self,
        raw_symbol: str,
        funding_rate: float,
        timestamp: Optional[datetime] = None,
        next_funding_time: Optional[datetime] = None,
        mark_price: Optional[float] = None,
        index_price: Optional[float] = None,
        open_interest: Optional[float] = None,
        volume_24h: Optional[float] = None
    ) -> FundingRate:
        """
        Build a FundingRate with the canonical symbol and annualized rate.

        `funding_rate` must already be expressed on this venue's funding
        interval; it is annualized with that interval exactly once, here.
        """
        return FundingRate(
            exchange=self.venue_id,
            symbol=normalize_symbol(raw_symbol),
            raw_symbol=raw_symbol,
            funding_rate=funding_rate,
            funding_rate_annualized=annualize_funding_rate(funding_rate, self.funding_interval),
            timestamp=timestamp or current_utc_datetime(),
            funding_interval=self.funding_interval,
            next_funding_time=next_funding_time,
            mark_price=mark_price,
            index_price=index_price,
            open_interest=open_interest,
            volume_24h=volume_24h,
        )

    @staticmethod
    def dedupe_by_open_interest(rates: Iterable[FundingRate]) -> List[FundingRate]:
        """
        Keep one rate per canonical symbol, preferring the larger open interest.

        Missing open interest counts as 0; on a tie the first entry seen wins.
        Output order follows first appearance of each symbol.
        """
        best: Dict[str, FundingRate] = {}
        for rate in rates:
            current = best.get(rate.symbol)
            if current is None or (rate.open_interest or 0) > (current.open_interest or 0):
                best[rate.symbol] = rate
        return list(best.values())

    @staticmethod
    def to_float(value: Any) -> Optional[float]:
        """Parse an optional numeric field ("123.4", 5, None, "") into float or None."""
        if value is None or value == "":
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None

    def require(self, payload: Any, key: str) -> Any:
        """
        Return payload[key], raising FormatError if the payload lacks it.

        Used for the top-level field every venue response must contain.
        """
        if not isinstance(payload, dict) or payload.get(key) is None:
            raise FormatError(f"Invalid response format: missing '{key}'", venue=self.venue_id)
        return payload[key]

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None,
                   headers: Optional[Dict[str, str]] = None) -> Any:
        return await self.client.get(path, params=params, headers=headers)

    async def _post(self, path: str, payload: Optional[Dict[str, Any]] = None,
                    headers: Optional[Dict[str, str]] = None) -> Any:
        return await self.client.post(path, payload=payload, headers=headers)

    # ============================================
    # Optional Lifecycle Methods
    # ============================================

    async def initialize(self) -> None:
        """
        Open the venue's HTTP session.

        Safe to call multiple times. Called by AdapterRegistry.initialize_all().
        """
        await self.client.open()
        self.logger.debug(f"{self.venue_id} adapter initialized")

    async def shutdown(self) -> None:
        """Close the venue's HTTP session."""
        await self.client.close()
        self.logger.debug(f"{self.venue_id} adapter shut down")

    async def health_check(self) -> bool:
        """
        Check whether the venue currently returns data.

        Does not touch last_fetch_time / last_error. Returns False on any
        error instead of raising.
        """
        if not self.is_configured():
            return False
        try:
            rates = await self._fetch_rates()
            return len(rates) > 0
        except Exception as e:
            self.logger.error(f"{self.venue_id} health check failed: {e}")
            return False

    def __repr__(self) -> str:
        """String representation of the adapter."""
        return f"<{self.__class__.__name__}(venue_id='{self.venue_id}', configured={self.is_configured()})>"


class AuthenticatedAdapter(ExchangeAdapter):
    """
    Base for venues that need an API key (and optionally a secret).

    Set `requires_secret = True` for venues that sign requests.
    """

    requires_secret: bool = False

    @property
    def missing_credentials_message(self) -> str:
        return MISSING_API_KEY_SECRET if self.requires_secret else MISSING_API_KEY

    def is_configured(self) -> bool:
        if not self.credentials.api_key:
            return False
        if self.requires_secret and not self.credentials.api_secret:
            return False
        return True
