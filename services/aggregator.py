"""
Funding Rate Aggregation Engine

Runs one fetch cycle across every configured venue and serves the read
paths (current rates, summary, arbitrage, statuses, history) from the
cached snapshot.

Cycle:
    1. Fan out: one task per configured adapter, all started at once
    2. Fan in: wait for every task to settle (never first-completed)
    3. Build one immutable FundingRatesSnapshot
    4. Write snapshot + statuses to the cache, then rates + fetch status to the DB

Readers calling get_current_rates() while a cycle is in flight keep seeing
the previous snapshot until step 4 replaces it. Cycles are sequenced by the
scheduler's single worker, so the engine itself holds no lock.

Failure policy:
    - Venue failures are isolated per adapter (failed FetchResult)
    - Cache errors fail open: a read error is a miss, a write error is logged
    - Database write errors of any kind are logged and never withhold the snapshot
"""

import asyncio
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from core.errors import CacheUnavailable, PersistenceWriteError
from core.exchange_manager import AdapterRegistry
from core.logging import get_logger
from core.schemas import (
    ArbitrageOpportunity,
    ExchangeStatus,
    FetchResult,
    FundingRate,
    FundingRatesSnapshot,
    FundingRateSummary,
)
from core.utils.symbols import normalize_symbol
from core.utils.time import current_utc_datetime
from services.arbitrage import find_arbitrage_opportunities
from storage.cache import CacheStore
from storage.database import FundingRateRepository


CACHE_KEY_CURRENT = "current-rates"
CACHE_KEY_EXCHANGES = "exchange-status"
DEFAULT_CACHE_TTL = 30
NOT_CONFIGURED = "Not configured"
SUMMARY_TOP_ARBITRAGE = 5

_statuses_adapter = TypeAdapter(List[ExchangeStatus])


class AggregationEngine:
    """
    Fan-out/fan-in orchestrator over the adapter registry.

    Attributes:
        registry: AdapterRegistry with one adapter per venue
        cache: Snapshot cache
        repository: Time series store (None disables persistence)
        cache_ttl: TTL in seconds for cached snapshot and statuses
        last_results: Most recent FetchResult per venue (diagnostics only)
    """

    def __init__(
        self,
        registry: AdapterRegistry,
        cache: CacheStore,
        repository: Optional[FundingRateRepository] = None,
        cache_ttl: int = DEFAULT_CACHE_TTL
    ):
        self.registry = registry
        self.cache = cache
        self.repository = repository
        self.cache_ttl = cache_ttl
        self.last_results: Dict[str, FetchResult] = {}
        self._last_updated: Optional[datetime] = None
        self._logger = get_logger(__name__)

    # ============================================
    # Fetch Cycle
    # ============================================

    async def fetch_all(self) -> FundingRatesSnapshot:
        """Run one full cycle and return the new snapshot."""
        configured = self.registry.configured_venues()
        self._logger.debug(f"Fetching from {len(configured)} venue(s): {', '.join(configured)}")

        outcomes = await asyncio.gather(
            *(self.registry.get_adapter(v).fetch_funding_rates() for v in configured),
            return_exceptions=True
        )

        now = self._next_timestamp()
        rates: List[FundingRate] = []
        statuses: List[ExchangeStatus] = []
        results: Dict[str, FetchResult] = {}

        for venue_id, outcome in zip(configured, outcomes):
            if isinstance(outcome, BaseException):
                # Adapter broke its never-raise contract
                self._logger.error(f"{venue_id} adapter raised: {outcome!r}")
                outcome = FetchResult(
                    success=False,
                    error=str(outcome) or outcome.__class__.__name__,
                    fetch_time=now
                )

            results[venue_id] = outcome
            statuses.append(ExchangeStatus(
                id=venue_id,
                name=self.registry.get_adapter(venue_id).name,
                enabled=True,
                last_fetch_time=outcome.fetch_time,
                error=outcome.error,
                rate_count=len(outcome.rates),
            ))
            if outcome.success:
                rates.extend(outcome.rates)

        for adapter in self.registry.all_adapters():
            if adapter.venue_id in results:
                continue
            statuses.append(ExchangeStatus(
                id=adapter.venue_id,
                name=adapter.name,
                enabled=False,
                error=NOT_CONFIGURED,
                rate_count=0,
            ))

        self.last_results.update(results)
        snapshot = FundingRatesSnapshot(rates=rates, exchanges=statuses, last_updated=now)

        succeeded = sum(1 for r in results.values() if r.success)
        self._logger.info(
            f"Fetched {len(rates)} rates from {succeeded}/{len(configured)} venues"
        )

        await self._write_cache(snapshot)
        await self._persist(snapshot, results)

        return snapshot

    def _next_timestamp(self) -> datetime:
        """Current time, strictly later than the previous snapshot's."""
        now = current_utc_datetime()
        if self._last_updated is not None and now <= self._last_updated:
            now = self._last_updated + timedelta(microseconds=1)
        self._last_updated = now
        return now

    async def _write_cache(self, snapshot: FundingRatesSnapshot) -> None:
        try:
            await self.cache.set(
                CACHE_KEY_CURRENT,
                snapshot.model_dump_json().encode(),
                self.cache_ttl
            )
            await self.cache.set(
                CACHE_KEY_EXCHANGES,
                _statuses_adapter.dump_json(snapshot.exchanges),
                self.cache_ttl
            )
        except CacheUnavailable as e:
            self._logger.warning(f"Cache write failed, snapshot not cached: {e}")

    async def _persist(self, snapshot: FundingRatesSnapshot, results: Dict[str, FetchResult]) -> None:
        if self.repository is None:
            return

        for venue_id, result in results.items():
            try:
                await self.repository.upsert_status(
                    exchange_id=venue_id,
                    last_fetch_time=result.fetch_time,
                    last_success_time=result.fetch_time if result.success else None,
                    last_error=result.error,
                    rate_count=len(result.rates),
                    status="ok" if result.success else "error",
                )
            except PersistenceWriteError as e:
                self._logger.error(str(e))
            except Exception as e:
                self._logger.exception(f"Unexpected error storing fetch status for {venue_id}: {e!r}")

        try:
            await self.repository.upsert_rates(snapshot.rates)
        except PersistenceWriteError as e:
            self._logger.error(str(e))
        except Exception as e:
            self._logger.exception(f"Unexpected error storing funding rates: {e!r}")

    # ============================================
    # Read Paths
    # ============================================

    async def _read_cache(self, key: str) -> Optional[bytes]:
        try:
            return await self.cache.get(key)
        except CacheUnavailable as e:
            self._logger.warning(f"Cache read failed, treating as miss: {e}")
            return None

    async def get_current_rates(self, force_refresh: bool = False) -> FundingRatesSnapshot:
        """
        Cache-aside read of the current snapshot.

        Returns the cached snapshot as stored unless force_refresh is set or
        nothing is cached, in which case a new cycle runs.
        """
        if not force_refresh:
            cached = await self._read_cache(CACHE_KEY_CURRENT)
            if cached is not None:
                try:
                    return FundingRatesSnapshot.model_validate_json(cached)
                except ValidationError as e:
                    self._logger.warning(f"Discarding unreadable cached snapshot: {e}")

        return await self.fetch_all()

    async def get_exchange_statuses(self) -> List[ExchangeStatus]:
        cached = await self._read_cache(CACHE_KEY_EXCHANGES)
        if cached is not None:
            try:
                return _statuses_adapter.validate_json(cached)
            except ValidationError as e:
                self._logger.warning(f"Discarding unreadable cached statuses: {e}")

        snapshot = await self.get_current_rates()
        return list(snapshot.exchanges)

    async def get_summary(self) -> FundingRateSummary:
        """Highest, lowest and mean annualized rate plus the top arbitrage spreads."""
        snapshot = await self.get_current_rates()
        rates = snapshot.rates

        if not rates:
            return FundingRateSummary()

        highest = lowest = rates[0]
        total = 0.0
        for rate in rates:
            if rate.funding_rate_annualized > highest.funding_rate_annualized:
                highest = rate
            if rate.funding_rate_annualized < lowest.funding_rate_annualized:
                lowest = rate
            total += rate.funding_rate_annualized

        return FundingRateSummary(
            highest_rate=highest,
            lowest_rate=lowest,
            average_rate=total / len(rates),
            total_markets=len(rates),
            top_arbitrage=find_arbitrage_opportunities(rates, limit=SUMMARY_TOP_ARBITRAGE),
        )

    async def get_arbitrage_opportunities(self, limit: Optional[int] = None) -> List[ArbitrageOpportunity]:
        snapshot = await self.get_current_rates()
        return find_arbitrage_opportunities(snapshot.rates, limit=limit)

    async def get_rates_for_exchanges(self, exchange_ids: List[str]) -> List[FundingRate]:
        wanted = {e.lower() for e in exchange_ids}
        snapshot = await self.get_current_rates()
        return [r for r in snapshot.rates if r.exchange in wanted]

    async def get_rates_for_symbols(self, symbols: List[str]) -> List[FundingRate]:
        wanted = {normalize_symbol(s) for s in symbols}
        snapshot = await self.get_current_rates()
        return [r for r in snapshot.rates if r.symbol in wanted]

    async def get_comparison(self, symbol: str) -> Dict[str, Any]:
        """
        Every venue's rate for one symbol, highest annualized first.

        spread is highest minus lowest annualized rate (0 with fewer than two rates).
        """
        canonical = normalize_symbol(symbol)
        rates = sorted(
            await self.get_rates_for_symbols([canonical]),
            key=lambda r: r.funding_rate_annualized,
            reverse=True
        )
        spread = (
            rates[0].funding_rate_annualized - rates[-1].funding_rate_annualized
            if len(rates) >= 2 else 0.0
        )
        return {"symbol": canonical, "rates": rates, "spread": spread}

    async def get_historical_rates(
        self,
        symbol: str,
        exchange_ids: Optional[List[str]] = None,
        hours: float = 24
    ) -> List[FundingRate]:
        """Stored observations for a symbol over the last `hours`, newest first."""
        if self.repository is None:
            return []
        return await self.repository.query_historical(normalize_symbol(symbol), exchange_ids, hours)
