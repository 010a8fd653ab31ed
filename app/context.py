"""
Application Context

Everything the service holds for its lifetime, built once at startup and
torn down on shutdown:

    settings -> AdapterRegistry -> AggregationEngine -> FetchScheduler
                CacheStore      ---^
                FundingRateRepository ---^

The FastAPI lifespan stores the context on app.state.context; route
handlers reach it through the get_context dependency.
"""

import time
from typing import Optional

from core.config import Settings
from core.exchange_manager import AdapterRegistry
from core.logging import logger
from services.aggregator import AggregationEngine
from services.scheduler import FetchScheduler
from storage.cache import CacheStore, create_cache
from storage.database import STORE_ERRORS, FundingRateRepository


class AppContext:
    """
    Container for the long-lived collaborators.

    Attributes:
        settings: Loaded Settings
        registry: One adapter per venue
        cache: Snapshot cache
        repository: Time series store
        engine: AggregationEngine
        scheduler: FetchScheduler driving engine.fetch_all()
        started_at: Monotonic start time (for uptime)
    """

    def __init__(
        self,
        settings: Settings,
        registry: AdapterRegistry,
        cache: CacheStore,
        repository: Optional[FundingRateRepository],
        engine: AggregationEngine,
        scheduler: FetchScheduler
    ):
        self.settings = settings
        self.registry = registry
        self.cache = cache
        self.repository = repository
        self.engine = engine
        self.scheduler = scheduler
        self.started_at = time.monotonic()

    @property
    def uptime_seconds(self) -> int:
        return int(time.monotonic() - self.started_at)

    @classmethod
    async def create(cls, settings: Settings) -> "AppContext":
        """Build and initialize every collaborator. The scheduler is not started."""
        registry = AdapterRegistry(settings.venue_credentials(), timeout=settings.request_timeout)
        await registry.initialize_all()

        cache = create_cache(settings)

        repository = FundingRateRepository(settings.database_url)
        try:
            await repository.create_schema()
        except STORE_ERRORS as e:
            # Service still answers from cache; /health reports the database down
            logger.error(f"Database schema setup failed: {e}")

        engine = AggregationEngine(registry, cache, repository, cache_ttl=settings.cache_ttl)
        scheduler = FetchScheduler(engine, interval_seconds=settings.fetch_interval_seconds)

        logger.info("✓ Application context created")
        return cls(settings, registry, cache, repository, engine, scheduler)

    async def close(self) -> None:
        """Stop the scheduler and release sessions, cache and database connections."""
        steps = [
            ("scheduler", self.scheduler.stop),
            ("adapters", self.registry.shutdown_all),
            ("cache", self.cache.close),
        ]
        if self.repository is not None:
            steps.append(("database", self.repository.close))

        for name, step in steps:
            try:
                await step()
            except Exception as e:
                logger.error(f"Error closing {name}: {e}")

        logger.info("✓ Application context closed")
