"""
Adapter Registry: Central Registry for Venue Adapters

This module provides a centralized registry for all venue adapters.
The AdapterRegistry builds exactly one adapter per known venue id and
keeps every one of them, configured or not, so unconfigured venues still
show up in status reports.

Design Benefits:
    - Single source of truth for available venues
    - Credentials consumed once, at construction
    - Centralized lifecycle management (initialize/shutdown)
    - The aggregation engine only asks "which venues are configured?"

Example Usage:
    registry = AdapterRegistry(settings.venue_credentials())
    await registry.initialize_all()

    for venue_id in registry.configured_venues():
        result = await registry.get_adapter(venue_id).fetch_funding_rates()

    await registry.shutdown_all()
"""

import asyncio
from typing import Dict, List, Optional

from core.exchange_interface import ExchangeAdapter
from core.logging import logger
from core.schemas import VenueCredentials


class AdapterRegistry:
    """
    Registry of venue adapters keyed by venue id.

    Attributes:
        adapters: Dictionary mapping venue id to adapter instance
                  Example: {"dydx": DydxAdapter(), "aster": AsterAdapter(...)}

    Example:
        >>> registry = AdapterRegistry({"aster": VenueCredentials(api_key="k", api_secret="s")})
        >>> registry.configured_venues()
        ['hyperliquid', 'dydx', 'gmx', 'paradex', 'aster', 'myx', 'jupiter']
        >>> registry.get_adapter("ASTER")
        <AsterAdapter(venue_id='aster', configured=True)>
    """

    def __init__(
        self,
        credentials: Optional[Dict[str, VenueCredentials]] = None,
        adapters: Optional[Dict[str, ExchangeAdapter]] = None,
        timeout: float = 10
    ):
        """
        Build the registry.

        Args:
            credentials: venue id -> VenueCredentials (missing entries mean none)
            adapters: Pre-built adapters, used instead of constructing them
            timeout: HTTP timeout handed to every constructed adapter
        """
        if adapters is not None:
            self.adapters: Dict[str, ExchangeAdapter] = dict(adapters)
        else:
            # Adapter modules import from core, so the import stays local
            from exchanges import ADAPTER_CLASSES

            credentials = credentials or {}
            self.adapters = {
                venue_id: adapter_cls(credentials.get(venue_id), timeout=timeout)
                for venue_id, adapter_cls in ADAPTER_CLASSES.items()
            }

        logger.info(
            f"AdapterRegistry initialized with {len(self.adapters)} venue(s), "
            f"{len(self.configured_venues())} configured: {', '.join(self.configured_venues())}"
        )

    # ============================================
    # Adapter Retrieval Methods
    # ============================================

    def get_adapter(self, venue_id: str) -> ExchangeAdapter:
        """
        Get an adapter by venue id (case-insensitive).

        Raises:
            ValueError: If the venue is not supported
        """
        venue_id = venue_id.lower()

        if venue_id not in self.adapters:
            available = ", ".join(self.adapters.keys())
            logger.error(f"Venue '{venue_id}' not found. Available: {available}")
            raise ValueError(
                f"Venue '{venue_id}' is not supported. "
                f"Available venues: {available}"
            )

        return self.adapters[venue_id]

    def has_venue(self, venue_id: str) -> bool:
        """Check if a venue id is known (case-insensitive)."""
        return venue_id.lower() in self.adapters

    def list_venues(self) -> List[str]:
        """All known venue ids, configured or not."""
        return list(self.adapters.keys())

    def configured_venues(self) -> List[str]:
        """Venue ids whose adapter reports is_configured()."""
        return [venue_id for venue_id, adapter in self.adapters.items() if adapter.is_configured()]

    def all_adapters(self) -> List[ExchangeAdapter]:
        return list(self.adapters.values())

    # ============================================
    # Lifecycle Management
    # ============================================

    async def initialize_all(self) -> None:
        """
        Initialize every configured adapter.

        A failure in one adapter is logged and does not stop the others.
        """
        logger.info("Initializing venue adapters...")

        for venue_id in self.configured_venues():
            try:
                await self.adapters[venue_id].initialize()
                logger.debug(f"✓ {venue_id} initialized")
            except Exception as e:
                logger.error(f"✗ Failed to initialize {venue_id}: {e}")

        logger.info("All venue adapters initialized")

    async def shutdown_all(self) -> None:
        """Shutdown every adapter, logging and continuing past errors."""
        logger.info("Shutting down venue adapters...")

        for venue_id, adapter in self.adapters.items():
            try:
                await adapter.shutdown()
            except Exception as e:
                logger.error(f"✗ Error shutting down {venue_id}: {e}")

        logger.info("All venue adapters shut down")

    # ============================================
    # Health Check Methods
    # ============================================

    async def health_check_all(self) -> Dict[str, bool]:
        """
        Probe every configured venue concurrently.

        Returns:
            Dict[str, bool]: venue id -> reachable and returning data
        """
        venue_ids = self.configured_venues()
        results = await asyncio.gather(
            *(self.adapters[v].health_check() for v in venue_ids),
            return_exceptions=True
        )

        health_status = {}
        for venue_id, result in zip(venue_ids, results):
            if isinstance(result, Exception):
                logger.error(f"Health check failed for {venue_id}: {result}")
                health_status[venue_id] = False
            else:
                health_status[venue_id] = bool(result)

        return health_status

    # ============================================
    # Utility Methods
    # ============================================

    def __len__(self) -> int:
        """Return number of registered venues."""
        return len(self.adapters)

    def __contains__(self, venue_id: str) -> bool:
        return self.has_venue(venue_id)

    def __repr__(self) -> str:
        """String representation of the registry."""
        return f"<AdapterRegistry(venues={self.list_venues()})>"
