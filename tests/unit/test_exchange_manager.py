"""
Unit Tests for the Adapter Registry

Run with:
    pytest tests/unit/test_exchange_manager.py -v
"""

import pytest

from core.exchange_manager import AdapterRegistry
from core.schemas import VenueCredentials
from core.venues import AUTHENTICATED_VENUES, PUBLIC_VENUES, VENUE_IDS
from exchanges import ADAPTER_CLASSES
from exchanges.aster import AsterAdapter
from tests.unit.fakes import ScriptedAdapter


class TestDefaultRegistry:

    def test_one_adapter_per_venue(self):
        registry = AdapterRegistry()
        assert len(registry) == 11
        assert set(registry.list_venues()) == set(VENUE_IDS) == set(ADAPTER_CLASSES)

    def test_only_public_venues_configured_without_credentials(self):
        registry = AdapterRegistry()
        assert set(registry.configured_venues()) == set(PUBLIC_VENUES)

    def test_credentials_enable_authenticated_venue(self):
        registry = AdapterRegistry({"aster": VenueCredentials(api_key="k", api_secret="s")})
        assert "aster" in registry.configured_venues()
        for venue_id in set(AUTHENTICATED_VENUES) - {"aster"}:
            assert venue_id not in registry.configured_venues()

    def test_lookup_is_case_insensitive(self):
        registry = AdapterRegistry()
        assert isinstance(registry.get_adapter("ASTER"), AsterAdapter)
        assert "Aster" in registry
        assert registry.has_venue("dydx")

    def test_unknown_venue(self):
        registry = AdapterRegistry()
        with pytest.raises(ValueError, match="not supported"):
            registry.get_adapter("binance")
        assert "binance" not in registry

    def test_timeout_passed_to_clients(self):
        registry = AdapterRegistry(timeout=3)
        assert registry.get_adapter("dydx").client.timeout == 3


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_initialize_only_configured(self):
        on = ScriptedAdapter("dydx")
        off = ScriptedAdapter("lighter", configured=False)
        registry = AdapterRegistry(adapters={"dydx": on, "lighter": off})

        await registry.initialize_all()
        assert on.client.session is not None
        assert off.client.session is None

        await registry.shutdown_all()
        assert on.client.session is None

    @pytest.mark.asyncio
    async def test_health_check_all(self, make_rate):
        registry = AdapterRegistry(adapters={
            "dydx": ScriptedAdapter("dydx", rates=[make_rate("dydx", "BTC-USD", 0.1)]),
            "gmx": ScriptedAdapter("gmx", error=RuntimeError("down")),
            "lighter": ScriptedAdapter("lighter", configured=False),
        })

        health = await registry.health_check_all()

        assert health == {"dydx": True, "gmx": False}

    def test_repr(self):
        registry = AdapterRegistry(adapters={"dydx": ScriptedAdapter("dydx")})
        assert repr(registry) == "<AdapterRegistry(venues=['dydx'])>"
