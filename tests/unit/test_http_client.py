"""
Unit Tests for the Venue HTTP Client

Runs the client against a local aiohttp test server.

Run with:
    pytest tests/unit/test_http_client.py -v
"""

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp import test_utils

from core.errors import FormatError, TransportError
from core.http_client import VenueHTTPClient


async def markets(request):
    return web.json_response({"markets": {"BTC-USD": {}}, "query": dict(request.query)})


async def echo(request):
    return web.json_response({"received": await request.json(), "ct": request.headers["Content-Type"]})


async def not_json(request):
    return web.Response(text="<html>maintenance</html>")


async def missing(request):
    return web.Response(status=404, text="nope")


class Counter:
    def __init__(self):
        self.hits = 0

    async def rate_limited(self, request):
        self.hits += 1
        return web.Response(status=429, text="slow down")


@pytest_asyncio.fixture
async def server():
    counter = Counter()
    app = web.Application()
    app.router.add_get("/markets", markets)
    app.router.add_post("/echo", echo)
    app.router.add_get("/html", not_json)
    app.router.add_get("/missing", missing)
    app.router.add_get("/limited", counter.rate_limited)

    srv = test_utils.TestServer(app)
    await srv.start_server()
    srv.counter = counter
    yield srv
    await srv.close()


@pytest_asyncio.fixture
async def client(server):
    async with VenueHTTPClient("dydx", str(server.make_url("/")), timeout=5, max_retries=1) as c:
        yield c


class TestVenueHTTPClient:

    @pytest.mark.asyncio
    async def test_get_json_with_params(self, client):
        data = await client.get("/markets", params={"market": "ALL"})
        assert data["markets"] == {"BTC-USD": {}}
        assert data["query"] == {"market": "ALL"}

    @pytest.mark.asyncio
    async def test_post_sends_json(self, client):
        data = await client.post("/echo", {"type": "predictedFundings"})
        assert data["received"] == {"type": "predictedFundings"}
        assert data["ct"].startswith("application/json")

    @pytest.mark.asyncio
    async def test_absolute_url_bypasses_base(self, client, server):
        data = await client.get(str(server.make_url("/markets")))
        assert "markets" in data

    @pytest.mark.asyncio
    async def test_non_retryable_status(self, client):
        with pytest.raises(TransportError) as exc_info:
            await client.get("/missing")
        assert exc_info.value.status == 404
        assert str(exc_info.value) == "HTTP 404: Not Found"

    @pytest.mark.asyncio
    async def test_invalid_json(self, client):
        with pytest.raises(FormatError):
            await client.get("/html")

    @pytest.mark.asyncio
    async def test_rate_limit_exhausts_retries(self, client, server):
        with pytest.raises(TransportError) as exc_info:
            await client.get("/limited")
        assert exc_info.value.status == 429
        assert server.counter.hits == 1

    @pytest.mark.asyncio
    async def test_connection_error_is_transport_error(self):
        async with VenueHTTPClient("dydx", "http://127.0.0.1:9", timeout=1, max_retries=1) as c:
            with pytest.raises(TransportError):
                await c.get("/anything")

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        c = VenueHTTPClient("dydx", "http://example.invalid")
        await c.open()
        await c.close()
        await c.close()
        assert c.session is None
