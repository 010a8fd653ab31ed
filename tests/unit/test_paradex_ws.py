"""
Unit Tests for the Paradex websocket fallback

Runs ParadexWSClient against a local websockets server.

Run with:
    pytest tests/unit/test_paradex_ws.py -v
"""

import json

import pytest
import websockets

from core.errors import TransportError
from exchanges.paradex.ws_client import ParadexWSClient


ROWS = [{"symbol": "BTC-USD-PERP", "funding_rate": "0.0001"}]


async def serve(handler):
    server = await websockets.serve(handler, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    return server, f"ws://127.0.0.1:{port}"


class TestParadexWSClient:

    @pytest.mark.asyncio
    async def test_returns_first_snapshot(self):
        received = []

        async def handler(ws):
            received.append(json.loads(await ws.recv()))
            await ws.send("not json")
            await ws.send(json.dumps({"type": "heartbeat"}))
            await ws.send(json.dumps({"type": "snapshot", "data": ROWS}))
            await ws.wait_closed()

        server, url = await serve(handler)
        try:
            rows = await ParadexWSClient(url, timeout=5).fetch_funding_snapshot()
        finally:
            server.close()
            await server.wait_closed()

        assert rows == ROWS
        assert received == [{"type": "subscribe", "channel": "funding_data"}]

    @pytest.mark.asyncio
    async def test_timeout(self):
        async def handler(ws):
            await ws.wait_closed()

        server, url = await serve(handler)
        try:
            with pytest.raises(TransportError, match="WebSocket timeout"):
                await ParadexWSClient(url, timeout=0.3).fetch_funding_snapshot()
        finally:
            server.close()
            await server.wait_closed()

    @pytest.mark.asyncio
    async def test_closed_without_data(self):
        async def handler(ws):
            await ws.recv()

        server, url = await serve(handler)
        try:
            with pytest.raises(TransportError, match="closed without data"):
                await ParadexWSClient(url, timeout=5).fetch_funding_snapshot()
        finally:
            server.close()
            await server.wait_closed()
