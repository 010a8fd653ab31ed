"""
Paradex WebSocket Client

One-shot snapshot reader for the Paradex `funding_data` channel. Used by
ParadexAdapter only when the REST summary endpoint is unavailable.

Protocol:
    -> {"type": "subscribe", "channel": "funding_data"}
    <- {"type": "subscribed", ...}              (ignored)
    <- {"type": "snapshot", "data": [ {...}, ... ]}

The first `snapshot` message carrying data is returned and the connection
is closed. Messages that fail to parse are skipped.

Usage:
    client = ParadexWSClient()
    markets = await client.fetch_funding_snapshot()
"""

import asyncio
import json
from typing import Any, Dict, List

import websockets

from core.errors import TransportError
from core.logging import get_logger, log_websocket_event


class ParadexWSClient:
    """
    Reads a single funding snapshot from the Paradex websocket.

    Attributes:
        url: Websocket endpoint
        timeout: Seconds to wait for the snapshot before giving up
    """

    BASE_URL = "wss://ws.api.prod.paradex.trade/v1"
    CHANNEL = "funding_data"

    def __init__(self, url: str = BASE_URL, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout
        self.logger = get_logger(__name__)

    async def fetch_funding_snapshot(self) -> List[Dict[str, Any]]:
        """
        Subscribe to funding_data and return the first snapshot's rows.

        Raises:
            TransportError: On timeout, connection failure or a close before any data
        """
        try:
            return await asyncio.wait_for(self._read_snapshot(), timeout=self.timeout)
        except asyncio.TimeoutError:
            log_websocket_event("paradex", "error", self.CHANNEL, "timeout")
            raise TransportError("WebSocket timeout", venue="paradex")
        except websockets.exceptions.WebSocketException as e:
            log_websocket_event("paradex", "error", self.CHANNEL, str(e))
            raise TransportError(f"WebSocket error: {e}", venue="paradex") from e
        except OSError as e:
            log_websocket_event("paradex", "error", self.CHANNEL, str(e))
            raise TransportError(f"WebSocket error: {e}", venue="paradex") from e

    async def _read_snapshot(self) -> List[Dict[str, Any]]:
        async with websockets.connect(self.url) as ws:
            await ws.send(json.dumps({"type": "subscribe", "channel": self.CHANNEL}))
            log_websocket_event("paradex", "connected", self.CHANNEL)

            async for message in ws:
                try:
                    data = json.loads(message)
                except json.JSONDecodeError as e:
                    self.logger.debug(f"Skipping unparseable message: {e}")
                    continue

                if data.get("type") == "snapshot" and data.get("data"):
                    log_websocket_event("paradex", "snapshot", self.CHANNEL, f"{len(data['data'])} markets")
                    return data["data"]

        raise TransportError("WebSocket closed without data", venue="paradex")
