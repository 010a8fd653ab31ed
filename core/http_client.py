"""
Venue HTTP Client

Shared async HTTP transport used by every venue adapter. It handles:
- aiohttp session lifecycle
- GET/POST requests with retry logic
- Rate limit handling (429/418/503 with linear backoff)
- Mapping failures onto TransportError / FormatError

Retry Policy:
    - 429, 418, 503: retry after 1.5s * (attempt + 1)
    - Timeouts and connection errors: retry after 1.0s * (attempt + 1)
    - Any other non-2xx status: fail immediately with "HTTP <code>: <reason>"

Usage:
    async with VenueHTTPClient("dydx", "https://indexer.v4mainnet.dydx.exchange") as client:
        data = await client.get("/v4/perpetualMarkets")
"""

import asyncio
import time
from typing import Any, Dict, Optional

import aiohttp

from core.errors import FormatError, TransportError
from core.logging import get_logger, log_api_request, log_api_response


RETRYABLE_STATUSES = (429, 418, 503)


class VenueHTTPClient:
    """
    Async HTTP client bound to one venue's base URL.

    Attributes:
        venue: Venue id used in log lines and error messages
        base_url: Prefix for relative request paths
        timeout: Total request timeout in seconds
        max_retries: Attempts per request before giving up
        session: aiohttp ClientSession (created lazily or via open())
    """

    def __init__(
        self,
        venue: str,
        base_url: str,
        timeout: float = 10,
        max_retries: int = 3
    ):
        self.venue = venue
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.session: Optional[aiohttp.ClientSession] = None
        self.logger = get_logger(__name__)

    # ============================================
    # Session Management
    # ============================================

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def open(self) -> None:
        """Create the HTTP session (idempotent)."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self.logger.debug(f"{self.venue} HTTP session created")

    async def close(self) -> None:
        """Close the HTTP session if open."""
        if self.session and not self.session.closed:
            await self.session.close()
            self.logger.debug(f"{self.venue} HTTP session closed")
        self.session = None

    # ============================================
    # Public Request Methods
    # ============================================

    async def get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> Any:
        """GET a JSON document from the venue."""
        return await self._request("GET", path, params=params, headers=headers)

    async def post(
        self,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> Any:
        """POST a JSON payload and return the decoded JSON response."""
        merged = {"Content-Type": "application/json"}
        if headers:
            merged.update(headers)
        return await self._request("POST", path, json=payload, headers=merged)

    # ============================================
    # Request Handler with Retry Logic
    # ============================================

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> Any:
        """
        Perform a request with retries.

        Raises:
            TransportError: Network failure, timeout, or non-2xx status
            FormatError: Response body is not valid JSON
        """
        await self.open()

        url = self._url(path)
        last_error: Optional[TransportError] = None

        for attempt in range(self.max_retries):
            log_api_request(self.venue, path, params)
            started = time.monotonic()

            try:
                async with self.session.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    headers=headers
                ) as resp:
                    log_api_response(self.venue, path, resp.status, time.monotonic() - started)

                    if 200 <= resp.status < 300:
                        try:
                            return await resp.json(content_type=None)
                        except ValueError as e:
                            raise FormatError(
                                f"Invalid JSON from {self.venue}: {e}",
                                venue=self.venue
                            ) from e

                    message = f"HTTP {resp.status}: {resp.reason}"

                    if resp.status in RETRYABLE_STATUSES:
                        last_error = TransportError(message, venue=self.venue, status=resp.status)
                        delay = 1.5 * (attempt + 1)
                        self.logger.warning(
                            f"Rate limited (HTTP {resp.status}) on {self.venue} {path}. "
                            f"Retrying in {delay:.1f}s... (attempt {attempt + 1}/{self.max_retries})"
                        )
                        await asyncio.sleep(delay)
                        continue

                    text = await resp.text()
                    self.logger.error(f"{message} on {self.venue} {path}: {text[:200]}")
                    raise TransportError(message, venue=self.venue, status=resp.status)

            except asyncio.TimeoutError:
                last_error = TransportError(
                    f"Request timed out after {self.timeout}s",
                    venue=self.venue
                )
                self.logger.error(
                    f"Timeout on {self.venue} {path} (attempt {attempt + 1}/{self.max_retries})"
                )
                await asyncio.sleep(1.0 * (attempt + 1))

            except aiohttp.ClientError as e:
                last_error = TransportError(str(e) or e.__class__.__name__, venue=self.venue)
                self.logger.error(
                    f"Request failed on {self.venue} {path}: {e} "
                    f"(attempt {attempt + 1}/{self.max_retries})"
                )
                await asyncio.sleep(1.0 * (attempt + 1))

        raise last_error or TransportError(
            f"Failed to fetch from {url} after {self.max_retries} attempts",
            venue=self.venue
        )
