"""
Core Package

Venue-agnostic building blocks:
- ExchangeAdapter: Abstract base class every venue adapter implements
- AdapterRegistry: One adapter per venue, lifecycle and health probes
- VenueHTTPClient: Shared aiohttp transport with retry on rate limits
- Schemas: Pydantic models (FundingRate, FetchResult, snapshots, statuses)
- Config / logging / errors and the symbol, rate and time utilities

Nothing in here knows about a specific venue's payloads.
"""
