"""
FastAPI Application - Perpetual Futures Funding Rate API

Serves funding rates aggregated across eleven perpetual-futures venues.

Supported Venues:
    - Public: Hyperliquid, dYdX v4, GMX v2, Paradex, MYX, Jupiter
    - API key: Lighter, Aster, Variational, EdgeX, GRVT

Features:
    - Current funding rates (filter, sort, paginate)
    - Historical funding rates from the time series store
    - Summary (highest / lowest / average annualized rate)
    - Cross-venue arbitrage spreads and per-symbol comparison
    - Venue status and service health probes

Usage:
    uvicorn app.main:app --reload --host 0.0.0.0 --port 3001

Docs:
    - Swagger: http://localhost:3001/docs
    - ReDoc: http://localhost:3001/redoc
"""

import math
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Literal, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.context import AppContext
from core.config import settings, validate_configuration
from core.logging import logger
from core.schemas import ExchangeStatus
from core.utils.symbols import normalize_symbol
from core.utils.time import current_utc_datetime
from core.venues import get_venue


API_VERSION = "1.0.0"

# Look-back windows accepted by /api/funding-rates/historical, in hours
HISTORICAL_RANGES: Dict[str, int] = {
    "1h": 1,
    "4h": 4,
    "24h": 24,
    "7d": 168,
    "30d": 720,
}

SORT_FIELDS = {
    "fundingRate": "funding_rate",
    "fundingRateAnnualized": "funding_rate_annualized",
    "symbol": "symbol",
    "exchange": "exchange",
}


# ============================================
# Lifespan Management
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    # Startup
    logger.info("=== Application Starting ===")
    try:
        validate_configuration()
        context = await AppContext.create(settings)
        app.state.context = context
        await context.scheduler.start()
        logger.info("=== Started Successfully ===")
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise

    yield

    # Shutdown
    logger.info("=== Shutting Down ===")
    try:
        await app.state.context.close()
        logger.info("=== Shutdown Complete ===")
    except Exception as e:
        logger.error(f"Shutdown error: {e}")


# ============================================
# FastAPI Application
# ============================================

app = FastAPI(
    title="Funding Rate Aggregator API",
    description=(
        "Funding rates for perpetual futures across decentralized venues.\n\n"
        "## REST Endpoints\n"
        "- `GET /api/funding-rates/current` - Current rates (filters, sorting, pagination)\n"
        "- `GET /api/funding-rates/historical` - Stored rates for one symbol\n"
        "- `GET /api/funding-rates/summary` - Highest, lowest and average annualized rate\n"
        "- `GET /api/funding-rates/arbitrage` - Cross-venue spreads\n"
        "- `GET /api/funding-rates/comparison/{symbol}` - One symbol across venues\n"
        "- `POST /api/funding-rates/refresh` - Queue an immediate fetch cycle\n"
        "- `GET /api/exchanges` - Venue list with fetch status\n"
        "- `GET /api/exchanges/{id}` - One venue with its current rates\n"
        "- `GET /health`, `GET /ready`, `GET /live` - Probes\n\n"
        "All responses are wrapped as `{success, data, timestamp}`."
    ),
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)


def get_context(request: Request) -> AppContext:
    """Dependency returning the context built during startup."""
    return request.app.state.context


def wrap(data: Any) -> Dict[str, Any]:
    return {
        "success": True,
        "data": data,
        "timestamp": current_utc_datetime().isoformat(),
    }


def _split(value: Optional[str]) -> List[str]:
    """Comma-separated query value -> list of non-empty items."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _status_label(status: Optional[ExchangeStatus]) -> str:
    if status is None or not status.enabled:
        return "disabled"
    return "error" if status.error else "ok"


# ============================================
# System Endpoints
# ============================================

@app.get("/", tags=["System"])
async def root(context: AppContext = Depends(get_context)):
    """API information and available venues."""
    return {
        "name": "Funding Rate Aggregator API",
        "version": API_VERSION,
        "status": "operational",
        "docs": "/docs",
        "exchanges": context.registry.list_venues(),
        "configured": context.registry.configured_venues(),
    }


@app.get("/health", tags=["System"])
async def health_check(
    check_venues: bool = Query(
        default=False,
        alias="checkVenues",
        description="Also call every configured venue now and report whether it answered"
    ),
    context: AppContext = Depends(get_context)
):
    """
    Service health.

    unhealthy: database or cache unreachable
    degraded: some configured venue failed its last fetch (or, with
              checkVenues, did not answer the live check)
    healthy: otherwise
    """
    database_ok = await context.repository.ping() if context.repository else False
    cache_ok = await context.cache.ping()
    statuses = await context.engine.get_exchange_statuses()
    reachable = await context.registry.health_check_all() if check_venues else {}

    if not (database_ok and cache_ok):
        status = "unhealthy"
    elif any(s.enabled and s.error for s in statuses) or not all(reachable.values()):
        status = "degraded"
    else:
        status = "healthy"

    exchanges = []
    for s in statuses:
        entry = {
            "id": s.id,
            "status": _status_label(s),
            "last_check": s.last_fetch_time,
            "error": s.error,
        }
        if s.id in reachable:
            entry["reachable"] = reachable[s.id]
        exchanges.append(entry)

    return {
        "status": status,
        "version": API_VERSION,
        "uptime": context.uptime_seconds,
        "services": {
            "database": "connected" if database_ok else "disconnected",
            "redis": "connected" if cache_ok else "disconnected",
            "exchanges": exchanges,
        },
        "scheduler": context.scheduler.status(),
        "timestamp": current_utc_datetime().isoformat(),
    }


@app.get("/ready", tags=["System"])
async def readiness(context: AppContext = Depends(get_context)):
    """Ready once both the database and the cache answer."""
    database_ok = await context.repository.ping() if context.repository else False
    cache_ok = await context.cache.ping()

    if database_ok and cache_ok:
        return {"ready": True}
    return JSONResponse(
        status_code=503,
        content={"ready": False, "database": database_ok, "redis": cache_ok}
    )


@app.get("/live", tags=["System"])
async def liveness():
    return {"alive": True}


# ============================================
# Funding Rate Endpoints
# ============================================

@app.get("/api/funding-rates/current", tags=["Funding Rates"])
async def get_current_rates(
    exchanges: Optional[str] = Query(default=None, description="Comma-separated venue ids"),
    symbols: Optional[str] = Query(default=None, description="Comma-separated symbols (e.g. BTC-USD,ETH)"),
    search: Optional[str] = Query(default=None, description="Substring match on the canonical symbol"),
    min_rate: Optional[float] = Query(default=None, alias="minRate", description="Minimum annualized rate"),
    max_rate: Optional[float] = Query(default=None, alias="maxRate", description="Maximum annualized rate"),
    sort_by: Literal["fundingRate", "fundingRateAnnualized", "symbol", "exchange"] = Query(
        default="fundingRateAnnualized", alias="sortBy"
    ),
    sort_order: Literal["asc", "desc"] = Query(default="desc", alias="sortOrder"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=100, ge=1, le=1000),
    refresh: bool = Query(default=False, description="Run a fetch cycle instead of reading the cache"),
    context: AppContext = Depends(get_context)
):
    """Current rates from the latest snapshot."""
    snapshot = await context.engine.get_current_rates(force_refresh=refresh)
    rates = list(snapshot.rates)

    exchange_list = {e.lower() for e in _split(exchanges)}
    if exchange_list:
        rates = [r for r in rates if r.exchange in exchange_list]

    symbol_list = {normalize_symbol(s) for s in _split(symbols)}
    if symbol_list:
        rates = [r for r in rates if r.symbol in symbol_list]

    if search:
        term = search.upper()
        rates = [r for r in rates if term in r.symbol]

    if min_rate is not None:
        rates = [r for r in rates if r.funding_rate_annualized >= min_rate]
    if max_rate is not None:
        rates = [r for r in rates if r.funding_rate_annualized <= max_rate]

    field = SORT_FIELDS[sort_by]
    rates.sort(key=lambda r: getattr(r, field), reverse=(sort_order == "desc"))

    total = len(rates)
    start = (page - 1) * limit
    return wrap({
        "rates": rates[start:start + limit],
        "last_updated": snapshot.last_updated,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit),
        },
    })


@app.get("/api/funding-rates/historical", tags=["Funding Rates"])
async def get_historical_rates(
    symbol: str = Query(..., description="Symbol (e.g. BTC-USD)"),
    exchanges: Optional[str] = Query(default=None, description="Comma-separated venue ids"),
    range: str = Query(default="24h", description="One of 1h, 4h, 24h, 7d, 30d"),
    context: AppContext = Depends(get_context)
):
    """Stored observations for one symbol, newest first."""
    if range not in HISTORICAL_RANGES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid range '{range}'. Use one of: {', '.join(HISTORICAL_RANGES)}"
        )

    exchange_list = [e.lower() for e in _split(exchanges)]
    rates = await context.engine.get_historical_rates(
        symbol,
        exchange_ids=exchange_list or None,
        hours=HISTORICAL_RANGES[range]
    )
    return wrap({"symbol": normalize_symbol(symbol), "range": range, "rates": rates})


@app.get("/api/funding-rates/summary", tags=["Funding Rates"])
async def get_summary(context: AppContext = Depends(get_context)):
    summary = await context.engine.get_summary()
    return wrap(summary)


@app.get("/api/funding-rates/arbitrage", tags=["Funding Rates"])
async def get_arbitrage(
    limit: Optional[int] = Query(default=None, ge=1, description="Maximum opportunities returned"),
    context: AppContext = Depends(get_context)
):
    """Cross-venue spreads, largest first."""
    opportunities = await context.engine.get_arbitrage_opportunities(limit=limit)
    return wrap({"opportunities": opportunities})


@app.get("/api/funding-rates/comparison/{symbol}", tags=["Funding Rates"])
async def get_comparison(symbol: str, context: AppContext = Depends(get_context)):
    comparison = await context.engine.get_comparison(symbol)
    return wrap(comparison)


@app.post("/api/funding-rates/refresh", status_code=202, tags=["Funding Rates"])
async def trigger_refresh(context: AppContext = Depends(get_context)):
    """Queue a fetch cycle behind any pending one."""
    job_id = context.scheduler.trigger_now()
    return wrap({"job_id": job_id, "pending": context.scheduler.status()["pending"]})


# ============================================
# Venue Endpoints
# ============================================

def _venue_entry(context: AppContext, venue_id: str, status: Optional[ExchangeStatus]) -> Dict[str, Any]:
    adapter = context.registry.get_adapter(venue_id)
    return {
        **get_venue(venue_id).model_dump(),
        "configured": adapter.is_configured(),
        "capabilities": adapter.capabilities,
        "status": _status_label(status),
        "last_fetch_time": status.last_fetch_time if status else None,
        "rate_count": status.rate_count if status else 0,
        "error": status.error if status else None,
    }


@app.get("/api/exchanges", tags=["Exchanges"])
async def list_exchanges(context: AppContext = Depends(get_context)):
    """Every known venue with the outcome of its last fetch."""
    statuses = {s.id: s for s in await context.engine.get_exchange_statuses()}
    return wrap([
        _venue_entry(context, venue_id, statuses.get(venue_id))
        for venue_id in context.registry.list_venues()
    ])


@app.get("/api/exchanges/{exchange_id}", tags=["Exchanges"])
async def get_exchange(exchange_id: str, context: AppContext = Depends(get_context)):
    """One venue with its current rates."""
    venue_id = exchange_id.lower()
    if not context.registry.has_venue(venue_id):
        return JSONResponse(status_code=404, content={"success": False, "error": "Exchange not found"})

    statuses = {s.id: s for s in await context.engine.get_exchange_statuses()}
    rates = await context.engine.get_rates_for_exchanges([venue_id])
    return wrap({
        **_venue_entry(context, venue_id, statuses.get(venue_id)),
        "rates": rates,
    })


# ============================================
# Error Handlers
# ============================================

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Wrap HTTP errors in the same envelope as successful responses."""
    content: Dict[str, Any] = {"success": False, "error": exc.detail}
    if exc.status_code == 404:
        content["path"] = str(request.url)
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(500)
async def internal_error_handler(request, exc):
    """Handle 500 errors."""
    logger.error(f"Internal error: {exc}")
    return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})
