"""
Funding Rate Time Series Store

SQLAlchemy (async, Core) persistence for two tables:

    funding_rates   one row per (time, exchange_id, symbol) observation
    fetch_status    one row per venue with the outcome of its last fetch

Backends:
    - PostgreSQL / TimescaleDB via asyncpg ("postgresql+asyncpg://...")
    - SQLite via aiosqlite ("sqlite+aiosqlite:///./funding_rates.db"), the default

Both dialects support INSERT ... ON CONFLICT DO UPDATE, which is used for
every write, so re-running a cycle with the same observation time is an
update rather than a duplicate.

Write failures are raised as PersistenceWriteError; the aggregation engine
logs them and carries on.

Usage:
    repo = FundingRateRepository("sqlite+aiosqlite:///:memory:")
    await repo.create_schema()
    await repo.upsert_rates(snapshot.rates)
    history = await repo.query_historical("BTC-USD", ["dydx"], since_hours=24)
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    func,
    select,
    text,
)
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from core.errors import PersistenceWriteError
from core.logging import get_logger
from core.schemas import FundingRate


logger = get_logger(__name__)

metadata = MetaData()


# ============================================
# Table Definitions
# ============================================

funding_rates = Table(
    "funding_rates",
    metadata,
    Column("time", DateTime(timezone=True), primary_key=True),
    Column("exchange_id", String(32), primary_key=True),
    Column("symbol", String(64), primary_key=True),
    Column("raw_symbol", String(64), nullable=False),
    Column("funding_rate", Float, nullable=False),
    Column("funding_rate_annualized", Float, nullable=False),
    Column("funding_interval", Float, nullable=False),
    Column("next_funding_time", DateTime(timezone=True)),
    Column("mark_price", Float),
    Column("index_price", Float),
    Column("open_interest", Float),
    Column("volume_24h", Float),
)

fetch_status = Table(
    "fetch_status",
    metadata,
    Column("exchange_id", String(32), primary_key=True),
    Column("last_fetch_time", DateTime(timezone=True)),
    Column("last_success_time", DateTime(timezone=True)),
    Column("last_error", Text),
    Column("rate_count", Integer, nullable=False, default=0),
    Column("status", String(16), nullable=False),
)

# Fields replaced when an observation with the same key is written again
RATE_UPDATE_COLUMNS = (
    "funding_rate",
    "funding_rate_annualized",
    "next_funding_time",
    "mark_price",
    "index_price",
    "open_interest",
    "volume_24h",
)

# Rows per INSERT; keeps SQLite under its bound-parameter limit
BATCH_SIZE = 80

# Driver connect failures (asyncpg ConnectionRefusedError, socket errors)
# reach us unwrapped by SQLAlchemy
STORE_ERRORS = (SQLAlchemyError, OSError)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; everything stored is UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class FundingRateRepository:
    """
    Async repository over funding_rates and fetch_status.

    Attributes:
        engine: SQLAlchemy AsyncEngine
    """

    def __init__(self, database_url: Optional[str] = None, engine: Optional[AsyncEngine] = None):
        if engine is None:
            if database_url is None:
                raise ValueError("database_url or engine is required")

            kwargs: Dict[str, Any] = {}
            if database_url.startswith("sqlite") and ":memory:" in database_url:
                # One shared connection, otherwise every checkout sees an empty database
                kwargs["poolclass"] = StaticPool
                kwargs["connect_args"] = {"check_same_thread": False}
            elif database_url.startswith("postgresql"):
                kwargs.update(pool_size=10, max_overflow=20, pool_recycle=1800)

            engine = create_async_engine(database_url, **kwargs)

        self.engine = engine
        logger.info(f"Database engine created for: {str(engine.url).split('@')[-1]}")

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def _insert(self, table: Table):
        if self.dialect == "postgresql":
            return pg_insert(table)
        return sqlite_insert(table)

    # ============================================
    # Lifecycle
    # ============================================

    async def create_schema(self) -> None:
        """Create both tables if they do not exist."""
        async with self.engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
        logger.info("✓ Database schema ready")

    async def ping(self) -> bool:
        """True if a trivial query succeeds."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except STORE_ERRORS as e:
            logger.warning(f"Database ping failed: {e}")
            return False

    async def close(self) -> None:
        await self.engine.dispose()
        logger.info("Database engine disposed")

    # ============================================
    # Writes
    # ============================================

    async def upsert_rates(self, rates: Iterable[FundingRate]) -> int:
        """
        Insert observations, replacing rate/price/interest fields on key conflict.

        Returns:
            int: Number of rows written

        Raises:
            PersistenceWriteError: If the database rejects the write
        """
        # A single statement may not touch the same key twice
        rows: Dict[tuple, Dict[str, Any]] = {}
        for rate in rates:
            rows[(rate.timestamp, rate.exchange, rate.symbol)] = {
                "time": rate.timestamp,
                "exchange_id": rate.exchange,
                "symbol": rate.symbol,
                "raw_symbol": rate.raw_symbol,
                "funding_rate": rate.funding_rate,
                "funding_rate_annualized": rate.funding_rate_annualized,
                "funding_interval": rate.funding_interval,
                "next_funding_time": rate.next_funding_time,
                "mark_price": rate.mark_price,
                "index_price": rate.index_price,
                "open_interest": rate.open_interest,
                "volume_24h": rate.volume_24h,
            }

        values = list(rows.values())
        if not values:
            return 0

        try:
            async with self.engine.begin() as conn:
                for start in range(0, len(values), BATCH_SIZE):
                    stmt = self._insert(funding_rates).values(values[start:start + BATCH_SIZE])
                    stmt = stmt.on_conflict_do_update(
                        index_elements=["time", "exchange_id", "symbol"],
                        set_={col: stmt.excluded[col] for col in RATE_UPDATE_COLUMNS},
                    )
                    await conn.execute(stmt)
        except STORE_ERRORS as e:
            raise PersistenceWriteError(f"Failed to store funding rates: {e}") from e

        logger.debug(f"Stored {len(values)} funding rate rows")
        return len(values)

    async def upsert_status(
        self,
        exchange_id: str,
        last_fetch_time: datetime,
        last_success_time: Optional[datetime],
        last_error: Optional[str],
        rate_count: int,
        status: str
    ) -> None:
        """
        Record the outcome of a venue fetch.

        last_success_time is only overwritten when a new value is given, so a
        failed fetch keeps the time of the last good one.

        Raises:
            PersistenceWriteError: If the database rejects the write
        """
        stmt = self._insert(fetch_status).values(
            exchange_id=exchange_id,
            last_fetch_time=last_fetch_time,
            last_success_time=last_success_time,
            last_error=last_error,
            rate_count=rate_count,
            status=status,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["exchange_id"],
            set_={
                "last_fetch_time": stmt.excluded.last_fetch_time,
                "last_success_time": func.coalesce(
                    stmt.excluded.last_success_time,
                    fetch_status.c.last_success_time
                ),
                "last_error": stmt.excluded.last_error,
                "rate_count": stmt.excluded.rate_count,
                "status": stmt.excluded.status,
            },
        )

        try:
            async with self.engine.begin() as conn:
                await conn.execute(stmt)
        except STORE_ERRORS as e:
            raise PersistenceWriteError(f"Failed to update fetch status for {exchange_id}: {e}") from e

    # ============================================
    # Reads
    # ============================================

    async def query_historical(
        self,
        symbol: str,
        exchange_ids: Optional[List[str]] = None,
        since_hours: float = 24
    ) -> List[FundingRate]:
        """
        Observations for a symbol newer than `since_hours`, newest first.

        Args:
            symbol: Canonical symbol ("BTC-USD")
            exchange_ids: Restrict to these venues (None or empty = all)
            since_hours: Look-back window in hours
        """
        cutoff = datetime.now(timezone.utc) - timedelta(hours=since_hours)

        query = (
            select(funding_rates)
            .where(funding_rates.c.symbol == symbol)
            .where(funding_rates.c.time > cutoff)
        )
        if exchange_ids:
            query = query.where(funding_rates.c.exchange_id.in_(exchange_ids))
        query = query.order_by(funding_rates.c.time.desc())

        async with self.engine.connect() as conn:
            result = await conn.execute(query)
            rows = result.mappings().all()

        return [
            FundingRate(
                exchange=row["exchange_id"],
                symbol=row["symbol"],
                raw_symbol=row["raw_symbol"],
                funding_rate=row["funding_rate"],
                funding_rate_annualized=row["funding_rate_annualized"],
                timestamp=_as_utc(row["time"]),
                funding_interval=row["funding_interval"],
                next_funding_time=_as_utc(row["next_funding_time"]),
                mark_price=row["mark_price"],
                index_price=row["index_price"],
                open_interest=row["open_interest"],
                volume_24h=row["volume_24h"],
            )
            for row in rows
        ]

    async def get_fetch_statuses(self) -> List[Dict[str, Any]]:
        """All fetch_status rows, ordered by venue id."""
        async with self.engine.connect() as conn:
            result = await conn.execute(select(fetch_status).order_by(fetch_status.c.exchange_id))
            rows = result.mappings().all()

        return [
            {
                **dict(row),
                "last_fetch_time": _as_utc(row["last_fetch_time"]),
                "last_success_time": _as_utc(row["last_success_time"]),
            }
            for row in rows
        ]
