"""
Configuration Management Module

This module handles loading, validating, and providing access to application configuration
from environment variables (.env file).

Uses Pydantic Settings for automatic validation and type conversion.

Key Features:
- Loads configuration from .env file
- Per-venue credentials for the authenticated adapters
- Fetch interval and cache TTL for the aggregation cycle
- Cache (Redis or in-memory) and database connection settings

Usage:
    from core.config import settings

    print(settings.fetch_interval_seconds)
    creds = settings.venue_credentials()["aster"]
"""

from typing import Dict, List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

from core.errors import ConfigurationError
from core.schemas import VenueCredentials


class Settings(BaseSettings):
    """
    Application Settings

    Values are automatically loaded from environment variables or the .env file.
    Variable names are case-insensitive (LIGHTER_API_KEY == lighter_api_key).

    Attributes:
        app_host / app_port: FastAPI server bind address
        environment: Current environment (development, production)
        log_level: Logging level
        request_timeout: Total timeout for a single venue HTTP request (seconds)
        fetch_interval_seconds: Interval between scheduled fetch cycles
        cache_ttl: Time-to-live of the cached snapshot (seconds)
        redis_host / redis_port / redis_db: Redis connection (empty host = in-memory cache)
        database_url: SQLAlchemy async URL for the time series store
        *_api_key / *_api_secret: Venue credentials (empty = venue not configured)
    """

    # ============================================
    # Application Configuration
    # ============================================

    app_host: str = Field(
        default="0.0.0.0",
        description="FastAPI server host address"
    )

    app_port: int = Field(
        default=3001,
        description="FastAPI server port"
    )

    environment: str = Field(
        default="development",
        description="Application environment (development, production)"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins"
    )

    # ============================================
    # Fetch Cycle
    # ============================================

    request_timeout: int = Field(
        default=10,
        description="HTTP request timeout for venue APIs in seconds"
    )

    fetch_interval_seconds: int = Field(
        default=30,
        description="Seconds between scheduled fetch cycles"
    )

    # ============================================
    # Caching Configuration
    # ============================================

    redis_host: str = Field(
        default="",
        description="Redis server host (empty = use in-memory cache)"
    )

    redis_port: int = Field(
        default=6379,
        description="Redis server port"
    )

    redis_db: int = Field(
        default=0,
        description="Redis database number"
    )

    cache_ttl: int = Field(
        default=30,
        description="Snapshot cache TTL in seconds"
    )

    # ============================================
    # Database Configuration
    # ============================================

    database_url: str = Field(
        default="sqlite+aiosqlite:///./funding_rates.db",
        description="SQLAlchemy async database URL (postgresql+asyncpg://... in production)"
    )

    # ============================================
    # Venue Credentials
    # ============================================

    lighter_api_key: str = Field(default="", description="Lighter API key")
    aster_api_key: str = Field(default="", description="Aster API key")
    aster_api_secret: str = Field(default="", description="Aster API secret")
    variational_api_key: str = Field(default="", description="Variational API key")
    variational_api_secret: str = Field(default="", description="Variational API secret")
    edgex_api_key: str = Field(default="", description="EdgeX API key")
    grvt_api_key: str = Field(default="", description="GRVT API key / session token")

    solana_rpc_url: str = Field(
        default="https://api.mainnet-beta.solana.com",
        description="Solana RPC endpoint (Jupiter)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False
    )

    # ============================================
    # Derived Properties
    # ============================================

    @property
    def cors_origins_list(self) -> List[str]:
        """
        Convert comma-separated CORS origins string to a list.

        Example:
            >>> settings.cors_origins_list
            ['http://localhost:3000', 'http://localhost:5173']
        """
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def use_redis(self) -> bool:
        """True if a Redis host is configured, False for the in-memory cache."""
        return bool(self.redis_host)

    def venue_credentials(self) -> Dict[str, VenueCredentials]:
        """
        Build the credentials map consumed by the adapter registry.

        Venues that need no credentials get an empty VenueCredentials so
        every venue id has an entry.
        """
        return {
            "hyperliquid": VenueCredentials(),
            "dydx": VenueCredentials(),
            "gmx": VenueCredentials(),
            "paradex": VenueCredentials(),
            "myx": VenueCredentials(),
            "lighter": VenueCredentials(api_key=self.lighter_api_key),
            "aster": VenueCredentials(api_key=self.aster_api_key, api_secret=self.aster_api_secret),
            "variational": VenueCredentials(
                api_key=self.variational_api_key,
                api_secret=self.variational_api_secret
            ),
            "edgex": VenueCredentials(api_key=self.edgex_api_key),
            "grvt": VenueCredentials(api_key=self.grvt_api_key),
            "jupiter": VenueCredentials(rpc_url=self.solana_rpc_url),
        }


# ============================================
# Global Settings Instance
# ============================================

settings = Settings()


# ============================================
# Configuration Validation
# ============================================

def validate_configuration(config: Settings = None) -> None:
    """
    Validate critical configuration settings on application startup.

    Raises:
        ConfigurationError: If a setting is out of range (a ValueError subclass)
    """
    # logging.py imports config.py, so the logger import stays local
    from core.logging import logger

    config = config or settings

    if not (1 <= config.app_port <= 65535):
        raise ConfigurationError(f"Invalid port number: {config.app_port}. Must be between 1 and 65535")

    valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if config.log_level.upper() not in valid_log_levels:
        raise ConfigurationError(
            f"Invalid LOG_LEVEL: '{config.log_level}'. "
            f"Must be one of: {', '.join(valid_log_levels)}"
        )

    if config.fetch_interval_seconds <= 0:
        raise ConfigurationError(f"FETCH_INTERVAL_SECONDS must be positive, got {config.fetch_interval_seconds}")

    if config.cache_ttl <= 0:
        raise ConfigurationError(f"CACHE_TTL must be positive, got {config.cache_ttl}")

    configured = [
        venue for venue, creds in config.venue_credentials().items()
        if creds.api_key
    ]

    logger.info("Configuration validated successfully")
    logger.info(f"Server: {config.app_host}:{config.app_port}")
    logger.info(f"Fetch interval: {config.fetch_interval_seconds}s | Cache TTL: {config.cache_ttl}s")
    logger.info(f"Cache: {'Redis' if config.use_redis else 'In-Memory'}")
    logger.info(f"Database: {config.database_url.split('@')[-1]}")
    logger.info(f"Credentialed venues: {', '.join(configured) or 'none'}")
    logger.info(f"Log level: {config.log_level.upper()}")
