"""
Unified Logging Configuration

This module sets up a centralized logging system for the entire application.
All modules should import and use the logger from this module instead of
using print() statements.

Usage:
    from core.logging import logger, get_logger

    logger.info("Fetch cycle complete")

    log = get_logger(__name__)
    log.debug("Parsed 212 markets")

Log Levels (from most to least verbose):
    DEBUG    - Request/response details (e.g., "API Request: dydx /v4/perpetualMarkets")
    INFO     - Cycle summaries (e.g., "Fetched 212 rates from 9/11 venues")
    WARNING  - Degraded behaviour (e.g., "Cache read failed, treating as miss")
    ERROR    - Failures that don't stop the service (e.g., "gmx fetch failed: HTTP 502")
    CRITICAL - Startup failures

Configuration:
    Log level is controlled by the LOG_LEVEL setting in the .env file.
"""

import logging
import sys
from typing import Optional


LOGGER_NAME = "fundingagg"


def setup_logging(
    log_level: str = "INFO",
    log_format: Optional[str] = None,
    include_timestamp: bool = True,
    include_module: bool = True
) -> logging.Logger:
    """
    Configure and return the application logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom log format string (uses default if None)
        include_timestamp: Include timestamp in log messages
        include_module: Include logger name in log messages

    Returns:
        logging.Logger: Configured logger instance

    Example:
        >>> logger = setup_logging(log_level="DEBUG")
        >>> logger.info("Application started")
        2024-01-01 12:00:00 [INFO] fundingagg Application started
    """
    level = _resolve_level(log_level)

    if log_format is None:
        parts = [
            "%(asctime)s" if include_timestamp else None,
            "[%(levelname)s]",
            "%(name)s" if include_module else None,
            "%(message)s",
        ]
        log_format = " ".join(p for p in parts if p)

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True
    )

    app_logger = logging.getLogger(LOGGER_NAME)
    app_logger.setLevel(level)
    return app_logger


def _resolve_level(level: str) -> int:
    """Map a level name to its logging constant; unknown names mean INFO."""
    return getattr(logging, level.upper(), logging.INFO)


# ============================================
# Initialize Logger with Settings
# ============================================

try:
    from core.config import settings
    _initial_level = settings.log_level
except ImportError:
    # core.config unavailable during a partial import
    _initial_level = "INFO"

logger = setup_logging(log_level=_initial_level)


# ============================================
# Convenience Functions
# ============================================

def get_logger(name: str) -> logging.Logger:
    """
    Get a child logger for a specific module.

    Args:
        name: Name for the logger (typically __name__)

    Returns:
        logging.Logger: Logger named "fundingagg.<name>"

    Example:
        # In exchanges/dydx/__init__.py:
        logger = get_logger(__name__)  # "fundingagg.exchanges.dydx"
    """
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def set_log_level(level: str) -> None:
    """
    Change the log level at runtime.

    Args:
        level: New log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    resolved = _resolve_level(level)
    logger.setLevel(resolved)
    logging.getLogger().setLevel(resolved)


# ============================================
# Log Helper Functions
# ============================================

def log_api_request(venue: str, endpoint: str, params: dict = None) -> None:
    """
    Log an outgoing venue request with consistent formatting.

    Example:
        >>> log_api_request("dydx", "/v4/perpetualMarkets")
        [DEBUG] API Request: dydx /v4/perpetualMarkets
    """
    if params:
        logger.debug(f"API Request: {venue} {endpoint} | Params: {params}")
    else:
        logger.debug(f"API Request: {venue} {endpoint}")


def log_api_response(venue: str, endpoint: str, status: int, response_time: float = None) -> None:
    """
    Log a venue response with status and timing information.

    Example:
        >>> log_api_response("gmx", "/markets/info", 200, 0.342)
        [DEBUG] API Response: gmx /markets/info | Status: 200 | Time: 0.342s
    """
    time_str = f" | Time: {response_time:.3f}s" if response_time else ""
    logger.debug(f"API Response: {venue} {endpoint} | Status: {status}{time_str}")


def log_websocket_event(venue: str, event: str, channel: str = None, details: str = None) -> None:
    """
    Log a WebSocket event with consistent formatting.

    Errors are logged at ERROR level, everything else at INFO.

    Example:
        >>> log_websocket_event("paradex", "connected", "funding_data")
        [INFO] WebSocket: paradex connected | Channel: funding_data
    """
    channel_str = f" | Channel: {channel}" if channel else ""
    details_str = f" | {details}" if details else ""

    level = logging.ERROR if event == "error" else logging.INFO
    logger.log(level, f"WebSocket: {venue} {event}{channel_str}{details_str}")


logger.debug("Logging system initialized")
