"""
Funding Rate Annualization

Venues settle funding on different schedules (hourly on Hyperliquid, every
8 hours on dYdX), so periodic rates are only comparable after scaling them
to a common yearly basis:

    annualized = periodic * (365 * 24 / interval_hours)

No rounding or clamping is applied.
"""

HOURS_PER_YEAR = 365 * 24


def _periods_per_year(interval_hours: float) -> float:
    if interval_hours <= 0:
        raise ValueError(f"Funding interval must be positive, got {interval_hours}")
    return HOURS_PER_YEAR / interval_hours


def annualize_funding_rate(rate: float, interval_hours: float) -> float:
    """
    Scale a periodic funding rate to a yearly rate.

    Args:
        rate: Periodic rate as a decimal (0.0001 = 0.01%)
        interval_hours: Venue funding interval in hours

    Returns:
        float: Annualized rate as a decimal

    Raises:
        ValueError: If interval_hours is not positive

    Example:
        >>> annualize_funding_rate(0.0001, 8)
        0.1095
    """
    return rate * _periods_per_year(interval_hours)


def deannualize_funding_rate(annualized_rate: float, interval_hours: float) -> float:
    """Inverse of annualize_funding_rate."""
    return annualized_rate / _periods_per_year(interval_hours)
