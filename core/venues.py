"""
Venue Metadata

Static, read-only description of every supported venue. The funding
interval here is the one adapters annualize with, so it must match the
interval the venue's reported rate is expressed on.

Usage:
    from core.venues import VENUES, get_venue

    VENUES["dydx"].funding_interval   # 8
    get_venue("GMX").name             # "GMX"
"""

from typing import Dict, List

from core.schemas import VenueInfo


VENUES: Dict[str, VenueInfo] = {
    "hyperliquid": VenueInfo(
        id="hyperliquid",
        name="Hyperliquid",
        api_url="https://api.hyperliquid.xyz",
        auth_required=False,
        funding_interval=1,
        chain="Hyperliquid L1",
        website="https://hyperliquid.xyz",
    ),
    "dydx": VenueInfo(
        id="dydx",
        name="dYdX v4",
        api_url="https://indexer.v4mainnet.dydx.exchange",
        auth_required=False,
        funding_interval=8,
        chain="dYdX Chain",
        website="https://dydx.exchange",
    ),
    "gmx": VenueInfo(
        id="gmx",
        name="GMX",
        api_url="https://arbitrum-api.gmxinfra.io",
        auth_required=False,
        funding_interval=1,  # continuous, reported per second and scaled to 1h
        chain="Arbitrum",
        website="https://gmx.io",
    ),
    "paradex": VenueInfo(
        id="paradex",
        name="Paradex",
        api_url="https://api.prod.paradex.trade",
        auth_required=False,
        funding_interval=8,
        chain="Starknet",
        website="https://paradex.trade",
    ),
    "lighter": VenueInfo(
        id="lighter",
        name="Lighter",
        api_url="https://mainnet.zklighter.elliot.ai",
        auth_required=True,
        funding_interval=1,
        chain="zkSync",
        website="https://lighter.xyz",
    ),
    "aster": VenueInfo(
        id="aster",
        name="Aster (SynFutures)",
        api_url="https://fapi.asterdex.com",
        auth_required=True,
        funding_interval=8,
        chain="Multiple",
        website="https://asterdex.com",
    ),
    "variational": VenueInfo(
        id="variational",
        name="Variational",
        api_url="https://api.variational.io",
        auth_required=True,
        funding_interval=1,
        chain="Ethereum",
        website="https://variational.io",
    ),
    "edgex": VenueInfo(
        id="edgex",
        name="EdgeX",
        api_url="https://api.edgex.exchange",
        auth_required=True,
        funding_interval=8,
        chain="Multiple",
        website="https://edgex.exchange",
    ),
    "grvt": VenueInfo(
        id="grvt",
        name="GRVT",
        api_url="https://api.grvt.io",
        auth_required=True,
        funding_interval=8,
        chain="zkSync",
        website="https://grvt.io",
    ),
    "myx": VenueInfo(
        id="myx",
        name="MYX Finance",
        api_url="https://api.myx.finance",
        auth_required=False,
        funding_interval=8,
        chain="Arbitrum",
        website="https://myx.finance",
    ),
    "jupiter": VenueInfo(
        id="jupiter",
        name="Jupiter Perps",
        api_url="https://perps-api.jup.ag",
        auth_required=False,
        funding_interval=1,  # continuous borrow fees
        chain="Solana",
        website="https://jup.ag/perps",
    ),
}

VENUE_IDS: List[str] = list(VENUES)

PUBLIC_VENUES: List[str] = [v for v in VENUE_IDS if not VENUES[v].auth_required]

AUTHENTICATED_VENUES: List[str] = [v for v in VENUE_IDS if VENUES[v].auth_required]


def get_venue(venue_id: str) -> VenueInfo:
    """
    Look up venue metadata by id (case-insensitive).

    Raises:
        KeyError: If the venue is unknown
    """
    return VENUES[venue_id.lower()]
