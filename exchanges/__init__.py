"""
Venue Adapters Package

One subpackage per venue. Each exposes a single ExchangeAdapter subclass in
its __init__.py; venues that need more than plain REST (Paradex's websocket
fallback) keep the extra client in a sibling module.

ADAPTER_CLASSES maps venue id -> adapter class and is what AdapterRegistry
instantiates. Adding a venue means adding its metadata to core/venues.py and
its class here.
"""

from typing import Dict, Type

from core.exchange_interface import ExchangeAdapter
from exchanges.aster import AsterAdapter
from exchanges.dydx import DydxAdapter
from exchanges.edgex import EdgeXAdapter
from exchanges.gmx import GmxAdapter
from exchanges.grvt import GrvtAdapter
from exchanges.hyperliquid import HyperliquidAdapter
from exchanges.jupiter import JupiterAdapter
from exchanges.lighter import LighterAdapter
from exchanges.myx import MyxAdapter
from exchanges.paradex import ParadexAdapter
from exchanges.variational import VariationalAdapter


ADAPTER_CLASSES: Dict[str, Type[ExchangeAdapter]] = {
    "hyperliquid": HyperliquidAdapter,
    "dydx": DydxAdapter,
    "gmx": GmxAdapter,
    "paradex": ParadexAdapter,
    "lighter": LighterAdapter,
    "aster": AsterAdapter,
    "variational": VariationalAdapter,
    "edgex": EdgeXAdapter,
    "grvt": GrvtAdapter,
    "myx": MyxAdapter,
    "jupiter": JupiterAdapter,
}

__all__ = [
    "ADAPTER_CLASSES",
    "AsterAdapter",
    "DydxAdapter",
    "EdgeXAdapter",
    "GmxAdapter",
    "GrvtAdapter",
    "HyperliquidAdapter",
    "JupiterAdapter",
    "LighterAdapter",
    "MyxAdapter",
    "ParadexAdapter",
    "VariationalAdapter",
]
