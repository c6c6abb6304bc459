"""
Pisi Store

Package catalog, filtering and install/remove/update commands for Pisi
Linux, shared by the desktop store and the command line tool.
"""

from .app import StoreApp, build_app
from .bridge import BridgeState, CommandBridge
from .catalog import CatalogStore
from .commands import Command, StoreClient
from .filters import filter_packages
from .models import CatalogState, Component, FilterCriteria, Package, Stats

__all__ = [
    "StoreApp",
    "build_app",
    "BridgeState",
    "CommandBridge",
    "CatalogStore",
    "Command",
    "StoreClient",
    "filter_packages",
    "CatalogState",
    "Component",
    "FilterCriteria",
    "Package",
    "Stats",
]
