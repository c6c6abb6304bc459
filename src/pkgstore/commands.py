"""
Backend command set and the typed client used to call it.

Every call into the backend goes through `StoreClient`, which sends a
`Command` over the bridge and decodes the raw result with the decoder
registered for that command.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .models import Component, Package, Stats

logger = logging.getLogger(__name__)

PACKAGE_NAME_ARG = "packageName"
QUERY_ARG = "query"


class Command(Enum):
    """Commands understood by the privileged backend."""
    GET_PACKAGE_STATS = "get_package_stats"
    GET_PACKAGES = "get_packages"
    GET_INSTALLED_PACKAGES = "get_installed_packages"
    GET_UPGRADABLE_PACKAGES = "get_upgradable_packages"
    GET_COMPONENTS = "get_components"
    SEARCH_PACKAGES = "search_packages"
    UPDATE_REPO = "update_repo"
    INSTALL_PACKAGE = "install_package"
    REMOVE_PACKAGE = "remove_package"
    UPDATE_PACKAGE = "update_package"

    @classmethod
    def lookup(cls, name: str) -> Optional["Command"]:
        """Map a raw command name to a member, or None."""
        try:
            return cls(name)
        except ValueError:
            return None


PACKAGE_COMMANDS = (
    Command.INSTALL_PACKAGE,
    Command.REMOVE_PACKAGE,
    Command.UPDATE_PACKAGE,
)


def _decode_packages(raw: Any) -> List[Package]:
    if isinstance(raw, str):
        return []
    return [Package.from_dict(item) for item in raw or []]


def _decode_names(raw: Any) -> List[str]:
    # Backends answer with a list of names; a lone string is a status message
    if isinstance(raw, str):
        return []
    return [str(name) for name in raw or []]


def _decode_components(raw: Any) -> List[Component]:
    return [Component.from_dict(item) for item in raw or []]


def _passthrough(raw: Any) -> Any:
    return raw


RESULT_DECODERS: Dict[Command, Callable[[Any], Any]] = {
    Command.GET_PACKAGE_STATS: Stats.from_dict,
    Command.GET_PACKAGES: _decode_packages,
    Command.GET_INSTALLED_PACKAGES: _decode_names,
    Command.GET_UPGRADABLE_PACKAGES: _decode_names,
    Command.GET_COMPONENTS: _decode_components,
    Command.SEARCH_PACKAGES: _decode_packages,
    Command.UPDATE_REPO: _passthrough,
    Command.INSTALL_PACKAGE: _passthrough,
    Command.REMOVE_PACKAGE: _passthrough,
    Command.UPDATE_PACKAGE: _passthrough,
}


class StoreClient:
    """
    Typed facade over a command bridge.

    Args:
        bridge: Object with an async `invoke(command, args)` method
    """

    def __init__(self, bridge):
        self._bridge = bridge

    async def call(self, command: Command, args: Optional[Dict[str, Any]] = None) -> Any:
        raw = await self._bridge.invoke(command, args)
        return RESULT_DECODERS[command](raw)

    async def get_package_stats(self) -> Stats:
        return await self.call(Command.GET_PACKAGE_STATS)

    async def get_packages(self) -> List[Package]:
        return await self.call(Command.GET_PACKAGES)

    async def get_installed_packages(self) -> List[str]:
        return await self.call(Command.GET_INSTALLED_PACKAGES)

    async def get_upgradable_packages(self) -> List[str]:
        return await self.call(Command.GET_UPGRADABLE_PACKAGES)

    async def get_components(self) -> List[Component]:
        return await self.call(Command.GET_COMPONENTS)

    async def search_packages(self, query: str) -> List[Package]:
        return await self.call(Command.SEARCH_PACKAGES, {QUERY_ARG: query})

    async def update_repo(self) -> Any:
        return await self.call(Command.UPDATE_REPO)

    async def run_package_command(self, command: Command, package_name: str) -> Any:
        """Run install, remove or update for one package."""
        if command not in PACKAGE_COMMANDS:
            raise ValueError(f"{command.value} is not a package command")
        logger.info(f"{command.value}: {package_name}")
        return await self.call(command, {PACKAGE_NAME_ARG: package_name})

    async def install_package(self, package_name: str) -> Any:
        return await self.run_package_command(Command.INSTALL_PACKAGE, package_name)

    async def remove_package(self, package_name: str) -> Any:
        return await self.run_package_command(Command.REMOVE_PACKAGE, package_name)

    async def update_package(self, package_name: str) -> Any:
        return await self.run_package_command(Command.UPDATE_PACKAGE, package_name)
