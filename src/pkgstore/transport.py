"""
Pisi Transport

Real backend for the command bridge: reads the repository index and runs
the `pisi` command line tool. Privilege escalation is left to the system
(pisi is normally configured through polkit or sudo).
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from common.exceptions import CommandError, UnknownCommandError

from .bridge import Transport
from .commands import PACKAGE_NAME_ARG, QUERY_ARG, Command
from .models import Stats
from .pisi_index import DEFAULT_INDEX_PATH, derive_components, load_index

logger = logging.getLogger(__name__)

PISI_BINARY = "pisi"


def _first_column(output: str) -> List[str]:
    names = []
    for line in output.splitlines():
        fields = line.split()
        if fields:
            names.append(fields[0])
    return names


class PisiTransport(Transport):
    """
    Runs bridge commands against the local Pisi installation.

    Args:
        binary: Path to the pisi executable
        index_path: Path to pisi-index.xml
    """

    def __init__(self, binary: str = PISI_BINARY, index_path: Path = DEFAULT_INDEX_PATH):
        self.binary = binary
        self.index_path = index_path
        self._handlers: Dict[Command, Callable[[Dict[str, Any]], Awaitable[Any]]] = {
            Command.GET_PACKAGE_STATS: self._package_stats,
            Command.GET_PACKAGES: self._packages,
            Command.GET_INSTALLED_PACKAGES: self._installed,
            Command.GET_UPGRADABLE_PACKAGES: self._upgradable,
            Command.GET_COMPONENTS: self._components,
            Command.SEARCH_PACKAGES: self._search,
            Command.UPDATE_REPO: self._update_repo,
            Command.INSTALL_PACKAGE: self._package_action(Command.INSTALL_PACKAGE, "it", "installed"),
            Command.REMOVE_PACKAGE: self._package_action(Command.REMOVE_PACKAGE, "rm", "removed"),
            Command.UPDATE_PACKAGE: self._package_action(Command.UPDATE_PACKAGE, "up", "updated"),
        }

    @classmethod
    def locate(
        cls,
        binary: str = PISI_BINARY,
        index_path: Path = DEFAULT_INDEX_PATH,
    ) -> Optional["PisiTransport"]:
        """Return a transport if pisi and its index are present, else None."""
        resolved = shutil.which(binary)
        if resolved is None or not index_path.exists():
            return None
        return cls(resolved, index_path)

    async def call(self, command: str, args: Dict[str, Any]) -> Any:
        known = Command.lookup(command)
        if known is None:
            raise UnknownCommandError(command)
        return await self._handlers[known](args)

    async def _run(self, command: Command, argv: Sequence[str]) -> str:
        """Run pisi and return stdout; non-zero exit raises CommandError."""
        logger.debug(f"Running: {self.binary} {' '.join(argv)}")
        try:
            proc = await asyncio.create_subprocess_exec(
                self.binary, *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise CommandError(command.value, f"Cannot run {self.binary}: {e}")

        stdout, stderr = await proc.communicate()
        if proc.returncode != 0:
            reason = stderr.decode(errors="replace").strip()
            raise CommandError(command.value, f"pisi {argv[0]} failed: {reason}")
        return stdout.decode(errors="replace")

    async def _read_index(self) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(load_index, self.index_path)

    async def _packages(self, args: Dict[str, Any]) -> List[Dict[str, Any]]:
        return await self._read_index()

    async def _components(self, args: Dict[str, Any]) -> List[Dict[str, Any]]:
        return derive_components(await self._read_index())

    async def _search(self, args: Dict[str, Any]) -> List[Dict[str, Any]]:
        query = str(args.get(QUERY_ARG, "")).lower()
        return [
            package for package in await self._read_index()
            if query in package["name"].lower() or query in package["summary"].lower()
        ]

    async def _installed(self, args: Dict[str, Any]) -> List[str]:
        return _first_column(await self._run(Command.GET_INSTALLED_PACKAGES, ["li"]))

    async def _upgradable(self, args: Dict[str, Any]) -> List[str]:
        return _first_column(await self._run(Command.GET_UPGRADABLE_PACKAGES, ["list-upgrades"]))

    async def _package_stats(self, args: Dict[str, Any]) -> Dict[str, int]:
        packages, installed, upgradable = await asyncio.gather(
            self._read_index(), self._installed(args), self._upgradable(args),
        )
        stats = Stats.compute(len(packages), len(installed), len(upgradable))
        return {f"{key}_count": value for key, value in stats.to_dict().items()}

    async def _update_repo(self, args: Dict[str, Any]) -> None:
        await self._run(Command.UPDATE_REPO, ["ur"])

    def _package_action(self, command: Command, verb: str, past: str):
        async def handler(args: Dict[str, Any]) -> str:
            name = args.get(PACKAGE_NAME_ARG)
            if not name:
                raise CommandError(command.value, "Missing package name")
            await self._run(command, [verb, name, "-y"])
            return f"Package {name} {past} successfully"

        return handler
