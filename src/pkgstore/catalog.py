"""
Catalog Store

Holds the last successfully fetched catalog snapshot and refreshes it from
the backend.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List

from common.decorators import timed

from .commands import StoreClient
from .models import EMPTY_STATE, CatalogState, Stats

logger = logging.getLogger(__name__)

StateListener = Callable[[CatalogState], None]
LoadingListener = Callable[[bool], None]


class CatalogStore:
    """
    Owner of the current CatalogState.

    A refresh fetches packages, installed names, upgradable names and
    components concurrently. The snapshot is only swapped when all four
    succeed; a failed refresh keeps the previous snapshot.

    Refreshes are not serialized: when two overlap, whichever finishes last
    leaves its snapshot in place.
    """

    def __init__(self, client: StoreClient):
        self._client = client
        self._state: CatalogState = EMPTY_STATE
        self._refreshes_running = 0
        self._state_listeners: List[StateListener] = []
        self._loading_listeners: List[LoadingListener] = []

    @property
    def state(self) -> CatalogState:
        return self._state

    @property
    def stats(self) -> Stats:
        return self._state.stats

    @property
    def loading(self) -> bool:
        return self._refreshes_running > 0

    def subscribe(self, listener: StateListener) -> None:
        """Call listener(state) after every successful refresh."""
        self._state_listeners.append(listener)

    def on_loading(self, listener: LoadingListener) -> None:
        """Call listener(loading) whenever the loading flag changes."""
        self._loading_listeners.append(listener)

    def _set_loading(self, loading: bool) -> None:
        # Stays on until every overlapping refresh has finished
        self._refreshes_running += 1 if loading else -1
        for listener in self._loading_listeners:
            listener(self.loading)

    @timed
    async def refresh(self) -> bool:
        """
        Reload the catalog from the backend.

        Returns:
            True if the snapshot was replaced.
        """
        self._set_loading(True)
        try:
            packages, installed, upgradable, components = await asyncio.gather(
                self._client.get_packages(),
                self._client.get_installed_packages(),
                self._client.get_upgradable_packages(),
                self._client.get_components(),
            )
        except Exception as e:
            logger.error(f"Data refresh failed: {e}")
            return False
        else:
            self._state = CatalogState.build(packages, installed, upgradable, components)
            stats = self._state.stats
            logger.info(
                f"Loaded {stats.total} packages "
                f"({stats.installed} installed, {stats.updates} updates)"
            )
            for listener in self._state_listeners:
                listener(self._state)
            return True
        finally:
            self._set_loading(False)
