"""
Startup sequence.

The order matters: translations are applied once before any fragment
exists and again after the fragments are injected, since freshly injected
fragments have not been translated yet.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Tuple

from .bridge import BridgeState, CommandBridge
from .catalog import CatalogStore
from .commands import StoreClient
from .controller import StoreController
from .i18n import I18nService
from .render import ROOT_SLOT, RenderPipeline
from .theme import ThemeController

logger = logging.getLogger(__name__)

FRAGMENTS: Tuple[Tuple[str, str], ...] = (
    (ROOT_SLOT, "layout.html"),
    ("header-wrapper", "header.html"),
    ("sidebar-wrapper", "sidebar.html"),
    ("view-content", "main_view.html"),
)


class BootstrapSequencer:
    """
    Runs the startup steps in order.

    Args:
        bridge: Command bridge to wait for
        client: Typed client used for the repository refresh
        i18n: Translation service
        pipeline: Page renderer receiving the fragments
        theme: Theme controller
        controller: Store controller whose listeners are bound
        store: Catalog store for the initial load
        bind_listeners: Extra listener wiring done by the shell
    """

    def __init__(
        self,
        bridge: CommandBridge,
        client: StoreClient,
        i18n: I18nService,
        pipeline: RenderPipeline,
        theme: ThemeController,
        controller: StoreController,
        store: CatalogStore,
        bind_listeners: Optional[Callable[[], None]] = None,
    ):
        self._bridge = bridge
        self._client = client
        self._i18n = i18n
        self._pipeline = pipeline
        self._theme = theme
        self._controller = controller
        self._store = store
        self._bind_listeners = bind_listeners
        self.completed_steps: List[str] = []

    def _done(self, step: str) -> None:
        self.completed_steps.append(step)
        logger.debug(f"Startup step done: {step}")

    async def run(self) -> bool:
        """
        Start the store.

        Fragment load failures propagate and abort startup. A failed
        repository refresh is logged and startup continues.

        Returns:
            Whether the initial catalog load succeeded.
        """
        state = await self._bridge.wait_ready()
        if state == BridgeState.FALLBACK:
            logger.warning("Running against the mock backend")
        self._done("bridge")

        await self._i18n.init()
        self._done("i18n")

        for slot, fragment in FRAGMENTS:
            await self._pipeline.inject(slot, fragment)
        self._done("fragments")

        self._theme.apply()
        self._done("theme")

        self._i18n.apply_translations()
        self._done("translations")

        self._controller.bind()
        if self._bind_listeners is not None:
            self._bind_listeners()
        self._done("listeners")

        try:
            await self._client.update_repo()
        except Exception as e:
            logger.warning(f"Repository update failed: {e}")
        self._done("update_repo")

        loaded = await self._store.refresh()
        self._done("refresh")
        return loaded
