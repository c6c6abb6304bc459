"""
Application wiring.

Builds every store service from a StoreConfig. Both the desktop shell and
the command line tool start here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .bootstrap import BootstrapSequencer
from .bridge import CommandBridge, Transport
from .catalog import CatalogStore
from .commands import StoreClient
from .config import StoreConfig
from .controller import Alert, StoreController
from .i18n import I18nService
from .preferences import Preferences
from .render import FragmentLoader, RenderPipeline
from .theme import ThemeController
from .transport import PisiTransport

logger = logging.getLogger(__name__)

Locator = Callable[[], Optional[Transport]]


def _log_alert(message: str) -> None:
    logger.error(message)


def default_locator(config: StoreConfig) -> Locator:
    """Locator for the local pisi installation named by config."""
    def locate() -> Optional[Transport]:
        return PisiTransport.locate(config.pisi_binary, config.index_path)

    return locate


@dataclass
class StoreApp:
    """All services of one store session."""
    config: StoreConfig
    preferences: Preferences
    bridge: CommandBridge
    client: StoreClient
    store: CatalogStore
    i18n: I18nService
    theme: ThemeController
    pipeline: RenderPipeline
    controller: StoreController

    def sequencer(self, bind_listeners: Optional[Callable[[], None]] = None) -> BootstrapSequencer:
        return BootstrapSequencer(
            bridge=self.bridge,
            client=self.client,
            i18n=self.i18n,
            pipeline=self.pipeline,
            theme=self.theme,
            controller=self.controller,
            store=self.store,
            bind_listeners=bind_listeners,
        )

    async def start(self, bind_listeners: Optional[Callable[[], None]] = None) -> bool:
        """Run the startup sequence; see BootstrapSequencer.run."""
        return await self.sequencer(bind_listeners).run()


def build_app(
    config: Optional[StoreConfig] = None,
    alert: Alert = _log_alert,
    locate: Optional[Locator] = None,
) -> StoreApp:
    """
    Create the services for a session.

    Nothing touches the backend here. The bridge starts polling when the
    first call waits for it.

    Args:
        config: Store configuration, defaults from the environment
        alert: Blocking error display used by package actions
        locate: Transport locator, defaults to the local pisi installation
    """
    config = config or StoreConfig()
    locate = locate or default_locator(config)

    preferences = Preferences(config.preferences_path)
    bridge = CommandBridge(
        locate,
        poll_interval=config.poll_interval,
        max_attempts=config.max_attempts,
    )
    if config.force_mock:
        bridge.cancel()
    client = StoreClient(bridge)
    store = CatalogStore(client)

    i18n = I18nService(config.locales_dir, preferences)
    theme = ThemeController(preferences, i18n)

    pipeline = RenderPipeline(FragmentLoader(config.all_template_dirs()))
    i18n.register(pipeline)

    controller = StoreController(
        store, client, pipeline, theme, i18n, alert,
        search_debounce=config.search_debounce,
    )

    logger.debug(f"Store wired with config dir {config.config_dir}")
    return StoreApp(
        config=config,
        preferences=preferences,
        bridge=bridge,
        client=client,
        store=store,
        i18n=i18n,
        theme=theme,
        pipeline=pipeline,
        controller=controller,
    )
