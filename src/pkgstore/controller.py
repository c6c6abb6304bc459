"""
Store Controller

Owns the filter criteria and the selected package, derives a fresh page
view from the current catalog snapshot whenever either changes, and runs
user actions through one handler table.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import replace
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from common.exceptions import StoreError
from common.logging_config import LogContext

from .actions import UiAction
from .catalog import CatalogStore
from .commands import Command, StoreClient
from .filters import filter_packages
from .i18n import I18nService
from .models import ALL, FilterCriteria, Package
from .render import PageView, RenderPipeline, build_view
from .theme import ThemeController

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_DEBOUNCE = 0.3

PACKAGE_ACTIONS: Dict[UiAction, Command] = {
    UiAction.INSTALL: Command.INSTALL_PACKAGE,
    UiAction.REMOVE: Command.REMOVE_PACKAGE,
    UiAction.UPDATE: Command.UPDATE_PACKAGE,
}

Alert = Callable[[str], None]
BusyListener = Callable[[bool], None]
Handler = Callable[[str], Union[None, Awaitable[Any]]]


def error_text(error: Exception) -> str:
    """The message a user should see for a failed command."""
    if isinstance(error, StoreError):
        return error.message
    return str(error)


class StoreController:
    """
    Glue between the catalog, the filter engine and the render pipeline.

    Args:
        store: Catalog store
        client: Typed backend client
        pipeline: Page renderer
        theme: Theme controller
        i18n: Translation service
        alert: Blocking error display, called with the raw error text
        search_debounce: Seconds of quiet before a search is applied
    """

    def __init__(
        self,
        store: CatalogStore,
        client: StoreClient,
        pipeline: RenderPipeline,
        theme: ThemeController,
        i18n: I18nService,
        alert: Alert,
        search_debounce: float = DEFAULT_SEARCH_DEBOUNCE,
    ):
        self._store = store
        self._client = client
        self._pipeline = pipeline
        self._theme = theme
        self._i18n = i18n
        self._alert = alert
        self.search_debounce = search_debounce

        self.criteria = FilterCriteria()
        self.selected: Optional[str] = None
        self._actions_running = 0
        self._pending_search: Optional[asyncio.TimerHandle] = None
        self._busy_listeners: List[BusyListener] = []
        self._bound = False

        self._handlers: Dict[UiAction, Handler] = {
            UiAction.SELECT_PACKAGE: self._on_select,
            UiAction.CLOSE_DETAILS: self._on_close_details,
            UiAction.SET_COMPONENT: self._on_set_component,
            UiAction.SET_CATEGORY: self._on_set_category,
            UiAction.SET_FILTER: self._on_set_filter,
            UiAction.INSTALL: self._on_package_action(UiAction.INSTALL),
            UiAction.REMOVE: self._on_package_action(UiAction.REMOVE),
            UiAction.UPDATE: self._on_package_action(UiAction.UPDATE),
            UiAction.TOGGLE_THEME: self._on_toggle_theme,
            UiAction.SET_LANGUAGE: self._i18n.set_language,
            UiAction.REFRESH: self._on_refresh,
        }

    # -- Wiring --

    def bind(self) -> None:
        """Re-render on catalog, loading, theme and language changes."""
        if self._bound:
            return
        self._store.subscribe(lambda state: self.render())
        self._store.on_loading(lambda loading: self._loading_changed())
        self._theme.subscribe(lambda dark: self.render())
        self._i18n.subscribe(lambda lang: self.render())
        self._bound = True
        self.render()

    def on_busy(self, listener: BusyListener) -> None:
        """Call listener(busy) when the loading indicator turns on or off."""
        self._busy_listeners.append(listener)

    @property
    def busy(self) -> bool:
        return self._store.loading or self._actions_running > 0

    def _loading_changed(self) -> None:
        for listener in self._busy_listeners:
            listener(self.busy)
        self.render()

    # -- Derivation --

    def visible_packages(self) -> List[Package]:
        return filter_packages(self._store.state, self.criteria)

    def build_view(self) -> PageView:
        return build_view(
            self._store.state,
            self.visible_packages(),
            self.criteria,
            selected=self.selected,
            loading=self.busy,
            dark_mode=self._theme.dark_mode,
            theme_label=self._theme.label,
            theme_icon=self._theme.icon,
            language=self._i18n.current_lang,
            languages=tuple(self._i18n.available_languages()),
        )

    def render(self) -> PageView:
        view = self.build_view()
        self._pipeline.update(view)
        return view

    def set_criteria(self, **changes) -> None:
        self.criteria = replace(self.criteria, **changes)
        logger.debug(f"Criteria: {self.criteria}")
        self.render()

    # -- Search --

    def search(self, text: str) -> None:
        """
        Apply a search query once typing pauses.

        Must be called from the event loop thread.
        """
        if self._pending_search is not None:
            self._pending_search.cancel()
        loop = asyncio.get_running_loop()
        self._pending_search = loop.call_later(self.search_debounce, self._apply_search, text)

    def _apply_search(self, text: str) -> None:
        self._pending_search = None
        self.set_criteria(query=text)

    # -- Actions --

    async def dispatch(self, action: UiAction, argument: str = "") -> None:
        """Run the handler registered for an action."""
        logger.debug(f"Action {action.name} {argument!r}")
        result = self._handlers[action](argument)
        if inspect.isawaitable(result):
            await result

    def _on_select(self, name: str) -> None:
        self.selected = name or None
        self.render()

    def _on_close_details(self, argument: str) -> None:
        self.selected = None
        self.render()

    def _on_set_component(self, component_id: str) -> None:
        self.set_criteria(component_id=component_id or ALL)

    def _on_set_category(self, category: str) -> None:
        self.set_criteria(category=category or ALL)

    def _on_set_filter(self, status_filter: str) -> None:
        self.set_criteria(status_filter=status_filter or ALL)

    def _on_toggle_theme(self, argument: str) -> None:
        self._theme.toggle()

    async def _on_refresh(self, argument: str) -> None:
        await self._store.refresh()

    def _on_package_action(self, action: UiAction) -> Handler:
        async def handler(name: str) -> None:
            await self.run_package_action(action, name)
        return handler

    async def run_package_action(self, action: UiAction, name: str) -> bool:
        """
        Install, remove or update one package.

        The loading indicator stays on while the command runs. Success
        refreshes the whole catalog; failure shows the raw error.

        Returns:
            True if the command succeeded.
        """
        command = PACKAGE_ACTIONS[action]
        with LogContext(package=name, action=action.value):
            self._actions_running += 1
            self._loading_changed()
            try:
                await self._client.run_package_command(command, name)
            except Exception as e:
                logger.error(f"{command.value} failed for {name}: {e}")
                self._alert(error_text(e))
                return False
            finally:
                self._actions_running -= 1
                self._loading_changed()

            logger.info(f"{command.value} succeeded for {name}")

        await self._store.refresh()
        return True
