"""
Theme controller: dark/light preference and the toggle's label.
"""

from __future__ import annotations

import logging
from typing import Callable, List

from common.exceptions import PreferencesError

from .i18n import I18nService
from .preferences import Preferences

logger = logging.getLogger(__name__)

ThemeListener = Callable[[bool], None]

# The toggle offers the theme you would switch to
LABEL_KEYS = {
    True: "theme.light",
    False: "theme.dark",
}
TOGGLE_ICONS = {
    True: "weather-clear-symbolic",
    False: "weather-clear-night-symbolic",
}


class ThemeController:
    """
    Tracks dark mode, persists it, and tells listeners when it changes.

    The label is re-translated whenever the language changes.
    """

    def __init__(self, preferences: Preferences, i18n: I18nService):
        self._preferences = preferences
        self._i18n = i18n
        self._dark_mode = preferences.dark_mode
        self._listeners: List[ThemeListener] = []
        i18n.subscribe(self._on_language_changed)

    @property
    def dark_mode(self) -> bool:
        return self._dark_mode

    @property
    def label(self) -> str:
        return self._i18n.t(LABEL_KEYS[self._dark_mode])

    @property
    def icon(self) -> str:
        return TOGGLE_ICONS[self._dark_mode]

    def subscribe(self, listener: ThemeListener) -> None:
        """Call listener(dark_mode) on apply, toggle and language change."""
        self._listeners.append(listener)

    def apply(self) -> None:
        for listener in self._listeners:
            listener(self._dark_mode)

    def toggle(self) -> bool:
        """Flip the theme, save it and apply it."""
        self._dark_mode = not self._dark_mode
        try:
            self._preferences.dark_mode = self._dark_mode
        except PreferencesError as e:
            logger.warning(f"Theme not saved: {e}")
        logger.info(f"Theme switched to {'dark' if self._dark_mode else 'light'}")
        self.apply()
        return self._dark_mode

    def _on_language_changed(self, lang: str) -> None:
        self.apply()
