"""
Translation service.

Locale tables are flat key -> string JSON files, one per language, loaded
the first time a language is used and kept for the rest of the session.

Translatable surfaces register themselves as targets. They keep their
translation keys apart from their markup (see `pkgstore.render`), so
applying translations means handing each target the current lookup
function and letting it re-render.
"""

from __future__ import annotations

import asyncio
import json
import locale
import logging
import os
from pathlib import Path
from typing import Callable, Dict, List, Protocol

from common.exceptions import LocaleLoadError, PreferencesError

from .preferences import Preferences

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"
SYSTEM_LANGUAGES = ("tr",)

Translate = Callable[[str], str]
LanguageListener = Callable[[str], None]


class TranslationTarget(Protocol):
    def retranslate(self, translate: Translate) -> None:
        ...


def system_language() -> str:
    """Pick a supported language from the environment locale."""
    code = os.environ.get("LANG") or ""
    if not code:
        try:
            code = locale.getlocale()[0] or ""
        except ValueError:
            code = ""
    code = code.lower()
    for lang in SYSTEM_LANGUAGES:
        if code.startswith(lang):
            return lang
    return DEFAULT_LANGUAGE


def _read_locale(path: Path) -> Dict[str, str]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("locale file must contain an object")
    return {str(k): str(v) for k, v in data.items()}


class I18nService:
    """
    Per-language string tables with change notifications.

    Args:
        locales_dir: Directory holding <lang>.json files
        preferences: Where the chosen language is persisted
    """

    def __init__(self, locales_dir: Path, preferences: Preferences):
        self.locales_dir = locales_dir
        self._preferences = preferences
        self._locales: Dict[str, Dict[str, str]] = {}
        self.current_lang = preferences.language or system_language()
        self._targets: List[TranslationTarget] = []
        self._listeners: List[LanguageListener] = []

    async def init(self) -> None:
        """Load the current language and translate registered targets."""
        await self.load_language(self.current_lang)
        self.apply_translations()

    def available_languages(self) -> List[str]:
        if not self.locales_dir.is_dir():
            return [DEFAULT_LANGUAGE]
        return sorted(p.stem for p in self.locales_dir.glob("*.json"))

    async def load_language(self, lang: str) -> bool:
        """
        Make `lang` current, loading its table on first use.

        Failures are logged and leave the current language unchanged.

        Returns:
            True if the language is now current.
        """
        if lang not in self._locales:
            path = self.locales_dir / f"{lang}.json"
            try:
                self._locales[lang] = await asyncio.to_thread(_read_locale, path)
            except (OSError, ValueError) as e:
                logger.error(str(LocaleLoadError(lang, cause=e)))
                return False
            logger.debug(f"Loaded {len(self._locales[lang])} strings for {lang}")

        self.current_lang = lang
        return True

    def t(self, key: str) -> str:
        """Translated string for key, or the key itself."""
        return self._locales.get(self.current_lang, {}).get(key) or key

    def register(self, target: TranslationTarget) -> None:
        """Add a surface that re-renders when translations are applied."""
        self._targets.append(target)

    def subscribe(self, listener: LanguageListener) -> None:
        """Call listener(lang) after every language switch."""
        self._listeners.append(listener)

    def apply_translations(self) -> None:
        for target in self._targets:
            target.retranslate(self.t)

    async def set_language(self, lang: str) -> None:
        """Switch language, persist it, re-translate and notify."""
        if await self.load_language(lang):
            try:
                self._preferences.language = lang
            except PreferencesError as e:
                logger.warning(f"Language not saved: {e}")
        self.apply_translations()
        for listener in self._listeners:
            listener(self.current_lang)
