"""
Durable user preferences.

Two string values survive between sessions: the dark-mode flag and the
language code. The file is read once at startup and rewritten on every
change using write-to-temp-then-rename.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

from common.decorators import handle_errors
from common.exceptions import PreferencesError

logger = logging.getLogger(__name__)

DARK_MODE_KEY = "darkMode"
LANGUAGE_KEY = "lang"


def _atomic_write_json(path: Path, data: Dict[str, str]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except Exception:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise


@handle_errors(OSError, ValueError, default={}, log_level=logging.WARNING,
               message="Could not read preferences")
def _read_json(path: Path) -> Dict[str, str]:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"expected an object, got {type(data).__name__}")
    return {str(k): str(v) for k, v in data.items()}


class Preferences:
    """
    String key-value preferences backed by a JSON file.

    Args:
        path: Location of preferences.json
    """

    def __init__(self, path: Path):
        self.path = path
        self._values: Dict[str, str] = dict(_read_json(path))

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._values.get(key, default)

    def set(self, key: str, value: str) -> None:
        """Store a value and write the file."""
        self._values[key] = value
        try:
            _atomic_write_json(self.path, self._values)
        except OSError as e:
            raise PreferencesError(str(self.path), str(e))
        logger.debug(f"Saved preference {key}={value}")

    @property
    def dark_mode(self) -> bool:
        return self.get(DARK_MODE_KEY) == "true"

    @dark_mode.setter
    def dark_mode(self, enabled: bool) -> None:
        self.set(DARK_MODE_KEY, "true" if enabled else "false")

    @property
    def language(self) -> Optional[str]:
        return self.get(LANGUAGE_KEY)

    @language.setter
    def language(self, lang: str) -> None:
        self.set(LANGUAGE_KEY, lang)
