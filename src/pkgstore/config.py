"""
Store configuration.

Paths and timings used to wire the application together. Defaults follow
the XDG base directory layout and can be moved with environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .bridge import DEFAULT_MAX_ATTEMPTS, DEFAULT_POLL_INTERVAL
from .pisi_index import DEFAULT_INDEX_PATH

PACKAGE_DIR = Path(__file__).parent
APP_DIR_NAME = "pisi-store"


def _config_home() -> Path:
    override = os.environ.get("PISI_STORE_CONFIG_DIR")
    if override:
        return Path(override)
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / APP_DIR_NAME


def _log_home() -> Path:
    override = os.environ.get("PISI_STORE_LOG_DIR")
    if override:
        return Path(override)
    xdg = os.environ.get("XDG_STATE_HOME")
    base = Path(xdg) if xdg else Path.home() / ".local" / "state"
    return base / APP_DIR_NAME


def _json_logs() -> bool:
    return os.environ.get("PISI_STORE_LOG_JSON", "").lower() in ("1", "true", "yes")


def _index_path() -> Path:
    override = os.environ.get("PISI_STORE_INDEX")
    return Path(override) if override else DEFAULT_INDEX_PATH


@dataclass
class StoreConfig:
    """Runtime configuration for the store."""
    config_dir: Path = field(default_factory=_config_home)
    locales_dir: Path = PACKAGE_DIR / "locales"
    template_dirs: List[Path] = field(default_factory=lambda: [
        PACKAGE_DIR / "templates",
        Path("/usr/share/pisi-store/templates"),
    ])
    index_path: Path = field(default_factory=_index_path)
    pisi_binary: str = "pisi"

    poll_interval: float = DEFAULT_POLL_INTERVAL
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    search_debounce: float = 0.3

    force_mock: bool = False
    log_dir: Optional[Path] = field(default_factory=_log_home)
    json_logs: bool = field(default_factory=_json_logs)

    @property
    def preferences_path(self) -> Path:
        return self.config_dir / "preferences.json"

    @property
    def user_template_dir(self) -> Path:
        return self.config_dir / "templates"

    def all_template_dirs(self) -> List[Path]:
        """Search order: bundled, system, then user templates."""
        return [*self.template_dirs, self.user_template_dir]
