"""
Pytest configuration and shared fixtures for Pisi Store tests.

Provides sample catalogs, a temporary configuration and a scriptable
backend transport.
"""

import copy
import os
import pytest
from unittest.mock import MagicMock
from pathlib import Path
from typing import Any, Dict, Generator, List, Tuple
import sys

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pkgstore.bridge import Transport
from pkgstore.models import CatalogState, Component, Package


# ============ Environment Fixtures ============

@pytest.fixture
def temp_config_dir(tmp_path: Path) -> Path:
    """Provide temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Remove store environment overrides for the duration of a test."""
    keys = (
        "PISI_STORE_CONFIG_DIR", "PISI_STORE_INDEX", "PISI_STORE_LOG_LEVEL",
        "PISI_STORE_LOG_DIR", "PISI_STORE_LOG_JSON", "LANG",
    )
    saved = {key: os.environ.pop(key, None) for key in keys}
    yield
    for key, value in saved.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value


@pytest.fixture
def store_config(temp_config_dir: Path):
    """StoreConfig that never waits for a backend and writes to tmp."""
    from pkgstore.config import StoreConfig

    return StoreConfig(
        config_dir=temp_config_dir,
        index_path=temp_config_dir / "pisi-index.xml",
        poll_interval=0,
        max_attempts=0,
        search_debounce=0.01,
    )


# ============ Catalog Fixtures ============

@pytest.fixture
def sample_packages() -> List[Package]:
    """A small catalog covering several components."""
    return [
        Package(name="firefox", summary="Mozilla Firefox web browser",
                version="115.0", part_of="desktop.web", size=97000000),
        Package(name="thunderbird", summary="Mail client",
                version="102.1", part_of="desktop.mail"),
        Package(name="python3-devel", summary="Python development headers",
                version="3.11.4", part_of="programming.language.python"),
        Package(name="glibc-headers", summary="C library headers",
                version="2.37", part_of="system.devel"),
        Package(name="vlc", summary="Media player",
                part_of="multimedia.video"),
        Package(name="gimp", summary="GNU Image Manipulation Program",
                version="2.10", part_of="multimedia.graphics"),
    ]


@pytest.fixture
def sample_components() -> List[Component]:
    return [
        Component(id="All", display_name="All", package_count=6),
        Component(id="desktop.mail", display_name="desktop.mail", package_count=1),
        Component(id="desktop.web", display_name="desktop.web", package_count=1),
        Component(id="multimedia.video", display_name="multimedia.video", package_count=1),
    ]


@pytest.fixture
def sample_state(sample_packages, sample_components) -> CatalogState:
    """Snapshot with firefox and vlc installed and vlc upgradable.

    "ghost" is installed but not listed in the index.
    """
    return CatalogState.build(
        sample_packages,
        installed_names=["firefox", "vlc", "ghost"],
        upgradable_names=["vlc"],
        components=sample_components,
    )


def package_records(packages: List[Package]) -> List[Dict[str, Any]]:
    """Backend-shaped records for a package list."""
    return [p.to_dict() for p in packages]


# ============ Backend Fixtures ============

class FakeTransport(Transport):
    """
    Scriptable transport.

    `responses` maps command names to results; `errors` maps command names
    to exceptions raised instead. Every call is recorded in `calls`.
    """

    def __init__(self, responses=None, errors=None):
        self.responses: Dict[str, Any] = dict(responses or {})
        self.errors: Dict[str, Exception] = dict(errors or {})
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    async def call(self, command: str, args: Dict[str, Any]) -> Any:
        self.calls.append((command, args))
        if command in self.errors:
            raise self.errors[command]
        return copy.deepcopy(self.responses.get(command))

    def commands(self) -> List[str]:
        return [command for command, _ in self.calls]


@pytest.fixture
def fake_transport(sample_packages) -> FakeTransport:
    """Transport answering the four catalog queries from sample data."""
    return FakeTransport(responses={
        "get_packages": package_records(sample_packages),
        "get_installed_packages": ["firefox", "vlc", "ghost"],
        "get_upgradable_packages": ["vlc"],
        "get_components": [
            {"name": "All", "package_count": 6},
            {"name": "desktop.web", "package_count": 1},
            {"name": "multimedia.video", "package_count": 1},
        ],
        "update_repo": None,
        "install_package": "Package ok",
        "remove_package": "Package ok",
        "update_package": "Package ok",
    })


@pytest.fixture
def alert() -> MagicMock:
    return MagicMock()


@pytest.fixture
def store_app(store_config, fake_transport, alert):
    """Fully wired store talking to the fake transport."""
    from pkgstore.app import build_app

    return build_app(store_config, alert=alert, locate=lambda: fake_transport)


# ============ Marker Configuration ============

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "unit: fast unit tests with no external deps"
    )
    config.addinivalue_line(
        "markers", "integration: tests that wire several services together"
    )
