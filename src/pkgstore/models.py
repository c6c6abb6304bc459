"""
Catalog data model.

Packages, components and the per-refresh catalog snapshot. Everything here
is immutable; a refresh builds a new CatalogState instead of editing one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple

ALL = "all"
DEFAULT_VERSION = "0.1"


class StatusFilter:
    """Values accepted by the category and status-filter controls."""
    ALL = ALL
    INSTALLED = "installed"
    AVAILABLE = "available"
    UPDATES = "updates"

    CHOICES = (ALL, INSTALLED, AVAILABLE, UPDATES)


@dataclass(frozen=True)
class Package:
    """A package as listed by the backend index."""
    name: str
    summary: str = ""
    description: Optional[str] = None
    version: Optional[str] = None
    part_of: str = ""
    size: int = 0

    # Index details
    release: Optional[int] = None
    license: Optional[str] = None
    installed_size: int = 0
    homepage: Optional[str] = None
    dependencies: Tuple[str, ...] = ()

    @property
    def display_version(self) -> str:
        return self.version or DEFAULT_VERSION

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "summary": self.summary,
            "description": self.description,
            "version": self.version,
            "part_of": self.part_of,
            "package_size": self.size,
            "release": self.release,
            "license": self.license,
            "installed_size": self.installed_size,
            "homepage": self.homepage,
            "dependencies": list(self.dependencies),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Package":
        """Create from a backend record; accepts `size` or `package_size`."""
        size = data.get("size", data.get("package_size", 0))
        return cls(
            name=data["name"],
            summary=data.get("summary") or "",
            description=data.get("description") or None,
            version=data.get("version") or None,
            part_of=data.get("part_of") or "",
            size=int(size or 0),
            release=data.get("release"),
            license=data.get("license") or None,
            installed_size=int(data.get("installed_size") or 0),
            homepage=data.get("homepage") or None,
            dependencies=tuple(data.get("dependencies") or ()),
        )


@dataclass(frozen=True)
class Component:
    """A package grouping (`part_of`) with its package count."""
    id: str
    display_name: str
    package_count: int = 0

    @property
    def is_all(self) -> bool:
        """True for the backend's catch-all entry."""
        return self.id.lower() == ALL

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Component":
        component_id = data.get("id") or data["name"]
        return cls(
            id=component_id,
            display_name=data.get("display_name") or data.get("name") or component_id,
            package_count=int(data.get("package_count", 0)),
        )


@dataclass(frozen=True)
class Stats:
    """Package counters shown in the header and sidebar."""
    total: int = 0
    installed: int = 0
    available: int = 0
    updates: int = 0

    @classmethod
    def compute(cls, total: int, installed: int, updates: int) -> "Stats":
        return cls(
            total=total,
            installed=installed,
            available=max(0, total - installed),
            updates=updates,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Stats":
        """Accepts both `total` and the backend's `total_count` spelling."""
        def pick(key: str) -> int:
            return int(data.get(key, data.get(f"{key}_count", 0)))

        return cls(
            total=pick("total"),
            installed=pick("installed"),
            available=pick("available"),
            updates=pick("updates"),
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "installed": self.installed,
            "available": self.available,
            "updates": self.updates,
        }


@dataclass(frozen=True)
class CatalogState:
    """
    Snapshot of everything fetched by one refresh.

    installed_names and upgradable_names may mention packages that are not
    in `packages`; lookups simply answer False for names they do not hold.
    """
    packages: Tuple[Package, ...] = ()
    installed_names: FrozenSet[str] = frozenset()
    upgradable_names: FrozenSet[str] = frozenset()
    components: Tuple[Component, ...] = ()

    @classmethod
    def build(
        cls,
        packages: Iterable[Package],
        installed_names: Iterable[str] = (),
        upgradable_names: Iterable[str] = (),
        components: Iterable[Component] = (),
    ) -> "CatalogState":
        return cls(
            packages=tuple(packages),
            installed_names=frozenset(installed_names),
            upgradable_names=frozenset(upgradable_names),
            components=tuple(components),
        )

    def is_installed(self, name: str) -> bool:
        return name in self.installed_names

    def is_upgradable(self, name: str) -> bool:
        return name in self.upgradable_names

    def get(self, name: str) -> Optional[Package]:
        """Get package by name."""
        for package in self.packages:
            if package.name == name:
                return package
        return None

    @property
    def stats(self) -> Stats:
        return Stats.compute(
            total=len(self.packages),
            installed=len(self.installed_names),
            updates=len(self.upgradable_names),
        )


@dataclass(frozen=True)
class FilterCriteria:
    """Current state of the search box and the filter controls."""
    query: str = ""
    component_id: str = ALL
    category: str = ALL
    status_filter: str = ALL

    @property
    def effective_status(self) -> str:
        """The category control wins whenever it is not "all"."""
        if self.category != ALL:
            return self.category
        return self.status_filter


EMPTY_STATE = CatalogState()
