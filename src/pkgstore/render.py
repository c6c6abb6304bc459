"""
Render Pipeline

Turns a PageView into HTML. Page structure comes from jinja2 fragments:
a layout mounted at the root and header, sidebar and main-view fragments
injected into its slots. Fragments reference text only through `_("key")`,
so translating the page is a re-render with a different lookup function
and never touches icons or other markup.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from jinja2 import (
    ChoiceLoader, Environment, FileSystemLoader, Template, TemplateNotFound,
    select_autoescape,
)
from markupsafe import Markup

from common.exceptions import FragmentError, FragmentNotFoundError

from .actions import UiAction, action_url
from .icons import icon_for_component, icon_url
from .models import (
    ALL, CatalogState, Component, FilterCriteria, Package, Stats, StatusFilter,
)

logger = logging.getLogger(__name__)

ROOT_SLOT = "app"
PAGE_SLOTS = ("header-wrapper", "sidebar-wrapper", "view-content")

Translate = Callable[[str], str]
PageSink = Callable[[str], None]


def _untranslated(key: str) -> str:
    return key


# =============================================================================
# View model
# =============================================================================

@dataclass(frozen=True)
class PackageCard:
    """What a grid card shows for one package."""
    name: str
    version: str
    summary: str
    part_of: str
    icon: str

    @classmethod
    def from_package(cls, package: Package) -> "PackageCard":
        return cls(
            name=package.name,
            version=package.display_version,
            summary=package.summary,
            part_of=package.part_of,
            icon=icon_for_component(package.part_of),
        )


@dataclass(frozen=True)
class PackageDetails:
    """Selected package plus the actions that apply to it."""
    package: Package
    installed: bool
    upgradable: bool

    @classmethod
    def from_state(cls, package: Package, state: CatalogState) -> "PackageDetails":
        return cls(
            package=package,
            installed=state.is_installed(package.name),
            upgradable=state.is_upgradable(package.name),
        )

    @property
    def can_install(self) -> bool:
        return not self.installed

    @property
    def can_remove(self) -> bool:
        return self.installed

    @property
    def can_update(self) -> bool:
        return self.upgradable

    @property
    def icon(self) -> str:
        return icon_for_component(self.package.part_of)


@dataclass(frozen=True)
class PageView:
    """Everything the fragments need for one render."""
    cards: Tuple[PackageCard, ...] = ()
    stats: Stats = field(default_factory=Stats)
    components: Tuple[Component, ...] = ()
    criteria: FilterCriteria = field(default_factory=FilterCriteria)
    details: Optional[PackageDetails] = None
    loading: bool = False
    dark_mode: bool = False
    theme_label: str = ""
    theme_icon: str = ""
    language: str = ""
    languages: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.cards

    @property
    def sidebar_components(self) -> Tuple[Component, ...]:
        # The catch-all entry is rendered separately with the "all" sentinel
        return tuple(c for c in self.components if not c.is_all)


def build_view(
    state: CatalogState,
    visible: List[Package],
    criteria: FilterCriteria,
    selected: Optional[str] = None,
    **extra,
) -> PageView:
    """Assemble a PageView from a snapshot and its filtered package list."""
    details = None
    if selected is not None:
        package = state.get(selected)
        if package is not None:
            details = PackageDetails.from_state(package, state)

    return PageView(
        cards=tuple(PackageCard.from_package(p) for p in visible),
        stats=state.stats,
        components=state.components,
        criteria=criteria,
        details=details,
        **extra,
    )


# =============================================================================
# Fragments
# =============================================================================

class FragmentLoader:
    """
    Loads page fragments from template directories.

    The first directory containing a fragment wins.
    """

    def __init__(self, paths: List[Path]):
        self._paths = list(paths)
        self._env = self._create_environment()

    def _create_environment(self) -> Environment:
        loaders = []
        for path in self._paths:
            if path.exists() and path.is_dir():
                loaders.append(FileSystemLoader(str(path)))
                logger.debug(f"Added fragment path: {path}")

        if not loaders:
            logger.warning(f"No fragment directories found in {self._paths}")

        env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        env.globals.update(
            Action=UiAction,
            action_url=action_url,
            icon_url=icon_url,
            ALL=ALL,
            STATUS_CHOICES=StatusFilter.CHOICES,
        )
        return env

    def get_template(self, name: str) -> Template:
        """
        Raises:
            FragmentNotFoundError: If no directory has the fragment.
        """
        try:
            return self._env.get_template(name)
        except TemplateNotFound:
            raise FragmentNotFoundError(name)


class Page:
    """A layout template and the fragments injected into its slots."""

    def __init__(self, slots=PAGE_SLOTS):
        self.slot_names = tuple(slots)
        self.root: Optional[Template] = None
        self._fragments: Dict[str, Template] = {}

    @property
    def mounted(self) -> bool:
        return self.root is not None

    def fragment(self, slot: str) -> Optional[Template]:
        return self._fragments.get(slot)

    def inject(self, slot: str, template: Template) -> None:
        """
        Replace the content of a slot.

        Mounting a new root discards everything previously injected.

        Raises:
            FragmentError: For unknown slots or before a root is mounted.
        """
        if slot == ROOT_SLOT:
            self.root = template
            self._fragments.clear()
            return
        if self.root is None:
            raise FragmentError(slot, "no layout mounted")
        if slot not in self.slot_names:
            raise FragmentError(slot, "layout has no such slot")
        self._fragments[slot] = template

    def render(self, **context) -> str:
        if self.root is None:
            return ""
        slots = {
            slot: Markup(template.render(**context))
            for slot, template in self._fragments.items()
        }
        return self.root.render(slots=slots, **context)


class RenderPipeline:
    """
    Renders the page whenever the view or the translations change and
    pushes the HTML to every registered sink.
    """

    def __init__(self, loader: FragmentLoader, page: Optional[Page] = None):
        self._loader = loader
        self.page = page or Page()
        self._view = PageView()
        self._translate: Translate = _untranslated
        self._sinks: List[PageSink] = []
        self.html = ""

    @property
    def view(self) -> PageView:
        return self._view

    def add_sink(self, sink: PageSink) -> None:
        self._sinks.append(sink)

    async def inject(self, slot: str, fragment_name: str) -> None:
        """Load a fragment and place it into a page slot."""
        template = await asyncio.to_thread(self._loader.get_template, fragment_name)
        self.page.inject(slot, template)
        logger.debug(f"Injected {fragment_name} into #{slot}")

    def retranslate(self, translate: Translate) -> None:
        self._translate = translate
        self.render()

    def update(self, view: PageView) -> None:
        self._view = view
        self.render()

    def render(self) -> str:
        self.html = self.page.render(view=self._view, _=self._translate)
        if self.page.mounted:
            for sink in self._sinks:
                sink(self.html)
        return self.html
