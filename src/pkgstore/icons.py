"""
Icon lookup for package cards.

Icons are chosen from the component id by the first keyword that appears
in it; the order of COMPONENT_ICONS matters.
"""

from __future__ import annotations

from typing import Tuple

FALLBACK_ICON = "package-x-generic"
ICON_SCHEME = "icon"

COMPONENT_ICONS: Tuple[Tuple[str, str], ...] = (
    ("web", "web-browser"),
    ("mail", "internet-mail"),
    ("chat", "internet-group-chat"),
    ("game", "applications-games"),
    ("multimedia", "applications-multimedia"),
    ("sound", "audio-x-generic"),
    ("video", "video-x-generic"),
    ("graphics", "applications-graphics"),
    ("office", "applications-office"),
    ("editor", "accessories-text-editor"),
    ("programming", "applications-development"),
    ("devel", "applications-development"),
    ("science", "applications-science"),
    ("font", "font-x-generic"),
    ("kernel", "applications-system"),
    ("system", "applications-system"),
    ("network", "network-workgroup"),
    ("desktop", "user-desktop"),
    ("util", "applications-utilities"),
)


def icon_for_component(component_id: str) -> str:
    """Icon name for a component id, FALLBACK_ICON if nothing matches."""
    lowered = (component_id or "").lower()
    for keyword, icon in COMPONENT_ICONS:
        if keyword in lowered:
            return icon
    return FALLBACK_ICON


def icon_url(icon_name: str) -> str:
    """Resource URL the shell resolves to a themed icon."""
    return f"{ICON_SCHEME}:{icon_name}"
