"""
Pisi Index Parser

Reads the repository index (pisi-index.xml) into backend package records
and derives the component list from them.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from common.exceptions import IndexParseError

logger = logging.getLogger(__name__)

DEFAULT_INDEX_PATH = Path("/var/lib/pisi/index/Stable/pisi-index.xml")
OTHER_COMPONENT = "other"
UNKNOWN_COMPONENT = "Unknown"


def _text(node: ET.Element, path: str) -> Optional[str]:
    child = node.find(path)
    if child is None or child.text is None:
        return None
    return child.text.strip() or None


def _int(value: Optional[str], default: int = 0) -> int:
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


def component_of(part_of: Optional[str]) -> str:
    """Component id for a raw PartOf value; missing or "Unknown" is "other"."""
    if not part_of or part_of == UNKNOWN_COMPONENT:
        return OTHER_COMPONENT
    return part_of


def parse_package(node: ET.Element) -> Optional[Dict[str, Any]]:
    """
    Convert one <Package> element into a backend package record.

    Values are read from child elements first and from attributes of the
    same name (partOf, packageSize, ...) second.
    """
    name = _text(node, "Name") or node.get("name")
    if not name:
        return None

    update = node.find("History/Update")
    version = None
    release = None
    if update is not None:
        version = _text(update, "Version") or update.get("version")
        release = _int(update.get("release"), 1)

    dependencies = [
        dep.text.strip()
        for dep in node.iterfind("RuntimeDependencies/Dependency")
        if dep.text and dep.text.strip()
    ]

    return {
        "name": name,
        "summary": _text(node, "Summary") or "",
        "description": _text(node, "Description"),
        "version": version,
        "release": release,
        "license": _text(node, "License"),
        "part_of": component_of(_text(node, "PartOf") or node.get("partOf")),
        "package_size": _int(_text(node, "PackageSize") or node.get("packageSize")),
        "installed_size": _int(_text(node, "InstalledSize") or node.get("installedSize")),
        "homepage": _text(node, "Source/Homepage"),
        "dependencies": dependencies,
    }


def parse_index(xml_content: Union[str, bytes]) -> List[Dict[str, Any]]:
    """
    Parse index XML.

    Raises:
        IndexParseError: If the document is not well-formed.
    """
    try:
        root = ET.fromstring(xml_content)
    except ET.ParseError as e:
        raise IndexParseError("<memory>", str(e))

    packages = []
    for node in root.iter("Package"):
        record = parse_package(node)
        if record is not None:
            packages.append(record)

    logger.debug(f"Parsed {len(packages)} packages from index")
    return packages


def load_index(path: Path = DEFAULT_INDEX_PATH) -> List[Dict[str, Any]]:
    """
    Read and parse the index file.

    Raises:
        IndexParseError: If the file is missing or malformed.
    """
    try:
        content = path.read_bytes()
    except OSError as e:
        raise IndexParseError(str(path), e.strerror or str(e))

    try:
        return parse_index(content)
    except IndexParseError as e:
        raise IndexParseError(str(path), e.details.get("reason", e.message))


def derive_components(packages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Count packages per component.

    Packages without a component are counted under "other", the same id
    `parse_package` gives them. An "All" entry with the total is included,
    and the list is sorted by name.
    """
    counts: Counter = Counter()
    for package in packages:
        counts[component_of(package.get("part_of"))] += 1

    components = [{"name": name, "package_count": count} for name, count in counts.items()]
    components.append({"name": "All", "package_count": len(packages)})
    components.sort(key=lambda c: c["name"])
    return components
