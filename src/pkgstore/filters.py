"""
Filter engine.

Derives the visible package list from a catalog snapshot and the current
filter criteria. Pure and synchronous: no I/O, nothing cached.
"""

from __future__ import annotations

from typing import List

from .models import ALL, CatalogState, FilterCriteria, Package, StatusFilter

DEVEL_MARKER = "devel"


def _hidden_as_devel(package: Package) -> bool:
    return (
        DEVEL_MARKER in package.name.lower()
        or DEVEL_MARKER in package.part_of.lower()
    )


def _matches_query(package: Package, query: str) -> bool:
    return query in package.name.lower() or query in package.summary.lower()


def _matches_status(state: CatalogState, package: Package, status: str) -> bool:
    if status == StatusFilter.INSTALLED:
        return state.is_installed(package.name)
    if status == StatusFilter.UPDATES:
        return state.is_upgradable(package.name)
    if status == StatusFilter.AVAILABLE:
        return not state.is_installed(package.name)
    # "all" and anything unrecognised impose no constraint
    return True


def filter_packages(state: CatalogState, criteria: FilterCriteria) -> List[Package]:
    """
    Filter the catalog.

    Rules, all combined with AND:
      - an empty query hides development packages (name or component
        containing "devel"); a non-empty query disables that and instead
        requires a match on name or summary
      - a component other than "all" must equal the package's part_of
      - the effective status (category, else status filter) restricts to
        installed, upgradable or not-installed packages

    Args:
        state: Catalog snapshot
        criteria: Current filter criteria

    Returns:
        Matching packages in catalog order.
    """
    query = criteria.query.strip().lower()
    status = criteria.effective_status
    results = []

    for package in state.packages:
        if query:
            if not _matches_query(package, query):
                continue
        elif _hidden_as_devel(package):
            continue

        if criteria.component_id != ALL and package.part_of != criteria.component_id:
            continue

        if not _matches_status(state, package, status):
            continue

        results.append(package)

    return results
