#!/usr/bin/env python3
"""
Pisi Store CLI

Command-line interface for browsing the catalog and running package
commands through the same bridge the desktop store uses.
"""

import argparse
import asyncio
import logging
import sys

from jinja2.filters import do_filesizeformat

from common.exceptions import StoreError
from common.logging_config import level_from_env, setup_logging

from pkgstore.app import StoreApp, build_app
from pkgstore.commands import Command
from pkgstore.config import StoreConfig
from pkgstore.filters import filter_packages
from pkgstore.models import ALL, FilterCriteria, StatusFilter

logger = logging.getLogger(__name__)


def get_app(args) -> StoreApp:
    """Wire the store services for one command."""
    return build_app(StoreConfig(force_mock=args.mock))


async def _load_catalog(app: StoreApp) -> bool:
    await app.bridge.wait_ready()
    if not await app.store.refresh():
        print("Error: Failed to load package catalog.", file=sys.stderr)
        return False
    return True


async def _stats(app: StoreApp) -> int:
    try:
        stats = await app.client.get_package_stats()
    except StoreError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    print(f"Total:       {stats.total}")
    print(f"Installed:   {stats.installed}")
    print(f"Available:   {stats.available}")
    print(f"Updates:     {stats.updates}")
    if app.bridge.is_mock:
        print("(mock backend)")
    return 0


def cmd_stats(args):
    """Show package counters."""
    return asyncio.run(_stats(get_app(args)))


async def _list(app: StoreApp, criteria: FilterCriteria) -> int:
    if not await _load_catalog(app):
        return 1

    state = app.store.state
    results = filter_packages(state, criteria)
    if not results:
        print(f"No packages found for: {criteria.query or '(all)'}")
        return 0

    print(f"Found {len(results)} package(s):\n")
    for package in results:
        marks = ""
        if state.is_installed(package.name):
            marks += " [installed]"
        if state.is_upgradable(package.name):
            marks += " [update]"
        print(f"  {package.name} {package.display_version}{marks}")
        if package.summary:
            print(f"    {package.summary[:80]}")
    return 0


def cmd_list(args):
    """List packages matching a query and filters."""
    criteria = FilterCriteria(
        query=args.query or "",
        component_id=args.component or ALL,
        category=args.category or ALL,
        status_filter=args.status or ALL,
    )
    return asyncio.run(_list(get_app(args), criteria))


async def _search(app: StoreApp, query: str) -> int:
    try:
        results = await app.client.search_packages(query)
    except StoreError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    if not results:
        print(f"No packages found for: {query}")
        return 0

    print(f"Found {len(results)} package(s):\n")
    for package in results:
        print(f"  {package.name} {package.display_version}")
        if package.summary:
            print(f"    {package.summary[:80]}")
    return 0


def cmd_search(args):
    """Search the repository index on the backend."""
    return asyncio.run(_search(get_app(args), args.query))


async def _info(app: StoreApp, name: str) -> int:
    if not await _load_catalog(app):
        return 1

    state = app.store.state
    package = state.get(name)
    if package is None:
        print(f"Package not found: {name}", file=sys.stderr)
        return 1

    print(f"Name:        {package.name}")
    print(f"Version:     {package.display_version}")
    if package.release is not None:
        print(f"Release:     {package.release}")
    print(f"Component:   {package.part_of}")
    if package.summary:
        print(f"Summary:     {package.summary}")
    if package.description:
        print(f"Description: {package.description}")
    if package.license:
        print(f"License:     {package.license}")
    if package.homepage:
        print(f"Homepage:    {package.homepage}")
    print(f"Size:        {do_filesizeformat(package.size)}")
    if package.installed_size:
        print(f"Installed size: {do_filesizeformat(package.installed_size)}")
    if package.dependencies:
        print(f"Depends on:  {', '.join(package.dependencies)}")

    print(f"Installed:   {'Yes' if state.is_installed(name) else 'No'}")
    if state.is_upgradable(name):
        print("Update:      available")
    return 0


def cmd_info(args):
    """Show detailed package information."""
    return asyncio.run(_info(get_app(args), args.name))


async def _components(app: StoreApp) -> int:
    try:
        components = await app.client.get_components()
    except StoreError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    print("Components:\n")
    for component in components:
        print(f"  {component.display_name}: {component.package_count} package(s)")
    return 0


def cmd_components(args):
    """List components with package counts."""
    return asyncio.run(_components(get_app(args)))


async def _package_command(app: StoreApp, command: Command, name: str) -> int:
    try:
        result = await app.client.run_package_command(command, name)
    except StoreError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if result:
        print(result)
    return 0


def cmd_install(args):
    """Install a package."""
    print(f"Installing {args.name}...")
    return asyncio.run(_package_command(get_app(args), Command.INSTALL_PACKAGE, args.name))


def cmd_remove(args):
    """Remove a package."""
    print(f"Removing {args.name}...")
    return asyncio.run(_package_command(get_app(args), Command.REMOVE_PACKAGE, args.name))


def cmd_update(args):
    """Update a package."""
    print(f"Updating {args.name}...")
    return asyncio.run(_package_command(get_app(args), Command.UPDATE_PACKAGE, args.name))


async def _refresh_repo(app: StoreApp) -> int:
    try:
        await app.client.update_repo()
    except StoreError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    print("Repository index updated.")
    return 0


def cmd_refresh_repo(args):
    """Refresh the repository index."""
    return asyncio.run(_refresh_repo(get_app(args)))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pisi-store-cli",
        description="Pisi Linux package store",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose output"
    )
    parser.add_argument(
        "--mock", action="store_true", help="Use the built-in mock backend"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # stats
    stats_p = subparsers.add_parser("stats", help="Show package counters")
    stats_p.set_defaults(func=cmd_stats)

    # list
    list_p = subparsers.add_parser("list", help="List packages")
    list_p.add_argument("query", nargs="?", default="", help="Search query")
    list_p.add_argument("-c", "--component", help="Only packages of this component")
    list_p.add_argument("-s", "--status", choices=StatusFilter.CHOICES, help="Status filter")
    list_p.add_argument("--category", choices=StatusFilter.CHOICES,
                        help="Sidebar category (overrides --status)")
    list_p.set_defaults(func=cmd_list)

    # search
    search_p = subparsers.add_parser("search", help="Search the repository index")
    search_p.add_argument("query", help="Text to look for in names and summaries")
    search_p.set_defaults(func=cmd_search)

    # info
    info_p = subparsers.add_parser("info", help="Show package details")
    info_p.add_argument("name", help="Package name")
    info_p.set_defaults(func=cmd_info)

    # components
    comp_p = subparsers.add_parser("components", help="List components")
    comp_p.set_defaults(func=cmd_components)

    # install / remove / update
    for name, func, help_text in (
        ("install", cmd_install, "Install a package"),
        ("remove", cmd_remove, "Remove a package"),
        ("update", cmd_update, "Update a package"),
    ):
        action_p = subparsers.add_parser(name, help=help_text)
        action_p.add_argument("name", help="Package name")
        action_p.set_defaults(func=func)

    # refresh-repo
    repo_p = subparsers.add_parser("refresh-repo", help="Update the repository index")
    repo_p.set_defaults(func=cmd_refresh_repo)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else level_from_env(logging.WARNING)
    setup_logging(level=level)

    if args.command is None:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
