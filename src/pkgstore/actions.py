"""
User interface actions.

Rendered markup carries actions as `action:<name>/<argument>` links; the
shell hands clicked links to `parse_action_url` and the controller
dispatches the resulting UiAction.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple
from urllib.parse import quote, unquote

ACTION_SCHEME = "action"


class UiAction(Enum):
    """Everything a user can trigger from the page."""
    SELECT_PACKAGE = "select"
    CLOSE_DETAILS = "close"
    SET_COMPONENT = "component"
    SET_CATEGORY = "category"
    SET_FILTER = "filter"
    INSTALL = "install"
    REMOVE = "remove"
    UPDATE = "update"
    TOGGLE_THEME = "theme"
    SET_LANGUAGE = "lang"
    REFRESH = "refresh"


def action_url(action: UiAction, argument: str = "") -> str:
    return f"{ACTION_SCHEME}:{action.value}/{quote(argument, safe='')}"


def parse_action_url(url: str) -> Optional[Tuple[UiAction, str]]:
    """
    Decode an action link.

    Returns:
        (action, argument), or None for links that are not actions.
    """
    prefix = f"{ACTION_SCHEME}:"
    if not url.startswith(prefix):
        return None
    name, _, argument = url[len(prefix):].partition("/")
    try:
        action = UiAction(name)
    except ValueError:
        return None
    return action, unquote(argument)
