"""
Pisi Store Common Utilities

Shared exceptions, logging setup and decorators.
"""

from .exceptions import (
    StoreError, BridgeError, TransportUnavailableError, BridgeStateError,
    FetchError, FragmentNotFoundError, FragmentError, LocaleLoadError,
    IndexParseError, CommandError, UnknownCommandError, PreferencesError,
)
from .decorators import handle_errors, timed
from .logging_config import setup_logging, level_from_env, LogContext, ContextFilter

__all__ = [
    # Exceptions
    "StoreError", "BridgeError", "TransportUnavailableError", "BridgeStateError",
    "FetchError", "FragmentNotFoundError", "FragmentError", "LocaleLoadError",
    "IndexParseError", "CommandError", "UnknownCommandError", "PreferencesError",
    # Decorators
    "handle_errors", "timed",
    # Logging
    "setup_logging", "level_from_env", "LogContext", "ContextFilter",
]
