"""
Pisi Store Exception Hierarchy

Provides clear, actionable error messages with structured information
for logging, user feedback, and programmatic error handling.
"""

from typing import Optional, Dict, Any


class StoreError(Exception):
    """
    Base exception for all Pisi Store errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context as key-value pairs
        cause: Original exception that caused this error
        recoverable: Whether the error is recoverable
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        self.recoverable = recoverable

    def __str__(self):
        s = f"[{self.code}] {self.message}"
        if self.details:
            s += f" (details: {self.details})"
        if self.cause:
            s += f" caused by: {self.cause}"
        return s


# =============================================================================
# Bridge errors
# =============================================================================

class BridgeError(StoreError):
    """Base for command bridge errors."""
    pass


class TransportUnavailableError(BridgeError):
    """No backend transport attached within the readiness budget."""
    def __init__(self, attempts: int, interval: float):
        super().__init__(
            f"No backend transport after {attempts} attempts, using mock backend",
            code="TRANSPORT_UNAVAILABLE",
            details={"attempts": attempts, "interval": interval},
        )


class BridgeStateError(BridgeError):
    """Invalid readiness transition."""
    def __init__(self, current_state: str, transition: str):
        super().__init__(
            f"Cannot perform {transition} from bridge state {current_state}",
            code="BRIDGE_INVALID_STATE",
            details={"state": current_state, "transition": transition},
            recoverable=False,
        )


# =============================================================================
# Fetch errors
# =============================================================================

class FetchError(StoreError):
    """Base for fragment, locale and data fetch failures."""
    pass


class FragmentNotFoundError(FetchError):
    """Fragment template not found."""
    def __init__(self, fragment: str):
        super().__init__(
            f"Fragment not found: {fragment}",
            code="FRAGMENT_NOT_FOUND",
            details={"fragment": fragment},
            recoverable=False,
        )


class FragmentError(FetchError):
    """Fragment could not be injected into the page."""
    def __init__(self, slot: str, reason: str):
        super().__init__(
            f"Cannot inject into slot '{slot}': {reason}",
            code="FRAGMENT_INJECT_FAILED",
            details={"slot": slot, "reason": reason},
            recoverable=False,
        )


class LocaleLoadError(FetchError):
    """Locale table could not be loaded."""
    def __init__(self, lang: str, cause: Optional[Exception] = None):
        super().__init__(
            f"Could not load locale {lang}",
            code="LOCALE_LOAD_FAILED",
            details={"lang": lang},
            cause=cause,
        )


class IndexParseError(FetchError):
    """Package index is missing or malformed."""
    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Failed to read package index {path}: {reason}",
            code="INDEX_PARSE_FAILED",
            details={"path": path, "reason": reason},
        )


# =============================================================================
# Command errors
# =============================================================================

class CommandError(StoreError):
    """Backend command failed."""
    def __init__(self, command: str, reason: str, package: Optional[str] = None):
        super().__init__(
            reason,
            code="COMMAND_FAILED",
            details={"command": command, "package": package},
        )


class UnknownCommandError(CommandError):
    """Backend has no handler for a command."""
    def __init__(self, command: str):
        super().__init__(command, f"Unknown command: {command}")
        self.code = "UNKNOWN_COMMAND"


# =============================================================================
# Configuration errors
# =============================================================================

class PreferencesError(StoreError):
    """Preferences could not be read or written."""
    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Preferences error at {path}: {reason}",
            code="PREFERENCES_ERROR",
            details={"path": path, "reason": reason},
        )
