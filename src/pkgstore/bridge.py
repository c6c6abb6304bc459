"""
Command Bridge

Forwards commands to the privileged backend once its transport attaches.
Readiness is a small state machine:

    WAITING --ATTACH--> READY
    WAITING --TIMEOUT-> FALLBACK
    WAITING --CANCEL--> FALLBACK

READY and FALLBACK are terminal for the session. In FALLBACK every call is
answered by a deterministic mock backend.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional, Union

from common.exceptions import BridgeStateError, TransportUnavailableError

from .commands import Command

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.1
DEFAULT_MAX_ATTEMPTS = 50


class BridgeState(Enum):
    """Readiness of the command bridge."""
    WAITING = auto()
    READY = auto()
    FALLBACK = auto()


class BridgeTransition(Enum):
    """Events that move the bridge out of WAITING."""
    ATTACH = auto()
    TIMEOUT = auto()
    CANCEL = auto()


# Format: {current_state: {transition: target_state}}
VALID_TRANSITIONS: Dict[BridgeState, Dict[BridgeTransition, BridgeState]] = {
    BridgeState.WAITING: {
        BridgeTransition.ATTACH: BridgeState.READY,
        BridgeTransition.TIMEOUT: BridgeState.FALLBACK,
        BridgeTransition.CANCEL: BridgeState.FALLBACK,
    },
}


class Transport(ABC):
    """Request/response channel to a backend."""

    @abstractmethod
    async def call(self, command: str, args: Dict[str, Any]) -> Any:
        """Run one command and return its raw result."""
        pass


MOCK_RESPONSES: Dict[Command, Any] = {
    Command.GET_PACKAGE_STATS: {
        "total_count": 5,
        "installed_count": 0,
        "available_count": 5,
        "updates_count": 1,
    },
    Command.GET_PACKAGES: [
        {
            "name": "firefox",
            "summary": "Mozilla Firefox",
            "part_of": "desktop.web",
            "package_size": 97000000,
        },
    ],
    Command.GET_INSTALLED_PACKAGES: [],
    Command.GET_UPGRADABLE_PACKAGES: [],
    Command.GET_COMPONENTS: [
        {"name": "All", "package_count": 1},
        {"name": "desktop.web", "package_count": 1},
    ],
}


class MockTransport(Transport):
    """Canned answers used when no backend attaches. Never raises."""

    async def call(self, command: str, args: Dict[str, Any]) -> Any:
        logger.info(f"Mock call: {command} {args}")
        known = Command.lookup(command)
        if known in MOCK_RESPONSES:
            return copy.deepcopy(MOCK_RESPONSES[known])
        return f"{command} command executed successfully"


class CommandBridge:
    """
    Entry point for all backend calls.

    Args:
        locate: Returns a transport once the backend is reachable, else None
        poll_interval: Seconds between locate attempts
        max_attempts: Attempts before falling back to the mock backend
    """

    def __init__(
        self,
        locate: Callable[[], Optional[Transport]],
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        self._locate = locate
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts

        self._state = BridgeState.WAITING
        self._transport: Optional[Transport] = None
        self._ready = asyncio.Event()
        self._poller: Optional[asyncio.Task] = None
        self._transition_callbacks: List[Callable[[BridgeState, BridgeState], None]] = []

    @property
    def state(self) -> BridgeState:
        return self._state

    @property
    def is_mock(self) -> bool:
        return self._state == BridgeState.FALLBACK

    def can_transition(self, transition: BridgeTransition) -> bool:
        return transition in VALID_TRANSITIONS.get(self._state, {})

    def on_transition(self, callback: Callable[[BridgeState, BridgeState], None]) -> None:
        """Register callback(old_state, new_state)."""
        self._transition_callbacks.append(callback)

    def _transition(self, transition: BridgeTransition) -> BridgeState:
        if not self.can_transition(transition):
            raise BridgeStateError(self._state.name, transition.name)

        old_state = self._state
        new_state = VALID_TRANSITIONS[old_state][transition]
        logger.info(f"Bridge: {old_state.name} -> {new_state.name} (via {transition.name})")
        self._state = new_state

        for callback in self._transition_callbacks:
            try:
                callback(old_state, new_state)
            except Exception as e:
                logger.warning(f"Transition callback error: {e}")

        return new_state

    def _attach(self, transport: Transport) -> None:
        self._transition(BridgeTransition.ATTACH)
        self._transport = transport
        self._ready.set()

    def _fall_back(self, transition: BridgeTransition) -> None:
        self._transition(transition)
        self._transport = MockTransport()
        self._ready.set()

    def _try_locate(self) -> Optional[Transport]:
        try:
            return self._locate()
        except Exception as e:
            logger.debug(f"Transport locate failed: {e}")
            return None

    async def _poll(self) -> None:
        attempts = 0
        while True:
            transport = self._try_locate()
            if transport is not None:
                self._attach(transport)
                return
            if attempts >= self.max_attempts:
                logger.warning(str(TransportUnavailableError(attempts, self.poll_interval)))
                self._fall_back(BridgeTransition.TIMEOUT)
                return
            attempts += 1
            await asyncio.sleep(self.poll_interval)

    def start(self) -> asyncio.Task:
        """Begin polling for the transport. Safe to call more than once."""
        if self._poller is None:
            self._poller = asyncio.ensure_future(self._poll())
        return self._poller

    async def wait_ready(self) -> BridgeState:
        """Wait until the bridge is READY or has fallen back."""
        if self._state == BridgeState.WAITING:
            self.start()
        await self._ready.wait()
        return self._state

    def cancel(self) -> None:
        """Stop polling and switch to the mock backend."""
        if self._state != BridgeState.WAITING:
            return
        if self._poller is not None and not self._poller.done():
            self._poller.cancel()
        logger.warning("Transport polling cancelled, using mock backend")
        self._fall_back(BridgeTransition.CANCEL)

    async def invoke(
        self,
        command: Union[Command, str],
        args: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Send a command to the backend.

        Args:
            command: Command member or raw command name
            args: Command arguments

        Returns:
            The backend's raw result. Errors from a real backend propagate
            unchanged; they are never retried.
        """
        await self.wait_ready()
        name = command.value if isinstance(command, Command) else str(command)
        return await self._transport.call(name, args or {})
