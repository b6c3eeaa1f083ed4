"""
Transport socket contract and listener bookkeeping.

The socket is owned by the network layer. This package only borrows it: it
binds one ListenerSet at a time and never connects, closes or destroys it.
"""

import inspect
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

# Events consumed from the doctor app
EVENT_CONNECT = "connect"
EVENT_DISCONNECT = "disconnect"
EVENT_DOCTOR_PRESENCE = "doctorPresence"
EVENT_NEW_MESSAGE = "new-message"
EVENT_PATIENT_DATA = "patient-data"

# Events emitted to the doctor app
EVENT_CLIENT_APP_CONNECT = "clientAppConnect"
EVENT_MESSAGE = "message"
EVENT_FILE_DATA = "file:data"
EVENT_DASHBOARD_STATUS = "dashboard-status"
EVENT_WAITING_PATIENTS = "waiting-patients"


@runtime_checkable
class TransportSocket(Protocol):
    """Minimal event socket interface (socket.io style)."""

    connected: bool

    def emit(self, event: str, data: Any = None) -> Any: ...

    def on(self, event: str, handler: Callable[..., Any]) -> Any: ...

    def off(self, event: str, handler: Callable[..., Any]) -> Any: ...


async def emit_event(socket: TransportSocket, event: str, data: Any) -> None:
    """Emit on the socket, awaiting the result when the socket's emit is async."""
    result = socket.emit(event, data)
    if inspect.isawaitable(result):
        await result


@dataclass
class ListenerSet:
    """
    The exact callables bound to one socket.

    bind() and unbind() must be called in pairs; unbind() removes every
    listener bind() added, so a later bind() never delivers events twice.
    """

    socket: TransportSocket
    handlers: dict[str, Callable[..., Any]] = field(default_factory=dict)
    catch_all: Callable[..., Any] | None = None
    bound: bool = False

    def bind(self) -> None:
        if self.bound:
            return
        if self.catch_all is not None and hasattr(self.socket, "on_any"):
            self.socket.on_any(self.catch_all)
        for event, handler in self.handlers.items():
            self.socket.on(event, handler)
        self.bound = True
        logger.debug("Socket listeners bound", socket_events=sorted(self.handlers))

    def unbind(self) -> None:
        if not self.bound:
            return
        if self.catch_all is not None and hasattr(self.socket, "off_any"):
            try:
                self.socket.off_any(self.catch_all)
            except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: the socket may already be torn down by its owner
                logger.warning("Failed to remove catch-all listener", error=str(e))
        for event, handler in self.handlers.items():
            try:
                self.socket.off(event, handler)
            except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: the socket may already be torn down by its owner
                logger.warning("Failed to remove socket listener", socket_event=event, error=str(e))
        self.bound = False
        logger.debug("Socket listeners unbound", socket_events=sorted(self.handlers))
