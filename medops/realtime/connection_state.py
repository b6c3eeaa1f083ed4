"""
Connection state for the doctor link.

Two inputs are tracked: whether the transport socket is connected and whether
the doctor last reported being online. The effective connection is always
derived from both, never stored.
"""

from dataclasses import dataclass
from enum import Enum


class ConnectionPhase(Enum):
    """Combined phase of the two connection inputs."""

    DISCONNECTED = "disconnected"
    TRANSPORT_ONLY = "transport_only"
    PRESENCE_ONLY = "presence_only"
    LIVE = "live"

    @classmethod
    def of(cls, transport_connected: bool, remote_present: bool) -> "ConnectionPhase":
        if transport_connected and remote_present:
            return cls.LIVE
        if transport_connected:
            return cls.TRANSPORT_ONLY
        if remote_present:
            return cls.PRESENCE_ONLY
        return cls.DISCONNECTED


@dataclass(frozen=True)
class ConnectionTransition:
    """Result of applying new inputs to a ConnectionState."""

    previous: ConnectionPhase
    current: ConnectionPhase

    @property
    def changed(self) -> bool:
        """True when the effective connection flipped."""
        return (self.previous is ConnectionPhase.LIVE) != (self.current is ConnectionPhase.LIVE)

    @property
    def entered_live(self) -> bool:
        return self.previous is not ConnectionPhase.LIVE and self.current is ConnectionPhase.LIVE


@dataclass
class ConnectionState:
    transport_connected: bool = False
    remote_present: bool = False

    @property
    def effective_connected(self) -> bool:
        return self.transport_connected and self.remote_present

    @property
    def phase(self) -> ConnectionPhase:
        return ConnectionPhase.of(self.transport_connected, self.remote_present)

    def apply(
        self, *, transport_connected: bool | None = None, remote_present: bool | None = None
    ) -> ConnectionTransition:
        """Update either input and report the phase change."""
        previous = self.phase
        if transport_connected is not None:
            self.transport_connected = bool(transport_connected)
        if remote_present is not None:
            self.remote_present = bool(remote_present)
        return ConnectionTransition(previous, self.phase)

    def reset(self) -> ConnectionTransition:
        return self.apply(transport_connected=False, remote_present=False)
