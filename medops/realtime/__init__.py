"""Realtime link to the doctor app: connection state, dashboard push and inbound events."""

from .communication_manager import CommunicationManager
from .connection_state import ConnectionPhase, ConnectionState, ConnectionTransition
from .dashboard_aggregator import DashboardAggregator, DashboardData
from .inbound_handlers import InboundEventRouter, guard_listener

__all__ = [
    "CommunicationManager",
    "ConnectionPhase",
    "ConnectionState",
    "ConnectionTransition",
    "DashboardAggregator",
    "DashboardData",
    "InboundEventRouter",
    "guard_listener",
]
