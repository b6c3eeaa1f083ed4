"""Realtime domain schemas: dashboard views and socket event payloads."""

from .dashboard import DashboardSnapshot, PatientSummary, WaitingPatientEntry, WaitingPatientsPayload
from .wire_events import ClientDescriptor, FileDataEnvelope, InboundMessage, PatientDataEnvelope, PresencePayload

__all__ = [
    "ClientDescriptor",
    "DashboardSnapshot",
    "FileDataEnvelope",
    "InboundMessage",
    "PatientDataEnvelope",
    "PatientSummary",
    "PresencePayload",
    "WaitingPatientEntry",
    "WaitingPatientsPayload",
]
