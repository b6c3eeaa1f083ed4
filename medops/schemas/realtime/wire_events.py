"""
Pydantic schemas for socket events.

Outbound: clientAppConnect identity, patient-data envelope and file:data.
Inbound: doctorPresence and new-message.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ClientDescriptor(BaseModel):
    """Identity announced in the clientAppConnect event."""

    model_config = ConfigDict(populate_by_name=True)

    client_type: str = Field(..., alias="clientType")
    client_id: str = Field(..., alias="clientId")
    version: str
    timestamp: str


class PatientDataEnvelope(BaseModel):
    """Patient record forwarded to the doctor, optionally with attached files."""

    model_config = ConfigDict(populate_by_name=True)

    patient_data: dict[str, Any] = Field(..., alias="patientData")
    files: list[Any] | None = None
    patient_id: str | None = Field(None, alias="patientId")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class FileDataEnvelope(BaseModel):
    """Plaintext envelope of the file:data event."""

    model_config = ConfigDict(populate_by_name=True)

    patient_id: str = Field(..., alias="patientId")
    file_name: str = Field(..., alias="fileName")
    file_data: str = Field(..., alias="fileData", description="Base64 file content")
    file_size: int = Field(..., ge=0, alias="fileSize")


class PresencePayload(BaseModel):
    """Payload of doctorPresence; online is coerced to a bool."""

    model_config = ConfigDict(extra="ignore")

    online: bool = False

    @classmethod
    def from_event(cls, data: Any) -> "PresencePayload":
        if isinstance(data, dict):
            return cls(online=bool(data.get("online")))
        return cls(online=False)


class InboundMessage(BaseModel):
    """Message received in new-message, already decrypted by the doctor side."""

    model_config = ConfigDict(extra="allow")

    sender: str
    message: str
