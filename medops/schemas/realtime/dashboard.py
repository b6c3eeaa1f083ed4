"""
Dashboard views pushed to the doctor app.

Field names are snake_case in Python and camelCase on the wire; serialize with
to_wire() so the doctor app receives the names it expects.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PatientSummary(BaseModel):
    """One patient row in the today or waiting list."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | int
    name: str | None = None
    age: int | None = None
    gender: str | None = None
    appointment_time: str | None = Field(None, alias="appointmentTime")
    status: str | None = None


class DashboardSnapshot(BaseModel):
    """Aggregate counts and lists, built fresh for every push."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: str = Field(..., description="ISO-8601 time the snapshot was built")
    today_patients_count: int = Field(..., ge=0, alias="todayPatientsCount")
    week_patients_count: int = Field(..., ge=0, alias="weekPatientsCount")
    waiting_patients_count: int = Field(..., ge=0, alias="waitingPatientsCount")
    waiting_patients_list: list[PatientSummary] = Field(default_factory=list, alias="waitingPatientsList")
    today_patients_list: list[PatientSummary] = Field(default_factory=list, alias="todayPatientsList")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class WaitingPatientEntry(BaseModel):
    """One entry of the waiting-patients event."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | int
    name: str | None = None
    appointment_time: str | None = Field(None, alias="appointmentTime")


class WaitingPatientsPayload(BaseModel):
    """Waiting queue as sent in the waiting-patients event."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: str
    waiting_count: int = Field(..., ge=0, alias="waitingCount")
    waiting_patients: list[WaitingPatientEntry] = Field(default_factory=list, alias="waitingPatients")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
