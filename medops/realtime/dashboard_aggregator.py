"""
Dashboard aggregation for the doctor app.

Builds the today/week/waiting views from the clinic database. The helpers
are pure functions over plain patient and appointment dicts; the
DashboardAggregator only adds the data fetch and the encryption.

Dates are local calendar dates. A week runs Sunday through Saturday and both
ends are inclusive.
"""

import json
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Any

from ..schemas.realtime import DashboardSnapshot, PatientSummary, WaitingPatientEntry, WaitingPatientsPayload
from ..structured_logging.enhanced_logging_config import get_logger
from ..utils.coercion import coerce_flag
from ..utils.timestamps import parse_timestamp
from .collaborators import ClinicDataSource, Cipher

logger = get_logger(__name__)

WAITING_STATUS = "waiting"


def local_today() -> date:
    """Today's date in local time, not UTC."""
    return datetime.now().date()


def utc_timestamp() -> str:
    return datetime.now(UTC).isoformat()


def week_window(today: date) -> tuple[date, date]:
    """Return (Sunday, Saturday) of the week containing today."""
    # date.weekday(): Monday == 0, Sunday == 6
    start = today - timedelta(days=(today.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def _parse_date(value: Any) -> date | None:
    parsed = parse_timestamp(value)
    return parsed.date() if parsed else None


def is_edited(patient: dict[str, Any]) -> bool:
    """True when the patient was edited at the desk; accepts True or 1."""
    return coerce_flag(patient.get("has_been_edited", patient.get("hasBeenEdited")))


def select_waiting_patients(patients: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Patients in the waiting queue: status "waiting" and edited at the desk."""
    return [p for p in patients if p.get("status") == WAITING_STATUS and is_edited(p)]


def appointments_on(appointments: Iterable[dict[str, Any]], day: str) -> list[dict[str, Any]]:
    """Appointments whose date string equals day (YYYY-MM-DD)."""
    return [a for a in appointments if a.get("appointment_date") == day]


def _in_window(day: date | None, window: tuple[date, date]) -> bool:
    return day is not None and window[0] <= day <= window[1]


def count_week_patients(
    all_patients: Iterable[dict[str, Any]],
    appointments: Iterable[dict[str, Any]],
    window: tuple[date, date],
) -> int:
    """
    Count distinct patients seen this week.

    A patient counts when it has an appointment dated inside the window, or
    when it is waiting and its last update (created_at when updated_at is
    missing or unparsable) falls inside the window. Each patient id counts once.
    """
    patients = list(all_patients)
    appointment_ids = {a.get("patient_id") for a in appointments if _in_window(_parse_date(a.get("appointment_date")), window)}

    week_ids = {p.get("id") for p in patients if p.get("id") in appointment_ids}
    for patient in patients:
        if patient.get("status") != WAITING_STATUS:
            continue
        touched = parse_timestamp(patient.get("updated_at")) or parse_timestamp(patient.get("created_at"))
        if touched is not None and _in_window(touched.date(), window):
            week_ids.add(patient.get("id"))
    return len(week_ids)


def patient_age(patient: dict[str, Any], today: date) -> int | None:
    """Stored age, else the age derived from date_of_birth or year_of_birth."""
    age = patient.get("age")
    if age not in (None, ""):
        try:
            return int(age)
        except (TypeError, ValueError):
            pass

    birth = _parse_date(patient.get("date_of_birth"))
    if birth is not None:
        return today.year - birth.year - ((today.month, today.day) < (birth.month, birth.day))

    year = patient.get("year_of_birth")
    if year not in (None, ""):
        try:
            return today.year - int(year)
        except (TypeError, ValueError):
            return None
    return None


def _appointment_time(patient_id: Any, todays_appointments: list[dict[str, Any]]) -> str | None:
    for appointment in todays_appointments:
        if appointment.get("patient_id") == patient_id:
            return appointment.get("appointment_time") or None
    return None


def _summary(patient: dict[str, Any], todays_appointments: list[dict[str, Any]], today: date) -> PatientSummary:
    return PatientSummary(
        id=patient.get("id"),
        name=patient.get("name"),
        age=patient_age(patient, today),
        gender=patient.get("gender"),
        appointment_time=_appointment_time(patient.get("id"), todays_appointments),
        status=patient.get("status"),
    )


def build_dashboard_snapshot(
    today_patients: list[dict[str, Any]],
    waiting_patients: list[dict[str, Any]],
    todays_appointments: list[dict[str, Any]],
    week_patients_count: int,
    *,
    today: date,
    timestamp: str | None = None,
) -> DashboardSnapshot:
    return DashboardSnapshot(
        timestamp=timestamp or utc_timestamp(),
        today_patients_count=len(today_patients),
        week_patients_count=week_patients_count,
        waiting_patients_count=len(waiting_patients),
        waiting_patients_list=[_summary(p, todays_appointments, today) for p in waiting_patients],
        today_patients_list=[_summary(p, todays_appointments, today) for p in today_patients],
    )


def build_waiting_payload(
    waiting_patients: list[dict[str, Any]],
    todays_appointments: list[dict[str, Any]],
    *,
    timestamp: str | None = None,
) -> WaitingPatientsPayload:
    entries = [
        WaitingPatientEntry(
            id=p.get("id"),
            name=p.get("name"),
            appointment_time=_appointment_time(p.get("id"), todays_appointments),
        )
        for p in waiting_patients
    ]
    return WaitingPatientsPayload(
        timestamp=timestamp or utc_timestamp(),
        waiting_count=len(entries),
        waiting_patients=entries,
    )


@dataclass
class DashboardData:
    """Both views computed for one push."""

    today: date
    snapshot: DashboardSnapshot
    waiting: WaitingPatientsPayload


class DashboardAggregator:
    """Fetches patients and appointments and builds the dashboard views."""

    def __init__(self, data_source: ClinicDataSource, cipher: Cipher):
        self.data_source = data_source
        self.cipher = cipher

    async def collect(self, today: date | None = None) -> DashboardData:
        """
        Build the dashboard snapshot and the waiting payload.

        Args:
            today: Local date to aggregate for; defaults to local_today()
        """
        today = today or local_today()
        today_str = today.isoformat()

        today_patients = await self.data_source.async_get_today_patients(today_str)
        appointments = await self.data_source.async_get_appointments()
        all_patients = await self.data_source.async_get_all_patients()

        todays_appointments = appointments_on(appointments, today_str)
        waiting = select_waiting_patients(today_patients)
        week_count = count_week_patients(all_patients, appointments, week_window(today))

        timestamp = utc_timestamp()
        snapshot = build_dashboard_snapshot(
            today_patients, waiting, todays_appointments, week_count, today=today, timestamp=timestamp
        )
        waiting_payload = build_waiting_payload(waiting, todays_appointments, timestamp=timestamp)

        logger.info(
            "Dashboard data collected",
            today=today_str,
            today_patients=snapshot.today_patients_count,
            week_patients=snapshot.week_patients_count,
            waiting_patients=snapshot.waiting_patients_count,
        )
        return DashboardData(today=today, snapshot=snapshot, waiting=waiting_payload)

    def encrypt_snapshot(self, snapshot: DashboardSnapshot) -> str:
        return self.cipher.encrypt(json.dumps(snapshot.to_wire()))

    def encrypt_waiting(self, waiting: WaitingPatientsPayload) -> str:
        return self.cipher.encrypt(json.dumps(waiting.to_wire()))
