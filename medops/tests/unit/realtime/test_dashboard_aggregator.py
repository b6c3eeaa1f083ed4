"""
Tests for dashboard aggregation helpers and DashboardAggregator.
"""

import json
from datetime import date, datetime

import pytest

from medops.realtime.dashboard_aggregator import (
    DashboardAggregator,
    appointments_on,
    build_waiting_payload,
    count_week_patients,
    is_edited,
    parse_timestamp,
    patient_age,
    select_waiting_patients,
    week_window,
)

SUNDAY = date(2026, 10, 18)
WEEK = (date(2026, 10, 18), date(2026, 10, 24))


class TestWeekWindow:
    @pytest.mark.parametrize(
        "today",
        [date(2026, 10, 18), date(2026, 10, 21), date(2026, 10, 24)],
    )
    def test_week_runs_sunday_to_saturday(self, today):
        assert week_window(today) == WEEK

    def test_monday_belongs_to_previous_sunday(self):
        assert week_window(date(2026, 10, 19))[0] == SUNDAY


class TestParseTimestamp:
    def test_space_separator(self):
        assert parse_timestamp("2026-10-18 09:30:00") == datetime(2026, 10, 18, 9, 30)

    def test_t_separator(self):
        assert parse_timestamp("2026-10-18T09:30:00") == datetime(2026, 10, 18, 9, 30)

    def test_zulu_suffix_becomes_local_naive(self):
        parsed = parse_timestamp("2026-10-18T09:30:00Z")

        assert isinstance(parsed, datetime)
        assert parsed.tzinfo is None

    @pytest.mark.parametrize("value", [None, "", "not a date", 12345])
    def test_unparsable_values(self, value):
        assert parse_timestamp(value) is None


class TestEditedFlag:
    @pytest.mark.parametrize(
        ("patient", "expected"),
        [
            ({"hasBeenEdited": 1}, True),
            ({"hasBeenEdited": True}, True),
            ({"hasBeenEdited": 0}, False),
            ({"has_been_edited": 1}, True),
            ({"has_been_edited": False}, False),
            ({}, False),
        ],
    )
    def test_is_edited(self, patient, expected):
        assert is_edited(patient) is expected

    def test_waiting_selection_treats_one_and_true_alike(self):
        patients = [
            {"id": "a", "status": "waiting", "hasBeenEdited": 1},
            {"id": "b", "status": "waiting", "hasBeenEdited": True},
            {"id": "c", "status": "waiting", "hasBeenEdited": 0},
            {"id": "d", "status": "booked", "hasBeenEdited": True},
        ]

        assert [p["id"] for p in select_waiting_patients(patients)] == ["a", "b"]


class TestWeekCount:
    def test_patient_with_appointment_and_waiting_counts_once(self):
        patients = [{"id": "P", "status": "waiting", "updated_at": "2026-10-20T10:00:00"}]
        appointments = [{"patient_id": "P", "appointment_date": "2026-10-21"}]

        assert count_week_patients(patients, appointments, WEEK) == 1

    def test_created_at_used_when_updated_at_unparsable(self):
        patients = [{"id": "P", "status": "waiting", "updated_at": "garbage", "created_at": "2026-10-19 08:00:00"}]

        assert count_week_patients(patients, [], WEEK) == 1

    def test_waiting_outside_window_not_counted(self):
        patients = [{"id": "P", "status": "waiting", "updated_at": "2026-10-10T10:00:00"}]

        assert count_week_patients(patients, [], WEEK) == 0

    def test_non_waiting_without_appointment_not_counted(self):
        patients = [{"id": "P", "status": "done", "updated_at": "2026-10-20T10:00:00"}]

        assert count_week_patients(patients, [], WEEK) == 0

    def test_appointment_window_edges_inclusive(self):
        patients = [{"id": "A", "status": "booked"}, {"id": "B", "status": "booked"}, {"id": "C", "status": "booked"}]
        appointments = [
            {"patient_id": "A", "appointment_date": "2026-10-18"},
            {"patient_id": "B", "appointment_date": "2026-10-24"},
            {"patient_id": "C", "appointment_date": "2026-10-25"},
        ]

        assert count_week_patients(patients, appointments, WEEK) == 2

    def test_appointments_of_unknown_patients_ignored(self):
        appointments = [{"patient_id": "ghost", "appointment_date": "2026-10-20"}]

        assert count_week_patients([], appointments, WEEK) == 0


class TestPatientAge:
    def test_stored_age_wins(self):
        assert patient_age({"age": "42", "year_of_birth": 1900}, SUNDAY) == 42

    def test_birthday_not_yet_reached(self):
        assert patient_age({"date_of_birth": "1990-10-19"}, SUNDAY) == 35

    def test_birthday_today(self):
        assert patient_age({"date_of_birth": "1990-10-18"}, SUNDAY) == 36

    def test_year_of_birth_fallback(self):
        assert patient_age({"year_of_birth": 2000}, SUNDAY) == 26

    def test_unknown_age(self):
        assert patient_age({}, SUNDAY) is None


def test_appointments_on_filters_by_date():
    appointments = [
        {"patient_id": "a", "appointment_date": "2026-10-18"},
        {"patient_id": "b", "appointment_date": "2026-10-19"},
    ]

    assert appointments_on(appointments, "2026-10-18") == [appointments[0]]


def test_waiting_payload_uses_todays_appointment_time():
    waiting = [{"id": "a", "name": "Alice"}, {"id": "b", "name": "Bob"}]
    todays = [{"patient_id": "a", "appointment_time": "09:30"}]

    payload = build_waiting_payload(waiting, todays, timestamp="t").to_wire()

    assert payload == {
        "timestamp": "t",
        "waitingCount": 2,
        "waitingPatients": [
            {"id": "a", "name": "Alice", "appointmentTime": "09:30"},
            {"id": "b", "name": "Bob", "appointmentTime": None},
        ],
    }


class TestDashboardAggregator:
    @pytest.fixture
    def populated_source(self, mock_data_source):
        mock_data_source.async_get_today_patients.return_value = [
            {"id": "a", "name": "Alice", "status": "waiting", "has_been_edited": True, "year_of_birth": 1980},
            {"id": "b", "name": "Bob", "status": "scheduled", "has_been_edited": False, "gender": "M"},
        ]
        mock_data_source.async_get_appointments.return_value = [
            {"patient_id": "b", "appointment_date": "2026-10-18", "appointment_time": "11:00"},
            {"patient_id": "a", "appointment_date": "2026-10-12", "appointment_time": "08:00"},
        ]
        mock_data_source.async_get_all_patients.return_value = [
            {"id": "a", "status": "waiting", "updated_at": "2026-10-18T08:00:00"},
            {"id": "b", "status": "scheduled", "updated_at": "2026-10-01T08:00:00"},
        ]
        return mock_data_source

    @pytest.mark.asyncio
    async def test_collect_builds_both_views(self, populated_source, mock_cipher):
        aggregator = DashboardAggregator(populated_source, mock_cipher)

        data = await aggregator.collect(SUNDAY)

        populated_source.async_get_today_patients.assert_awaited_once_with("2026-10-18")
        snapshot = data.snapshot.to_wire()
        assert snapshot["todayPatientsCount"] == 2
        assert snapshot["weekPatientsCount"] == 2
        assert snapshot["waitingPatientsCount"] == 1
        assert snapshot["waitingPatientsList"][0]["age"] == 46
        assert snapshot["todayPatientsList"][1]["appointmentTime"] == "11:00"
        assert data.waiting.waiting_count == 1
        assert data.snapshot.timestamp == data.waiting.timestamp

    @pytest.mark.asyncio
    async def test_encrypt_snapshot_serializes_wire_names(self, populated_source, mock_cipher):
        aggregator = DashboardAggregator(populated_source, mock_cipher)
        data = await aggregator.collect(SUNDAY)

        ciphertext = aggregator.encrypt_snapshot(data.snapshot)

        assert json.loads(ciphertext.removeprefix("enc:"))["todayPatientsCount"] == 2
        mock_cipher.encrypt.assert_called_once()

    @pytest.mark.asyncio
    async def test_empty_clinic(self, mock_data_source, mock_cipher):
        data = await DashboardAggregator(mock_data_source, mock_cipher).collect(SUNDAY)

        assert data.snapshot.today_patients_count == 0
        assert data.snapshot.week_patients_count == 0
        assert data.waiting.waiting_patients == []
