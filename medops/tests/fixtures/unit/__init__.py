"""
Unit-tier fixtures with strict mocking and in-memory fakes.
"""

from datetime import datetime
from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest

from medops.persistence.clinic_database import ClinicDatabase

from .mock_helpers import FakeClock, FakeSocket, strict_mocker

__all__ = ["FakeClock", "FakeSocket", "strict_mocker"]


@pytest.fixture
def fake_socket() -> FakeSocket:
    return FakeSocket()


@pytest.fixture
def mock_cipher() -> Mock:
    """Cipher whose ciphertext is the plaintext prefixed with 'enc:'."""
    cipher = Mock()
    cipher.encrypt = Mock(side_effect=lambda text: f"enc:{text}")
    cipher.decrypt = Mock(side_effect=lambda text: text.removeprefix("enc:"))
    return cipher


@pytest.fixture
def mock_data_source() -> Mock:
    """Data source with empty tables and fresh message ids."""
    data_source = Mock()
    data_source.async_get_today_patients = AsyncMock(return_value=[])
    data_source.async_get_appointments = AsyncMock(return_value=[])
    data_source.async_get_all_patients = AsyncMock(return_value=[])
    data_source.async_add_message = AsyncMock(return_value={"id": 1, "duplicate": False})
    data_source.async_add_patient = AsyncMock(return_value={"id": "p1"})
    return data_source


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock(datetime(2026, 10, 18, 10, 0, 0))


@pytest.fixture
def clinic_db(tmp_path: Any, fake_clock: FakeClock) -> ClinicDatabase:
    """Initialized database in a temporary file, driven by fake_clock."""
    database = ClinicDatabase(str(tmp_path / "clinic.db"), clock=fake_clock)
    database.initialize()
    return database


def make_patient(patient_id: str, **overrides: Any) -> dict[str, Any]:
    """Minimal valid patient record."""
    patient: dict[str, Any] = {
        "id": patient_id,
        "name": f"Patient {patient_id}",
        "phone": "0600000000",
        "year_of_birth": 1980,
        "status": "booked",
    }
    patient.update(overrides)
    return patient
