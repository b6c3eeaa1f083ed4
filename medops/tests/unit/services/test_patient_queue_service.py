"""
Tests for PatientQueueService.
"""

from unittest.mock import AsyncMock, Mock

import pytest

from medops.error_types import ErrorType
from medops.persistence.clinic_database import ClinicDatabase
from medops.realtime.communication_manager import CommunicationManager
from medops.services.patient_queue_service import PatientQueueService


@pytest.fixture
def database():
    database = Mock()
    database.async_update_patient_status = AsyncMock(return_value={"changes": 1})
    return database


@pytest.fixture
def communication_manager():
    manager = Mock(spec=CommunicationManager)
    manager.is_connected = True
    manager.push_dashboard_on_connection = AsyncMock(return_value={"success": True, "data": {}})
    return manager


@pytest.fixture
def service(database, communication_manager):
    return PatientQueueService(database, communication_manager)


@pytest.mark.asyncio
async def test_update_status_pushes_dashboard_when_connected(service, database, communication_manager):
    result = await service.update_status("p1", "with_doctor")

    database.async_update_patient_status.assert_awaited_once_with("p1", "with_doctor")
    communication_manager.push_dashboard_on_connection.assert_awaited_once()
    assert result == {"success": True, "changes": 1, "dashboard": {"success": True, "data": {}}}


@pytest.mark.asyncio
async def test_update_status_without_doctor_skips_push(service, communication_manager):
    communication_manager.is_connected = False

    result = await service.update_status("p1", "done")

    communication_manager.push_dashboard_on_connection.assert_not_awaited()
    assert result["success"] is True
    assert result["dashboard"] is None


@pytest.mark.asyncio
async def test_mark_waiting_flags_record_as_edited(service, database):
    await service.mark_waiting("p1")

    database.async_update_patient_status.assert_awaited_once_with("p1", "waiting", has_been_edited=True)


@pytest.mark.asyncio
async def test_unknown_patient(service, database, communication_manager):
    database.async_update_patient_status.return_value = {"changes": 0}

    result = await service.update_status("ghost", "waiting")

    assert result["success"] is False
    assert result["error_type"] == ErrorType.RESOURCE_NOT_FOUND.value
    assert result["patient_id"] == "ghost"
    communication_manager.push_dashboard_on_connection.assert_not_awaited()


@pytest.mark.asyncio
async def test_mark_waiting_end_to_end(tmp_path, mock_cipher, fake_socket):
    """A patient marked waiting shows up in the dashboard pushed to the doctor."""
    clinic_db = ClinicDatabase(str(tmp_path / "queue.db"))
    clinic_db.initialize()
    clinic_db.add_patient({"id": "p1", "name": "Alice", "year_of_birth": 1990})
    manager = CommunicationManager(clinic_db, mock_cipher)
    fake_socket.connected = True
    manager.attach(fake_socket)
    manager.state.apply(remote_present=True)

    result = await PatientQueueService(clinic_db, manager).mark_waiting("p1")

    assert result["dashboard"]["success"] is True
    assert result["dashboard"]["data"]["waitingPatientsCount"] == 1
    assert result["dashboard"]["data"]["waitingPatientsList"][0]["name"] == "Alice"
