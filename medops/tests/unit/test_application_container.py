"""
Tests for ApplicationContainer wiring and lifecycle.
"""

import pytest

from medops.config.models import AppConfig, DatabaseConfig, LoggingConfig, SecurityConfig
from medops.container import ApplicationContainer
from medops.exceptions import DatabaseError


@pytest.fixture
def app_config(tmp_path):
    return AppConfig(
        database=DatabaseConfig(path=str(tmp_path / "container.db")),
        security=SecurityConfig(encryption_key="container-test-key"),
        logging=LoggingConfig(environment="unit_test", disable_logging=True),
    )


@pytest.fixture
def container(app_config, mocker):
    mocker.patch("medops.container.setup_enhanced_logging")
    yield ApplicationContainer(app_config)
    ApplicationContainer.reset_instance()


@pytest.mark.asyncio
async def test_initialize_wires_services(container):
    await container.initialize()

    assert container.is_initialized is True
    assert container.communication_manager.data_source is container.database
    assert container.communication_manager.cipher is container.cipher
    assert container.patient_queue_service.communication_manager is container.communication_manager
    assert container.database.get_settings()["language"] == "fr"
    assert container.status() == {
        "initialized": True,
        "connection": {"is_connected": False, "connected_clients": 0},
    }


@pytest.mark.asyncio
async def test_initialize_twice_keeps_services(container):
    await container.initialize()
    database = container.database

    await container.initialize()

    assert container.database is database


@pytest.mark.asyncio
async def test_backup_hook_registered(container, tmp_path):
    await container.initialize()
    backup_dir = tmp_path / "usb"
    backup_dir.mkdir()
    container.database.update_settings({"backup_path": str(backup_dir)})

    await container.database.async_add_patient({"id": "p1", "name": "Alice", "year_of_birth": 1990})

    assert len(list((backup_dir / "patients").glob("p1_*.json"))) == 1


@pytest.mark.asyncio
async def test_shutdown_detaches_and_closes(container, fake_socket):
    await container.initialize()
    container.communication_manager.attach(fake_socket)

    await container.shutdown()

    assert container.is_initialized is False
    assert fake_socket.listener_count() == 0
    assert fake_socket.disconnect_calls == 0
    with pytest.raises(DatabaseError):
        container.database.get_settings()


def test_singleton_access():
    ApplicationContainer.reset_instance()

    first = ApplicationContainer.get_instance()

    assert ApplicationContainer.get_instance() is first
    ApplicationContainer.reset_instance()
    assert ApplicationContainer.get_instance() is not first
    ApplicationContainer.reset_instance()


def test_status_before_initialize():
    assert ApplicationContainer().status() == {
        "initialized": False,
        "connection": {"is_connected": False, "connected_clients": 0},
    }
