"""
Tests for per-patient JSON backups.
"""

import json
import os
from pathlib import Path

import pytest

from medops.config.models import BackupConfig
from medops.error_types import ErrorMessages
from medops.persistence.patient_backup import PatientBackupManager
from medops.tests.fixtures.unit import make_patient


@pytest.fixture
def backup_dir(tmp_path):
    path = tmp_path / "usb"
    path.mkdir()
    return path


@pytest.fixture
def backup_manager(clinic_db, backup_dir):
    return PatientBackupManager(clinic_db, BackupConfig(path=str(backup_dir)))


def _write_backup(directory, name, payload, mtime):
    patients_dir = directory / "patients"
    patients_dir.mkdir(exist_ok=True)
    file_path = patients_dir / name
    file_path.write_text(json.dumps(payload), encoding="utf-8")
    os.utime(file_path, (mtime, mtime))
    return file_path


class TestBackupPath:
    def test_no_path_configured(self, clinic_db):
        manager = PatientBackupManager(clinic_db, BackupConfig(path=None))

        assert manager.resolve_backup_path() is None
        assert manager.backup_patient(make_patient("p1")) == {
            "success": False,
            "reason": ErrorMessages.NO_BACKUP_PATH,
        }

    def test_setting_overrides_config(self, clinic_db, backup_dir, tmp_path):
        manager = PatientBackupManager(clinic_db, BackupConfig(path=str(tmp_path)))
        clinic_db.update_settings({"backup_path": str(backup_dir)})

        assert manager.resolve_backup_path() == backup_dir

    def test_missing_directory_is_not_created(self, clinic_db, tmp_path):
        manager = PatientBackupManager(clinic_db, BackupConfig(path=str(tmp_path / "unplugged")))

        assert manager.resolve_backup_path() is None
        assert not (tmp_path / "unplugged").exists()

    def test_path_status(self, backup_manager, backup_dir):
        status = backup_manager.get_backup_path_status()

        assert status["configured"] is True
        assert status["accessible"] is True
        assert status["resolved_path"] == str(backup_dir)
        assert status["has_backup_files"] is False

    def test_path_status_unconfigured(self, clinic_db):
        status = PatientBackupManager(clinic_db, BackupConfig()).get_backup_path_status()

        assert status == {"configured": False, "accessible": False, "reason": ErrorMessages.NO_BACKUP_PATH}


class TestBackupWrite:
    def test_backup_file_contents(self, backup_manager, backup_dir):
        result = backup_manager.backup_patient(make_patient("p1"), backup_type="update")

        assert result["success"] is True
        data = json.loads(Path(result["file_path"]).read_text(encoding="utf-8"))
        assert data["id"] == "p1"
        assert data["backupVersion"] == "1.0"
        assert data["backupType"] == "update"
        assert "backupCreatedAt" in data
        assert result["file_path"].startswith(str(backup_dir / "patients" / "p1_"))

    def test_create_backup_has_no_type(self, backup_manager):
        result = backup_manager.backup_patient(make_patient("p1"))

        data = json.loads(Path(result["file_path"]).read_text(encoding="utf-8"))
        assert "backupType" not in data

    def test_database_hook_writes_backup(self, clinic_db, backup_manager, backup_dir):
        clinic_db.register_hook("after_patient_write", backup_manager.on_patient_written)

        clinic_db.add_patient(make_patient("p1"))

        files = backup_manager.get_backup_files()["files"]
        assert [f["patient_id"] for f in files] == ["p1"]
        assert (backup_dir / "patients").is_dir()

    @pytest.mark.parametrize("patient_id", ["../../escaped", "a/b", "a\\b", "..", ""])
    def test_unsafe_patient_id_is_refused(self, backup_manager, tmp_path, patient_id):
        result = backup_manager.backup_patient(make_patient(patient_id))

        assert result == {"success": False, "reason": ErrorMessages.INVALID_PATIENT_ID}
        assert list(tmp_path.rglob("*.json")) == []

    def test_id_with_dots_inside_is_allowed(self, backup_manager, backup_dir):
        result = backup_manager.backup_patient(make_patient("p.1"))

        assert result["success"] is True
        assert Path(result["file_path"]).parent == backup_dir / "patients"


class TestRestore:
    def test_listing_newest_first(self, backup_manager, backup_dir):
        _write_backup(backup_dir, "a_1.json", make_patient("a"), 1_000)
        _write_backup(backup_dir, "b_1.json", make_patient("b"), 2_000)

        files = backup_manager.get_backup_files()["files"]

        assert [f["filename"] for f in files] == ["b_1.json", "a_1.json"]

    def test_restore_single_file_creates_patient(self, backup_manager, backup_dir, clinic_db):
        path = _write_backup(
            backup_dir, "p1_1.json", {**make_patient("p1"), "backupVersion": "1.0", "backupCreatedAt": "x"}, 1_000
        )

        result = backup_manager.restore_patient_from_backup(path)

        assert result == {"success": True, "action": "created", "patient_id": "p1"}
        assert clinic_db.get_patient("p1")["name"] == "Patient p1"

    def test_restore_invalid_file(self, backup_manager, backup_dir):
        path = _write_backup(backup_dir, "p1_1.json", {"id": "p1"}, 1_000)

        result = backup_manager.restore_patient_from_backup(path)

        assert result == {"success": False, "reason": ErrorMessages.INVALID_BACKUP_FILE}

    def test_restore_missing_file(self, backup_manager, tmp_path):
        assert backup_manager.restore_patient_from_backup(tmp_path / "nope.json")["success"] is False

    def test_restore_all_uses_latest_file_per_patient(self, backup_manager, backup_dir, clinic_db):
        clinic_db.add_patient(make_patient("a", name="Old name"))
        _write_backup(backup_dir, "a_1.json", make_patient("a", name="Older backup"), 1_000)
        _write_backup(backup_dir, "a_2.json", make_patient("a", name="Latest backup"), 2_000)
        _write_backup(backup_dir, "b_1.json", make_patient("b"), 1_500)
        _write_backup(backup_dir, "c_1.json", {"id": "c"}, 1_500)

        result = backup_manager.restore_all_patients_from_backup()

        results = result["results"]
        assert result["success"] is True
        assert results["total"] == 4
        assert results["created"] == 1
        assert results["updated"] == 1
        assert results["failed"] == 1
        assert results["errors"] == [f"c: {ErrorMessages.INVALID_BACKUP_FILE}"]
        assert clinic_db.get_patient("a")["name"] == "Latest backup"

    def test_ids_containing_underscores_restore_separately(self, backup_manager, clinic_db):
        backup_manager.backup_patient(make_patient("first_time_1"))
        backup_manager.backup_patient(make_patient("first_time_2"))

        listed = {f["patient_id"] for f in backup_manager.get_backup_files()["files"]}
        result = backup_manager.restore_all_patients_from_backup()

        assert listed == {"first_time_1", "first_time_2"}
        assert result["results"]["created"] == 2
        assert result["results"]["failed"] == 0
        assert clinic_db.get_patient("first_time_1") is not None
        assert clinic_db.get_patient("first_time_2") is not None

    def test_restore_all_without_files(self, backup_manager):
        assert backup_manager.restore_all_patients_from_backup() == {
            "success": False,
            "reason": "No backup files found",
        }
