"""
Per-patient JSON backups.

Every patient write is mirrored into <backup>/patients/<id>_<timestamp>.json
so the front desk can rebuild its patient list from a removable drive.
"""

import json
import re
from datetime import datetime
from pathlib import Path
from typing import Any

from ..config.models import BackupConfig
from ..error_types import ErrorMessages
from ..structured_logging.enhanced_logging_config import get_logger
from .clinic_database import ClinicDatabase

logger = get_logger(__name__)

PATIENTS_DIR = "patients"
_TIMESTAMP_UNSAFE = re.compile(r"[:.]")
_PATH_UNSAFE = re.compile(r"[/\\\x00]")


def _is_safe_file_id(patient_id: str) -> bool:
    """Ids become file names; separators and dot-only names are refused."""
    return bool(patient_id) and not _PATH_UNSAFE.search(patient_id) and patient_id.strip(".") != ""


def patient_id_from_filename(file_path: Path) -> str:
    """Recover the patient id from <id>_<timestamp>.json; ids may themselves contain '_'."""
    return file_path.stem.rsplit("_", 1)[0]


class PatientBackupManager:
    """Writes, lists and restores per-patient backup files."""

    def __init__(self, database: ClinicDatabase, config: BackupConfig):
        self.database = database
        self.config = config

    def resolve_backup_path(self) -> Path | None:
        """
        Return the backup directory, or None when none is usable.

        The backup_path setting wins over the configured fallback. The
        directory must already exist; a missing drive is not created.
        """
        configured = self.database.get_settings().get("backup_path") or self.config.path
        if not configured:
            return None
        path = Path(configured)
        if path.is_dir():
            return path
        logger.warning("Backup path not accessible", backup_path=str(path))
        return None

    def backup_patient(self, patient: dict[str, Any], backup_type: str = "create") -> dict[str, Any]:
        """
        Write one backup file for a patient.

        Args:
            patient: Patient record as written to the database
            backup_type: "create" or "update"

        Returns:
            {"success": True, "file_path": ...}, or a failure dict with a reason or error
        """
        backup_path = self.resolve_backup_path()
        if backup_path is None:
            logger.info("No backup path configured, skipping patient backup", patient_id=patient.get("id"))
            return {"success": False, "reason": ErrorMessages.NO_BACKUP_PATH}

        patient_id = str(patient.get("id") or "")
        if not _is_safe_file_id(patient_id):
            logger.warning("Refusing to back up patient with unsafe id", patient_id=patient_id)
            return {"success": False, "reason": ErrorMessages.INVALID_PATIENT_ID}

        backup_dir = backup_path / PATIENTS_DIR
        now = datetime.now()
        file_path = backup_dir / f"{patient_id}_{_TIMESTAMP_UNSAFE.sub('-', now.isoformat())}.json"
        if file_path.resolve().parent != backup_dir.resolve():
            logger.warning("Backup file would escape the backup directory", patient_id=patient_id)
            return {"success": False, "reason": ErrorMessages.INVALID_PATIENT_ID}

        payload = dict(patient)
        payload["backupCreatedAt"] = now.isoformat()
        payload["backupVersion"] = self.config.version
        if backup_type != "create":
            payload["backupType"] = backup_type

        try:
            backup_dir.mkdir(parents=True, exist_ok=True)
            file_path.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")
        except OSError as e:
            logger.error("Error backing up patient", patient_id=patient.get("id"), error=str(e))
            return {"success": False, "error": str(e)}

        logger.info("Patient backup written", patient_id=patient.get("id"), backup_type=backup_type)
        return {"success": True, "file_path": str(file_path)}

    def on_patient_written(self, patient: dict[str, Any], write_type: str) -> None:
        """Database hook: mirror a patient write into a backup file."""
        result = self.backup_patient(patient, backup_type=write_type)
        if not result["success"]:
            logger.debug("Patient backup skipped", patient_id=patient.get("id"), result=result)

    def get_backup_files(self) -> dict[str, Any]:
        """List backup files, most recently modified first."""
        backup_path = self.resolve_backup_path()
        if backup_path is None:
            return {"success": False, "reason": ErrorMessages.NO_BACKUP_PATH}

        backup_dir = backup_path / PATIENTS_DIR
        if not backup_dir.is_dir():
            return {"success": True, "files": []}

        files = []
        for file_path in backup_dir.glob("*.json"):
            stats = file_path.stat()
            files.append(
                {
                    "filename": file_path.name,
                    "file_path": str(file_path),
                    "size": stats.st_size,
                    "modified": stats.st_mtime,
                    "patient_id": patient_id_from_filename(file_path),
                }
            )
        files.sort(key=lambda item: item["modified"], reverse=True)
        return {"success": True, "files": files}

    def restore_patient_from_backup(self, backup_file_path: str | Path) -> dict[str, Any]:
        """Create or update a patient from one backup file."""
        path = Path(backup_file_path)
        if not path.is_file():
            return {"success": False, "reason": "Backup file not found"}

        try:
            backup_data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Error reading backup file", file_path=str(path), error=str(e))
            return {"success": False, "error": str(e)}

        if not isinstance(backup_data, dict) or not backup_data.get("id") or not backup_data.get("name"):
            return {"success": False, "reason": ErrorMessages.INVALID_BACKUP_FILE}

        patient = {key: value for key, value in backup_data.items() if not key.startswith("backup")}
        if self.database.get_patient(patient["id"]):
            self.database.update_patient(patient)
            action = "updated"
        else:
            self.database.add_patient(patient)
            action = "created"

        logger.info("Patient restored from backup", patient_id=patient["id"], action=action)
        return {"success": True, "action": action, "patient_id": patient["id"]}

    def restore_all_patients_from_backup(self) -> dict[str, Any]:
        """Restore the most recent backup of every patient."""
        listing = self.get_backup_files()
        if not listing["success"]:
            return listing
        if not listing["files"]:
            return {"success": False, "reason": "No backup files found"}

        latest: dict[str, dict[str, Any]] = {}
        for entry in listing["files"]:
            current = latest.get(entry["patient_id"])
            if current is None or entry["modified"] > current["modified"]:
                latest[entry["patient_id"]] = entry

        results: dict[str, Any] = {"total": len(listing["files"]), "created": 0, "updated": 0, "failed": 0, "errors": []}
        for patient_id, entry in latest.items():
            try:
                result = self.restore_patient_from_backup(entry["file_path"])
            except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: one bad file must not stop the restore
                result = {"success": False, "error": str(e)}

            if result["success"]:
                results[result["action"]] += 1
            else:
                results["failed"] += 1
                results["errors"].append(f"{patient_id}: {result.get('reason') or result.get('error')}")

        logger.info(
            "Patients restored from backup",
            created=results["created"],
            updated=results["updated"],
            failed=results["failed"],
        )
        return {"success": True, "results": results}

    def get_backup_path_status(self) -> dict[str, Any]:
        """Describe whether the configured backup path is usable."""
        configured = self.database.get_settings().get("backup_path") or self.config.path
        if not configured:
            return {"configured": False, "accessible": False, "reason": ErrorMessages.NO_BACKUP_PATH}

        resolved = self.resolve_backup_path()
        if resolved is None:
            return {
                "configured": True,
                "accessible": False,
                "original_path": configured,
                "reason": "Backup drive not accessible",
            }

        backup_dir = resolved / PATIENTS_DIR
        has_backup_files = backup_dir.is_dir() and any(backup_dir.glob("*.json"))
        return {
            "configured": True,
            "accessible": True,
            "original_path": configured,
            "resolved_path": str(resolved),
            "has_backup_files": has_backup_files,
        }
