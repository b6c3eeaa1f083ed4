"""Local storage: the clinic SQLite database and per-patient backups."""

from .clinic_database import ClinicDatabase
from .patient_backup import PatientBackupManager

__all__ = ["ClinicDatabase", "PatientBackupManager"]
