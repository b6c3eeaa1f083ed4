"""
SQLite data access for patients, appointments, messages and settings.

All methods are synchronous and serialized by a lock; each has an async_*
twin that runs it in a worker thread so the event loop never blocks on disk.
"""

import asyncio
import json
import sqlite3
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any

from ..exceptions import DatabaseError, ErrorContext
from ..structured_logging.enhanced_logging_config import get_logger
from ..utils.coercion import coerce_flag
from ..utils.timestamps import to_local_iso

logger = get_logger(__name__)

PATIENT_COLUMNS = (
    "id",
    "name",
    "phone",
    "email",
    "urgent_contact",
    "convention",
    "insurances",
    "reason_for_visit",
    "medical_history",
    "year_of_birth",
    "date_of_birth",
    "consultation_price",
    "status",
    "created_at",
    "updated_at",
    "has_been_edited",
)

# Columns added after the first release; created on startup when missing
PATIENT_MIGRATIONS = {
    "date_of_birth": "TEXT",
    "updated_at": "TEXT",
    "created_at": "TEXT",
    "consultation_price": "TEXT",
    "email": "TEXT",
    "convention": "TEXT",
    "insurances": "TEXT",
    "has_been_edited": "INTEGER DEFAULT 0",
}

APPOINTMENT_MIGRATIONS = {
    "appointment_reason": "TEXT",
    "appointment_context": "TEXT",
}

TODAY_APPOINTMENT_STATUSES = ("scheduled", "missed", "waiting", "walk_in_notified")
WALK_IN_STATUSES = ("waiting", "with_doctor")

DEFAULT_SETTINGS = {
    "language": "fr",
    "communication_mode": "wifi",
    "doctor_ip": "",
    "backup_path": "",
}

HOOK_EVENTS = ("after_patient_write",)


def _to_db_value(value: Any) -> Any:
    """Serialize containers to JSON so they can be bound as parameters."""
    if isinstance(value, dict | list | tuple):
        return json.dumps(value)
    return value


def _year_from_patient(patient: dict[str, Any]) -> Any:
    date_of_birth = patient.get("date_of_birth")
    if date_of_birth:
        try:
            return int(str(date_of_birth).split("-")[0])
        except ValueError:
            logger.warning("Unparsable date_of_birth, using year_of_birth", patient_id=patient.get("id"))
    return patient.get("year_of_birth")


def _edited_flag(patient: dict[str, Any]) -> int:
    value = patient.get("has_been_edited", patient.get("hasBeenEdited"))
    return 1 if coerce_flag(value) else 0


def _patient_from_row(row: sqlite3.Row) -> dict[str, Any]:
    patient = dict(row)
    patient["has_been_edited"] = coerce_flag(patient.get("has_been_edited"))
    return patient


class ClinicDatabase:
    """
    Front-desk SQLite database.

    Hooks registered for "after_patient_write" receive (patient, write_type)
    after every patient insert ("create") or full update ("update").
    """

    def __init__(
        self,
        db_path: str,
        *,
        duplicate_window_seconds: int = 5,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Initialize the database handle.

        Args:
            db_path: Path to the SQLite database file
            duplicate_window_seconds: Window in which an identical message is a duplicate
            clock: Returns the current local time; defaults to datetime.now
        """
        if not db_path or not isinstance(db_path, str):
            raise DatabaseError("ClinicDatabase requires a valid db_path", operation="init")
        self.db_path = db_path
        self.duplicate_window_seconds = duplicate_window_seconds
        self._clock = clock or datetime.now
        self._lock = threading.Lock()
        self._hooks: dict[str, list[Callable[..., Any]]] = {event: [] for event in HOOK_EVENTS}
        self._closed = False

    # --- Connection management ---

    @contextmanager
    def _connection(self, operation: str, table: str | None = None) -> Iterator[sqlite3.Connection]:
        """Open a short-lived connection under the lock and wrap sqlite errors."""
        if self._closed:
            raise DatabaseError("Database is closed", operation=operation, table=table)
        with self._lock:
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row
            try:
                yield conn
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise DatabaseError(
                    f"Database error during {operation}: {e}",
                    context=ErrorContext(operation=operation),
                    operation=operation,
                    table=table,
                    details={"error_type": type(e).__name__},
                ) from e
            finally:
                conn.close()

    def _now(self) -> str:
        return self._clock().isoformat(timespec="seconds")

    def _today(self) -> str:
        return self._clock().date().isoformat()

    # --- Hooks ---

    def register_hook(self, event: str, callback: Callable[..., Any]) -> None:
        """Register a callback for a database event."""
        if event not in self._hooks:
            raise ValueError(f"Unknown database hook event: {event}")
        self._hooks[event].append(callback)

    def _run_hooks(self, event: str, *args: Any) -> None:
        for callback in self._hooks.get(event, []):
            try:
                callback(*args)
            except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: a hook failure must not undo a committed write
                logger.error("Database hook failed", hook_event=event, error=str(e), error_type=type(e).__name__)

    # --- Schema ---

    def initialize(self) -> None:
        """Create tables, indexes and default settings, migrating older schemas."""
        with self._connection("initialize") as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS patients (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    phone TEXT,
                    email TEXT,
                    urgent_contact TEXT,
                    convention TEXT,
                    insurances TEXT,
                    reason_for_visit TEXT,
                    medical_history TEXT,
                    year_of_birth INTEGER NOT NULL,
                    date_of_birth TEXT,
                    consultation_price TEXT,
                    status TEXT DEFAULT 'waiting',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    has_been_edited INTEGER DEFAULT 0
                )
            """)
            self._add_missing_columns(conn, "patients", PATIENT_MIGRATIONS)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS appointments (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    patient_id TEXT NOT NULL,
                    patient_name TEXT NOT NULL,
                    appointment_date TEXT NOT NULL,
                    appointment_time TEXT NOT NULL,
                    reason TEXT,
                    status TEXT DEFAULT 'scheduled',
                    created_at TEXT NOT NULL,
                    appointment_reason TEXT,
                    appointment_context TEXT,
                    FOREIGN KEY (patient_id) REFERENCES patients (id)
                )
            """)
            self._add_missing_columns(conn, "appointments", APPOINTMENT_MIGRATIONS)
            conn.execute("""
                UPDATE appointments
                SET appointment_context = appointment_reason
                WHERE (appointment_context IS NULL OR appointment_context = '')
                  AND appointment_reason IS NOT NULL AND appointment_reason != ''
                  AND status = 'scheduled'
            """)
            conn.execute("""
                CREATE UNIQUE INDEX IF NOT EXISTS idx_appointments_unique
                ON appointments (patient_id, appointment_date, appointment_time)
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS settings (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    key TEXT UNIQUE NOT NULL,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS messages (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    sender TEXT NOT NULL,
                    message TEXT NOT NULL,
                    timestamp TEXT NOT NULL,
                    is_read INTEGER DEFAULT 0
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_messages_sender_message
                ON messages (sender, message, timestamp)
            """)

            now = self._now()
            conn.executemany(
                "INSERT OR IGNORE INTO settings (key, value, updated_at) VALUES (?, ?, ?)",
                [(key, value, now) for key, value in DEFAULT_SETTINGS.items()],
            )

        logger.info("Clinic database initialized", db_path=self.db_path)

    @staticmethod
    def _add_missing_columns(conn: sqlite3.Connection, table: str, migrations: dict[str, str]) -> None:
        existing = {row["name"] for row in conn.execute(f"PRAGMA table_info({table})")}  # nosec B608
        for column, column_type in migrations.items():
            if column not in existing:
                conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {column_type}")  # nosec B608
                logger.info("Added missing column", table=table, column=column)

    # --- Patients ---

    def get_all_patients(self) -> list[dict[str, Any]]:
        """Return all patients, newest first."""
        with self._connection("get_all_patients", "patients") as conn:
            rows = conn.execute("SELECT * FROM patients ORDER BY created_at DESC").fetchall()
        return [_patient_from_row(row) for row in rows]

    def get_today_patients(self, today: str | None = None) -> list[dict[str, Any]]:
        """
        Return today's patients.

        A patient belongs to today when it has an appointment dated today in an
        active status, or when it is a walk-in (no appointment at all) in a
        waiting status that was created or updated today.

        Args:
            today: Local date as YYYY-MM-DD; defaults to the clock's date
        """
        today = today or self._today()
        appointment_marks = ", ".join("?" for _ in TODAY_APPOINTMENT_STATUSES)
        walk_in_marks = ", ".join("?" for _ in WALK_IN_STATUSES)
        query = f"""
            SELECT DISTINCT p.*
            FROM patients p
            WHERE EXISTS (
                SELECT 1 FROM appointments a
                WHERE a.patient_id = p.id
                  AND a.appointment_date = ?
                  AND a.status IN ({appointment_marks})
            )
            OR (
                NOT EXISTS (SELECT 1 FROM appointments ax WHERE ax.patient_id = p.id)
                AND p.status IN ({walk_in_marks})
                AND (date(p.updated_at) = ? OR date(p.created_at) = ?)
            )
            ORDER BY p.created_at DESC
        """  # nosec B608
        params = (today, *TODAY_APPOINTMENT_STATUSES, *WALK_IN_STATUSES, today, today)
        with self._connection("get_today_patients", "patients") as conn:
            rows = conn.execute(query, params).fetchall()
        logger.debug("Fetched today's patients", today=today, count=len(rows))
        return [_patient_from_row(row) for row in rows]

    def get_patient(self, patient_id: str) -> dict[str, Any] | None:
        with self._connection("get_patient", "patients") as conn:
            row = conn.execute("SELECT * FROM patients WHERE id = ?", (patient_id,)).fetchone()
        return _patient_from_row(row) if row else None

    def add_patient(self, patient: dict[str, Any]) -> dict[str, Any]:
        """
        Insert a patient record.

        The year of birth is taken from date_of_birth when present. Status
        defaults to "booked" and timestamps default to now. Supplied timestamps
        are stored as naive local time so day filters match the clinic's day.

        Returns:
            {"id": patient id}
        """
        now = self._now()
        values = (
            patient.get("id"),
            patient.get("name"),
            patient.get("phone"),
            patient.get("email"),
            patient.get("urgent_contact"),
            patient.get("convention"),
            _to_db_value(patient.get("insurances")),
            patient.get("reason_for_visit"),
            patient.get("medical_history"),
            _year_from_patient(patient),
            patient.get("date_of_birth") or None,
            patient.get("consultation_price") or None,
            patient.get("status") or "booked",
            to_local_iso(patient.get("created_at")) or now,
            to_local_iso(patient.get("updated_at")) or now,
            _edited_flag(patient),
        )
        placeholders = ", ".join("?" for _ in PATIENT_COLUMNS)
        with self._connection("add_patient", "patients") as conn:
            conn.execute(f"INSERT INTO patients ({', '.join(PATIENT_COLUMNS)}) VALUES ({placeholders})", values)  # nosec B608

        logger.info("Patient added", patient_id=patient.get("id"))
        self._run_hooks("after_patient_write", patient, "create")
        return {"id": patient.get("id")}

    def update_patient(self, patient: dict[str, Any]) -> dict[str, Any]:
        """Replace a patient's fields; returns {"changes": rows affected}."""
        values = (
            patient.get("name"),
            patient.get("phone"),
            patient.get("email"),
            patient.get("urgent_contact"),
            patient.get("convention"),
            _to_db_value(patient.get("insurances")),
            patient.get("reason_for_visit"),
            patient.get("medical_history"),
            _year_from_patient(patient),
            patient.get("date_of_birth") or None,
            patient.get("consultation_price") or None,
            patient.get("status") or "waiting",
            to_local_iso(patient.get("updated_at")) or self._now(),
            _edited_flag(patient),
            patient.get("id"),
        )
        with self._connection("update_patient", "patients") as conn:
            cursor = conn.execute(
                """
                UPDATE patients SET
                    name = ?, phone = ?, email = ?, urgent_contact = ?, convention = ?,
                    insurances = ?, reason_for_visit = ?, medical_history = ?, year_of_birth = ?,
                    date_of_birth = ?, consultation_price = ?, status = ?, updated_at = ?,
                    has_been_edited = ?
                WHERE id = ?
                """,
                values,
            )
            changes = cursor.rowcount

        logger.info("Patient updated", patient_id=patient.get("id"), changes=changes)
        if changes:
            self._run_hooks("after_patient_write", patient, "update")
        return {"changes": changes}

    def update_patient_status(
        self, patient_id: str, status: str, *, has_been_edited: bool | None = None
    ) -> dict[str, Any]:
        """Set a patient's status and bump updated_at; optionally set the edited flag."""
        with self._connection("update_patient_status", "patients") as conn:
            if has_been_edited is None:
                cursor = conn.execute(
                    "UPDATE patients SET status = ?, updated_at = ? WHERE id = ?",
                    (status, self._now(), patient_id),
                )
            else:
                cursor = conn.execute(
                    "UPDATE patients SET status = ?, updated_at = ?, has_been_edited = ? WHERE id = ?",
                    (status, self._now(), 1 if has_been_edited else 0, patient_id),
                )
            changes = cursor.rowcount
        logger.info("Patient status updated", patient_id=patient_id, status=status, changes=changes)
        return {"changes": changes}

    def delete_patient(self, patient_id: str) -> dict[str, Any]:
        """Delete a patient together with its appointments."""
        with self._connection("delete_patient", "patients") as conn:
            appointments = conn.execute("DELETE FROM appointments WHERE patient_id = ?", (patient_id,)).rowcount
            patients = conn.execute("DELETE FROM patients WHERE id = ?", (patient_id,)).rowcount
        logger.info("Patient deleted", patient_id=patient_id, deleted_appointments=appointments)
        return {"success": True, "deleted_patient": patients, "deleted_appointments": appointments}

    def delete_all_patients(self) -> dict[str, Any]:
        with self._connection("delete_all_patients", "patients") as conn:
            deleted = conn.execute("DELETE FROM patients").rowcount
        logger.warning("All patients deleted", deleted_count=deleted)
        return {"success": True, "deleted_count": deleted}

    # --- Appointments ---

    def get_appointments(self) -> list[dict[str, Any]]:
        with self._connection("get_appointments", "appointments") as conn:
            rows = conn.execute(
                "SELECT * FROM appointments ORDER BY appointment_date ASC, appointment_time ASC"
            ).fetchall()
        return [dict(row) for row in rows]

    def add_appointment(self, appointment: dict[str, Any]) -> dict[str, Any]:
        with self._connection("add_appointment", "appointments") as conn:
            cursor = conn.execute(
                """
                INSERT INTO appointments (
                    patient_id, patient_name, appointment_date, appointment_time,
                    reason, status, created_at, appointment_reason, appointment_context
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    appointment.get("patient_id"),
                    appointment.get("patient_name"),
                    appointment.get("appointment_date"),
                    appointment.get("appointment_time"),
                    appointment.get("reason"),
                    appointment.get("status") or "scheduled",
                    self._now(),
                    appointment.get("appointment_reason") or None,
                    appointment.get("appointment_context") or None,
                ),
            )
            appointment_id = cursor.lastrowid
        logger.info("Appointment added", appointment_id=appointment_id, patient_id=appointment.get("patient_id"))
        return {"id": appointment_id}

    def get_appointment_by_composite(
        self, patient_id: str, appointment_date: str, appointment_time: str
    ) -> dict[str, Any] | None:
        with self._connection("get_appointment_by_composite", "appointments") as conn:
            row = conn.execute(
                """
                SELECT * FROM appointments
                WHERE patient_id = ? AND appointment_date = ? AND appointment_time = ?
                LIMIT 1
                """,
                (patient_id, appointment_date, appointment_time),
            ).fetchone()
        return dict(row) if row else None

    def upsert_appointment_by_composite(self, appointment: dict[str, Any]) -> dict[str, Any]:
        """Insert an appointment or update it when (patient, date, time) already exists."""
        with self._connection("upsert_appointment_by_composite", "appointments") as conn:
            cursor = conn.execute(
                """
                INSERT INTO appointments (
                    patient_id, patient_name, appointment_date, appointment_time, reason, status, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(patient_id, appointment_date, appointment_time) DO UPDATE SET
                    patient_name = excluded.patient_name,
                    reason = excluded.reason,
                    status = excluded.status
                """,
                (
                    appointment.get("patient_id"),
                    appointment.get("patient_name"),
                    appointment.get("appointment_date"),
                    appointment.get("appointment_time"),
                    appointment.get("reason") or "",
                    appointment.get("status") or "scheduled",
                    appointment.get("created_at") or self._now(),
                ),
            )
            result = {"changes": cursor.rowcount, "last_insert_rowid": cursor.lastrowid}
        return result

    def update_appointment(self, appointment: dict[str, Any]) -> dict[str, Any]:
        with self._connection("update_appointment", "appointments") as conn:
            conn.execute(
                """
                UPDATE appointments SET
                    patient_id = ?, patient_name = ?, appointment_date = ?, appointment_time = ?,
                    reason = ?, status = ?, created_at = ?, appointment_reason = ?, appointment_context = ?
                WHERE id = ?
                """,
                (
                    appointment.get("patient_id"),
                    appointment.get("patient_name"),
                    appointment.get("appointment_date"),
                    appointment.get("appointment_time"),
                    appointment.get("reason"),
                    appointment.get("status"),
                    appointment.get("created_at"),
                    appointment.get("appointment_reason") or None,
                    appointment.get("appointment_context") or None,
                    appointment.get("id"),
                ),
            )
        return {"success": True}

    def delete_appointment(self, appointment_id: int) -> dict[str, Any]:
        with self._connection("delete_appointment", "appointments") as conn:
            existing = conn.execute(
                "SELECT id, patient_name, appointment_date, appointment_time FROM appointments WHERE id = ?",
                (appointment_id,),
            ).fetchone()
            if existing is None:
                logger.warning("Appointment not found for deletion", appointment_id=appointment_id)
                return {"deleted": False, "reason": "Appointment not found"}
            deleted = conn.execute("DELETE FROM appointments WHERE id = ?", (appointment_id,)).rowcount > 0
        return {"deleted": deleted, "appointment_data": dict(existing)}

    # --- Messages ---

    def add_message(self, message: dict[str, Any]) -> dict[str, Any]:
        """
        Store a message unless it duplicates a recent one.

        A message is a duplicate when the same (sender, message) pair was stored
        within the trailing duplicate window. The existing row id is returned
        and nothing is inserted.

        Returns:
            {"id": row id, "duplicate": bool}
        """
        sender = message.get("sender")
        text = message.get("message")
        now = self._clock()
        cutoff = (now - timedelta(seconds=self.duplicate_window_seconds)).isoformat(timespec="microseconds")

        with self._connection("add_message", "messages") as conn:
            existing = conn.execute(
                "SELECT id FROM messages WHERE sender = ? AND message = ? AND timestamp > ? LIMIT 1",
                (sender, text, cutoff),
            ).fetchone()
            if existing:
                logger.info("Duplicate message detected, skipping", sender=sender, message_id=existing["id"])
                return {"id": existing["id"], "duplicate": True}

            cursor = conn.execute(
                "INSERT INTO messages (sender, message, timestamp) VALUES (?, ?, ?)",
                (sender, text, now.isoformat(timespec="microseconds")),
            )
            message_id = cursor.lastrowid

        logger.info("Message stored", sender=sender, message_id=message_id)
        return {"id": message_id, "duplicate": False}

    def get_messages(self, limit: int = 100) -> list[dict[str, Any]]:
        with self._connection("get_messages", "messages") as conn:
            rows = conn.execute("SELECT * FROM messages ORDER BY timestamp DESC LIMIT ?", (limit,)).fetchall()
        return [dict(row) for row in rows]

    def clear_messages(self) -> dict[str, Any]:
        with self._connection("clear_messages", "messages") as conn:
            conn.execute("DELETE FROM messages")
        return {"success": True}

    def clear_old_messages(self, today: str | None = None) -> dict[str, Any]:
        """Delete messages stored before today."""
        today = today or self._today()
        with self._connection("clear_old_messages", "messages") as conn:
            deleted = conn.execute("DELETE FROM messages WHERE date(timestamp) < ?", (today,)).rowcount
        return {"success": True, "deleted_count": deleted}

    # --- Settings ---

    def get_settings(self) -> dict[str, str]:
        with self._connection("get_settings", "settings") as conn:
            rows = conn.execute("SELECT key, value FROM settings").fetchall()
        return {row["key"]: row["value"] for row in rows}

    def update_settings(self, settings: dict[str, Any]) -> None:
        """Store settings; booleans and containers are stored as JSON."""
        now = self._now()
        rows = []
        for key, value in settings.items():
            if isinstance(value, bool | dict | list):
                value = json.dumps(value)
            elif value is None:
                value = ""
            rows.append((key, str(value), now))
        with self._connection("update_settings", "settings") as conn:
            conn.executemany(
                """
                INSERT INTO settings (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                rows,
            )
        logger.info("Settings updated", setting_keys=sorted(settings))

    # --- Export ---

    def create_backup(self) -> dict[str, Any]:
        """Export every table into one dictionary."""
        return {
            "patients": self.get_all_patients(),
            "appointments": self.get_appointments(),
            "settings": self.get_settings(),
            "messages": self.get_messages(),
            "backup_date": self._clock().isoformat(),
        }

    def close(self) -> None:
        """Refuse further operations; connections are short-lived so nothing else is held."""
        self._closed = True
        logger.info("Clinic database closed", db_path=self.db_path)

    # --- Async wrappers ---

    async def async_initialize(self) -> None:
        await asyncio.to_thread(self.initialize)

    async def async_get_all_patients(self) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self.get_all_patients)

    async def async_get_today_patients(self, today: str | None = None) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self.get_today_patients, today)

    async def async_get_patient(self, patient_id: str) -> dict[str, Any] | None:
        return await asyncio.to_thread(self.get_patient, patient_id)

    async def async_add_patient(self, patient: dict[str, Any]) -> dict[str, Any]:
        return await asyncio.to_thread(self.add_patient, patient)

    async def async_update_patient(self, patient: dict[str, Any]) -> dict[str, Any]:
        return await asyncio.to_thread(self.update_patient, patient)

    async def async_update_patient_status(
        self, patient_id: str, status: str, *, has_been_edited: bool | None = None
    ) -> dict[str, Any]:
        return await asyncio.to_thread(self.update_patient_status, patient_id, status, has_been_edited=has_been_edited)

    async def async_delete_patient(self, patient_id: str) -> dict[str, Any]:
        return await asyncio.to_thread(self.delete_patient, patient_id)

    async def async_get_appointments(self) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self.get_appointments)

    async def async_add_appointment(self, appointment: dict[str, Any]) -> dict[str, Any]:
        return await asyncio.to_thread(self.add_appointment, appointment)

    async def async_upsert_appointment_by_composite(self, appointment: dict[str, Any]) -> dict[str, Any]:
        return await asyncio.to_thread(self.upsert_appointment_by_composite, appointment)

    async def async_add_message(self, message: dict[str, Any]) -> dict[str, Any]:
        return await asyncio.to_thread(self.add_message, message)

    async def async_get_messages(self, limit: int = 100) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self.get_messages, limit)

    async def async_get_settings(self) -> dict[str, str]:
        return await asyncio.to_thread(self.get_settings)

    async def async_update_settings(self, settings: dict[str, Any]) -> None:
        await asyncio.to_thread(self.update_settings, settings)

    async def async_create_backup(self) -> dict[str, Any]:
        return await asyncio.to_thread(self.create_backup)
