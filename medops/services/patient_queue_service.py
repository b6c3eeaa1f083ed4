"""
Patient queue service.

Queue status changes made at the front desk are stored and then, when the
doctor is connected, followed by a fresh dashboard push so the doctor's view
never lags behind the waiting room.
"""

from typing import Any

from ..error_types import ErrorMessages, ErrorType, create_failure_result
from ..persistence.clinic_database import ClinicDatabase
from ..realtime.communication_manager import CommunicationManager
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

WAITING_STATUS = "waiting"


class PatientQueueService:
    """Updates queue statuses and keeps the doctor's dashboard in sync."""

    def __init__(self, database: ClinicDatabase, communication_manager: CommunicationManager):
        self.database = database
        self.communication_manager = communication_manager
        logger.info("PatientQueueService initialized")

    async def update_status(self, patient_id: str, status: str) -> dict[str, Any]:
        """
        Change a patient's queue status.

        Args:
            patient_id: The patient's identifier
            status: New status (e.g. "waiting", "with_doctor", "done")

        Returns:
            {"success": True, "changes": n, "dashboard": push result or None}
        """
        result = await self.database.async_update_patient_status(patient_id, status)
        return await self._after_update(patient_id, status, result)

    async def mark_waiting(self, patient_id: str) -> dict[str, Any]:
        """Put a patient in the waiting queue and flag the record as edited."""
        result = await self.database.async_update_patient_status(patient_id, WAITING_STATUS, has_been_edited=True)
        return await self._after_update(patient_id, WAITING_STATUS, result)

    async def _after_update(self, patient_id: str, status: str, result: dict[str, Any]) -> dict[str, Any]:
        if not result.get("changes"):
            logger.warning("Queue status update matched no patient", patient_id=patient_id, status=status)
            return create_failure_result(ErrorType.RESOURCE_NOT_FOUND, ErrorMessages.PATIENT_NOT_FOUND, patient_id=patient_id)

        dashboard = None
        if self.communication_manager.is_connected:
            dashboard = await self.communication_manager.push_dashboard_on_connection()
        logger.info(
            "Queue status updated",
            patient_id=patient_id,
            status=status,
            dashboard_pushed=bool(dashboard and dashboard["success"]),
        )
        return {"success": True, "changes": result["changes"], "dashboard": dashboard}
