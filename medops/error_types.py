"""
Centralized error types and constants for MedOps.

Operations that hit an expected condition (no doctor connected, no backup
directory) return a failure result built here instead of raising.
"""

from enum import Enum
from typing import Any


class ErrorType(Enum):
    """Standardized error types for consistent categorization."""

    # Resources
    RESOURCE_NOT_FOUND = "resource_not_found"

    # Communication
    NOT_CONNECTED = "not_connected"
    NETWORK_ERROR = "network_error"

    # System
    INTERNAL_ERROR = "internal_error"


class ErrorMessages:
    """Common error messages for consistent user experience."""

    NOT_CONNECTED = "No doctor connected"
    DISCONNECTED_DURING_PUSH = "Doctor disconnected before the dashboard was sent"
    PATIENT_NOT_FOUND = "Patient not found"
    NO_BACKUP_PATH = "No backup path configured"
    INVALID_BACKUP_FILE = "Invalid patient data in backup file"
    INVALID_PATIENT_ID = "Patient id cannot be used as a backup file name"


def create_failure_result(error_type: ErrorType, message: str, **extra: Any) -> dict[str, Any]:
    """
    Create a standardized failure result.

    Args:
        error_type: The type of error
        message: Human-readable error message
        **extra: Additional keys merged into the result

    Returns:
        {"success": False, "error": message, "error_type": ...} plus extras
    """
    result: dict[str, Any] = {"success": False, "error": message, "error_type": error_type.value}
    result.update(extra)
    return result
