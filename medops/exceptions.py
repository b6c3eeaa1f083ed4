"""
Exception hierarchy and error handling utilities for MedOps.

Every MedOps error carries an ErrorContext and logs itself when created, so a
raise site only needs to pick the right class.
"""

import traceback
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ErrorContext:
    """Contextual information attached to an error for reporting and debugging."""

    patient_id: str | None = None
    event: str | None = None
    operation: str | None = None
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert context to dictionary for logging."""
        return {
            "patient_id": self.patient_id,
            "event": self.event,
            "operation": self.operation,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


class MedOpsError(Exception):
    """
    Base exception for all MedOps errors.

    Provides structured error handling with context and metadata.
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        details: dict[str, Any] | None = None,
        user_friendly: str | None = None,
    ):
        """
        Initialize MedOps error.

        Args:
            message: Technical error message
            context: Error context information
            details: Additional error details
            user_friendly: Message suitable for display at the front desk
        """
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        self.details = details or {}
        self.user_friendly = user_friendly or message
        self.timestamp = datetime.now()

        self._log_error()

    def _log_error(self):
        """Log the error with structured context."""
        logger.error(
            "MedOps error occurred",
            error_type=self.__class__.__name__,
            message=self.message,
            context=self.context.to_dict(),
            details=self.details,
            timestamp=self.timestamp.isoformat(),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for result payloads."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "user_friendly": self.user_friendly,
            "context": self.context.to_dict(),
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class DatabaseError(MedOpsError):
    """Database operation errors."""

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        operation: str = "unknown",
        table: str | None = None,
        **kwargs,
    ):
        super().__init__(message, context, **kwargs)
        self.operation = operation
        self.table = table
        self.details["operation"] = operation
        if table:
            self.details["table"] = table


class ValidationError(MedOpsError):
    """Data validation errors."""

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        field: str | None = None,
        value: Any | None = None,
        **kwargs,
    ):
        super().__init__(message, context, **kwargs)
        self.field = field
        self.value = value
        if field:
            self.details["field"] = field
        if value is not None:
            self.details["value"] = str(value)


class ConfigurationError(MedOpsError):
    """Configuration and setup errors."""

    def __init__(self, message: str, context: ErrorContext | None = None, config_key: str | None = None, **kwargs):
        super().__init__(message, context, **kwargs)
        self.config_key = config_key
        if config_key:
            self.details["config_key"] = config_key


class NetworkError(MedOpsError):
    """Transport and communication errors."""

    def __init__(self, message: str, context: ErrorContext | None = None, connection_type: str = "socket", **kwargs):
        super().__init__(message, context, **kwargs)
        self.connection_type = connection_type
        self.details["connection_type"] = connection_type


class EncryptionError(MedOpsError):
    """Payload encryption or decryption failures."""

    def __init__(self, message: str, context: ErrorContext | None = None, direction: str = "unknown", **kwargs):
        super().__init__(message, context, **kwargs)
        self.direction = direction
        self.details["direction"] = direction


class ResourceNotFoundError(MedOpsError):
    """Resource not found errors."""

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        resource_type: str | None = None,
        resource_id: str | None = None,
        **kwargs,
    ):
        super().__init__(message, context, **kwargs)
        self.resource_type = resource_type
        self.resource_id = resource_id
        if resource_type:
            self.details["resource_type"] = resource_type
        if resource_id:
            self.details["resource_id"] = resource_id


def create_error_context(**kwargs) -> ErrorContext:
    """Create an error context with the given parameters."""
    return ErrorContext(**kwargs)


def handle_exception(exc: Exception, context: ErrorContext | None = None) -> MedOpsError:
    """
    Convert a generic exception to a MedOps error.

    Args:
        exc: The original exception
        context: Error context

    Returns:
        MedOpsError instance
    """
    if isinstance(exc, MedOpsError):
        return exc

    if isinstance(exc, ValueError | TypeError):
        return ValidationError(str(exc), context, details={"original_type": type(exc).__name__})
    elif isinstance(exc, FileNotFoundError):
        return ResourceNotFoundError(str(exc), context, details={"original_type": type(exc).__name__})
    elif isinstance(exc, ConnectionError | TimeoutError):
        return NetworkError(str(exc), context, details={"original_type": type(exc).__name__})
    elif isinstance(exc, OSError):
        # OSError is a parent of FileNotFoundError, so check it after FileNotFoundError
        return ResourceNotFoundError(str(exc), context, details={"original_type": type(exc).__name__})
    else:
        return MedOpsError(
            str(exc), context, details={"original_type": type(exc).__name__, "traceback": traceback.format_exc()}
        )
