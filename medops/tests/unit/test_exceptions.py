"""
Tests for the MedOps exception hierarchy and failure results.
"""

import pytest

from medops.error_types import ErrorType, create_failure_result
from medops.exceptions import (
    DatabaseError,
    EncryptionError,
    ErrorContext,
    MedOpsError,
    NetworkError,
    ResourceNotFoundError,
    ValidationError,
    create_error_context,
    handle_exception,
)


def test_error_context_to_dict():
    context = create_error_context(patient_id="p1", operation="send_file", metadata={"file_name": "a.pdf"})

    data = context.to_dict()

    assert data["patient_id"] == "p1"
    assert data["operation"] == "send_file"
    assert data["metadata"] == {"file_name": "a.pdf"}


def test_database_error_details():
    error = DatabaseError("insert failed", operation="add_patient", table="patients")

    assert error.details == {"operation": "add_patient", "table": "patients"}
    assert error.to_dict()["error_type"] == "DatabaseError"
    assert error.user_friendly == "insert failed"


def test_encryption_error_direction():
    assert EncryptionError("bad padding", direction="decrypt").details["direction"] == "decrypt"


@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (ValueError("bad"), ValidationError),
        (TypeError("bad"), ValidationError),
        (FileNotFoundError("missing.pdf"), ResourceNotFoundError),
        (PermissionError("denied"), ResourceNotFoundError),
        (ConnectionResetError("reset"), NetworkError),
        (TimeoutError("slow"), NetworkError),
        (RuntimeError("other"), MedOpsError),
    ],
)
def test_handle_exception_mapping(exc, expected):
    converted = handle_exception(exc, ErrorContext(operation="test"))

    assert type(converted) is expected
    assert converted.context.operation == "test"
    assert converted.details["original_type"] == type(exc).__name__


def test_handle_exception_passes_medops_errors_through():
    error = NetworkError("down")

    assert handle_exception(error) is error


def test_create_failure_result():
    result = create_failure_result(ErrorType.NOT_CONNECTED, "No doctor connected", data={"a": 1})

    assert result == {
        "success": False,
        "error": "No doctor connected",
        "error_type": "not_connected",
        "data": {"a": 1},
    }
