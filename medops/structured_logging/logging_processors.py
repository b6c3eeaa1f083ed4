"""
Logging processors for structlog event processing.

This module provides processors for sanitizing sensitive data and adding
correlation IDs to every event.
"""

import re
import uuid
from typing import Any

# Patterns match whole words or specific suffixes/prefixes of field names
SENSITIVE_PATTERNS = [
    r"\bpassword\b",
    r"\bpassphrase\b",
    r"\btoken\b",
    r"\bsecret\b",
    r"_key\b",
    r"^key$",
    r"\bcredential\b",
    r"\bciphertext\b",
]

# Patient fields that never belong in a log file
PATIENT_PII_FIELDS = {
    "phone",
    "email",
    "urgent_contact",
    "medical_history",
    "insurances",
    "date_of_birth",
    "file_data",
    "filedata",
}

# Field names that match a pattern but carry no secret
SAFE_FIELDS = {
    "event_key",
    "setting_key",
}


def _sanitize_dict(d: dict[str, Any]) -> dict[str, Any]:
    """Recursively sanitize dictionary values."""
    sanitized: dict[str, Any] = {}
    for key, value in d.items():
        key_lower = str(key).lower()
        if isinstance(value, dict):
            sanitized[key] = _sanitize_dict(value)
        elif key_lower in SAFE_FIELDS:
            sanitized[key] = value
        elif key_lower in PATIENT_PII_FIELDS:
            sanitized[key] = "[REDACTED]"
        elif any(re.search(pattern, key_lower) for pattern in SENSITIVE_PATTERNS):
            sanitized[key] = "[REDACTED]"
        else:
            sanitized[key] = value
    return sanitized


def sanitize_sensitive_data(_logger: Any, _name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Remove sensitive data from log entries.

    Redacts credentials, encryption keys and patient PII so that neither the
    shared cipher key nor medical details end up in a log file.

    Args:
        _logger: Logger instance (unused)
        _name: Logger name (unused)
        event_dict: Event dictionary to sanitize

    Returns:
        Sanitized event dictionary
    """
    return _sanitize_dict(event_dict)


def add_correlation_id(_logger: Any, _name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Add a correlation ID to log entries if not already present."""
    if "correlation_id" not in event_dict:
        event_dict["correlation_id"] = str(uuid.uuid4())
    return event_dict
