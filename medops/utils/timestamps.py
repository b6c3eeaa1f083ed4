"""Timestamp parsing for values written by either app."""

from datetime import date, datetime
from typing import Any


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse a stored timestamp, returning None when it is missing or unparsable.

    Accepts ISO-8601 with either "T" or a space as separator and a trailing
    "Z". Aware values are converted to local time.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip().replace(" ", "T", 1)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def to_local_iso(value: Any) -> Any:
    """
    Normalize a timestamp to naive local ISO-8601 so SQLite date() sees the local day.

    Unparsable values are returned unchanged.
    """
    parsed = parse_timestamp(value)
    if parsed is None:
        return value
    return parsed.isoformat(timespec="seconds")
