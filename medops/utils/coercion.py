"""Coercion helpers for values coming out of loosely typed stores."""

from typing import Any

_TRUE_STRINGS = {"1", "true", "yes"}


def coerce_flag(value: Any) -> bool:
    """
    Coerce a stored flag to a real bool.

    Booleans, integers 0/1 and their string forms are all accepted, so
    coerce_flag(1) == coerce_flag(True) == True and None is False.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False
