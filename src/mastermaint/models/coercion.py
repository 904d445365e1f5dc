"""Lenient coercion of raw grid input into UserRecord field values.

Edits are never rejected for their content. Input that cannot be read as the
field's type falls back to a default instead, so typing "abc" into the age
column stores 0 rather than raising.
"""

from __future__ import annotations

import re

from ..errors import InvalidFieldError
from .constants import EDITABLE_FIELDS, NUMERIC_FALLBACK, Gender

# Leading signed integer, the same prefix rule browsers use for parseInt()
_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})


def coerce_int(value: object) -> int:
    """Coerce a value to int, falling back to NUMERIC_FALLBACK.

    Args:
        value: Raw value (int, float, str or anything else)

    Returns:
        The integer read from value, e.g. "42" -> 42, "12abc" -> 12, "abc" -> 0
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return NUMERIC_FALLBACK
        return int(value)
    if value is None:
        return NUMERIC_FALLBACK

    match = _INT_PREFIX.match(str(value))
    if not match:
        return NUMERIC_FALLBACK
    return int(match.group(1))


def coerce_text(value: object) -> str:
    """Coerce a value to str. None becomes ""."""
    if value is None:
        return ""
    return str(value)


def coerce_gender(value: object) -> Gender:
    """Coerce a value to Gender. Unknown values become Gender.UNSET."""
    if isinstance(value, Gender):
        return value
    try:
        return Gender(coerce_text(value).strip())
    except ValueError:
        return Gender.UNSET


def coerce_bool(value: object) -> bool:
    """Coerce a value to bool, reading common truthy strings."""
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


_COERCERS = {
    "name": coerce_text,
    "address": coerce_text,
    "age": coerce_int,
    "gender": coerce_gender,
    "is_deleted": coerce_bool,
}


def coerce_field_value(field_name: str, value: object) -> object:
    """Coerce a raw value for an editable field.

    Args:
        field_name: One of EDITABLE_FIELDS
        value: Raw value from the grid or caller

    Returns:
        The value converted to the field's type.

    Raises:
        InvalidFieldError: If field_name is not user-editable.
    """
    if field_name not in EDITABLE_FIELDS:
        raise InvalidFieldError(field_name)
    return _COERCERS[field_name](value)
