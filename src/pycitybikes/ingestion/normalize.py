"""Normalization helpers.

Lenient scalar coercion for feed values. Feeds in the wild send numbers
as strings, ids as integers and the occasional ``"--"`` placeholder.
"""

from __future__ import annotations

import math
from typing import Any

_PLACEHOLDERS = frozenset({"", "--", "NaN", "nan", "null"})


def is_placeholder(value: Any) -> bool:
    """Return True for values feeds use to mean "not available"."""
    if value is None:
        return True
    if isinstance(value, str) and value.strip() in _PLACEHOLDERS:
        return True
    return isinstance(value, float) and math.isnan(value)


def safe_float(value: Any) -> float | None:
    if is_placeholder(value) or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    """Return *value* as an int, or None unless it is a finite whole number."""
    parsed = safe_float(value)
    if parsed is None or not math.isfinite(parsed) or not parsed.is_integer():
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if is_placeholder(value):
        return None
    text = str(value).strip()
    return text if text else None


def drop_placeholders(values: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of *values* without placeholder entries.

    Dropping a key lets the model fall back to the field default, or
    fail validation when the field is required.
    """
    return {key: value for key, value in values.items() if not is_placeholder(value)}
