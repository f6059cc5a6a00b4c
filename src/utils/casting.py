"""Strict casting helpers for parsing primitive values from the environment."""

from typing import Any, List, Optional

_TRUE = {"1", "true", "t", "yes", "y", "on"}
_FALSE = {"0", "false", "f", "no", "n", "off"}


def to_bool(value: Any) -> bool:
    """Parse booleans from strings while rejecting ambiguous values.

    :param value: Value to convert; accepts bools or truthy/falsy strings.
    :return: Parsed boolean value.
    :raises ValueError: If ``value`` cannot be interpreted as a boolean.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        s = value.strip().lower()
        if s in _TRUE:  return True
        if s in _FALSE: return False
    raise ValueError(f"Cannot strictly parse bool from: {value!r}")


def to_positive_float(value: Any, name: str) -> float:
    """Parse a strictly positive float, naming the setting in the error.

    :raises ValueError: If ``value`` is not a number greater than zero.
    """
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc
    if parsed <= 0:
        raise ValueError(f"{name} must be > 0, got {parsed}")
    return parsed


def to_positive_int(value: Any, name: str) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc
    if parsed <= 0:
        raise ValueError(f"{name} must be > 0, got {parsed}")
    return parsed


def to_csv_list(value: Optional[str]) -> List[str]:
    """Split a comma-separated string into trimmed, non-empty items."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]
