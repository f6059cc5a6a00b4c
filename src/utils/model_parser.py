"""Helpers for flattening dataclass instances into dictionaries."""

from dataclasses import fields, is_dataclass
from typing import Any, Dict


def model_parser(dataclass_obj: Any) -> Dict[str, Any]:
    """Convert a dataclass instance into a plain dictionary.

    Nested dataclasses, lists, tuples and dicts are converted recursively so the
    result is ready for JSON encoding.

    :param dataclass_obj: Dataclass instance to serialise.
    :return: Dictionary mapping field names to their values.
    :raises TypeError: If ``dataclass_obj`` is not a dataclass instance.
    """

    if not is_dataclass(dataclass_obj) or isinstance(dataclass_obj, type):
        raise TypeError("Input must be a dataclass")

    return {field.name: _convert(getattr(dataclass_obj, field.name)) for field in fields(dataclass_obj)}


def to_plain(value: Any) -> Any:
    """Convert ``value`` (dataclass, container or scalar) into plain Python data."""

    return _convert(value)


def _convert(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return model_parser(value)
    if isinstance(value, dict):
        return {key: _convert(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_convert(item) for item in value]
    return value
