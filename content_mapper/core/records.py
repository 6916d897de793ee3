"""
Source record access.

Content records arrive as plain mappings, as objects with attributes, or as
content-node style objects exposing ``get_value(alias)``. Everything in the
mapper reads them through ``read_field``.
"""

from typing import Any, Mapping
import re

from shared.utils.config import settings


class _Missing:
    """Sentinel for a field that is not present on a record"""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()

_SNAKE_PART = re.compile(r"_([a-z0-9])")


def to_camel_case(name: str) -> str:
    """
    Convert a snake_case name to camelCase.

    Example:
        to_camel_case("create_date")  # Returns "createDate"
    """
    return _SNAKE_PART.sub(lambda m: m.group(1).upper(), name)


def has_value(value: Any) -> bool:
    """Check whether a field value counts as present."""
    if value is None or value is MISSING:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def _read_key(record: Any, key: str) -> Any:
    """Read one key from a record without walking dots."""
    if record is None or record is MISSING:
        return MISSING

    if isinstance(record, Mapping):
        return record.get(key, MISSING)

    getter = getattr(record, "get_value", None)
    if callable(getter):
        value = getter(key)
        if value is not None:
            return value

    return getattr(record, key, MISSING)


def _read_path(record: Any, path: str) -> Any:
    value = record
    for key in path.split("."):
        value = _read_key(value, key)
        if value is MISSING:
            return MISSING

    # Field objects are stored as {"value": actual_value, ...}
    if isinstance(value, Mapping) and "value" in value:
        value = value["value"]

    return value


def read_field(record: Any, name: str, default: Any = MISSING) -> Any:
    """
    Read a named field from a source record.

    Args:
        record: Mapping, attribute object or content node
        name: Field name, dot notation walks nested records
        default: Returned when the field is absent

    Returns:
        Field value or default

    Example:
        read_field({"meta": {"author": "Ann"}}, "meta.author")  # Returns "Ann"
        read_field({"createDate": t}, "create_date")          # Returns t
    """
    if not name:
        return default

    value = _read_path(record, name)

    if value is MISSING and settings.CAMEL_CASE_FALLBACK and "_" in name:
        camel = ".".join(to_camel_case(part) for part in name.split("."))
        if camel != name:
            value = _read_path(record, camel)

    return default if value is MISSING else value
