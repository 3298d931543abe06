import re
from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Any, Optional

ISO_DATE_REGEX = re.compile(
    r"^(-?(?:[1-9][0-9]*)?[0-9]{4})-(1[0-2]|0[1-9])-(3[01]|0[1-9]|[12][0-9])"
    r"(T(2[0-3]|[01][0-9]):([0-5][0-9]):([0-5][0-9])(\.[0-9]+)?"
    r"(Z|[+-](?:2[0-3]|[01][0-9]):[0-5][0-9])?)?$"
)
_FRACTION_REGEX = re.compile(r"\.(\d+)")


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parses ISO-8601 date or date-time into timezone-aware `datetime`. Values without
    time zone designator are treated as UTC.

    Returns:
        Parsed `datetime`, or `None` if the value is not a valid date.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if not isinstance(value, str) or not ISO_DATE_REGEX.match(value):
        return None

    value = value.replace("Z", "+00:00")
    # fromisoformat accepts 3 or 6 fraction digits only before Python 3.11
    value = _FRACTION_REGEX.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value, count=1)
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def serialize_datetime(value: datetime) -> str:
    """Returns UTC ISO-8601 representation, e.g. `2024-01-01T00:00:00.000Z`."""
    value = value.astimezone(timezone.utc)
    return value.replace(tzinfo=None).isoformat(timespec="milliseconds") + "Z"


def is_date_like(value: Any) -> bool:
    return isinstance(value, (datetime, date)) or (
        isinstance(value, str) and parse_datetime(value) is not None
    )


def is_collection(value: Any) -> bool:
    from scimkit.data.values import MultiValue

    return isinstance(value, (list, tuple, MultiValue))


def type_name(value: Any) -> str:
    """
    Returns name of the value's type, as used in coercion error messages.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (datetime, date)):
        return "dateTime"
    if is_collection(value):
        return "collection"
    if isinstance(value, Mapping):
        return "complex"
    if isinstance(value, (bytes, bytearray)):
        return "binary"
    return "complex"


def find_key(data: Mapping, key: str) -> Optional[str]:
    """
    Returns the first key from `data` that matches `key` case-insensitively.
    """
    if key in data:
        return key
    lowered = key.lower()
    for candidate in data:
        if isinstance(candidate, str) and candidate.lower() == lowered:
            return candidate
    return None


def get_value(data: Mapping, key: str, default: Any = None) -> Any:
    """
    Case-insensitive lookup of `key` in `data`.
    """
    found = find_key(data, key)
    if found is None:
        return default
    return data[found]