"""Time and number formatting utilities used across the bridge."""

from __future__ import annotations

import datetime
import time
from typing import Optional, Union

import ciso8601


def time_s() -> float:
    """Return the current wall-clock time in seconds as a float."""

    return time.time()


def time_iso8601() -> str:
    """Return the current UTC time formatted as ``YYYY-MM-DDTHH:MM:SS.fffZ``."""

    dt = datetime.datetime.now(datetime.timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def iso8601_to_unix(timestamp: str) -> float:
    """Convert an ISO-8601 string into a Unix timestamp.

    Naive timestamps are interpreted as UTC.

    :param timestamp: ISO-8601 encoded datetime string.
    :return: Floating-point Unix timestamp in seconds.
    :raises ValueError: If ``timestamp`` is not valid ISO-8601.
    """

    parsed = ciso8601.parse_datetime(timestamp)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed.timestamp()


def unix_to_iso8601(timestamp: float) -> str:
    """Convert a Unix timestamp in seconds into a UTC ``...Z`` string."""

    dt = datetime.datetime.fromtimestamp(timestamp, tz=datetime.timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def parse_time_bound(value: Optional[Union[str, int, float]]) -> Optional[int]:
    """Coerce a Unix-seconds or ISO-8601 value into integer Unix seconds.

    :param value: ``None``, a number, a numeric string, or an ISO-8601 string.
    :return: Unix seconds, or ``None`` if ``value`` was empty.
    :raises ValueError: If the value is neither numeric nor ISO-8601.
    """

    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return int(value)
    text = value.strip()
    try:
        return int(float(text))
    except ValueError:
        return int(iso8601_to_unix(text))


def round2(value: float) -> float:
    """Round ``value`` to two decimal places."""

    return round(float(value), 2)


def percent(used: float, total: float) -> float:
    """Return ``used / total * 100`` rounded to two decimals, or ``0`` when ``total <= 0``."""

    if not total or total <= 0:
        return 0.0
    return round2(used / total * 100)
