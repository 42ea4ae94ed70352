"""Timestamp helpers shared by the record stores and the views.

Instants are stored as fixed-width UTC ISO-8601 strings so that text
comparison in SQLite orders the same way as the instants themselves.
Display strings mimic the en-US locale formatting the dashboard has always
shown (``10/19/2026, 3:04:05 PM`` and ``10/19/2026``).
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Union
from zoneinfo import ZoneInfo

_ISO_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"

# Fractional seconds followed by an offset or the end of the string.
_FRACTION = re.compile(r"\.(\d+)(?=[+-]\d{2}:?\d{2}$|$)")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """Parse an ISO-8601 string (or pass through a datetime) as an aware instant.

    Naive values are taken to be UTC. A trailing ``Z`` is accepted. Fractional
    seconds of any length (PostgREST drops trailing zeros) are padded or cut
    to six digits.

    Raises:
        ValueError: If the string is not ISO-8601.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_iso(value: datetime) -> str:
    """Serialize an instant as a fixed-width UTC ISO-8601 string."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(_ISO_FORMAT)


def locale_datetime(value: datetime, tz: str = "UTC") -> str:
    """Format like en-US ``toLocaleString()``: ``M/D/YYYY, h:mm:ss AM``."""
    local = value.astimezone(_zone(tz))
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return (
        f"{local.month}/{local.day}/{local.year}, "
        f"{hour}:{local.minute:02d}:{local.second:02d} {meridiem}"
    )


def locale_date(value: datetime, tz: str = "UTC") -> str:
    """Format like en-US ``toLocaleDateString()``: ``M/D/YYYY``."""
    local = value.astimezone(_zone(tz))
    return f"{local.month}/{local.day}/{local.year}"


def _zone(tz: str):
    """`UTC` needs no tz database; other names go through zoneinfo."""
    if tz.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(tz)


def shift_months(value: datetime, months: int) -> datetime:
    """Move ``value`` by a number of calendar months, clamping the day.

    ``Mar 31`` minus one month lands on the last day of February.
    """
    total = value.year * 12 + (value.month - 1) + months
    year, month = divmod(total, 12)
    month += 1
    day = min(value.day, _days_in_month(year, month))
    return value.replace(year=year, month=month, day=day)


def _days_in_month(year: int, month: int) -> int:
    if month == 12:
        nxt = datetime(year + 1, 1, 1)
    else:
        nxt = datetime(year, month + 1, 1)
    return (nxt - datetime(year, month, 1)).days
