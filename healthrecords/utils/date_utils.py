"""Lenient date parsing for report and profile timestamps."""

from datetime import date, datetime, timezone
from typing import Any, Optional

_FALLBACK_FORMATS = (
    "%Y-%m-%d",
    "%d/%m/%Y",
    "%m/%d/%Y",
    "%d-%m-%Y",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d, %Y",
)


def parse_date(value: Any) -> Optional[datetime]:
    """Parse a stored date value into an aware UTC datetime.

    Accepts datetimes, dates, epoch milliseconds and ISO-8601 strings
    (including the trailing ``Z`` JavaScript emits). Returns None for anything
    that cannot be read as a date.
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        try:
            parsed = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            parsed = None
            for fmt in _FALLBACK_FORMATS:
                try:
                    parsed = datetime.strptime(raw, fmt)
                    break
                except ValueError:
                    continue
            if parsed is None:
                return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def month_label(value: datetime, with_year: bool = True) -> str:
    """Chart label such as "Jan 2024" (or "Jan")."""
    return value.strftime("%b %Y") if with_year else value.strftime("%b")
