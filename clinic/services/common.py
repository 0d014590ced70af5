"""Small helpers shared by the service and view layers."""
from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from typing import Optional

import bleach

NON_DIGITS = re.compile(r"[^0-9]+")


def iso(value: Optional[datetime]) -> Optional[str]:
    """Render an aware datetime as an ISO-8601 UTC string."""
    if value is None:
        return None
    return value.astimezone(dt_timezone.utc).isoformat().replace("+00:00", "Z")


def digits(value: Optional[str]) -> str:
    return NON_DIGITS.sub("", value or "")


def clean_text(value: Optional[str]) -> Optional[str]:
    """Strip markup and whitespace; blank becomes None."""
    if value is None:
        return None
    cleaned = bleach.clean(str(value), tags=[], strip=True).strip()
    return cleaned or None


def clamp_limit(raw, *, default: int, maximum: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return max(1, min(value, maximum))


def clamp_offset(raw) -> int:
    try:
        return max(0, int(raw))
    except (TypeError, ValueError):
        return 0


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Return the [start, end) UTC datetimes covering ``day``."""
    start = datetime.combine(day, time.min, tzinfo=dt_timezone.utc)
    return start, start + timedelta(days=1)


def range_bounds(start: date, end: date) -> tuple[datetime, datetime]:
    """Inclusive UTC range from the start of ``start`` to the end of ``end``."""
    return (
        datetime.combine(start, time.min, tzinfo=dt_timezone.utc),
        datetime.combine(end, time.max, tzinfo=dt_timezone.utc),
    )
