from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_business_date(value) -> date:
    """
    Parse a calendar day given as 'YYYY-MM-DD'.

    Business dates are plain days with no time or timezone; anything else
    (datetimes, '2024-6-1', empty strings) is rejected with ValueError.
    """
    if isinstance(value, datetime):
        raise ValueError("date must be a calendar day (YYYY-MM-DD)")
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value.strip()) != 10:
        raise ValueError("date must be formatted as YYYY-MM-DD")
    return date.fromisoformat(value.strip())


def format_business_date(value: Optional[date]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")
