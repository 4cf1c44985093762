from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Optional


_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DMY_DATE = re.compile(r"^\d{2}-\d{2}-\d{4}$")


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today() -> date:
    return utcnow().date()


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)

    if dt.tzinfo is None:
        return dt

    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_filter_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a date typed into a filter box.

    Accepts "yyyy-MM-dd" and "dd-MM-yyyy". Anything else, including
    impossible calendar dates like 2024-02-31, returns None so the caller
    can drop the condition instead of failing the request.
    """
    if not isinstance(value, str):
        return None
    s = value.strip()
    try:
        if _ISO_DATE.match(s):
            return datetime.strptime(s, "%Y-%m-%d").date()
        if _DMY_DATE.match(s):
            return datetime.strptime(s, "%d-%m-%Y").date()
    except ValueError:
        return None
    return None


def parse_range_bound(value: Optional[str]) -> Optional[date]:
    """Parse a dashboard from/to bound: a date or a full ISO datetime."""
    if not value:
        return None
    parsed = parse_filter_date(value)
    if parsed is not None:
        return parsed
    try:
        dt = parse_iso_datetime(value)
    except ValueError:
        return None
    return dt.date() if dt else None


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


def to_ymd(d: Optional[date]) -> Optional[str]:
    return d.strftime("%Y-%m-%d") if d else None


def to_dmy(d: Optional[date]) -> str:
    """dd-MM-yyyy as shown in transaction tables; "-" when missing."""
    return d.strftime("%d-%m-%Y") if d else "-"
