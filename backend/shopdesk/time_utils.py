from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from flask import current_app, has_app_context


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today() -> date:
    """
    The shop's current calendar day.

    Uses SHOP_TIMEZONE when configured, otherwise the server's local date.
    Invoice and expiry comparisons are always made against this value,
    never against an instant.
    """
    tz_name = current_app.config.get("SHOP_TIMEZONE") if has_app_context() else None
    if tz_name:
        return datetime.now(ZoneInfo(tz_name)).date()
    return date.today()


def days_from_today(days: int) -> date:
    return today() + timedelta(days=days)


def parse_calendar_date(value) -> Optional[date]:
    """
    Reduce a client-supplied value to a calendar day.

    - None / "" -> None
    - date -> itself
    - datetime -> its date part as written (no timezone conversion)
    - "YYYY-MM-DD" -> that day
    - "YYYY-MM-DDTHH:MM[:SS][Z|+HH:MM]" -> the date part as written

    Raises ValueError for anything else.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError("invalid date")

    s = value.strip()
    if not s:
        return None

    # Timestamps keep the day written in them, offset or not.
    if len(s) > 10 and s[10] in ("T", " "):
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        return datetime.fromisoformat(s).date()

    return date.fromisoformat(s)


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

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)

    # Normalize to UTC-naive
    if dt.tzinfo is None:
        # interpret naive as UTC
        return dt.replace(tzinfo=None)

    return dt.astimezone(timezone.utc).replace(tzinfo=None)


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


def to_iso_date(d: Optional[date]) -> Optional[str]:
    if d is None:
        return None
    if isinstance(d, datetime):
        d = d.date()
    return d.isoformat()
