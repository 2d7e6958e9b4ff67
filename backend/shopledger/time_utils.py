from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DD" is interpreted as midnight UTC
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


def end_of_day(value: datetime) -> datetime:
    """Last representable instant of value's calendar day (inclusive 'to' filters)."""
    return datetime.combine(value.date(), time.max)


def period_start(period: str | None, now: datetime | None = None) -> datetime | None:
    """
    Start of a named reporting period.

    today -> midnight today, week -> midnight 7 days ago, month -> midnight 30 days ago.
    Unknown or empty period -> None.
    """
    now = now or utcnow()
    midnight = datetime.combine(now.date(), time.min)
    if period == "today":
        return midnight
    if period == "week":
        return midnight - timedelta(days=7)
    if period == "month":
        return midnight - timedelta(days=30)
    return None


def compact_date(value: date) -> str:
    """2024-05-01 -> '20240501'."""
    return value.strftime("%Y%m%d")


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
