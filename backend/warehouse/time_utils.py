from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Union


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


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


def to_local(value: Union[datetime, str, None]) -> Optional[datetime]:
    """
    Convert a stored UTC value (naive datetime or ISO string) to naive local time.

    Dashboard windows ("today", "this month") are computed against the
    server's local midnight, so stored timestamps are shifted before comparing.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = parse_iso_datetime(value)
        if value is None:
            return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone().replace(tzinfo=None)


def local_day_start(now: Optional[datetime] = None) -> datetime:
    """Local midnight of the day containing `now` (naive local)."""
    now = now or datetime.now()
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def local_month_start(now: Optional[datetime] = None) -> datetime:
    """First instant of the local month containing `now` (naive local)."""
    return local_day_start(now).replace(day=1)


def timestamp_slug(dt: Optional[datetime] = None) -> str:
    """Filesystem-safe timestamp, e.g. 2026-10-19T14-03-22."""
    dt = dt or datetime.now()
    return dt.replace(microsecond=0).isoformat().replace(":", "-")
