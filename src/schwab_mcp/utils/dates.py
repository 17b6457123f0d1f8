"""
Date parsing helpers for tool arguments and Schwab payload fields.
"""
from __future__ import annotations

from datetime import date, datetime, time, timezone


def parse_iso_date(s: str | None) -> date | None:
    """Parse the date part of an ISO string (YYYY-MM-DD...), or None."""
    if not s or not isinstance(s, str):
        return None
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        return None


def parse_ymd(s: str) -> date:
    """Parse YYYY-MM-DD string to date. Raises ValueError on failure."""
    return date.fromisoformat(s.strip())


def parse_expiration_key(key: str) -> date | None:
    """Date part of a chain bucket key such as '2024-06-21:7'."""
    head, _, _ = str(key).partition(":")
    if len(head) != 10:
        return None
    return parse_iso_date(head)


def parse_timestamp(s: str) -> datetime:
    """
    Parse a date or ISO timestamp argument to an aware datetime (UTC if naive).

    A bare date becomes midnight of that day. Raises ValueError on failure.
    """
    s = s.strip()
    if len(s) == 10:
        return datetime.combine(parse_ymd(s), time.min, tzinfo=timezone.utc)
    dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def end_of_day(d: date) -> datetime:
    return datetime.combine(d, time(23, 59, 59), tzinfo=timezone.utc)

