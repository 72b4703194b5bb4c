# app/period.py
"""
Helpers for working with time and reporting periods.

Definitions
- all timestamps are naive UTC datetimes (SQLite drops tzinfo on the way back)
- a "period" is one calendar month, picked with loose ?month=&year= strings

Public API:
- utcnow() -> datetime
- month_range(month, year) -> (start, end) | None
- period_label(month, year) -> "M/YYYY" | "all-time"
- parse_datetime("2025-01-15" | "2025-01-15T10:00:00") -> datetime
"""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

__all__ = [
    "utcnow",
    "month_range",
    "period_label",
    "parse_datetime",
]


def utcnow() -> datetime:
    """Current UTC time without tzinfo, comparable with values read from the DB."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _month_and_year(
    month: Optional[str], year: Optional[str]
) -> Optional[Tuple[int, int]]:
    """Both parts present and numeric, month 1-12; otherwise None."""
    if not month or not year:
        return None
    try:
        m, y = int(month), int(year)
    except ValueError:
        return None
    if m < 1 or m > 12 or y < 1:
        return None
    return m, y


def month_range(
    month: Optional[str], year: Optional[str]
) -> Optional[Tuple[datetime, datetime]]:
    """
    Inclusive bounds of one calendar month.
    Example: ("2", "2024") -> (2024-02-01 00:00:00, 2024-02-29 23:59:59.999999).
    Missing or non-numeric input means "no filter" and returns None.
    """
    parsed = _month_and_year(month, year)
    if parsed is None:
        return None
    m, y = parsed
    start = datetime(y, m, 1)
    last_day = calendar.monthrange(y, m)[1]
    end = datetime(y, m, last_day) + timedelta(days=1, microseconds=-1)
    return start, end


def period_label(month: Optional[str], year: Optional[str]) -> str:
    parsed = _month_and_year(month, year)
    if parsed is None:
        return "all-time"
    m, y = parsed
    return f"{m}/{y}"


def parse_datetime(value: str) -> datetime:
    """
    Accept 'YYYY-MM-DD' or a full ISO timestamp; aware values are
    converted to naive UTC.
    """
    if not value or not isinstance(value, str):
        raise ValueError("date string is required")
    dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt
