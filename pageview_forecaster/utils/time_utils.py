"""
Date helpers for daily series.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

ONE_DAY = timedelta(days=1)


def span_days(first: date, last: date) -> int:
    """Number of calendar days from ``first`` to ``last``, both included."""
    return (last - first).days + 1


def find_gaps(dates: list[date]) -> list[date]:
    """Calendar dates absent between consecutive entries of sorted ``dates``."""
    missing: list[date] = []
    for prev, cur in zip(dates, dates[1:]):
        d = prev + ONE_DAY
        while d < cur:
            missing.append(d)
            d += ONE_DAY
    return missing


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(tz=timezone.utc)
