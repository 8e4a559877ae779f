"""Time-bucketing helpers for the stats endpoints"""

from datetime import datetime, timedelta
from typing import Iterable, Optional


def months_ago(months: int, now: Optional[datetime] = None) -> datetime:
    """First instant of the calendar month ``months - 1`` months before ``now``"""
    now = now or datetime.utcnow()
    year, month = now.year, now.month - (months - 1)
    while month <= 0:
        month += 12
        year -= 1
    return datetime(year, month, 1)


def days_ago(days: int, now: Optional[datetime] = None) -> datetime:
    return (now or datetime.utcnow()) - timedelta(days=days)


def month_key(moment: datetime) -> str:
    return f"{moment.year:04d}-{moment.month:02d}"


def monthly_series(
    rows: Iterable[tuple[datetime, float]], months: int = 12, now: Optional[datetime] = None
) -> list[dict]:
    """
    Bucket ``(created_at, value)`` rows into consecutive calendar months.

    Every month in the window is present, oldest first, so charts get zeros
    instead of gaps.
    """
    start = months_ago(months, now)
    buckets: dict[str, dict] = {}
    year, month = start.year, start.month
    for _ in range(months):
        key = f"{year:04d}-{month:02d}"
        buckets[key] = {"month": key, "count": 0, "total": 0.0}
        month += 1
        if month > 12:
            month = 1
            year += 1

    for created_at, value in rows:
        if created_at is None:
            continue
        bucket = buckets.get(month_key(created_at))
        if bucket is not None:
            bucket["count"] += 1
            bucket["total"] = round(bucket["total"] + float(value or 0), 2)

    return list(buckets.values())
